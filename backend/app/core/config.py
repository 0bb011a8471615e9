from functools import lru_cache
from typing import Any

from pydantic import AnyHttpUrl, AnyUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_HTTP_URL = TypeAdapter(AnyHttpUrl)


def checked_http_url(value: str) -> str:
    """Validate ``value`` as an http(s) URL and return it as given, stripped."""

    text = value.strip()
    try:
        _HTTP_URL.validate_python(text)
    except ValidationError as exc:
        raise ValueError(f"{text!r} is not a valid http(s) URL") from exc
    return text


def _default_retention_days() -> dict[str, int | None]:
    return {"codeforces": 30, "codechef": 30, "leetcode": 30}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    log_level: str = Field(default="INFO", description="Minimum loguru level")
    feed_base_url: str = Field(
        default="http://localhost:8000",
        description="Public URL the browser front end fetches contests from",
    )
    admin_username: str = Field(
        default="admin",
        description="Shared admin username compared at login",
    )
    admin_password: str | None = Field(
        default=None,
        description="Shared admin password; admin endpoints are disabled when unset",
    )
    cors_origins: list[str] | str = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the feed from a browser",
    )
    adapter_timeout_seconds: float = Field(
        default=5.0,
        description="Upper bound on a single platform adapter call",
    )
    retention_days: dict[str, int | None] | str = Field(
        default_factory=_default_retention_days,
        description=(
            "Per-platform retention window in days; contests that started earlier "
            "than now minus the window are dropped. null keeps every contest."
        ),
    )
    codeforces_api_url: AnyUrl | str = Field(
        default="https://codeforces.com/api/contest.list",
        description="Codeforces contest.list endpoint",
    )
    codechef_api_url: AnyUrl | str = Field(
        default="https://www.codechef.com/api/list/contests/all",
        description="CodeChef contest listing endpoint",
    )
    leetcode_graphql_url: AnyUrl | str = Field(
        default="https://leetcode.com/graphql",
        description="LeetCode GraphQL endpoint",
    )
    user_agent: str = Field(
        default="contest-feed/0.1 (+https://github.com)",
        description="User-Agent sent to upstream platforms",
    )

    def retention_for(self, platform: str) -> int | None:
        defaults = _default_retention_days()
        if platform in self.retention_days:
            return self.retention_days[platform]
        return defaults.get(platform)

    @field_validator("adapter_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("adapter_timeout_seconds must be positive")
        return value

    @field_validator("feed_base_url", mode="after")
    @classmethod
    def _normalize_feed_base_url(cls, value: str) -> str:
        return checked_http_url(value).rstrip("/")

    @field_validator("retention_days", mode="before")
    @classmethod
    def _parse_retention(cls, value: Any) -> Any:
        if value in (None, ""):
            return _default_retention_days()
        if isinstance(value, str):
            # "codeforces=30,leetcode=" style overrides from the environment
            parsed: dict[str, int | None] = {}
            for token in (part.strip() for part in value.split(",")):
                if not token:
                    continue
                if "=" not in token:
                    raise ValueError("RETENTION_DAYS entries must look like platform=days")
                name, raw_days = (piece.strip() for piece in token.split("=", 1))
                parsed[name.lower()] = int(raw_days) if raw_days else None
            return parsed
        return value

    @field_validator("retention_days", mode="after")
    @classmethod
    def _validate_retention(cls, value: dict[str, int | None]) -> dict[str, int | None]:
        for name, days in value.items():
            if days is not None and days < 0:
                raise ValueError(f"retention_days for '{name}' must not be negative")
        return {name.lower(): days for name, days in value.items()}

    @field_validator("cors_origins", mode="after")
    @classmethod
    def _parse_cors_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item for item in (part.strip() for part in value.split(",")) if item]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        raise ValueError("CORS_ORIGINS must be provided as a list or comma-separated string")

    @property
    def admin_enabled(self) -> bool:
        return bool(self.admin_password)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
