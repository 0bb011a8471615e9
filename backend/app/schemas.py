from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from .core.config import checked_http_url


class CamelModel(BaseModel):
    """Base for payloads exchanged with the browser front end (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Contest(CamelModel):
    id: str
    name: str
    platform: str
    start_time: datetime
    duration: int = Field(ge=0, description="Contest length in seconds")
    url: str
    solution_url: str | None = None

    @classmethod
    def from_domain(cls, contest: Any) -> "Contest":
        return cls(
            id=contest.id,
            name=contest.name,
            platform=str(contest.platform),
            start_time=contest.start_time,
            duration=contest.duration,
            url=contest.url,
            solution_url=contest.solution_url,
        )

    @field_serializer("start_time")
    def _serialize_start_time(self, value: datetime) -> str:
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class SourceError(BaseModel):
    error: str
    message: str
    platform: str | None = None


class ContestFeed(CamelModel):
    contests: list[Contest]
    source_errors: dict[str, SourceError] = Field(default_factory=dict)


class FrontendConfig(CamelModel):
    feed_base_url: str
    platforms: list[str]


class AdminLogin(BaseModel):
    username: str
    password: str


class AdminLoginResult(BaseModel):
    authenticated: bool


class SolutionUpdate(CamelModel):
    solution_url: str

    @field_validator("solution_url")
    @classmethod
    def _check_solution_url(cls, value: str) -> str:
        return checked_http_url(value)


class Solution(CamelModel):
    platform: str
    contest_id: str
    solution_url: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
