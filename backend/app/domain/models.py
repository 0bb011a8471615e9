"""Typed domain representations shared by ingestion, the API and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum


class Platform(str, Enum):
    """Contest platforms with a registered upstream adapter."""

    CODEFORCES = "codeforces"
    CODECHEF = "codechef"
    LEETCODE = "leetcode"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class Contest:
    """Normalized contest record produced by every platform adapter.

    ``start_time`` is always a UTC-aware datetime and ``duration`` is always in
    whole seconds, whatever the upstream reported.
    """

    id: str
    name: str
    platform: Platform
    start_time: datetime
    duration: int
    url: str
    solution_url: str | None = None

    def __post_init__(self) -> None:
        if self.start_time.tzinfo is None:
            raise ValueError("Contest.start_time must be timezone-aware")
        if self.start_time.tzinfo is not timezone.utc:
            object.__setattr__(self, "start_time", self.start_time.astimezone(timezone.utc))
        if self.duration < 0:
            raise ValueError("Contest.duration must not be negative")

    @property
    def key(self) -> tuple[str, str]:
        return (self.platform.value, self.id)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(seconds=self.duration)

    def sort_key(self) -> tuple[datetime, str, str]:
        return (self.start_time, self.platform.value, self.id)
