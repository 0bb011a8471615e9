"""Contract shared by every platform adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from app.domain import Contest, Platform

from ..client import UpstreamClient
from ..errors import MalformedUpstreamPayload


class ContestAdapter(ABC):
    """Fetches one platform's contest list and normalizes it to ``Contest``.

    Subclasses implement :meth:`fetch_raw` and :meth:`parse`; the base class
    takes care of the retention window, per-platform id uniqueness and ordering.
    """

    platform: Platform

    def __init__(self, *, api_url: str, retention_days: int | None = None) -> None:
        self.api_url = str(api_url)
        self.retention_days = retention_days

    @property
    def name(self) -> str:
        return self.platform.value

    @abstractmethod
    async def fetch_raw(self, client: UpstreamClient) -> Any:
        """Return the decoded upstream payload."""

    @abstractmethod
    def parse(self, payload: Any) -> Iterable[Contest]:
        """Yield normalized contests from an upstream payload."""

    async def fetch_contests(self, client: UpstreamClient, *, now: datetime) -> list[Contest]:
        payload = await self.fetch_raw(client)
        try:
            contests = list(self.parse(payload))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise MalformedUpstreamPayload(self.name, exc) from exc

        kept = self._deduplicate(self._within_window(contests, now=now))
        logger.debug(
            "{} returned {} contests ({} kept after windowing)",
            self.name,
            len(contests),
            len(kept),
        )
        return sorted(kept, key=lambda contest: (contest.start_time, contest.id))

    def _within_window(self, contests: Iterable[Contest], *, now: datetime) -> list[Contest]:
        if self.retention_days is None:
            return list(contests)
        horizon = now - timedelta(days=self.retention_days)
        return [contest for contest in contests if contest.start_time >= horizon]

    def _deduplicate(self, contests: Iterable[Contest]) -> list[Contest]:
        seen: set[str] = set()
        unique: list[Contest] = []
        for contest in contests:
            if contest.id in seen:
                continue
            seen.add(contest.id)
            unique.append(contest)
        return unique

    def _malformed(self, reason: str) -> MalformedUpstreamPayload:
        return MalformedUpstreamPayload(self.name, reason)

    def _expect_list(self, value: Any, field: str) -> list[Any]:
        if not isinstance(value, list):
            raise self._malformed(f"'{field}' is not a list")
        return value

    def _expect_mapping(self, value: Any, field: str) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise self._malformed(f"'{field}' is not an object")
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(api_url={self.api_url!r}, retention_days={self.retention_days!r})"
