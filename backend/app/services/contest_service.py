"""Read facade over the aggregated contest feed used by the API and scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from app.domain import Contest
from app.repositories import SolutionRecord, SolutionRepository
from ingestion.errors import UnknownPlatformError, UpstreamUnavailable
from ingestion.service import ContestAggregator, FeedResult


@dataclass(slots=True)
class ContestQuery:
    platforms: Sequence[str] | None = None
    status: str | None = None
    search: str | None = None
    start_after: datetime | None = None
    start_before: datetime | None = None
    now: datetime | None = None

    def matches(self, contest: Contest, *, now: datetime) -> bool:
        """Apply the front end's platform, status, search and date filters."""

        if self.platforms and contest.platform.value not in self.platforms:
            return False
        if self.status == "upcoming" and contest.start_time <= now:
            return False
        if self.status == "past" and contest.start_time > now:
            return False
        if self.search and self.search.casefold() not in contest.name.casefold():
            return False
        if self.start_after and contest.start_time < _as_utc(self.start_after):
            return False
        if self.start_before and contest.start_time > _as_utc(self.start_before):
            return False
        return True


@dataclass(slots=True)
class ContestFeed:
    contests: list[Contest]
    source_errors: dict[str, UpstreamUnavailable] = field(default_factory=dict)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ContestService:
    """Combines the aggregator with admin-supplied solution links."""

    def __init__(self, aggregator: ContestAggregator, solutions: SolutionRepository):
        self._aggregator = aggregator
        self._solutions = solutions

    @property
    def platforms(self) -> tuple[str, ...]:
        return self._aggregator.registry.platforms()

    def unknown_platforms(self, query: ContestQuery) -> list[str]:
        """Platform filter names that match no registered adapter."""

        registered = set(self.platforms)
        return sorted({name for name in query.platforms or () if name not in registered})

    async def feed(self, query: ContestQuery | None = None) -> ContestFeed:
        """Aggregate every source; raises ``AllSourcesUnavailable`` on total failure."""

        query = query or ContestQuery()
        result: FeedResult = await self._aggregator.aggregate(now=query.now)
        contests = self._finalize(result.contests, query)
        return ContestFeed(contests=contests, source_errors=dict(result.source_errors))

    async def platform_contests(self, name: str, query: ContestQuery | None = None) -> list[Contest]:
        query = query or ContestQuery()
        contests = await self._aggregator.fetch_platform(name, now=query.now)
        return self._finalize(contests, query)

    def set_solution(self, platform: str, contest_id: str, solution_url: str) -> SolutionRecord:
        return self._solutions.set(self._resolve_platform(platform), contest_id, solution_url)

    def clear_solution(self, platform: str, contest_id: str) -> bool:
        return self._solutions.delete(self._resolve_platform(platform), contest_id)

    def solutions(self) -> list[SolutionRecord]:
        return self._solutions.all()

    def _resolve_platform(self, name: str) -> str:
        platform = name.lower()
        if platform not in self.platforms:
            raise UnknownPlatformError(name)
        return platform

    def _finalize(self, contests: Sequence[Contest], query: ContestQuery) -> list[Contest]:
        now = _as_utc(query.now) if query.now else datetime.now(timezone.utc)
        filtered = [contest for contest in contests if query.matches(contest, now=now)]
        return self._solutions.apply(filtered)
