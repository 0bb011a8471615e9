from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from app.domain import Contest

from .adapters import ContestAdapter
from .client import UpstreamClient
from .errors import AllSourcesUnavailable, UpstreamUnavailable
from .registry import AdapterRegistry

ClientFactory = Callable[[], UpstreamClient]


@dataclass(slots=True)
class FeedResult:
    """Merged output of one aggregation pass."""

    contests: list[Contest]
    source_errors: dict[str, UpstreamUnavailable] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return bool(self.source_errors)


@dataclass(slots=True)
class _Outcome:
    platform: str
    contests: list[Contest] | None = None
    error: UpstreamUnavailable | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContestAggregator:
    """Fans out to every registered adapter concurrently and merges the results.

    A failing adapter only removes its own platform from the feed; the call
    fails with ``AllSourcesUnavailable`` only when no adapter succeeded.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        *,
        timeout: float,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self._client_factory = client_factory or (lambda: UpstreamClient(timeout=timeout))

    async def aggregate(self, *, now: datetime | None = None) -> FeedResult:
        reference = now or _utcnow()
        adapters = list(self.registry)
        if not adapters:
            raise AllSourcesUnavailable({})

        async with self._client_factory() as client:
            outcomes = await asyncio.gather(
                *(self._run(adapter, client, reference) for adapter in adapters)
            )

        contests: list[Contest] = []
        source_errors: dict[str, UpstreamUnavailable] = {}
        for outcome in outcomes:
            if outcome.error is not None:
                source_errors[outcome.platform] = outcome.error
            else:
                contests.extend(outcome.contests or [])

        if len(source_errors) == len(adapters):
            logger.error("All contest sources failed: {}", ", ".join(sorted(source_errors)))
            raise AllSourcesUnavailable(source_errors)

        contests.sort(key=Contest.sort_key)
        logger.info(
            "Aggregated {} contests from {} sources ({} failed)",
            len(contests),
            len(adapters) - len(source_errors),
            len(source_errors),
        )
        return FeedResult(contests=contests, source_errors=source_errors)

    async def fetch_platform(self, name: str, *, now: datetime | None = None) -> list[Contest]:
        """Run a single adapter; raises ``UnknownPlatformError`` or ``UpstreamUnavailable``."""

        adapter = self.registry.get(name)
        async with self._client_factory() as client:
            outcome = await self._run(adapter, client, now or _utcnow())
        if outcome.error is not None:
            raise outcome.error
        return outcome.contests or []

    async def _run(self, adapter: ContestAdapter, client: UpstreamClient, now: datetime) -> _Outcome:
        try:
            contests = await asyncio.wait_for(
                adapter.fetch_contests(client, now=now), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            error = UpstreamUnavailable(adapter.name, f"timed out after {self.timeout:g}s")
            error.__cause__ = exc
            logger.warning("{}", error)
            return _Outcome(adapter.name, error=error)
        except UpstreamUnavailable as exc:
            logger.warning("{}", exc)
            return _Outcome(adapter.name, error=exc)
        except Exception as exc:
            logger.exception("Adapter {} raised unexpectedly", adapter.name)
            return _Outcome(adapter.name, error=UpstreamUnavailable(adapter.name, exc))
        return _Outcome(adapter.name, contests=contests)


def summarize_errors(errors: Mapping[str, UpstreamUnavailable]) -> dict[str, dict[str, Any]]:
    return {platform: error.to_dict() for platform, error in sorted(errors.items())}
