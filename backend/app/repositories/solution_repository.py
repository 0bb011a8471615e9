"""Keyed store for admin-supplied solution links."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from app.domain import Contest


@dataclass(slots=True, frozen=True)
class SolutionRecord:
    platform: str
    contest_id: str
    solution_url: str
    updated_at: datetime


class SolutionRepository:
    """Process-local mapping of ``(platform, contest_id)`` to a solution URL.

    Writes are last-writer-wins; the lock only keeps the dict consistent when
    requests are served from a thread pool.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[tuple[str, str], SolutionRecord] = {}

    def get(self, platform: str, contest_id: str) -> SolutionRecord | None:
        with self._lock:
            return self._records.get((platform, contest_id))

    def set(self, platform: str, contest_id: str, solution_url: str) -> SolutionRecord:
        record = SolutionRecord(
            platform=platform,
            contest_id=contest_id,
            solution_url=solution_url,
            updated_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._records[(platform, contest_id)] = record
        return record

    def delete(self, platform: str, contest_id: str) -> bool:
        with self._lock:
            return self._records.pop((platform, contest_id), None) is not None

    def all(self) -> list[SolutionRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda record: (record.platform, record.contest_id))

    def apply(self, contests: Iterable[Contest]) -> list[Contest]:
        """Return ``contests`` with any stored solution URL filled in."""

        with self._lock:
            urls = {key: record.solution_url for key, record in self._records.items()}
        if not urls:
            return list(contests)
        return [
            replace(contest, solution_url=urls[contest.key]) if contest.key in urls else contest
            for contest in contests
        ]
