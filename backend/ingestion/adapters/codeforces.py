"""Codeforces ``contest.list`` adapter."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from loguru import logger

from app.domain import Contest, Platform

from ..client import UpstreamClient
from ..errors import UpstreamUnavailable
from ..normalize import duration_seconds, from_epoch_seconds
from .base import ContestAdapter

CONTEST_URL = "https://codeforces.com/contest/{id}"


class CodeforcesAdapter(ContestAdapter):
    platform = Platform.CODEFORCES

    async def fetch_raw(self, client: UpstreamClient) -> Any:
        return await client.get_json(self.name, self.api_url, params={"gym": "false"})

    def parse(self, payload: Any) -> Iterator[Contest]:
        body = self._expect_mapping(payload, "response")
        status = body.get("status", "OK")
        if status != "OK":
            # Codeforces reports API-level failures with a 200 and status FAILED.
            raise UpstreamUnavailable(self.name, body.get("comment") or f"status {status}")

        for raw in self._expect_list(body.get("result"), "result"):
            entry = self._expect_mapping(raw, "result[]")
            start_time = from_epoch_seconds(entry.get("startTimeSeconds"))
            if start_time is None:
                logger.debug("Skipping unscheduled Codeforces contest {}", entry.get("id"))
                continue
            duration = duration_seconds(entry["durationSeconds"])
            if duration is None:
                continue
            contest_id = str(entry["id"])
            yield Contest(
                id=contest_id,
                name=str(entry.get("name") or contest_id),
                platform=self.platform,
                start_time=start_time,
                duration=duration,
                url=CONTEST_URL.format(id=contest_id),
            )
