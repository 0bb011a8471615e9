"""LeetCode GraphQL adapter."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from app.domain import Contest, Platform

from ..client import UpstreamClient
from ..normalize import duration_seconds, from_epoch_seconds
from .base import ContestAdapter

CONTEST_URL = "https://leetcode.com/contest/{slug}"

ALL_CONTESTS_QUERY = """
query getContestList {
  allContests {
    title
    titleSlug
    startTime
    duration
  }
}
"""


class LeetCodeAdapter(ContestAdapter):
    platform = Platform.LEETCODE

    async def fetch_raw(self, client: UpstreamClient) -> Any:
        return await client.post_json(
            self.name,
            self.api_url,
            payload={"operationName": "getContestList", "query": ALL_CONTESTS_QUERY, "variables": {}},
            headers={"Referer": "https://leetcode.com/contest/"},
        )

    def parse(self, payload: Any) -> Iterator[Contest]:
        body = self._expect_mapping(payload, "response")
        errors = body.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else errors
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise self._malformed(f"GraphQL error: {message}")

        data = self._expect_mapping(body.get("data"), "data")
        for raw in self._expect_list(data.get("allContests"), "data.allContests"):
            entry = self._expect_mapping(raw, "allContests[]")
            slug = entry["titleSlug"]
            if not slug:
                raise self._malformed("contest without a titleSlug")
            start_time = from_epoch_seconds(entry["startTime"])
            duration = duration_seconds(entry["duration"])
            if start_time is None or duration is None:
                continue
            slug = str(slug)
            yield Contest(
                id=slug,
                name=str(entry.get("title") or slug),
                platform=self.platform,
                start_time=start_time,
                duration=duration,
                url=CONTEST_URL.format(slug=slug),
            )
