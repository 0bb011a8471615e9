"""CodeChef contest listing adapter.

The listing splits contests into ``present_contests``, ``future_contests`` and
``past_contests``. Each record carries both an ISO timestamp with offset
(``contest_start_date_iso``) and a display string in Indian Standard Time
(``contest_start_date``); the ISO field wins when both are present.
``contest_duration`` is in minutes.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import tzinfo
from typing import Any

from loguru import logger

from app.domain import Contest, Platform

from ..client import UpstreamClient
from ..errors import UpstreamUnavailable
from ..normalize import duration_between, duration_seconds, parse_datetime, zone
from .base import ContestAdapter

CONTEST_URL = "https://www.codechef.com/{code}"
SECTIONS = ("present_contests", "future_contests", "past_contests")
DISPLAY_TIMEZONE = "Asia/Kolkata"

DEFAULT_PARAMS = {
    "sort_by": "START",
    "sorting_order": "asc",
    "offset": 0,
    "mode": "all",
}


def _first(entry: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = entry.get(key)
        if value not in (None, ""):
            return value
    return None


class CodeChefAdapter(ContestAdapter):
    platform = Platform.CODECHEF

    async def fetch_raw(self, client: UpstreamClient) -> Any:
        return await client.get_json(self.name, self.api_url, params=DEFAULT_PARAMS)

    def parse(self, payload: Any) -> Iterator[Contest]:
        body = self._expect_mapping(payload, "response")
        status = body.get("status", "success")
        if status != "success":
            raise UpstreamUnavailable(self.name, body.get("message") or f"status {status}")

        sections = [name for name in SECTIONS if name in body]
        if not sections:
            raise self._malformed("response has no contest sections")

        display_tz = zone(DISPLAY_TIMEZONE)
        for section in sections:
            for raw in self._expect_list(body[section] or [], section):
                entry = self._expect_mapping(raw, f"{section}[]")
                contest = self._parse_entry(entry, display_tz)
                if contest is not None:
                    yield contest

    def _parse_entry(self, entry: dict[str, Any], display_tz: tzinfo) -> Contest | None:
        code = _first(entry, "contest_code", "code")
        if code is None:
            raise self._malformed("contest entry without a code")

        start_time = parse_datetime(
            _first(entry, "contest_start_date_iso", "contest_start_date", "startDate"),
            default_tz=display_tz,
        )
        if start_time is None:
            logger.debug("Skipping CodeChef contest {} without a start date", code)
            return None

        duration = duration_seconds(_first(entry, "contest_duration"), unit="minutes")
        if duration is None:
            end_time = parse_datetime(
                _first(entry, "contest_end_date_iso", "contest_end_date", "endDate"),
                default_tz=display_tz,
            )
            duration = duration_between(start_time, end_time)
        if duration is None:
            logger.debug("Skipping CodeChef contest {} without a duration", code)
            return None

        code = str(code)
        return Contest(
            id=code,
            name=str(_first(entry, "contest_name", "name") or code),
            platform=self.platform,
            start_time=start_time,
            duration=duration,
            url=CONTEST_URL.format(code=code),
        )
