from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from app.domain import Platform
from ingestion.adapters import CodeChefAdapter, CodeforcesAdapter, LeetCodeAdapter
from ingestion.client import UpstreamClient
from ingestion.errors import MalformedUpstreamPayload, UpstreamUnavailable

from conftest import NOW, json_handler, route_by_host


def _fetch(adapter, handler, *, now: datetime = NOW):
    transport = route_by_host({httpx.URL(adapter.api_url).host: handler})

    async def run():
        async with UpstreamClient(timeout=1.0, transport=transport) as client:
            return await adapter.fetch_contests(client, now=now)

    return asyncio.run(run())


def _codeforces(retention_days: int | None = 30) -> CodeforcesAdapter:
    return CodeforcesAdapter(api_url="https://codeforces.com/api/contest.list", retention_days=retention_days)


def _codechef(retention_days: int | None = 30) -> CodeChefAdapter:
    return CodeChefAdapter(api_url="https://www.codechef.com/api/list/contests/all", retention_days=retention_days)


def _leetcode(retention_days: int | None = 30) -> LeetCodeAdapter:
    return LeetCodeAdapter(api_url="https://leetcode.com/graphql", retention_days=retention_days)


def test_codeforces_single_contest_keeps_upstream_instant_and_seconds():
    payload = {
        "status": "OK",
        "result": [
            {"id": 1900, "name": "Round", "startTimeSeconds": 1700000000, "durationSeconds": 7200}
        ],
    }

    contests = _fetch(_codeforces(retention_days=None), json_handler(payload))

    assert len(contests) == 1
    contest = contests[0]
    assert contest.start_time == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert contest.duration == 7200
    assert contest.platform is Platform.CODEFORCES
    assert contest.url == "https://codeforces.com/contest/1900"
    assert contest.solution_url is None


def test_codeforces_skips_unscheduled_and_expired_contests(codeforces_payload):
    contests = _fetch(_codeforces(), json_handler(codeforces_payload))

    assert [contest.id for contest in contests] == ["1899", "1900"]
    assert [contest.duration for contest in contests] == [8100, 7200]


def test_codeforces_without_retention_keeps_history(codeforces_payload):
    contests = _fetch(_codeforces(retention_days=None), json_handler(codeforces_payload))

    assert [contest.id for contest in contests] == ["1000", "1899", "1900"]


def test_codeforces_failed_status_is_upstream_unavailable():
    payload = {"status": "FAILED", "comment": "Call limit exceeded"}

    with pytest.raises(UpstreamUnavailable, match="Call limit exceeded") as excinfo:
        _fetch(_codeforces(), json_handler(payload))

    assert excinfo.value.platform == "codeforces"
    assert not isinstance(excinfo.value, MalformedUpstreamPayload)


def test_codeforces_schema_drift_is_malformed():
    payload = {"status": "OK", "result": [{"id": 1, "name": "x", "startTimeSeconds": "tomorrow"}]}

    with pytest.raises(MalformedUpstreamPayload):
        _fetch(_codeforces(), json_handler(payload))


def test_codeforces_non_2xx_is_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable, match="HTTP 503"):
        _fetch(_codeforces(), json_handler({"status": "FAILED"}, status_code=503))


def test_non_json_body_is_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(MalformedUpstreamPayload):
        _fetch(_codeforces(), handler)


def test_codechef_converts_ist_and_minutes(codechef_payload):
    contests = _fetch(_codechef(), json_handler(codechef_payload))

    assert [contest.id for contest in contests] == ["START109", "START110"]
    upcoming = contests[1]
    assert upcoming.name == "Starters 110"
    assert upcoming.start_time == datetime(2023, 11, 15, 14, 30, tzinfo=timezone.utc)
    assert upcoming.duration == 7200
    assert upcoming.url == "https://www.codechef.com/START110"


def test_codechef_falls_back_to_display_dates_and_legacy_fields():
    payload = {
        "status": "success",
        "future_contests": [
            {
                "code": "COOK159",
                "name": "Cook-Off 159",
                "contest_start_date": "20 Nov 2023  21:30:00",
                "contest_end_date": "21 Nov 2023  00:00:00",
            }
        ],
        "past_contests": [],
    }

    contests = _fetch(_codechef(), json_handler(payload))

    assert len(contests) == 1
    assert contests[0].id == "COOK159"
    assert contests[0].name == "Cook-Off 159"
    assert contests[0].start_time == datetime(2023, 11, 20, 16, 0, tzinfo=timezone.utc)
    assert contests[0].duration == 9000


def test_codechef_ids_are_unique_across_sections(codechef_payload):
    duplicate = dict(codechef_payload["future_contests"][0])
    codechef_payload["present_contests"] = [duplicate]

    contests = _fetch(_codechef(), json_handler(codechef_payload))

    ids = [contest.id for contest in contests]
    assert len(ids) == len(set(ids))


def test_codechef_error_status_and_missing_sections():
    with pytest.raises(UpstreamUnavailable):
        _fetch(_codechef(), json_handler({"status": "error", "message": "maintenance"}))
    with pytest.raises(MalformedUpstreamPayload):
        _fetch(_codechef(), json_handler({"status": "success"}))


def test_leetcode_parses_graphql_payload(leetcode_payload):
    contests = _fetch(_leetcode(), json_handler(leetcode_payload))

    assert [contest.id for contest in contests] == ["biweekly-contest-117", "weekly-contest-372"]
    weekly = contests[1]
    assert weekly.start_time == datetime(2023, 11, 19, 2, 30, tzinfo=timezone.utc)
    assert weekly.duration == 5400
    assert weekly.url == "https://leetcode.com/contest/weekly-contest-372"


def test_leetcode_sends_graphql_query(leetcode_payload):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=leetcode_payload)

    _fetch(_leetcode(), handler)

    assert seen[0].method == "POST"
    assert b"allContests" in seen[0].content


def test_leetcode_graphql_errors_are_malformed():
    payload = {"errors": [{"message": "Cannot query field"}], "data": None}

    with pytest.raises(MalformedUpstreamPayload, match="Cannot query field"):
        _fetch(_leetcode(), json_handler(payload))


@pytest.mark.parametrize(
    ("adapter_factory", "payload_fixture"),
    [
        (_codeforces, "codeforces_payload"),
        (_codechef, "codechef_payload"),
        (_leetcode, "leetcode_payload"),
    ],
)
def test_every_adapter_emits_utc_instants_and_whole_seconds(adapter_factory, payload_fixture, request):
    adapter = adapter_factory(retention_days=None)
    contests = _fetch(adapter, json_handler(request.getfixturevalue(payload_fixture)))

    assert contests
    for contest in contests:
        assert contest.platform is adapter.platform
        assert contest.start_time.tzinfo is timezone.utc
        assert isinstance(contest.duration, int) and contest.duration >= 0
        # durations reported in minutes or milliseconds would fall outside this range
        assert 60 * 30 <= contest.duration <= 60 * 60 * 24 * 14
    ids = [contest.id for contest in contests]
    assert len(ids) == len(set(ids))


@pytest.mark.parametrize("start", ["20:00:00", "15", "Dec 2023"])
def test_codechef_partial_display_date_is_malformed(start):
    payload = {
        "status": "success",
        "future_contests": [
            {
                "contest_code": "START999",
                "contest_name": "Starters 999",
                "contest_start_date": start,
                "contest_duration": "120",
            }
        ],
        "past_contests": [],
    }

    with pytest.raises(MalformedUpstreamPayload, match="incomplete date"):
        _fetch(_codechef(), json_handler(payload))
