from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from app.core.config import Settings
from ingestion.adapters import CodeChefAdapter, CodeforcesAdapter, LeetCodeAdapter
from ingestion.client import UpstreamClient
from ingestion.registry import AdapterRegistry
from ingestion.service import ContestAggregator

DATA_DIR = Path(__file__).parent / "data"

# Fixed reference instant; every fixture contest inside the 30 day window is
# anchored around mid November 2023.
NOW = datetime(2023, 11, 10, tzinfo=timezone.utc)

CODEFORCES_HOST = "codeforces.com"
CODECHEF_HOST = "www.codechef.com"
LEETCODE_HOST = "leetcode.com"

Handler = Callable[[httpx.Request], object]


def load_payload(name: str) -> dict[str, object]:
    return json.loads((DATA_DIR / name).read_text(encoding="utf-8"))


def json_handler(payload: object, status_code: int = 200) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


def hanging_handler(request: httpx.Request):
    async def _hang() -> httpx.Response:
        await asyncio.sleep(30)
        return httpx.Response(200, json={})

    return _hang()


def failing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def route_by_host(handlers: dict[str, Handler]) -> httpx.MockTransport:
    def dispatch(request: httpx.Request):
        handler = handlers.get(request.url.host)
        if handler is None:
            return httpx.Response(404, json={"error": "no route"})
        return handler(request)

    return httpx.MockTransport(dispatch)


def build_registry(retention_days: int | None = 30) -> AdapterRegistry:
    return AdapterRegistry(
        [
            CodeforcesAdapter(api_url="https://codeforces.com/api/contest.list", retention_days=retention_days),
            CodeChefAdapter(api_url="https://www.codechef.com/api/list/contests/all", retention_days=retention_days),
            LeetCodeAdapter(api_url="https://leetcode.com/graphql", retention_days=retention_days),
        ]
    )


def build_aggregator(
    handlers: dict[str, Handler],
    *,
    timeout: float = 1.0,
    registry: AdapterRegistry | None = None,
) -> ContestAggregator:
    transport = route_by_host(handlers)
    return ContestAggregator(
        registry or build_registry(),
        timeout=timeout,
        client_factory=lambda: UpstreamClient(timeout=timeout, transport=transport),
    )


@pytest.fixture
def codeforces_payload() -> dict[str, object]:
    return load_payload("codeforces_contests.json")


@pytest.fixture
def codechef_payload() -> dict[str, object]:
    return load_payload("codechef_contests.json")


@pytest.fixture
def leetcode_payload() -> dict[str, object]:
    return load_payload("leetcode_contests.json")


@pytest.fixture
def healthy_handlers(codeforces_payload, codechef_payload, leetcode_payload) -> dict[str, Handler]:
    return {
        CODEFORCES_HOST: json_handler(codeforces_payload),
        CODECHEF_HOST: json_handler(codechef_payload),
        LEETCODE_HOST: json_handler(leetcode_payload),
    }


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        _env_file=None,
        admin_username="admin",
        admin_password="s3cret",
        adapter_timeout_seconds=1.0,
        cors_origins=["http://localhost:3000"],
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings
