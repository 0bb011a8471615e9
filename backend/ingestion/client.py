from __future__ import annotations

from typing import Any, Mapping

import httpx
from loguru import logger

from app.core.config import settings

from .errors import MalformedUpstreamPayload, UpstreamUnavailable


class UpstreamClient:
    """Thin async wrapper around the public contest endpoints.

    Every transport or HTTP failure is re-raised as ``UpstreamUnavailable`` for
    the platform that issued the call, and a 2xx body that is not JSON becomes
    ``MalformedUpstreamPayload``.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout or settings.adapter_timeout_seconds
        headers = {
            "Accept": "application/json",
            "User-Agent": user_agent or settings.user_agent,
        }
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=headers,
            transport=transport,
            follow_redirects=True,
        )

    async def get_json(
        self,
        platform: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        logger.info("{} GET {} params={}", platform, url, dict(params or {}))
        return await self._request(platform, "GET", url, params=params)

    async def post_json(
        self,
        platform: str,
        url: str,
        *,
        payload: Mapping[str, Any],
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        logger.info("{} POST {}", platform, url)
        return await self._request(platform, "POST", url, json=payload, headers=headers)

    async def _request(self, platform: str, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(
                platform, f"HTTP {exc.response.status_code} from {exc.request.url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(platform, exc) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedUpstreamPayload(platform, "response body is not JSON") from exc

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "UpstreamClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
