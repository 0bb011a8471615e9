"""Exception taxonomy for upstream contest sources."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _describe(cause: BaseException | str) -> str:
    if isinstance(cause, BaseException):
        return str(cause) or type(cause).__name__
    return cause


class ContestFeedError(Exception):
    """Base class for contest feed failures."""

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


class UpstreamUnavailable(ContestFeedError):
    """One platform's upstream call failed (network, non-2xx, timeout, bad body)."""

    summary = "upstream unavailable"

    def __init__(self, platform: str, cause: BaseException | str) -> None:
        self.platform = str(platform)
        self.cause = cause
        super().__init__(f"{self.platform} {self.summary}: {_describe(cause)}")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["platform"] = self.platform
        return payload


class MalformedUpstreamPayload(UpstreamUnavailable):
    """Upstream answered 2xx with a body the adapter cannot parse."""

    summary = "returned a malformed payload"


class AllSourcesUnavailable(ContestFeedError):
    """Every registered adapter failed; nothing can be served."""

    def __init__(self, errors: Mapping[str, UpstreamUnavailable]) -> None:
        self.errors = dict(errors)
        if self.errors:
            failed = ", ".join(sorted(self.errors))
            message = f"All contest sources are unavailable ({failed})"
        else:
            message = "No contest sources are registered"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["sources"] = {
            platform: error.to_dict() for platform, error in sorted(self.errors.items())
        }
        return payload


class UnknownPlatformError(ContestFeedError, LookupError):
    """Raised when a caller names a platform with no registered adapter."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Platform '{name}' is not registered")


__all__ = [
    "AllSourcesUnavailable",
    "ContestFeedError",
    "MalformedUpstreamPayload",
    "UnknownPlatformError",
    "UpstreamUnavailable",
]
