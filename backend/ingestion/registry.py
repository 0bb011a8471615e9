"""Registry of platform adapters keyed by platform name."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Dict

from app.core.config import Settings

from .adapters import CodeChefAdapter, CodeforcesAdapter, ContestAdapter, LeetCodeAdapter
from .errors import UnknownPlatformError


class AdapterRegistry:
    """Adapters the aggregator fans out to, iterated in platform-name order."""

    def __init__(self, adapters: Iterable[ContestAdapter] = ()) -> None:
        self._adapters: Dict[str, ContestAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ContestAdapter) -> None:
        """Register or replace the adapter for ``adapter.name``."""

        self._adapters[adapter.name.lower()] = adapter

    def get(self, name: str) -> ContestAdapter:
        """Return the adapter registered under ``name``."""

        try:
            return self._adapters[name.lower()]
        except KeyError as exc:
            raise UnknownPlatformError(name) from exc

    def platforms(self) -> tuple[str, ...]:
        """Return the tuple of registered platform names."""

        return tuple(sorted(self._adapters))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._adapters

    def __iter__(self) -> Iterator[ContestAdapter]:
        return iter(self._adapters[name] for name in self.platforms())

    def __len__(self) -> int:
        return len(self._adapters)


def build_default_registry(settings: Settings) -> AdapterRegistry:
    """Register the built-in Codeforces, CodeChef and LeetCode adapters."""

    return AdapterRegistry(
        [
            CodeforcesAdapter(
                api_url=str(settings.codeforces_api_url),
                retention_days=settings.retention_for("codeforces"),
            ),
            CodeChefAdapter(
                api_url=str(settings.codechef_api_url),
                retention_days=settings.retention_for("codechef"),
            ),
            LeetCodeAdapter(
                api_url=str(settings.leetcode_graphql_url),
                retention_days=settings.retention_for("leetcode"),
            ),
        ]
    )


__all__ = [
    "AdapterRegistry",
    "UnknownPlatformError",
    "build_default_registry",
]
