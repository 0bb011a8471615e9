"""Repository abstractions for state that outlives a single request."""

from .solution_repository import SolutionRecord, SolutionRepository

__all__ = [
    "SolutionRecord",
    "SolutionRepository",
]
