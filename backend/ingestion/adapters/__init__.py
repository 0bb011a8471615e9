"""Built-in platform adapters."""

from .base import ContestAdapter
from .codechef import CodeChefAdapter
from .codeforces import CodeforcesAdapter
from .leetcode import LeetCodeAdapter

__all__ = [
    "CodeChefAdapter",
    "CodeforcesAdapter",
    "ContestAdapter",
    "LeetCodeAdapter",
]
