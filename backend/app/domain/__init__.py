"""Domain models representing normalized contest data."""

from .models import Contest, Platform

__all__ = [
    "Contest",
    "Platform",
]
