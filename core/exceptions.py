"""
Exception types shared across the leaderboard service.

Only configuration errors are fatal; the others are converted into
degraded results where they are raised.
"""

from typing import List, Optional


class LeaderboardError(Exception):
    """Base class for service errors."""


class ConfigurationError(LeaderboardError):
    """Raised when required settings are missing or invalid."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        self.missing = missing or []
        super().__init__(message)


class UpstreamError(LeaderboardError):
    """Raised when the social media API call fails."""

    def __init__(self, path: str, reason: str, status_code: Optional[int] = None):
        self.path = path
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{path}: {reason}")


__all__ = [
    "LeaderboardError",
    "ConfigurationError",
    "UpstreamError",
]
