"""
Social Leaderboard Core Library.

This package provides the core functionality for the leaderboard service:
configuration, logging, the Redis cache layer, the social media API client,
and the leaderboard services.

Usage:
    # Config
    from core.config import get_settings, Settings

    # Logging
    from core.logging import get_logger, configure_logging

    # Cache
    from core.cache import RedisStore, ResponseCache, CacheKeys

    # Services
    from core.services import LeaderboardRefresher, TopUsersService
"""

__version__ = "1.0.0"

# Lazy imports to avoid circular dependencies
# Users should import directly from submodules:
#   from core.cache import RedisStore
#   from core.config import get_settings
#   from core.logging import get_logger
