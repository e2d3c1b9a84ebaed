"""
Cache key management.

Centralized cache key definitions to:
- Prevent key collisions between credentials
- Keep the leaderboard set name in one place
"""

from core.config import FINGERPRINT_LENGTH


def credential_fingerprint(token: str, length: int = FINGERPRINT_LENGTH) -> str:
    """Short identifier derived from a secret, never the secret itself."""
    return token[-length:] if token else ""


class CacheKeys:
    """
    Centralized cache key definitions.

    Naming convention: {logical_key}_{credential_fingerprint}

    Examples:
        - top_users_a1b2c3 -> Cached /users payload for one access token
        - user_post_counts -> Sorted set of userId -> post count
    """

    # Sorted set holding one score per user id
    USER_POST_COUNTS = "user_post_counts"

    # Logical keys for cached responses
    TOP_USERS = "top_users"

    # Leaderboard size
    TOP_N = 5

    @staticmethod
    def response_key(logical_key: str, fingerprint: str) -> str:
        """Cache key for a memoized response under one credential."""
        return f"{logical_key}_{fingerprint}"
