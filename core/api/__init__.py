# Social media API integration module

from .social_api import DEFAULT_TIMEOUT_SECONDS, SocialMediaClient

__all__ = [
    "SocialMediaClient",
    "DEFAULT_TIMEOUT_SECONDS",
]
