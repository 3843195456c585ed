import logging

from .common import (
    CHECKED_PLATFORMS, CookieStatus, CredentialExpired, Platform,
    PlatformError, SolvedSubmission,
)

logger = logging.getLogger(__name__)

_registry = {}


def register_client(cls):
    """Decorator to register a platform client."""
    _registry[cls.PLATFORM] = cls
    logger.debug(f"Registered platform client: {cls.PLATFORM.value} ({cls.PLATFORM_DISPLAY})")
    return cls


def get_client_class(platform):
    return _registry.get(Platform.parse(platform))


def get_all_clients():
    return dict(_registry)


def get_client(platform, **kwargs):
    cls = get_client_class(platform)
    if cls is None:
        raise ValueError(f"Unknown platform: {platform}")
    return cls(**kwargs)


def build_clients(rate_limit: float = 0.5, timeout: float = 30) -> dict:
    """Instantiate one client per checked platform."""
    return {
        platform: get_client(platform, rate_limit=rate_limit, timeout=timeout)
        for platform in CHECKED_PLATFORMS
    }


# The set of platforms is closed; each module registers its client on import.
from . import gfg, hackerrank, leetcode  # noqa: E402,F401

__all__ = [
    'CHECKED_PLATFORMS',
    'CookieStatus',
    'CredentialExpired',
    'Platform',
    'PlatformError',
    'SolvedSubmission',
    'build_clients',
    'get_all_clients',
    'get_client',
    'get_client_class',
    'register_client',
]
