"""Resolve judge problem URLs into platform-native identifiers (slugs)."""
from __future__ import annotations

import re
from urllib.parse import urlparse

from .common import Platform

_PROBLEMS_SEGMENT = re.compile(r'/problems/([^/?#\s]+)')

_HOST_PLATFORMS = (
    ('leetcode.com', Platform.LEETCODE),
    ('leetcode.cn', Platform.LEETCODE),
    ('hackerrank.com', Platform.HACKERRANK),
    ('geeksforgeeks.org', Platform.GFG),
)


def extract_identifier(platform, url: str) -> str:
    """Return the slug after ``/problems/`` in *url*, or *url* itself.

    Never raises: an unparseable URL is returned unchanged and used as a
    degraded identifier.
    """
    if not url:
        return url
    # every checked platform keys its problems by the segment after /problems/
    m = _PROBLEMS_SEGMENT.search(url)
    return m.group(1) if m else url


def detect_platform(url: str) -> Platform:
    """Guess the platform from the URL host."""
    if not url:
        return Platform.OTHER
    host = (urlparse(url).hostname or '').lower()
    for suffix, platform in _HOST_PLATFORMS:
        if host == suffix or host.endswith('.' + suffix):
            return platform
    return Platform.OTHER
