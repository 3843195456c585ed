from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Platform(str, Enum):
    LEETCODE = 'leetcode'
    HACKERRANK = 'hackerrank'
    GFG = 'gfg'
    OTHER = 'other'

    @classmethod
    def parse(cls, value) -> Platform:
        """Lenient lookup; anything unrecognised is OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or '').strip().lower())
        except ValueError:
            return cls.OTHER


# Platforms that have a client and take part in reconciliation
CHECKED_PLATFORMS = (Platform.LEETCODE, Platform.HACKERRANK, Platform.GFG)


class CookieStatus(str, Enum):
    NOT_LINKED = 'NOT_LINKED'
    LINKED = 'LINKED'
    EXPIRED = 'EXPIRED'


@dataclass
class SolvedSubmission:
    submission_time: datetime
    is_correct: bool = True


class PlatformError(Exception):
    """Base class for errors raised by platform clients."""


class CredentialExpired(PlatformError):
    """The platform rejected a stored session cookie (HTTP 401/403)."""

    def __init__(self, platform: str, identifier: str = ''):
        self.platform = platform
        self.identifier = identifier
        super().__init__(f'{platform} credential expired (problem: {identifier})')
