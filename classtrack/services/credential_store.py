from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from classtrack.extensions import db
from classtrack.models import User
from classtrack.platforms import CookieStatus, Platform

logger = logging.getLogger(__name__)


@dataclass
class PlatformCredential:
    username: str | None = None
    cookie: str | None = None
    status: CookieStatus = CookieStatus.NOT_LINKED

    @property
    def has_cookie(self) -> bool:
        return bool(self.cookie) and self.status == CookieStatus.LINKED


class CredentialStore(ABC):
    """Per-user, per-platform handle, cookie and cookie status.

    The reconciliation engine reads credentials and records LINKED→EXPIRED
    transitions through this interface only.
    """

    @abstractmethod
    def get(self, user_id: int, platform: Platform) -> PlatformCredential:
        ...

    @abstractmethod
    def set_status(self, user_id: int, platform: Platform, status: CookieStatus) -> None:
        ...

    def mark_expired(self, user_id: int, platform: Platform) -> None:
        self.set_status(user_id, platform, CookieStatus.EXPIRED)


class SQLCredentialStore(CredentialStore):
    """Credentials stored in the per-platform columns of ``User``."""

    def get(self, user_id, platform):
        user = db.session.get(User, user_id)
        if user is None:
            return PlatformCredential()
        return PlatformCredential(
            username=user.platform_username(platform),
            cookie=user.platform_cookie(platform),
            status=user.cookie_status(platform),
        )

    def set_status(self, user_id, platform, status):
        user = db.session.get(User, user_id)
        if user is None:
            logger.warning(f"Cannot set {platform.value} cookie status: user {user_id} not found")
            return
        user.set_cookie_status(platform, status)
        db.session.commit()


class InMemoryCredentialStore(CredentialStore):
    """Dict-backed store, used by tests and ad-hoc scripts."""

    def __init__(self, credentials: dict | None = None):
        # {(user_id, Platform): PlatformCredential}
        self._credentials = dict(credentials or {})
        self.status_changes = []

    def put(self, user_id, platform, username=None, cookie=None, status=None):
        if status is None:
            status = CookieStatus.LINKED if cookie else CookieStatus.NOT_LINKED
        self._credentials[(user_id, Platform.parse(platform))] = PlatformCredential(
            username=username, cookie=cookie, status=status,
        )

    def get(self, user_id, platform):
        return self._credentials.get((user_id, Platform.parse(platform)), PlatformCredential())

    def set_status(self, user_id, platform, status):
        platform = Platform.parse(platform)
        current = self._credentials.setdefault((user_id, platform), PlatformCredential())
        current.status = CookieStatus(status)
        self.status_changes.append((user_id, platform, current.status))
