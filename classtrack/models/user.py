from __future__ import annotations

from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from classtrack.extensions import db
from classtrack.platforms.common import CHECKED_PLATFORMS, CookieStatus, Platform

ROLE_STUDENT = 'STUDENT'
ROLE_TEACHER = 'TEACHER'


class User(UserMixin, db.Model):
    """A student or teacher account with its linked judge-platform handles."""

    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_STUDENT)

    leetcode_username = db.Column(db.String(100), nullable=True)
    leetcode_cookie = db.Column(db.Text, nullable=True)
    leetcode_cookie_status = db.Column(
        db.String(20), nullable=False, default=CookieStatus.NOT_LINKED.value
    )
    hackerrank_username = db.Column(db.String(100), nullable=True)
    hackerrank_cookie = db.Column(db.Text, nullable=True)
    hackerrank_cookie_status = db.Column(
        db.String(20), nullable=False, default=CookieStatus.NOT_LINKED.value
    )
    gfg_username = db.Column(db.String(100), nullable=True)
    gfg_cookie = db.Column(db.Text, nullable=True)
    gfg_cookie_status = db.Column(
        db.String(20), nullable=False, default=CookieStatus.NOT_LINKED.value
    )

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    submissions = db.relationship(
        'Submission', back_populates='user',
        cascade='all, delete-orphan', lazy='dynamic',
    )
    enrollments = db.relationship(
        'Enrollment', back_populates='student',
        cascade='all, delete-orphan', lazy='dynamic',
    )

    @property
    def is_teacher(self) -> bool:
        return self.role == ROLE_TEACHER

    def set_password(self, password: str) -> None:
        """Hash and store the user's password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a plaintext password against the stored hash."""
        return check_password_hash(self.password_hash, password)

    # ------------------------------------------------------------------
    # Per-platform account fields
    # ------------------------------------------------------------------

    @staticmethod
    def _prefix(platform) -> str:
        platform = Platform.parse(platform)
        if platform not in CHECKED_PLATFORMS:
            raise ValueError(f'No account fields for platform: {platform.value}')
        return platform.value

    def platform_username(self, platform) -> str | None:
        return getattr(self, f'{self._prefix(platform)}_username')

    def platform_cookie(self, platform) -> str | None:
        return getattr(self, f'{self._prefix(platform)}_cookie')

    def cookie_status(self, platform) -> CookieStatus:
        raw = getattr(self, f'{self._prefix(platform)}_cookie_status')
        return CookieStatus(raw or CookieStatus.NOT_LINKED.value)

    def set_cookie_status(self, platform, status: CookieStatus) -> None:
        setattr(
            self, f'{self._prefix(platform)}_cookie_status',
            CookieStatus(status).value,
        )

    def link_platform(self, platform, username: str | None, cookie: str | None = None) -> None:
        """Store a platform handle and, if given, a fresh session cookie.

        A new cookie always moves the account to LINKED, including from
        EXPIRED; clearing the cookie moves it back to NOT_LINKED.
        """
        prefix = self._prefix(platform)
        setattr(self, f'{prefix}_username', (username or '').strip() or None)
        if cookie:
            setattr(self, f'{prefix}_cookie', cookie.strip())
            self.set_cookie_status(platform, CookieStatus.LINKED)
        elif cookie is not None:
            setattr(self, f'{prefix}_cookie', None)
            self.set_cookie_status(platform, CookieStatus.NOT_LINKED)

    def __repr__(self) -> str:
        return f'<User {self.username!r} role={self.role}>'
