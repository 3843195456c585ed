from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

import requests

from .common import CredentialExpired, Platform, SolvedSubmission
from .rate_limiter import get_platform_limiter

AUTH_FAILURE_CODES = (401, 403)


class BasePlatformClient(ABC):
    """Common capability interface for judge-platform clients.

    ``fetch_all_solved`` never raises for ordinary failures and returns an
    empty set instead. ``fetch_single_submission`` raises only
    ``CredentialExpired``; every other failure is logged and yields None.
    """

    PLATFORM: Platform = Platform.OTHER
    PLATFORM_DISPLAY: str = ""
    BASE_URL: str = ""
    COOKIE_NAME: str = ""
    # True when a stored cookie can be verified without a problem slug
    SESSION_CHECK: bool = False

    def __init__(self, rate_limit: float = 0.5, timeout: float = 30):
        self.timeout = timeout
        self.rate_limiter = get_platform_limiter(self.PLATFORM.value, rate_limit)
        self.logger = logging.getLogger(f'platform.{self.PLATFORM.value}')
        self.session = self._create_session()

    @abstractmethod
    def fetch_all_solved(self, username: str) -> set[str]:
        ...

    @abstractmethod
    def fetch_single_submission(self, identifier: str, cookie: str) -> SolvedSubmission | None:
        ...

    @abstractmethod
    def verify_session(self, username: str, cookie: str) -> bool:
        """Check that *cookie* is still accepted. Raises CredentialExpired."""
        ...

    def get_problem_url(self, identifier: str) -> str:
        return f"{self.BASE_URL}/problems/{identifier}/"

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
            'Accept': 'application/json',
        })
        return session

    def _cookie_header(self, cookie: str) -> str:
        """Accept either a bare cookie value or a full ``name=value; ...`` string."""
        cookie = cookie.strip()
        if '=' in cookie:
            return cookie
        return f'{self.COOKIE_NAME}={cookie}'

    def _request(self, url, method='GET', **kwargs) -> requests.Response:
        self.rate_limiter.wait()
        resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        resp.raise_for_status()
        return resp

    def _authenticated_request(
        self, url, cookie: str, identifier: str, method='GET', headers=None, **kwargs
    ) -> requests.Response:
        """Request with the stored cookie; 401/403 become CredentialExpired."""
        request_headers = {'Cookie': self._cookie_header(cookie)}
        if headers:
            request_headers.update(headers)
        self.rate_limiter.wait()
        resp = self.session.request(
            method, url, headers=request_headers, timeout=self.timeout, **kwargs
        )
        if resp.status_code in AUTH_FAILURE_CODES:
            self.logger.error(
                f"{self.PLATFORM.value} cookie expired/invalid for {identifier or 'session check'}"
            )
            raise CredentialExpired(self.PLATFORM.value, identifier)
        resp.raise_for_status()
        return resp


def parse_timestamp(value) -> datetime | None:
    """Parse epoch seconds or an ISO-like string into a naive UTC datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.isdigit()):
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    return None


def json_dict(data, key) -> dict:
    """``data[key]`` when both levels are JSON objects, else an empty dict."""
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, dict) else {}


def json_list(data, key) -> list:
    """``data[key]`` when *data* is an object and the value is an array, else []."""
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, list) else []
