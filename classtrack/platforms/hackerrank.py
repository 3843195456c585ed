from __future__ import annotations

import logging

from .base import BasePlatformClient, json_list, parse_timestamp
from .common import CredentialExpired, Platform, SolvedSubmission
from . import register_client

logger = logging.getLogger(__name__)

RECENT_CHALLENGES_URL = 'https://www.hackerrank.com/rest/hackers/{username}/recent_challenges'
CHALLENGE_SUBMISSIONS_URL = (
    'https://www.hackerrank.com/rest/contests/master/challenges/{slug}/submissions/'
)
PROFILE_URL = 'https://www.hackerrank.com/rest/contests/master/hackers/{username}/profile'

PAGE_LIMIT = 100
MAX_PAGES = 10


@register_client
class HackerRankClient(BasePlatformClient):
    PLATFORM = Platform.HACKERRANK
    PLATFORM_DISPLAY = "HackerRank"
    BASE_URL = "https://www.hackerrank.com"
    COOKIE_NAME = "_hrank_session"
    SESSION_CHECK = True

    def get_problem_url(self, identifier: str) -> str:
        return f"{self.BASE_URL}/challenges/{identifier}/problem"

    def fetch_all_solved(self, username: str) -> set[str]:
        """Challenge slugs from the public recent-challenges feed, cursor-paginated."""
        self.logger.info(f"Fetching solved HackerRank challenges for user: {username}")
        url = RECENT_CHALLENGES_URL.format(username=username)
        solved = set()
        cursor = None
        for _ in range(MAX_PAGES):
            params = {'limit': PAGE_LIMIT, 'response_version': 'v2'}
            if cursor:
                params['cursor'] = cursor
            try:
                data = self._request(url, params=params).json()
            except Exception as e:
                self.logger.error(f"Error fetching HackerRank challenges for {username}: {e}")
                break
            if not isinstance(data, dict):
                self.logger.error(f"Unexpected HackerRank challenges payload for {username}")
                break

            for model in json_list(data, 'models'):
                slug = model.get('ch_slug') if isinstance(model, dict) else None
                if slug:
                    solved.add(slug)

            cursor = data.get('cursor')
            if data.get('last_page', True) or not cursor:
                break

        self.logger.info(f"Found {len(solved)} solved HackerRank challenges for {username}")
        return solved

    def fetch_single_submission(self, identifier: str, cookie: str) -> SolvedSubmission | None:
        url = CHALLENGE_SUBMISSIONS_URL.format(slug=identifier)
        try:
            resp = self._authenticated_request(
                url, cookie, identifier, params={'offset': 0, 'limit': PAGE_LIMIT},
            )
            data = resp.json()
        except CredentialExpired:
            raise
        except Exception as e:
            self.logger.error(f"Error fetching HackerRank submissions for {identifier}: {e}")
            return None

        times = [
            parse_timestamp(m.get('created_at'))
            for m in json_list(data, 'models')
            if isinstance(m, dict) and m.get('status') == 'Accepted'
        ]
        times = [t for t in times if t is not None]
        if not times:
            return None
        return SolvedSubmission(submission_time=min(times), is_correct=True)

    def verify_session(self, username: str, cookie: str) -> bool:
        resp = self._authenticated_request(
            PROFILE_URL.format(username=username), cookie, '',
        )
        return resp.status_code == 200
