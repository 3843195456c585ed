from __future__ import annotations

import logging

from .base import BasePlatformClient, json_dict, json_list, parse_timestamp
from .common import CredentialExpired, Platform, SolvedSubmission
from . import register_client

logger = logging.getLogger(__name__)

GFG_BULK_URL = 'https://practiceapi.geeksforgeeks.org/api/v1/user/problems/submissions/'
GFG_PROBLEM_SUBMISSIONS_URL = (
    'https://practiceapi.geeksforgeeks.org/api/latest/problems/{slug}/submissions/user/'
)

# exec_status value of an accepted submission
_ACCEPTED = '1'


@register_client
class GfgClient(BasePlatformClient):
    PLATFORM = Platform.GFG
    PLATFORM_DISPLAY = "GeeksForGeeks"
    BASE_URL = "https://www.geeksforgeeks.org"
    COOKIE_NAME = "gfguserName"

    def fetch_all_solved(self, username: str) -> set[str]:
        """Return the slugs of every problem *username* has solved.

        Uses the handle-only practice API, so no cookie is needed. The
        response nests submissions as ``result[difficulty][submission_id]``.
        """
        self.logger.info(f"Fetching all solved GFG problems for user: {username}")
        payload = {
            'handle': username,
            'requestType': '',
            'year': '',
            'month': '',
        }
        try:
            resp = self._request(GFG_BULK_URL, method='POST', json=payload)
            data = resp.json()
        except Exception as e:
            self.logger.error(f"Error fetching GFG solved list for {username}: {e}")
            return set()

        if not isinstance(data, dict):
            data = {}
        result = data.get('result')
        if data.get('status') != 'success' or not result or not isinstance(result, dict):
            self.logger.error(
                f"GFG practice API error for user {username}: "
                f"{data.get('message') or 'No result found'}"
            )
            return set()

        solved = set()
        for by_id in result.values():
            if not isinstance(by_id, dict):
                continue
            for entry in by_id.values():
                slug = entry.get('slug') if isinstance(entry, dict) else None
                if slug:
                    solved.add(slug)

        self.logger.info(f"Found {len(solved)} solved GFG problems for {username}")
        return solved

    def verify_session(self, username: str, cookie: str) -> bool:
        """GFG has no cookie-only session endpoint, so only the handle is checked.

        True when the public practice API returns any solved problems for
        *username*. The cookie is not sent.
        """
        return bool(self.fetch_all_solved(username))

    def fetch_single_submission(self, identifier: str, cookie: str) -> SolvedSubmission | None:
        """Return the first accepted submission for a problem, with its time."""
        url = GFG_PROBLEM_SUBMISSIONS_URL.format(slug=identifier)
        try:
            resp = self._authenticated_request(
                url, cookie, identifier,
                headers={'Referer': 'https://practice.geeksforgeeks.org/'},
            )
            data = resp.json()
        except CredentialExpired:
            raise
        except Exception as e:
            self.logger.error(f"Error fetching GFG problem submission for {identifier}: {e}")
            return None

        submissions = json_list(json_dict(data, 'results'), 'submissions')
        accepted = next(
            (s for s in submissions if isinstance(s, dict) and s.get('exec_status') == _ACCEPTED),
            None,
        )
        if not accepted or not accepted.get('subtime'):
            return None

        # subtime format: "2025-07-20 17:31:58"
        submission_time = parse_timestamp(accepted['subtime'])
        if submission_time is None:
            self.logger.warning(
                f"Unparseable GFG subtime {accepted['subtime']!r} for {identifier}"
            )
            return None
        return SolvedSubmission(submission_time=submission_time, is_correct=True)
