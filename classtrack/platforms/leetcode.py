from __future__ import annotations

import logging
import re

from .base import BasePlatformClient, json_dict, json_list, parse_timestamp
from .common import CredentialExpired, Platform, SolvedSubmission
from . import register_client

logger = logging.getLogger(__name__)

LEETCODE_GRAPHQL_URL = 'https://leetcode.com/graphql'

# The public endpoint caps this list at 20 entries
RECENT_AC_LIMIT = 20
SUBMISSION_PAGE_LIMIT = 20

RECENT_AC_QUERY = """
query recentAcSubmissions($username: String!, $limit: Int!) {
  recentAcSubmissionList(username: $username, limit: $limit) {
    id
    title
    titleSlug
    timestamp
  }
}
"""

QUESTION_SUBMISSIONS_QUERY = """
query submissionList($offset: Int!, $limit: Int!, $lastKey: String, $questionSlug: String!) {
  questionSubmissionList(offset: $offset, limit: $limit, lastKey: $lastKey, questionSlug: $questionSlug) {
    lastKey
    hasNext
    submissions {
      id
      statusDisplay
      timestamp
    }
  }
}
"""

USER_STATUS_QUERY = """
query globalData {
  userStatus {
    isSignedIn
    username
  }
}
"""

_CSRF_RE = re.compile(r'csrftoken=([^;\s]+)')


@register_client
class LeetCodeClient(BasePlatformClient):
    PLATFORM = Platform.LEETCODE
    PLATFORM_DISPLAY = "LeetCode"
    BASE_URL = "https://leetcode.com"
    COOKIE_NAME = "LEETCODE_SESSION"
    SESSION_CHECK = True

    def _create_session(self):
        session = super()._create_session()
        session.headers.update({
            'Content-Type': 'application/json',
            'Referer': 'https://leetcode.com/',
        })
        return session

    def _graphql(self, query: str, variables: dict, cookie: str = None, identifier: str = ''):
        payload = {'query': query, 'variables': variables}
        if cookie is None:
            resp = self._request(LEETCODE_GRAPHQL_URL, method='POST', json=payload)
        else:
            headers = {}
            csrf = _CSRF_RE.search(cookie)
            if csrf:
                headers['x-csrftoken'] = csrf.group(1)
            resp = self._authenticated_request(
                LEETCODE_GRAPHQL_URL, cookie, identifier,
                method='POST', json=payload, headers=headers,
            )
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected GraphQL payload: {type(data).__name__}")
        errors = json_list(data, 'errors')
        if errors:
            messages = '; '.join(
                str(e.get('message')) if isinstance(e, dict) else str(e) for e in errors
            )
            raise ValueError(f"GraphQL errors: {messages}")
        return json_dict(data, 'data')

    def fetch_all_solved(self, username: str) -> set[str]:
        """Slugs from the public recent-accepted list (most recent 20 only)."""
        self.logger.info(f"Fetching recent accepted LeetCode problems for user: {username}")
        try:
            data = self._graphql(
                RECENT_AC_QUERY, {'username': username, 'limit': RECENT_AC_LIMIT}
            )
        except Exception as e:
            self.logger.error(f"Error fetching LeetCode solved list for {username}: {e}")
            return set()

        entries = json_list(data, 'recentAcSubmissionList')
        solved = {e['titleSlug'] for e in entries if isinstance(e, dict) and e.get('titleSlug')}
        self.logger.info(f"Found {len(solved)} recent accepted LeetCode problems for {username}")
        return solved

    def fetch_single_submission(self, identifier: str, cookie: str) -> SolvedSubmission | None:
        """Earliest accepted submission in the first page of the user's history."""
        variables = {
            'offset': 0,
            'limit': SUBMISSION_PAGE_LIMIT,
            'lastKey': None,
            'questionSlug': identifier,
        }
        try:
            data = self._graphql(
                QUESTION_SUBMISSIONS_QUERY, variables, cookie=cookie, identifier=identifier
            )
        except CredentialExpired:
            raise
        except Exception as e:
            self.logger.error(f"Error fetching LeetCode submissions for {identifier}: {e}")
            return None

        listing = json_dict(data, 'questionSubmissionList')
        times = [
            parse_timestamp(s.get('timestamp'))
            for s in json_list(listing, 'submissions')
            if isinstance(s, dict) and s.get('statusDisplay') == 'Accepted'
        ]
        times = [t for t in times if t is not None]
        if not times:
            return None
        return SolvedSubmission(submission_time=min(times), is_correct=True)

    def verify_session(self, username: str, cookie: str) -> bool:
        data = self._graphql(USER_STATUS_QUERY, {}, cookie=cookie)
        status = json_dict(data, 'userStatus')
        return bool(status.get('isSignedIn'))
