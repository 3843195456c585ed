from __future__ import annotations

import logging
import time
from datetime import datetime

from flask import current_app

from classtrack.extensions import db
from classtrack.models import Classroom
from classtrack.platforms import CHECKED_PLATFORMS, CookieStatus, build_clients
from classtrack.services.credential_store import SQLCredentialStore

logger = logging.getLogger(__name__)


class CredentialHealthService:
    """Reports, per student in a class, whether each platform can be checked.

    Platforms with a session check verify the stored cookie when it is
    LINKED; GFG is judged by whether the bulk solved list comes back
    non-empty. Checking never changes stored cookie status.
    """

    def __init__(self, credential_store=None, clients=None, delay: float | None = None):
        config = current_app.config
        self.credential_store = credential_store or SQLCredentialStore()
        self.clients = clients if clients is not None else build_clients(
            rate_limit=config.get('SCRAPER_RATE_LIMIT', 0.5),
            timeout=config.get('PLATFORM_REQUEST_TIMEOUT', 30),
        )
        self.delay = delay if delay is not None else config.get('CLASS_STATUS_CHECK_DELAY', 1.0)

    def check_class(self, classroom_id: int) -> dict:
        classroom = db.session.get(Classroom, classroom_id)
        if classroom is None:
            raise LookupError(f"Class {classroom_id} not found")

        students = classroom.students
        logger.info(f"Checking platform credentials for {len(students)} students in {classroom.name!r}")

        results = []
        for i, student in enumerate(students):
            if i and self.delay:
                time.sleep(self.delay)
            results.append({
                'user_id': student.id,
                'name': student.username,
                'email': student.email,
                'platforms': {
                    platform.value: self._check_platform(student.id, platform)
                    for platform in CHECKED_PLATFORMS
                },
            })

        return {
            'class_id': classroom.id,
            'class_name': classroom.name,
            'student_count': len(students),
            'checked_at': datetime.utcnow().isoformat(),
            'students': results,
        }

    def _check_platform(self, user_id, platform) -> dict:
        credential = self.credential_store.get(user_id, platform)
        client = self.clients[platform]
        report = {
            'has_username': bool(credential.username),
            'username': credential.username,
            'cookie_status': credential.status.value if client.SESSION_CHECK else 'N/A',
            'is_working': False,
            'last_error': None,
        }
        if not credential.username:
            report['last_error'] = 'No username provided'
            return report

        try:
            if client.SESSION_CHECK:
                if credential.status != CookieStatus.LINKED or not credential.cookie:
                    report['last_error'] = 'Cookie not linked or expired'
                    return report
                report['is_working'] = client.verify_session(credential.username, credential.cookie)
                if not report['is_working']:
                    report['last_error'] = 'Failed to fetch data - cookie may be expired'
            else:
                solved = client.fetch_all_solved(credential.username)
                report['is_working'] = bool(solved)
                if not solved:
                    report['last_error'] = 'No solved problems found or API error'
        except Exception as e:
            logger.error(f"{platform.value} credential check failed for user {user_id}: {e}")
            report['last_error'] = str(e)
        return report
