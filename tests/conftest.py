"""Shared test fixtures for the classtrack test suite."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from classtrack import create_app
from classtrack.extensions import db as _db
from classtrack.models import (
    User,
    Classroom,
    Enrollment,
    Assignment,
    Problem,
    Submission,
)
from classtrack.platforms import Platform
from classtrack.platforms.common import CookieStatus


@pytest.fixture()
def app():
    """Create a Flask application configured for testing."""
    application = create_app('testing')
    yield application


@pytest.fixture()
def db(app):
    """Provide a clean database for each test."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app, db):
    """Provide a Flask test client."""
    return app.test_client()


def make_user(username, role='STUDENT', **fields):
    user = User(username=username, email=f'{username}@test.com', role=role, **fields)
    user.set_password('password123')
    _db.session.add(user)
    _db.session.flush()
    return user


def fake_response(status=200, payload=None):
    """A stand-in for requests.Response."""
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f'{status} Error', response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


def fake_clients():
    """One MagicMock per checked platform; nothing solved by default."""
    clients = {}
    for platform in (Platform.LEETCODE, Platform.HACKERRANK, Platform.GFG):
        mock = MagicMock(name=f'{platform.value}_client')
        mock.fetch_all_solved.return_value = set()
        mock.fetch_single_submission.return_value = None
        mock.SESSION_CHECK = platform != Platform.GFG
        clients[platform] = mock
    return clients


@pytest.fixture()
def sample_data(app, db):
    """A teacher, two students and one assignment mixing platforms.

    Returns a dict of plain IDs (not model objects) so they survive
    across Flask request context boundaries without DetachedInstanceError.
    """
    teacher = make_user('teacher', role='TEACHER')
    alice = make_user(
        'alice',
        gfg_username='alice_gfg',
        gfg_cookie='alice-cookie',
        gfg_cookie_status=CookieStatus.LINKED.value,
        leetcode_username='alice_lc',
    )
    bob = make_user('bob', gfg_username='bob_gfg')

    classroom = Classroom(name='Algorithms 101', teacher_id=teacher.id)
    db.session.add(classroom)
    db.session.flush()
    db.session.add_all([
        Enrollment(classroom_id=classroom.id, student_id=alice.id),
        Enrollment(classroom_id=classroom.id, student_id=bob.id),
    ])

    assignment = Assignment(
        classroom_id=classroom.id,
        title='Week 1',
        assign_date=datetime(2024, 1, 10),
        due_date=datetime(2024, 1, 20),
    )
    db.session.add(assignment)
    db.session.flush()

    problems = [
        Problem(
            assignment_id=assignment.id, position=0, platform='gfg', title='Two Sum GFG',
            url='https://www.geeksforgeeks.org/problems/two-sum-gfg/1',
        ),
        Problem(
            assignment_id=assignment.id, position=1, platform='gfg', title='Reverse Array',
            url='https://www.geeksforgeeks.org/problems/reverse-an-array/1',
        ),
        Problem(
            assignment_id=assignment.id, position=2, platform='leetcode', title='Two Sum',
            url='https://leetcode.com/problems/two-sum/',
        ),
    ]
    db.session.add_all(problems)
    db.session.flush()

    submissions = []
    for user in (alice, bob):
        for problem in problems:
            sub = Submission(user_id=user.id, problem_id=problem.id)
            db.session.add(sub)
            submissions.append(sub)
    db.session.commit()

    return {
        'teacher_id': teacher.id,
        'alice_id': alice.id,
        'bob_id': bob.id,
        'classroom_id': classroom.id,
        'assignment_id': assignment.id,
        'problem_ids': [p.id for p in problems],
        'submission_ids': [s.id for s in submissions],
    }


def login(client, username):
    return client.post('/auth/login', data={'username': username, 'password': 'password123'})


@pytest.fixture()
def teacher_client(client, sample_data):
    login(client, 'teacher')
    return client, sample_data


@pytest.fixture()
def student_client(client, sample_data):
    login(client, 'alice')
    return client, sample_data
