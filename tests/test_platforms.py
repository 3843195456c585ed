"""Tests for the platform client registry and the three platform clients."""

from datetime import datetime
from unittest.mock import patch

import pytest
import requests

from conftest import fake_response
from classtrack.platforms import (
    CredentialExpired, Platform, build_clients, get_all_clients,
    get_client, get_client_class,
)
from classtrack.platforms.base import BasePlatformClient, parse_timestamp
from classtrack.platforms.gfg import GFG_BULK_URL, GfgClient
from classtrack.platforms.hackerrank import HackerRankClient
from classtrack.platforms.leetcode import LeetCodeClient
from classtrack.platforms.rate_limiter import RateLimiter, get_platform_limiter


class TestClientRegistry:
    def test_closed_set_registered(self):
        assert set(get_all_clients()) == {Platform.LEETCODE, Platform.HACKERRANK, Platform.GFG}

    def test_lookup_by_string_or_enum(self):
        assert get_client_class('gfg') is GfgClient
        assert get_client_class('LeetCode') is LeetCodeClient
        assert get_client_class(Platform.HACKERRANK) is HackerRankClient

    def test_other_platform_has_no_client(self):
        assert get_client_class('other') is None
        assert get_client_class('codeforces') is None

    def test_get_client_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown platform"):
            get_client('codeforces')

    def test_build_clients(self):
        clients = build_clients(rate_limit=0)
        assert isinstance(clients[Platform.GFG], GfgClient)
        assert isinstance(clients[Platform.LEETCODE], LeetCodeClient)
        assert isinstance(clients[Platform.HACKERRANK], HackerRankClient)

    def test_client_must_implement_session_check(self):
        class BulkOnly(BasePlatformClient):
            PLATFORM = Platform.OTHER

            def fetch_all_solved(self, username):
                return set()

            def fetch_single_submission(self, identifier, cookie):
                return None

        with pytest.raises(TypeError):
            BulkOnly(rate_limit=0)


class TestParseTimestamp:
    def test_gfg_subtime(self):
        assert parse_timestamp('2025-07-20 17:31:58') == datetime(2025, 7, 20, 17, 31, 58)

    def test_epoch_seconds(self):
        assert parse_timestamp(1700000000) == datetime(2023, 11, 14, 22, 13, 20)
        assert parse_timestamp('1700000000') == datetime(2023, 11, 14, 22, 13, 20)

    def test_iso_with_offset_normalised_to_utc(self):
        assert parse_timestamp('2024-01-01T05:30:00+05:30') == datetime(2024, 1, 1, 0, 0)
        assert parse_timestamp('2024-01-01T00:00:00Z') == datetime(2024, 1, 1)

    def test_garbage(self):
        assert parse_timestamp('yesterday') is None
        assert parse_timestamp(None) is None
        assert parse_timestamp('') is None

    def test_out_of_range_epoch(self):
        assert parse_timestamp(10 ** 20) is None
        assert parse_timestamp(True) is None


class TestGfgClient:
    @pytest.fixture
    def client(self):
        return GfgClient(rate_limit=0)

    def test_fetch_all_solved_unions_slugs(self, client):
        payload = {
            'status': 'success',
            'result': {
                'Easy': {
                    '101': {'slug': 'two-sum-gfg', 'pname': 'Two Sum'},
                    '102': {'slug': 'reverse-an-array'},
                },
                'Medium': {
                    '201': {'slug': 'kadanes-algorithm'},
                    '202': {'pname': 'no slug here'},
                },
            },
        }
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            solved = client.fetch_all_solved('alice_gfg')

        assert solved == {'two-sum-gfg', 'reverse-an-array', 'kadanes-algorithm'}
        method, url = req.call_args.args[:2]
        assert method == 'POST'
        assert url == GFG_BULK_URL
        assert req.call_args.kwargs['json'] == {
            'handle': 'alice_gfg', 'requestType': '', 'year': '', 'month': '',
        }

    def test_fetch_all_solved_failed_status(self, client):
        payload = {'status': 'failed', 'message': 'User not found'}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_all_solved('ghost') == set()

    def test_fetch_all_solved_http_error(self, client):
        with patch.object(client.session, 'request', return_value=fake_response(500)):
            assert client.fetch_all_solved('alice_gfg') == set()

    def test_fetch_all_solved_network_error(self, client):
        with patch.object(client.session, 'request', side_effect=requests.ConnectionError('down')):
            assert client.fetch_all_solved('alice_gfg') == set()

    def test_single_submission_first_accepted(self, client):
        payload = {'results': {'submissions': [
            {'exec_status': '0', 'subtime': '2025-07-19 10:00:00'},
            {'exec_status': '1', 'subtime': '2025-07-20 17:31:58'},
            {'exec_status': '1', 'subtime': '2025-07-21 09:00:00'},
        ]}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            result = client.fetch_single_submission('two-sum-gfg', 'abc123')

        assert result.is_correct is True
        assert result.submission_time == datetime(2025, 7, 20, 17, 31, 58)
        headers = req.call_args.kwargs['headers']
        assert headers['Cookie'] == 'gfguserName=abc123'
        assert 'two-sum-gfg' in req.call_args.args[1]

    def test_single_submission_none_accepted(self, client):
        payload = {'results': {'submissions': [{'exec_status': '0', 'subtime': '2025-07-19 10:00:00'}]}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_single_submission('two-sum-gfg', 'abc123') is None

    def test_single_submission_missing_results(self, client):
        with patch.object(client.session, 'request', return_value=fake_response(200, {})):
            assert client.fetch_single_submission('two-sum-gfg', 'abc123') is None

    @pytest.mark.parametrize('status', [401, 403])
    def test_single_submission_auth_failure_raises(self, client, status):
        with patch.object(client.session, 'request', return_value=fake_response(status)):
            with pytest.raises(CredentialExpired) as exc:
                client.fetch_single_submission('two-sum-gfg', 'stale')
        assert exc.value.platform == 'gfg'
        assert exc.value.identifier == 'two-sum-gfg'

    def test_single_submission_server_error_degrades(self, client):
        with patch.object(client.session, 'request', return_value=fake_response(502)):
            assert client.fetch_single_submission('two-sum-gfg', 'abc123') is None

    def test_full_cookie_string_passed_through(self, client):
        with patch.object(client.session, 'request', return_value=fake_response(200, {})) as req:
            client.fetch_single_submission('x', 'gfguserName=abc; other=1')
        assert req.call_args.kwargs['headers']['Cookie'] == 'gfguserName=abc; other=1'

    @pytest.mark.parametrize('payload', [
        {'status': 'success', 'result': ['x']},
        {'status': 'success', 'result': {'Easy': ['x'], 'Medium': {'1': 'x'}}},
        ['x'],
        None,
    ])
    def test_fetch_all_solved_malformed_payload(self, client, payload):
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_all_solved('alice_gfg') == set()

    @pytest.mark.parametrize('payload', [
        {'results': ['x']},
        {'results': {'submissions': 'x'}},
        {'results': {'submissions': ['x', {'exec_status': '1'}]}},
        ['x'],
    ])
    def test_single_submission_malformed_payload(self, client, payload):
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_single_submission('two-sum-gfg', 'abc123') is None

    def test_verify_session_checks_handle(self, client):
        payload = {'status': 'success', 'result': {'Easy': {'1': {'slug': 'two-sum-gfg'}}}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            assert client.verify_session('alice_gfg', 'abc123') is True
        assert 'headers' not in req.call_args.kwargs

    def test_verify_session_unknown_handle(self, client):
        payload = {'status': 'failed', 'message': 'User not found'}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.verify_session('ghost', 'abc123') is False


class TestLeetCodeClient:
    @pytest.fixture
    def client(self):
        return LeetCodeClient(rate_limit=0)

    def test_fetch_all_solved(self, client):
        payload = {'data': {'recentAcSubmissionList': [
            {'id': '1', 'title': 'Two Sum', 'titleSlug': 'two-sum', 'timestamp': '1700000000'},
            {'id': '2', 'title': 'Add Two Numbers', 'titleSlug': 'add-two-numbers', 'timestamp': '1700000100'},
        ]}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            solved = client.fetch_all_solved('alice_lc')
        assert solved == {'two-sum', 'add-two-numbers'}
        assert req.call_args.kwargs['json']['variables'] == {'username': 'alice_lc', 'limit': 20}

    def test_fetch_all_solved_graphql_error(self, client):
        payload = {'errors': [{'message': 'That user does not exist.'}], 'data': None}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_all_solved('ghost') == set()

    def test_single_submission_earliest_accepted(self, client):
        payload = {'data': {'questionSubmissionList': {'submissions': [
            {'id': '3', 'statusDisplay': 'Accepted', 'timestamp': '1700000200'},
            {'id': '2', 'statusDisplay': 'Wrong Answer', 'timestamp': '1700000100'},
            {'id': '1', 'statusDisplay': 'Accepted', 'timestamp': '1700000000'},
        ]}}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            result = client.fetch_single_submission('two-sum', 'LEETCODE_SESSION=s; csrftoken=tok')
        assert result.submission_time == datetime(2023, 11, 14, 22, 13, 20)
        headers = req.call_args.kwargs['headers']
        assert headers['x-csrftoken'] == 'tok'
        assert headers['Cookie'] == 'LEETCODE_SESSION=s; csrftoken=tok'

    def test_single_submission_bare_cookie(self, client):
        payload = {'data': {'questionSubmissionList': {'submissions': []}}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            assert client.fetch_single_submission('two-sum', 'sessval') is None
        assert req.call_args.kwargs['headers']['Cookie'] == 'LEETCODE_SESSION=sessval'

    def test_single_submission_forbidden(self, client):
        with patch.object(client.session, 'request', return_value=fake_response(403)):
            with pytest.raises(CredentialExpired):
                client.fetch_single_submission('two-sum', 'stale')

    def test_verify_session(self, client):
        payload = {'data': {'userStatus': {'isSignedIn': True, 'username': 'alice_lc'}}}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.verify_session('alice_lc', 'sess') is True

    @pytest.mark.parametrize('payload', [
        ['x'],
        {'data': ['x']},
        {'data': {'recentAcSubmissionList': {'titleSlug': 'two-sum'}}},
        {'errors': 'boom'},
    ])
    def test_fetch_all_solved_malformed_payload(self, client, payload):
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_all_solved('alice_lc') == set()

    @pytest.mark.parametrize('payload', [
        ['x'],
        {'data': {'questionSubmissionList': ['x']}},
        {'data': {'questionSubmissionList': {'submissions': ['x']}}},
    ])
    def test_single_submission_malformed_payload(self, client, payload):
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_single_submission('two-sum', 'sess') is None


class TestHackerRankClient:
    @pytest.fixture
    def client(self):
        return HackerRankClient(rate_limit=0)

    def test_fetch_all_solved_follows_cursor(self, client):
        pages = [
            fake_response(200, {
                'models': [{'ch_slug': 'solve-me-first'}, {'ch_slug': 'simple-array-sum'}],
                'cursor': 'abc', 'last_page': False,
            }),
            fake_response(200, {
                'models': [{'ch_slug': 'compare-the-triplets'}],
                'cursor': None, 'last_page': True,
            }),
        ]
        with patch.object(client.session, 'request', side_effect=pages) as req:
            solved = client.fetch_all_solved('bob_hr')
        assert solved == {'solve-me-first', 'simple-array-sum', 'compare-the-triplets'}
        assert req.call_count == 2
        assert req.call_args.kwargs['params']['cursor'] == 'abc'

    def test_fetch_all_solved_keeps_partial_on_error(self, client):
        pages = [
            fake_response(200, {'models': [{'ch_slug': 'solve-me-first'}], 'cursor': 'c', 'last_page': False}),
            fake_response(500),
        ]
        with patch.object(client.session, 'request', side_effect=pages):
            assert client.fetch_all_solved('bob_hr') == {'solve-me-first'}

    def test_single_submission(self, client):
        payload = {'models': [
            {'id': 2, 'status': 'Accepted', 'created_at': 1700000100},
            {'id': 1, 'status': 'Wrong Answer', 'created_at': 1700000000},
        ]}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)) as req:
            result = client.fetch_single_submission('solve-me-first', 'hrsess')
        assert result.submission_time == datetime(2023, 11, 14, 22, 15)
        assert req.call_args.kwargs['headers']['Cookie'] == '_hrank_session=hrsess'

    def test_single_submission_unauthorized(self, client):
        with patch.object(client.session, 'request', return_value=fake_response(401)):
            with pytest.raises(CredentialExpired):
                client.fetch_single_submission('solve-me-first', 'stale')

    @pytest.mark.parametrize('payload', [['x'], 'x', None])
    def test_fetch_all_solved_malformed_payload(self, client, payload):
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_all_solved('bob_hr') == set()

    def test_fetch_all_solved_skips_bad_models(self, client):
        payload = {'models': ['x', {'ch_slug': 'solve-me-first'}], 'last_page': True}
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_all_solved('bob_hr') == {'solve-me-first'}

    @pytest.mark.parametrize('payload', [['x'], {'models': 'x'}, {'models': ['x']}])
    def test_single_submission_malformed_payload(self, client, payload):
        with patch.object(client.session, 'request', return_value=fake_response(200, payload)):
            assert client.fetch_single_submission('solve-me-first', 'hrsess') is None

    def test_problem_url(self, client):
        assert client.get_problem_url('solve-me-first') == (
            'https://www.hackerrank.com/challenges/solve-me-first/problem'
        )


class TestRateLimiter:
    def test_zero_interval_never_sleeps(self):
        limiter = RateLimiter(0)
        with patch('classtrack.platforms.rate_limiter.time.sleep') as sleep:
            limiter.wait()
            limiter.wait()
        sleep.assert_not_called()

    def test_second_call_waits(self):
        limiter = RateLimiter(10)
        with patch('classtrack.platforms.rate_limiter.time') as clock:
            clock.monotonic.side_effect = [100.0, 100.0, 101.0, 101.0]
            limiter.wait()
            limiter.wait()
        clock.sleep.assert_called_once_with(9.0)

    def test_shared_per_platform(self):
        first = get_platform_limiter('limiter-test', 1.0)
        second = get_platform_limiter('limiter-test', 0.0)
        assert first is second
        assert first.min_interval == 0.0
