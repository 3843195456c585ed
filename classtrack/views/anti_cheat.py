from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from classtrack.extensions import db
from classtrack.models import Test, TestSession
from classtrack.services.anti_cheat_service import AntiCheatService, SessionNotFound
from classtrack.views import teacher_required

anti_cheat_bp = Blueprint('anti_cheat', __name__, url_prefix='/api/tests')


def _can_access_session(session):
    if current_user.is_teacher:
        return session.test.classroom.teacher_id == current_user.id
    return session.user_id == current_user.id


@anti_cheat_bp.route('/sessions/<int:session_id>/violations', methods=['POST'])
@login_required
def record_violation(session_id):
    session = db.session.get(TestSession, session_id)
    if session is None:
        return jsonify({'success': False, 'message': 'Test session not found'}), 404
    if session.user_id != current_user.id:
        return jsonify({'success': False, 'message': 'Not your session'}), 403

    data = request.get_json(silent=True) or {}
    try:
        result = AntiCheatService().record_violation(
            session_id, data.get('violation_type'), details=data.get('details'),
        )
    except ValueError:
        return jsonify({'success': False, 'message': 'Unknown violation type'}), 400
    except SessionNotFound as e:
        return jsonify({'success': False, 'message': str(e)}), 404
    return jsonify({'success': True, **result})


@anti_cheat_bp.route('/sessions/<int:session_id>/violations')
@login_required
def session_violations(session_id):
    session = db.session.get(TestSession, session_id)
    if session is None:
        return jsonify({'success': False, 'message': 'Test session not found'}), 404
    if not _can_access_session(session):
        return jsonify({'success': False, 'message': 'Forbidden'}), 403
    return jsonify(AntiCheatService().get_session_violations(session_id))


@anti_cheat_bp.route('/<int:test_id>/violation-stats')
@teacher_required
def test_violation_stats(test_id):
    test = db.session.get(Test, test_id)
    if test is None or test.classroom.teacher_id != current_user.id:
        return jsonify({'success': False, 'message': 'Test not found'}), 404
    return jsonify(AntiCheatService().get_test_violation_stats(test_id))
