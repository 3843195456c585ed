"""Reconciliation triggers: check all pending submissions, or one assignment."""
import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from classtrack.extensions import db
from classtrack.models import Assignment, Enrollment, SweepRun
from classtrack.platforms import CHECKED_PLATFORMS, Platform
from classtrack.services.reconciliation_service import ReconciliationService
from classtrack.views import teacher_required

logger = logging.getLogger(__name__)

submissions_bp = Blueprint('submissions', __name__, url_prefix='/api')


@submissions_bp.route('/submissions/check-all', methods=['POST'])
@teacher_required
def check_all():
    count = ReconciliationService().reconcile_all_pending()
    return jsonify({'success': True, 'count': count})


@submissions_bp.route('/assignments/<int:assignment_id>/check-submissions', methods=['POST'])
@login_required
def check_assignment(assignment_id):
    data = request.get_json(silent=True) or {}
    assignment = db.session.get(Assignment, assignment_id)
    if current_user.is_teacher:
        if assignment and assignment.classroom.teacher_id != current_user.id:
            return jsonify({'success': False, 'message': 'Not your class'}), 403
        user_id = data.get('user_id')
        if user_id is not None:
            try:
                user_id = int(user_id)
            except (TypeError, ValueError):
                return jsonify({'success': False, 'message': 'Invalid user_id'}), 400
    else:
        # Students can only check their own submissions, in their own classes
        if assignment and not Enrollment.query.filter_by(
            classroom_id=assignment.classroom_id, student_id=current_user.id
        ).first():
            return jsonify({'success': False, 'message': 'Not enrolled in this class'}), 403
        user_id = current_user.id

    count = ReconciliationService().reconcile_assignment(assignment_id, user_id=user_id)
    return jsonify({'success': True, 'count': count})


@submissions_bp.route('/sweeps')
@teacher_required
def recent_sweeps():
    limit = min(request.args.get('limit', 20, type=int), 100)
    runs = SweepRun.query.order_by(SweepRun.id.desc()).limit(limit).all()
    return jsonify([r.to_dict() for r in runs])


@submissions_bp.route('/account/link', methods=['POST'])
@login_required
def link_account():
    data = request.get_json(silent=True) or {}
    platform = Platform.parse(data.get('platform'))
    if platform not in CHECKED_PLATFORMS:
        return jsonify({'success': False, 'message': 'Unsupported platform'}), 400
    username = (data.get('username') or '').strip()
    if not username:
        return jsonify({'success': False, 'message': 'Username is required'}), 400

    current_user.link_platform(platform, username, data.get('cookie'))
    db.session.commit()
    logger.info(f"User {current_user.id} linked {platform.value} account {username!r}")
    return jsonify({
        'success': True,
        'platform': platform.value,
        'cookie_status': current_user.cookie_status(platform).value,
    })
