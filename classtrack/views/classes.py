import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request
from flask_login import current_user

from classtrack.extensions import db
from classtrack.models import Classroom
from classtrack.services.assignment_service import AssignmentService
from classtrack.services.credential_health import CredentialHealthService
from classtrack.views import teacher_required

logger = logging.getLogger(__name__)

classes_bp = Blueprint('classes', __name__, url_prefix='/api')


def _own_classroom(classroom_id):
    classroom = db.session.get(Classroom, classroom_id)
    if classroom is None or classroom.teacher_id != current_user.id:
        return None
    return classroom


def _parse_date(value):
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f'Invalid date: {value!r}')
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@classes_bp.route('/classes', methods=['POST'])
@teacher_required
def create_class():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'success': False, 'message': 'Name is required'}), 400
    classroom = Classroom(name=name, teacher_id=current_user.id)
    db.session.add(classroom)
    db.session.commit()
    return jsonify({'success': True, 'id': classroom.id}), 201


@classes_bp.route('/classes/<int:classroom_id>/enroll', methods=['POST'])
@teacher_required
def enroll(classroom_id):
    if not _own_classroom(classroom_id):
        return jsonify({'success': False, 'message': 'Class not found'}), 404
    data = request.get_json(silent=True) or {}
    try:
        created = AssignmentService.enroll_student(classroom_id, int(data.get('user_id')))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'message': 'Invalid user_id'}), 400
    except LookupError as e:
        return jsonify({'success': False, 'message': str(e)}), 404
    return jsonify({'success': True, 'submissions_created': created})


@classes_bp.route('/assignments', methods=['POST'])
@teacher_required
def create_assignment():
    data = request.get_json(silent=True) or {}
    if not _own_classroom(data.get('class_id')):
        return jsonify({'success': False, 'message': 'Class not found'}), 404
    try:
        assignment = AssignmentService.create_assignment(
            data['class_id'],
            (data.get('title') or '').strip() or 'Untitled assignment',
            data.get('problems') or [],
            assign_date=_parse_date(data.get('assign_date')),
            due_date=_parse_date(data.get('due_date')),
            description=data.get('description'),
        )
    except ValueError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    return jsonify({
        'success': True,
        'id': assignment.id,
        'problems': [
            {'id': p.id, 'title': p.title, 'platform': p.platform, 'url': p.url}
            for p in assignment.problems
        ],
    }), 201


@classes_bp.route('/classes/<int:classroom_id>/submission-status')
@teacher_required
def submission_status(classroom_id):
    if not _own_classroom(classroom_id):
        return jsonify({'success': False, 'message': 'Class not found'}), 404
    report = CredentialHealthService().check_class(classroom_id)
    return jsonify(report)
