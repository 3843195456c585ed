from functools import wraps

from flask import jsonify
from flask_login import current_user, login_required


def teacher_required(view):
    """login_required plus a TEACHER role check."""
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if not current_user.is_teacher:
            return jsonify({'success': False, 'message': 'Teacher access required'}), 403
        return view(*args, **kwargs)
    return wrapped
