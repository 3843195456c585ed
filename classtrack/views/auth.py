from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from classtrack.models import User

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _user_json(user):
    return {'id': user.id, 'username': user.username, 'email': user.email, 'role': user.role}


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password):
        login_user(user, remember=True)
        return jsonify({'success': True, 'user': _user_json(user)})
    return jsonify({'success': False, 'message': 'Invalid username or password'}), 401


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify(_user_json(current_user))
