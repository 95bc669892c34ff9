"""
Authentication routes for session login, API tokens and the current user
"""
from datetime import datetime
from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token
from flask_login import login_user, logout_user
from labdesk import db
from labdesk.models.staff import User
from labdesk.security import audit_log, get_current_actor, login_required_api
from labdesk.utils import get_json_payload

auth_bp = Blueprint('auth', __name__)

def _authenticate():
    data = get_json_payload()
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        return None, (jsonify({'error': 'Username and password required'}), 400)

    user = User.find_by_username(username)
    if not user or not user.active or not user.check_password(password):
        return None, (jsonify({'error': 'Invalid credentials'}), 401)

    user.last_login = datetime.utcnow()
    db.session.commit()
    return user, None

@auth_bp.route('/login', methods=['POST'])
def login():
    """Session login"""
    user, error = _authenticate()
    if error:
        return error

    login_user(user, remember=bool(request.get_json(silent=True).get('remember', False)))
    audit_log('login', 'auth', user.id, details=f'Session login: {user.username}')

    return jsonify({'user': user.to_dict()})

@auth_bp.route('/token', methods=['POST'])
def token():
    """Issue a bearer token"""
    user, error = _authenticate()
    if error:
        return error

    access_token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})

    return jsonify({
        'access_token': access_token,
        'token_type': 'bearer',
        'user': user.to_dict()
    })

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """End the login session"""
    logout_user()
    return jsonify({'message': 'Logged out'})

@auth_bp.route('/me', methods=['GET'])
@login_required_api
def me():
    """Get current user information"""
    return jsonify(get_current_actor().to_dict())
