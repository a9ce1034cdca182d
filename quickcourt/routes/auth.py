from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth
from quickcourt.services.registry import get_services
from quickcourt.utils.validators import parse_int, require_fields

bp = Blueprint('auth', __name__)


@bp.route('/signup', methods=['POST'])
def signup():
    """Register a new user; a verification code is emailed"""
    result = get_services().auth.signup(request.get_json(silent=True) or {})
    return jsonify(result), 201


@bp.route('/verify-otp', methods=['POST'])
def verify_otp():
    """Verify the emailed code and receive a token"""
    data = require_fields(request.get_json(silent=True), ['userId', 'otp'])
    return jsonify(get_services().auth.verify_otp(parse_int(data['userId'], 'userId'), data['otp'])), 200


@bp.route('/resend-otp', methods=['POST'])
def resend_otp():
    data = request.get_json(silent=True) or {}
    user_id = parse_int(data.get('userId'), 'userId')
    return jsonify(get_services().auth.resend_otp(email=data.get('email'), user_id=user_id)), 200


@bp.route('/login', methods=['POST'])
def login():
    """User login"""
    data = require_fields(request.get_json(silent=True), ['email', 'password'])
    return jsonify(get_services().auth.login(data['email'], data['password'])), 200


@bp.route('/me', methods=['GET'])
@require_auth
def me(current_user):
    """Get current user info"""
    return jsonify(get_services().auth.me(current_user['user_id'])), 200


@bp.route('/profile', methods=['PUT'])
@require_auth
def update_profile(current_user):
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().auth.update_profile(current_user['user_id'], data)), 200


@bp.route('/change-password', methods=['POST'])
@require_auth
def change_password(current_user):
    data = require_fields(request.get_json(silent=True), ['currentPassword', 'newPassword'])
    result = get_services().auth.change_password(
        current_user['user_id'], data['currentPassword'], data['newPassword']
    )
    return jsonify(result), 200
