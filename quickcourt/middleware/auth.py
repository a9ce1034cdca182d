from functools import wraps
from flask import request, jsonify
from quickcourt.database import get_db
from quickcourt.models import User
from quickcourt.models.user import canonical_role
from quickcourt.utils.security import verify_token
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)


def token_from_header(auth_header):
    """Bearer token of an Authorization header, or None"""
    parts = (auth_header or '').split()
    if len(parts) != 2 or parts[0] != 'Bearer':
        return None
    return parts[1]


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # Get token from Authorization header
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Authorization header missing'}), 401

        token = token_from_header(auth_header)
        if not token:
            return jsonify({'error': 'Invalid authorization header format'}), 401

        # Verify token
        payload = verify_token(token)
        if not payload or 'user_id' not in payload:
            return jsonify({'error': 'Invalid or expired token'}), 401

        # Bans take effect on tokens issued before them
        with get_db() as db:
            user = db.get(User, payload['user_id'])
            if not user:
                return jsonify({'error': 'User not found'}), 401
            if user.banned:
                return jsonify({'error': 'Account banned', 'code': 'BANNED'}), 403

        # Add user info to kwargs
        return f(current_user=payload, *args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Decorator to require one of the given roles; aliases count as their canonical role"""
    allowed = {canonical_role(role) for role in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            current_user = kwargs.get('current_user')
            if not current_user:
                return jsonify({'error': 'Unauthorized'}), 401
            try:
                role = canonical_role(current_user.get('role'))
            except ValueError:
                logger.warning(f"Unknown role claim '{current_user.get('role')}' for user {current_user.get('user_id')}")
                return jsonify({'error': 'Forbidden'}), 403
            if role not in allowed:
                return jsonify({'error': 'Forbidden'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_admin(f):
    """Decorator to require admin role"""
    return require_role('admin')(f)
