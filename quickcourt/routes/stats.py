from flask import Blueprint, jsonify
from quickcourt.middleware.auth import require_auth, require_role, require_admin
from quickcourt.services.registry import get_services

bp = Blueprint('stats', __name__)


@bp.route('/user', methods=['GET'])
@require_auth
def user_stats(current_user):
    return jsonify(get_services().stats.user_stats(current_user['user_id'])), 200


@bp.route('/owner', methods=['GET'])
@require_auth
@require_role('owner')
def owner_stats(current_user):
    return jsonify(get_services().stats.owner_stats(current_user['user_id'])), 200


@bp.route('/admin', methods=['GET'])
@require_auth
@require_admin
def admin_stats(current_user):
    return jsonify(get_services().stats.admin_stats()), 200


@bp.route('/facility-owner/<int:owner_id>', methods=['GET'])
@require_auth
@require_role('owner', 'admin')
def facility_owner_dashboard(owner_id, current_user):
    return jsonify(get_services().stats.facility_owner_dashboard(current_user, owner_id)), 200
