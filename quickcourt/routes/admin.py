from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_admin
from quickcourt.services.registry import get_services

bp = Blueprint('admin', __name__)


@bp.route('/facilities/pending', methods=['GET'])
@require_auth
@require_admin
def pending_facilities(current_user):
    """Facilities awaiting approval"""
    return jsonify(get_services().admin.pending_facilities()), 200


@bp.route('/facilities/<int:facility_id>/<decision>', methods=['PUT'])
@require_auth
@require_admin
def decide_facility(facility_id, decision, current_user):
    """approve | reject"""
    facility = get_services().admin.decide_facility(current_user['user_id'], facility_id, decision)
    return jsonify(facility), 200


@bp.route('/users', methods=['GET'])
@require_auth
@require_admin
def list_users(current_user):
    return jsonify(get_services().admin.list_users(request.args.get('role'))), 200


@bp.route('/users/<int:user_id>/<action>', methods=['PUT'])
@require_auth
@require_admin
def moderate_user(user_id, action, current_user):
    """ban | unban"""
    return jsonify(get_services().admin.set_banned(current_user['user_id'], user_id, action)), 200
