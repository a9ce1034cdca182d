from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_role
from quickcourt.services.registry import get_services
from quickcourt.utils.validators import parse_pagination

bp = Blueprint('facilities', __name__)


@bp.route('', methods=['GET'])
def list_facilities():
    """
    List facilities.
    Query: sport, q, minPrice, maxPrice, rating, ownerId, includeAll,
    lat, lng, radius (km), page, limit
    """
    page, limit = parse_pagination(request.args)
    return jsonify(get_services().facilities.list_facilities(request.args, page, limit)), 200


@bp.route('/<int:facility_id>', methods=['GET'])
def get_facility(facility_id):
    return jsonify(get_services().facilities.get_facility(facility_id)), 200


@bp.route('', methods=['POST'])
@require_auth
@require_role('owner')
def create_facility(current_user):
    """Create a facility (pending admin approval)"""
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().facilities.create_facility(current_user, data)), 201


@bp.route('/<int:facility_id>', methods=['PUT'])
@require_auth
@require_role('owner')
def update_facility(facility_id, current_user):
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().facilities.update_facility(current_user, facility_id, data)), 200
