from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_role
from quickcourt.services.registry import get_services

bp = Blueprint('courts', __name__)


@bp.route('', methods=['GET'])
def list_courts():
    """List courts. Query: facilityId or facilityIds (comma separated), sport, isActive"""
    return jsonify({'data': get_services().facilities.list_courts(request.args)}), 200


@bp.route('/by-facility/<int:facility_id>', methods=['GET'])
def courts_by_facility(facility_id):
    return jsonify(get_services().facilities.courts_by_facility(facility_id)), 200


@bp.route('/<int:court_id>', methods=['GET'])
def get_court(court_id):
    return jsonify(get_services().facilities.get_court(court_id)), 200


@bp.route('/<int:court_id>/price-history', methods=['GET'])
def price_history(court_id):
    return jsonify({'data': get_services().facilities.price_history(court_id)}), 200


@bp.route('', methods=['POST'])
@require_auth
@require_role('owner')
def create_court(current_user):
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().facilities.create_court(current_user, data)), 201


@bp.route('/<int:court_id>', methods=['PUT'])
@require_auth
@require_role('owner')
def update_court(court_id, current_user):
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().facilities.update_court(current_user, court_id, data)), 200


@bp.route('/<int:court_id>', methods=['DELETE'])
@require_auth
@require_role('owner')
def delete_court(court_id, current_user):
    """Deactivate a court"""
    court = get_services().facilities.delete_court(current_user, court_id)
    return jsonify({'success': True, 'message': 'Court deleted successfully', 'data': court}), 200
