from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_role
from quickcourt.services.registry import get_services

bp = Blueprint('offers', __name__)


@bp.route('', methods=['POST'])
@require_auth
def create_offer(current_user):
    """Propose a price. Body: facilityId, courtId, offeredPrice, originalPrice, bookingId, dateISO, start, end"""
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().offers.create(current_user['user_id'], data)), 201


@bp.route('/user', methods=['GET'])
@require_auth
def my_offers(current_user):
    return jsonify({'data': get_services().offers.list_for_user(current_user['user_id'])}), 200


@bp.route('/facility/<int:facility_id>', methods=['GET'])
@require_auth
@require_role('owner', 'admin')
def facility_offers(facility_id, current_user):
    offers = get_services().offers.list_for_facility(current_user, facility_id, request.args.get('status'))
    return jsonify({'data': offers}), 200


@bp.route('/stats/<int:facility_id>', methods=['GET'])
@require_auth
@require_role('owner', 'admin')
def offer_stats(facility_id, current_user):
    return jsonify(get_services().offers.stats(current_user, facility_id)), 200


@bp.route('/<int:offer_id>/<action>', methods=['PUT'])
@require_auth
def respond_to_offer(offer_id, action, current_user):
    """accept | reject | counter (body: counterPrice)"""
    data = request.get_json(silent=True) or {}
    offer = get_services().offers.respond(current_user, offer_id, action, data.get('counterPrice'))
    return jsonify(offer), 200
