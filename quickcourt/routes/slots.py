from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_role
from quickcourt.services.registry import get_services
from quickcourt.utils.validators import parse_bool, parse_int, require_fields

bp = Blueprint('slots', __name__)


@bp.route('/availability', methods=['GET'])
@require_auth
@require_role('owner')
def availability(current_user):
    """Day grid of a court the caller owns. Query: courtId, date"""
    args = require_fields(request.args, ['courtId', 'date'])
    slots = get_services().slots.availability(parse_int(args['courtId'], 'courtId'), args['date'], actor=current_user)
    return jsonify({'data': slots}), 200


@bp.route('/block', methods=['POST'])
@require_auth
@require_role('owner')
def block_slot(current_user):
    """Block or unblock a window (isBlocked defaults to true)"""
    data = require_fields(request.get_json(silent=True), ['courtId', 'dateISO', 'start', 'end'])
    is_blocked = parse_bool(data, 'isBlocked', default=True)
    slot = get_services().slots.block(
        current_user, parse_int(data['courtId'], 'courtId'), data['dateISO'], data['start'], data['end'], is_blocked
    )
    return jsonify({
        'data': slot,
        'message': f"Time slot {'blocked' if is_blocked else 'unblocked'} successfully"
    }), 200


@bp.route('/<int:court_id>', methods=['GET'])
def list_slots(court_id):
    """Persisted slots of a court. Query: date (YYYY-MM-DD)"""
    return jsonify(get_services().slots.list_slots(court_id, request.args.get('date'))), 200
