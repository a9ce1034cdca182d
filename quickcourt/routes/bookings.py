from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_role
from quickcourt.services.registry import get_services
from quickcourt.utils.validators import parse_int, parse_pagination, require_fields

bp = Blueprint('bookings', __name__)


@bp.route('', methods=['POST'])
@require_auth
def create_booking(current_user):
    """Book and confirm with a simulated payment"""
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().bookings.create_simulated(current_user['user_id'], data)), 201


@bp.route('/me', methods=['GET'])
@require_auth
def my_bookings(current_user):
    return jsonify(get_services().bookings.list_for_user(current_user['user_id'])), 200


@bp.route('/<int:booking_id>/cancel', methods=['PUT'])
@require_auth
def cancel_booking(booking_id, current_user):
    return jsonify(get_services().bookings.cancel(current_user['user_id'], booking_id)), 200


@bp.route('/create-pending', methods=['POST'])
@require_auth
def create_pending(current_user):
    """
    Start a paid booking.
    Body: courtId, dateISO, startTime, duration (hours), amount, isNegotiated
    Returns the pending booking with the payment intent's client secret.
    """
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().bookings.create_pending(current_user['user_id'], data)), 201


@bp.route('/verify-payment', methods=['POST'])
@require_auth
def verify_payment(current_user):
    data = require_fields(request.get_json(silent=True), ['bookingId'])
    booking = get_services().bookings.verify_payment(
        current_user['user_id'], parse_int(data['bookingId'], 'bookingId'), data.get('paymentIntentId')
    )
    return jsonify({'success': True, 'booking': booking}), 200


@bp.route('/available-times', methods=['GET'])
def available_times():
    """Free start times of a court. Query: courtId, date"""
    args = require_fields(request.args, ['courtId'])
    times = get_services().bookings.available_times(parse_int(args['courtId'], 'courtId'), args.get('date'))
    return jsonify({'availableTimes': times}), 200


@bp.route('/owner', methods=['GET'])
@bp.route('/owner/<int:owner_id>', methods=['GET'])
@require_auth
@require_role('owner', 'admin')
def owner_bookings(current_user, owner_id=None):
    """Bookings on an owner's facilities. Query: status, facilityId, courtId, dateFrom, dateTo, page, limit"""
    page, limit = parse_pagination(request.args, default_limit=20)
    result = get_services().bookings.list_for_owner(current_user, owner_id, request.args, page, limit)
    return jsonify(result), 200
