from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth, require_role
from quickcourt.services.registry import get_services

bp = Blueprint('coupons', __name__)


@bp.route('', methods=['POST'])
@require_auth
@require_role('owner', 'admin')
def create_coupon(current_user):
    """Body: code, type (flat|percent), value, minBookings, maxRedemptions, validFrom, validTo"""
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().coupons.create(current_user, data)), 201


@bp.route('/validate', methods=['POST'])
@require_auth
def validate_coupon(current_user):
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().coupons.validate(data.get('code'), data.get('amount'))), 200
