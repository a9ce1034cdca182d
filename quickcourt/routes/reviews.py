from flask import Blueprint, request, jsonify
from quickcourt.middleware.auth import require_auth
from quickcourt.services.registry import get_services
from quickcourt.utils.validators import parse_pagination

bp = Blueprint('reviews', __name__)


@bp.route('/facility/<int:facility_id>', methods=['GET'])
def facility_reviews(facility_id):
    """Newest first. Query: page, limit"""
    page, limit = parse_pagination(request.args)
    return jsonify(get_services().reviews.list_for_facility(facility_id, page, limit)), 200


@bp.route('', methods=['POST'])
@require_auth
def create_review(current_user):
    data = request.get_json(silent=True) or {}
    return jsonify(get_services().reviews.create(current_user, data)), 201
