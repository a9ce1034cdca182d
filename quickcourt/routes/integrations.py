from datetime import datetime, timedelta
from urllib.parse import urlencode
from flask import Blueprint, Response, request, jsonify
from quickcourt.utils.errors import ValidationError
from quickcourt.utils.ics import generate_ics
from quickcourt.utils.validators import parse_float

bp = Blueprint('integrations', __name__)

MAPS_DIRECTIONS_URL = 'https://www.google.com/maps/dir/'

# Placeholder reading until a weather provider is wired in
MOCK_WEATHER = {'tempC': 34, 'condition': 'Sunny', 'heatIndex': 39, 'windKph': 12, 'rainChance': 10}


@bp.route('/maps/link', methods=['GET'])
def maps_link():
    """Directions link. Query: destLat, destLng"""
    lat = parse_float(request.args.get('destLat'), 'destLat')
    lng = parse_float(request.args.get('destLng'), 'destLng')
    if lat is None or lng is None:
        raise ValidationError('destLat and destLng are required')
    url = f"{MAPS_DIRECTIONS_URL}?{urlencode({'api': 1, 'destination': f'{lat},{lng}'})}"
    return jsonify({'url': url}), 200


@bp.route('/weather', methods=['GET'])
def weather():
    return jsonify(MOCK_WEATHER), 200


@bp.route('/ics/<title>', methods=['GET'])
def calendar_file(title):
    """One-hour calendar event starting now"""
    start = datetime.utcnow()
    ics = generate_ics(title, start, start + timedelta(hours=1), location='QuickCourt Facility')
    return Response(ics, mimetype='text/calendar',
                    headers={'Content-Disposition': f'attachment; filename="{title}.ics"'})
