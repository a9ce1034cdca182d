from datetime import datetime
from typing import Dict, List, Optional
from quickcourt.database import get_db
from quickcourt.models import Court, Facility, PriceEvent
from quickcourt.models.facility import FacilityStatus
from quickcourt.models.user import UserRole, canonical_role
from quickcourt.utils.distance import get_coordinates_from_address, within_radius
from quickcourt.utils.errors import ForbiddenError, NotFoundError, ValidationError
from quickcourt.utils.validators import check, parse_float, parse_int, require_fields, validate_time
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)

# Client field -> column for the plain facility attributes
FACILITY_FIELDS = {
    'name': 'name',
    'description': 'description',
    'address': 'address',
    'sports': 'sports',
    'amenities': 'amenities',
    'photos': 'photos',
    'startingPricePerHour': 'starting_price_per_hour',
}

COURT_FIELDS = {
    'name': 'name',
    'sport': 'sport',
    'isActive': 'is_active',
}


def is_admin(actor: Dict) -> bool:
    return canonical_role(actor.get('role')) == UserRole.ADMIN


def assert_can_manage(facility: Optional[Facility], actor: Dict):
    """Only the facility's owner (or an admin) may change it or its courts"""
    if facility is None:
        raise NotFoundError('Facility not found')
    if facility.owner_id != actor.get('user_id') and not is_admin(actor):
        raise ForbiddenError('Access denied to this facility')


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.lower() == 'true'
    return bool(value)


class FacilityService:
    """Facilities and their courts"""

    # Facilities

    def list_facilities(self, filters: Dict, page: int, limit: int) -> Dict:
        """
        Approved facilities (all of them with includeAll=true), filtered by
        sport, name search, price band, minimum rating, owner and optionally
        a radius around lat/lng. Ordered by highlight then rating, or by
        distance for radius searches.
        """
        min_price = parse_float(filters.get('minPrice'), 'minPrice')
        max_price = parse_float(filters.get('maxPrice'), 'maxPrice')
        rating = parse_float(filters.get('rating'), 'rating')
        lat = parse_float(filters.get('lat'), 'lat')
        lng = parse_float(filters.get('lng'), 'lng')
        radius = parse_float(filters.get('radius'), 'radius') or 10

        with get_db() as db:
            query = db.query(Facility)
            if not _as_bool(filters.get('includeAll')):
                query = query.filter(Facility.status == FacilityStatus.APPROVED)
            if rating is not None:
                query = query.filter(Facility.rating_avg >= rating)
            if min_price is not None:
                query = query.filter(Facility.starting_price_per_hour >= min_price)
            if max_price is not None:
                query = query.filter(Facility.starting_price_per_hour <= max_price)
            if filters.get('q'):
                query = query.filter(Facility.name.ilike(f"%{filters['q']}%"))
            if filters.get('ownerId'):
                query = query.filter(Facility.owner_id == parse_int(filters['ownerId'], 'ownerId'))

            facilities = query.order_by(Facility.highlight.desc(), Facility.rating_avg.desc()).all()

            # Sports live in a JSON list column
            sport = filters.get('sport')
            if sport:
                facilities = [f for f in facilities if sport in (f.sports or [])]

            distances = {}
            if lat is not None and lng is not None:
                distances = within_radius(lat, lng, facilities, radius)
                facilities = sorted(
                    (f for f in facilities if f.id in distances), key=lambda f: distances[f.id]
                )

            total = len(facilities)
            rows = []
            for facility in facilities[(page - 1) * limit:page * limit]:
                data = facility.to_dict()
                if facility.id in distances:
                    data['distanceKm'] = distances[facility.id]
                rows.append(data)

            return {'data': rows, 'total': total, 'page': page, 'limit': limit}

    def get_facility(self, facility_id: int) -> Dict:
        with get_db() as db:
            facility = db.get(Facility, facility_id)
            if not facility:
                raise NotFoundError('Facility not found')
            return facility.to_dict()

    def create_facility(self, actor: Dict, data: Dict) -> Dict:
        """New facilities await admin approval"""
        require_fields(data, ['name'])

        values = {column: data[field] for field, column in FACILITY_FIELDS.items() if field in data}
        values.update(self._coordinates(data))

        with get_db() as db:
            facility = Facility(owner_id=actor['user_id'], status=FacilityStatus.PENDING, **values)
            db.add(facility)
            db.flush()
            logger.info(f"Facility created: {facility.id} by owner {actor['user_id']}")
            return facility.to_dict()

    def update_facility(self, actor: Dict, facility_id: int, data: Dict) -> Dict:
        with get_db() as db:
            facility = db.get(Facility, facility_id)
            assert_can_manage(facility, actor)

            for field, column in FACILITY_FIELDS.items():
                if field in data:
                    setattr(facility, column, data[field])
            if 'address' in data or 'geolocation' in data:
                for column, value in self._coordinates(data).items():
                    setattr(facility, column, value)

            db.flush()
            logger.info(f"Facility updated: {facility.id}")
            return facility.to_dict()

    def _coordinates(self, data: Dict) -> Dict:
        """Explicit geolocation wins; otherwise geocode the address"""
        geo = data.get('geolocation') or {}
        lat = parse_float(geo.get('lat', data.get('latitude')), 'lat')
        lng = parse_float(geo.get('lng', data.get('longitude')), 'lng')
        if lat is not None and lng is not None:
            return {'latitude': lat, 'longitude': lng}

        coords = get_coordinates_from_address(data.get('address'))
        if coords:
            return {'latitude': coords[0], 'longitude': coords[1]}
        return {}

    # Courts

    def list_courts(self, filters: Dict) -> List[Dict]:
        with get_db() as db:
            query = db.query(Court)
            if filters.get('facilityIds'):
                ids = [parse_int(i.strip(), 'facilityIds') for i in str(filters['facilityIds']).split(',') if i.strip()]
                if ids:
                    query = query.filter(Court.facility_id.in_(ids))
            elif filters.get('facilityId'):
                query = query.filter(Court.facility_id == parse_int(filters['facilityId'], 'facilityId'))
            if filters.get('sport'):
                query = query.filter(Court.sport == filters['sport'])
            if filters.get('isActive') is not None:
                query = query.filter(Court.is_active.is_(_as_bool(filters['isActive'])))
            return [court.to_dict() for court in query.order_by(Court.name).all()]

    def courts_by_facility(self, facility_id: int) -> List[Dict]:
        with get_db() as db:
            courts = db.query(Court).filter(
                Court.facility_id == facility_id, Court.is_active.is_(True)
            ).order_by(Court.name).all()
            return [court.to_dict() for court in courts]

    def get_court(self, court_id: int) -> Dict:
        with get_db() as db:
            court = db.get(Court, court_id)
            if not court:
                raise NotFoundError('Court not found')
            return court.to_dict()

    def create_court(self, actor: Dict, data: Dict) -> Dict:
        require_fields(data, ['facilityId', 'name'])
        price = parse_float(data.get('pricePerHour'), 'pricePerHour') or 0
        if price < 0:
            raise ValidationError('pricePerHour must not be negative')

        with get_db() as db:
            facility = db.get(Facility, parse_int(data['facilityId'], 'facilityId'))
            assert_can_manage(facility, actor)

            court = Court(
                facility_id=facility.id,
                price_per_hour=price,
                **{column: data[field] for field, column in COURT_FIELDS.items() if field in data}
            )
            self._apply_hours(court, data.get('operatingHours'))
            db.add(court)
            db.flush()

            db.add(PriceEvent(court_id=court.id, price=price, timestamp=datetime.utcnow()))
            self._refresh_starting_price(db, facility)

            logger.info(f"Court created: {court.id} on facility {facility.id}")
            return court.to_dict()

    def update_court(self, actor: Dict, court_id: int, data: Dict) -> Dict:
        with get_db() as db:
            court = db.get(Court, court_id)
            if not court:
                raise NotFoundError('Court not found')
            assert_can_manage(court.facility, actor)

            for field, column in COURT_FIELDS.items():
                if field in data:
                    setattr(court, column, data[field])
            self._apply_hours(court, data.get('operatingHours'))

            if 'pricePerHour' in data:
                price = parse_float(data['pricePerHour'], 'pricePerHour')
                if price is None or price < 0:
                    raise ValidationError('pricePerHour must not be negative')
                if price != court.price_per_hour:
                    court.price_per_hour = price
                    db.add(PriceEvent(court_id=court.id, price=price, timestamp=datetime.utcnow()))

            db.flush()
            self._refresh_starting_price(db, court.facility)
            return court.to_dict()

    def delete_court(self, actor: Dict, court_id: int) -> Dict:
        """Soft delete; bookings keep pointing at the court"""
        with get_db() as db:
            court = db.get(Court, court_id)
            if not court:
                raise NotFoundError('Court not found')
            assert_can_manage(court.facility, actor)

            court.is_active = False
            db.flush()
            self._refresh_starting_price(db, court.facility)
            logger.info(f"Court deactivated: {court.id}")
            return court.to_dict()

    def price_history(self, court_id: int) -> List[Dict]:
        with get_db() as db:
            events = db.query(PriceEvent).filter(
                PriceEvent.court_id == court_id
            ).order_by(PriceEvent.timestamp).all()
            return [event.to_dict() for event in events]

    def _apply_hours(self, court: Court, hours: Optional[Dict]):
        if not hours:
            return
        if hours.get('open'):
            check(validate_time(hours['open']))
            court.open_time = hours['open']
        if hours.get('close'):
            check(validate_time(hours['close']))
            court.close_time = hours['close']

    def _refresh_starting_price(self, db, facility: Facility):
        """Facility card price is the cheapest active court"""
        prices = [
            price for (price,) in db.query(Court.price_per_hour).filter(
                Court.facility_id == facility.id, Court.is_active.is_(True)
            ).all()
            if price
        ]
        facility.starting_price_per_hour = min(prices) if prices else 0
