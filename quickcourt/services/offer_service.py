from typing import Dict, List, Optional
from quickcourt.database import get_db
from quickcourt.models import Booking, Court, Facility, Offer
from quickcourt.models.offer import OfferStatus
from quickcourt.services.facility_service import assert_can_manage, is_admin
from quickcourt.services.notification_service import PushNotifier
from quickcourt.utils.errors import ForbiddenError, NotFoundError, ValidationError
from quickcourt.utils.timeslots import hourly_windows
from quickcourt.utils.validators import check, parse_float, parse_int, require_fields, validate_date_iso, validate_time
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)

OFFER_ACTIONS = ('accept', 'reject', 'counter')
TERMINAL_STATUSES = (OfferStatus.ACCEPTED, OfferStatus.REJECTED)


def quartiles(values: List[float]) -> Dict:
    """Price band of a list of prices"""
    if not values:
        return {'p25': 0, 'p50': 0, 'p75': 0, 'min': 0, 'max': 0}
    ordered = sorted(values)
    n = len(ordered)

    def q(p):
        return ordered[int((n - 1) * p)]

    return {'p25': q(0.25), 'p50': q(0.5), 'p75': q(0.75), 'min': ordered[0], 'max': ordered[-1]}


class OfferService:
    """Price negotiation between players and facility owners"""

    def __init__(self, notifier: Optional[PushNotifier] = None):
        self.notifier = notifier or PushNotifier()

    def create(self, user_id: int, data: Dict) -> Dict:
        require_fields(data, ['facilityId', 'courtId', 'offeredPrice'])
        offered = parse_float(data['offeredPrice'], 'offeredPrice')
        if offered <= 0:
            raise ValidationError('offeredPrice must be positive')
        if data.get('dateISO'):
            check(validate_date_iso(data['dateISO']))
        for field in ('start', 'end'):
            if data.get(field):
                check(validate_time(data[field]))

        with get_db() as db:
            court = db.get(Court, parse_int(data['courtId'], 'courtId'))
            if not court or court.facility_id != parse_int(data['facilityId'], 'facilityId'):
                raise NotFoundError('Court not found')

            booking = None
            if data.get('bookingId'):
                booking = db.get(Booking, parse_int(data['bookingId'], 'bookingId'))
                if not booking or booking.user_id != user_id:
                    raise NotFoundError('Booking not found')

            original = parse_float(data.get('originalPrice'), 'originalPrice')
            if original is None:
                original = booking.price if booking else self._list_price(court, data)

            offer = Offer(
                user_id=user_id,
                facility_id=court.facility_id,
                court_id=court.id,
                booking_id=booking.id if booking else None,
                date_iso=data.get('dateISO') or (booking.date_iso if booking else None),
                start=data.get('start') or (booking.start if booking else None),
                end=data.get('end') or (booking.end if booking else None),
                original_price=original,
                offered_price=offered,
                status=OfferStatus.PENDING
            )
            db.add(offer)
            db.flush()
            result = offer.to_dict()

        logger.info(f"Offer {result['_id']} created by user {user_id}: {offered} against {original}")
        self.notifier.offer_created(result)
        return result

    def respond(self, actor: Dict, offer_id: int, action: str, counter_price=None) -> Dict:
        """
        A pending offer is answered by the facility owner (or an admin):
        accept, reject or counter. A countered offer goes back to the player
        who made it, who may accept the counter price or reject it.
        Accepted and rejected offers are final.
        """
        if action not in OFFER_ACTIONS:
            raise ValidationError(f"Invalid action '{action}'")

        with get_db() as db:
            offer = db.get(Offer, offer_id)
            if not offer:
                raise NotFoundError('Offer not found')
            if offer.status in TERMINAL_STATUSES:
                raise ValidationError(f'Offer already {offer.status.value}')

            facility = offer.facility
            owner_side = facility.owner_id == actor['user_id'] or is_admin(actor)

            if offer.status == OfferStatus.PENDING:
                if not owner_side:
                    raise ForbiddenError('Only the facility owner can respond to this offer')
                if action == 'counter':
                    price = parse_float(counter_price, 'counterPrice')
                    if price is None or price <= 0:
                        raise ValidationError('counterPrice must be a positive number')
                    offer.counter_price = price
                    offer.status = OfferStatus.COUNTERED
            else:
                if offer.user_id != actor['user_id']:
                    raise ForbiddenError('Only the player who made the offer can answer the counter')
                if action == 'counter':
                    raise ValidationError('Offer has already been countered')

            if action == 'accept':
                offer.status = OfferStatus.ACCEPTED
                if offer.booking:
                    offer.booking.price = offer.agreed_price
                    offer.booking.is_negotiated = True
            elif action == 'reject':
                offer.status = OfferStatus.REJECTED

            db.flush()
            result = offer.to_dict()
            owner_id = facility.owner_id

        logger.info(f"Offer {offer_id} {result['status']} by user {actor['user_id']}")
        self.notifier.offer_updated(result, owner_id)
        return result

    def list_for_user(self, user_id: int) -> List[Dict]:
        with get_db() as db:
            offers = db.query(Offer).filter(
                Offer.user_id == user_id
            ).order_by(Offer.created_at.desc(), Offer.id.desc()).all()
            return [offer.to_dict() for offer in offers]

    def list_for_facility(self, actor: Dict, facility_id: int, status: Optional[str] = None) -> List[Dict]:
        with get_db() as db:
            assert_can_manage(db.get(Facility, facility_id), actor)
            query = db.query(Offer).filter(Offer.facility_id == facility_id)
            if status:
                try:
                    query = query.filter(Offer.status == OfferStatus(status))
                except ValueError:
                    raise ValidationError(f"Invalid status '{status}'")
            offers = query.order_by(Offer.created_at.desc(), Offer.id.desc()).all()
            return [offer.to_dict() for offer in offers]

    def stats(self, actor: Dict, facility_id: int) -> Dict:
        """Discounts conceded on accepted offers of one facility"""
        with get_db() as db:
            assert_can_manage(db.get(Facility, facility_id), actor)
            accepted = db.query(Offer).filter(
                Offer.facility_id == facility_id, Offer.status == OfferStatus.ACCEPTED
            ).all()
            prices = [offer.agreed_price for offer in accepted]
            discounts = [
                round((offer.original_price - offer.agreed_price) / offer.original_price * 100, 2)
                for offer in accepted if offer.original_price
            ]

        return {
            'facilityId': facility_id,
            'acceptedCount': len(accepted),
            'avgDiscountPct': round(sum(discounts) / len(discounts), 2) if discounts else 0,
            'minDiscountPct': min(discounts) if discounts else 0,
            'maxDiscountPct': max(discounts) if discounts else 0,
            'acceptedPrices': prices,
            'priceBands': quartiles(prices),
        }

    def _list_price(self, court: Court, data: Dict) -> float:
        hours = 1
        if data.get('start') and data.get('end'):
            hours = max(len(hourly_windows(data['start'], data['end'])), 1)
        return (court.price_per_hour or 0) * hours
