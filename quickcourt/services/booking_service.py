import atexit
import time
from datetime import datetime
from typing import Dict, List, Optional
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import or_, and_
from config.config import Config
from quickcourt.database import get_db
from quickcourt.integrations import PaymentGateway
from quickcourt.models import Booking, Court, Facility, User
from quickcourt.models.booking import BookingStatus
from quickcourt.services.facility_service import is_admin
from quickcourt.services.notification_service import PushNotifier
from quickcourt.services.slot_service import SlotService
from quickcourt.utils.errors import ForbiddenError, NotFoundError, PaymentError, SlotUnavailableError, ValidationError
from quickcourt.utils.reliability import adjust_reliability
from quickcourt.utils.timeslots import end_time, from_minutes, hourly_windows, to_minutes, today_iso
from quickcourt.utils.validators import check, parse_float, parse_int, require_fields, validate_date_iso, validate_time
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)


def booking_with_refs(booking: Booking) -> Dict:
    """Booking document with the facility, court and player summaries the UI shows"""
    data = booking.to_dict()
    if booking.facility:
        data['facility'] = {'_id': booking.facility.id, 'name': booking.facility.name,
                            'address': booking.facility.address}
    if booking.court:
        data['court'] = {'_id': booking.court.id, 'name': booking.court.name, 'sport': booking.court.sport}
    if booking.user:
        data['user'] = {'_id': booking.user.id, 'name': booking.user.name, 'email': booking.user.email}
    return data


class BookingService:
    """
    Booking lifecycle: pending -> confirmed -> cancelled | completed.

    Every operation that touches both slots and bookings does so inside one
    get_db() block, so the slot flips and the booking row commit together.
    """

    def __init__(self, payment_gateway: PaymentGateway, notifier: Optional[PushNotifier] = None,
                 slot_service: Optional[SlotService] = None):
        self.payment_gateway = payment_gateway
        self.notifier = notifier or PushNotifier()
        self.slot_service = slot_service or SlotService()
        self.scheduler = None

    def create_simulated(self, user_id: int, data: Dict) -> Dict:
        """Book and confirm immediately with a simulated payment"""
        require_fields(data, ['courtId', 'dateISO', 'start', 'end'])
        date_iso, start, end = data['dateISO'], data['start'], data['end']
        check(validate_date_iso(date_iso))
        check(validate_time(start))
        check(validate_time(end))
        if start >= end:
            raise ValidationError('end must be after start')

        with get_db() as db:
            court = self._active_court(db, data['courtId'])
            price = parse_float(data.get('price'), 'price')
            if price is None:
                price = (court.price_per_hour or 0) * len(hourly_windows(start, end))

            if self.slot_service.has_active_booking(db, court.id, date_iso, start, end):
                raise SlotUnavailableError()
            self.slot_service.reserve_range(db, court.id, date_iso, start, end, price)

            now = datetime.utcnow()
            booking = Booking(
                user_id=user_id,
                facility_id=data.get('facilityId') or court.facility_id,
                court_id=court.id,
                date_iso=date_iso,
                start=start,
                end=end,
                price=price,
                base_price=price,
                status=BookingStatus.CONFIRMED,
                confirmed_at=now,
                payment_method='simulated',
                payment_txn_id=f"SIM-{int(time.time() * 1000)}",
                payment_status='succeeded',
                payment_amount=price
            )
            db.add(booking)
            db.flush()
            result = booking.to_dict()

        logger.info(f"Booking {result['_id']} confirmed (simulated) for user {user_id}")
        self.notifier.booking_updated(result)
        return result

    def create_pending(self, user_id: int, data: Dict) -> Dict:
        """
        Hold a window behind a payment intent. Nothing is reserved until the
        payment is verified, but overlapping requests are refused up front.
        The intent is created between two transactions; if the booking row
        cannot be written afterwards the intent is cancelled.
        """
        require_fields(data, ['courtId', 'dateISO', 'startTime'])
        date_iso, start = data['dateISO'], data['startTime']
        check(validate_date_iso(date_iso))
        check(validate_time(start))
        duration = parse_int(data.get('duration', 1), 'duration')
        if duration is None or duration < 1:
            raise ValidationError('duration must be at least 1 hour')

        closing = (Config.SLOT_GRID_LAST_HOUR + 1) * 60
        if to_minutes(start) + duration * 60 > closing:
            raise ValidationError(f'Booking must end by {from_minutes(closing)}')
        end = end_time(start, duration)

        with get_db() as db:
            court = self._active_court(db, data['courtId'])
            court_id, facility_id = court.id, court.facility_id
            base_price = (court.price_per_hour or 0) * duration
            amount = parse_float(data.get('amount'), 'amount')
            if amount is None:
                amount = base_price
            if amount <= 0:
                raise ValidationError('amount must be positive')

            if not self.slot_service.window_is_free(db, court_id, date_iso, start, end):
                raise SlotUnavailableError('Time slot is not available')

        intent = self.payment_gateway.create_intent(
            amount,
            Config.CURRENCY,
            metadata={'userId': user_id, 'courtId': court_id, 'dateISO': date_iso, 'start': start}
        )

        try:
            with get_db() as db:
                if not self.slot_service.window_is_free(db, court_id, date_iso, start, end):
                    raise SlotUnavailableError('Time slot is not available')

                booking = Booking(
                    user_id=user_id,
                    facility_id=facility_id,
                    court_id=court_id,
                    date_iso=date_iso,
                    start=start,
                    end=end,
                    price=amount,
                    base_price=base_price,
                    is_negotiated=bool(data.get('isNegotiated')),
                    status=BookingStatus.PENDING,
                    payment_method='stripe',
                    payment_intent_id=intent.id,
                    payment_client_secret=intent.client_secret,
                    payment_status=intent.status,
                    payment_amount=amount
                )
                db.add(booking)
                db.flush()
                result = booking.to_dict()
        except Exception:
            logger.warning(f"Pending booking not stored, cancelling payment intent {intent.id}")
            self.payment_gateway.cancel_intent(intent.id)
            raise

        logger.info(f"Booking {result['_id']} pending payment {intent.id} ({self.payment_gateway.name})")
        return {
            'booking': result,
            'clientSecret': intent.client_secret,
            'paymentIntentId': intent.id,
        }

    def verify_payment(self, user_id: int, booking_id: int, payment_intent_id: Optional[str] = None) -> Dict:
        """Confirm a pending booking once its payment intent has succeeded"""
        with get_db() as db:
            booking = db.query(Booking).filter(
                Booking.id == booking_id,
                Booking.user_id == user_id,
                Booking.status == BookingStatus.PENDING
            ).first()
            if not booking:
                raise NotFoundError('Pending booking not found')

            intent_id = payment_intent_id or booking.payment_intent_id
            if booking.payment_intent_id and intent_id != booking.payment_intent_id:
                raise ValidationError('Payment intent does not match booking')

            intent = self.payment_gateway.confirm_intent(intent_id)
            if not intent.succeeded:
                logger.warning(f"Payment {intent_id} for booking {booking_id} not successful: {intent.status}")
                raise PaymentError('Payment not successful')

            self.slot_service.reserve_range(
                db, booking.court_id, booking.date_iso, booking.start, booking.end, booking.price
            )
            booking.status = BookingStatus.CONFIRMED
            booking.confirmed_at = datetime.utcnow()
            booking.payment_status = intent.status
            booking.payment_txn_id = intent.id
            db.flush()
            result = booking.to_dict()

        logger.info(f"Booking {booking_id} confirmed after payment {intent_id}")
        self.notifier.booking_updated(result)
        return result

    def cancel(self, user_id: int, booking_id: int) -> Dict:
        """Player cancellation of a confirmed booking; costs reliability"""
        with get_db() as db:
            booking = db.get(Booking, booking_id)
            if not booking:
                raise NotFoundError('Booking not found')
            if booking.user_id != user_id:
                raise ForbiddenError('You can only cancel your own bookings')
            if booking.status != BookingStatus.CONFIRMED:
                raise ValidationError('Only confirmed bookings can be cancelled')

            booking.status = BookingStatus.CANCELLED
            self.slot_service.release_range(db, booking.court_id, booking.date_iso, booking.start, booking.end)

            user = db.get(User, user_id)
            user.cancellations = (user.cancellations or 0) + 1
            user.reliability_score = adjust_reliability(user.reliability_score, 'cancelled')
            db.flush()
            result = booking.to_dict()

        logger.info(f"Booking {booking_id} cancelled by user {user_id}")
        self.notifier.booking_updated(result)
        return result

    def complete_past_bookings(self, now: Optional[datetime] = None) -> int:
        """Mark confirmed bookings that have ended as completed"""
        now = now or datetime.utcnow()
        today = now.strftime('%Y-%m-%d')
        clock = now.strftime('%H:%M')

        with get_db() as db:
            bookings = db.query(Booking).filter(
                Booking.status == BookingStatus.CONFIRMED,
                or_(Booking.date_iso < today, and_(Booking.date_iso == today, Booking.end <= clock))
            ).all()

            completed = []
            for booking in bookings:
                booking.status = BookingStatus.COMPLETED
                user = db.get(User, booking.user_id)
                if user:
                    user.reliability_score = adjust_reliability(user.reliability_score, 'completed')
                completed.append(booking.to_dict())

        for booking in completed:
            self.notifier.booking_updated(booking)
        if completed:
            logger.info(f"Marked {len(completed)} bookings as completed")
        return len(completed)

    def list_for_user(self, user_id: int) -> List[Dict]:
        with get_db() as db:
            bookings = db.query(Booking).filter(
                Booking.user_id == user_id
            ).order_by(Booking.created_at.desc(), Booking.id.desc()).all()
            return [booking_with_refs(booking) for booking in bookings]

    def list_for_owner(self, actor: Dict, owner_id: Optional[int], filters: Dict,
                       page: int, limit: int) -> Dict:
        """Bookings on an owner's facilities; owners see their own, admins anyone's"""
        owner_id = owner_id or actor['user_id']
        if owner_id != actor['user_id'] and not is_admin(actor):
            raise ForbiddenError('Access denied')

        with get_db() as db:
            query = db.query(Booking).join(Facility, Booking.facility_id == Facility.id).filter(
                Facility.owner_id == owner_id
            )
            if filters.get('status'):
                try:
                    query = query.filter(Booking.status == BookingStatus(filters['status']))
                except ValueError:
                    raise ValidationError(f"Invalid status '{filters['status']}'")
            if filters.get('facilityId'):
                query = query.filter(Booking.facility_id == parse_int(filters['facilityId'], 'facilityId'))
            if filters.get('courtId'):
                query = query.filter(Booking.court_id == parse_int(filters['courtId'], 'courtId'))
            if filters.get('dateFrom'):
                query = query.filter(Booking.date_iso >= filters['dateFrom'])
            if filters.get('dateTo'):
                query = query.filter(Booking.date_iso <= filters['dateTo'])

            total = query.count()
            bookings = query.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(
                (page - 1) * limit
            ).limit(limit).all()

            return {
                'data': [booking_with_refs(booking) for booking in bookings],
                'total': total,
                'page': page,
                'limit': limit,
                'totalPages': (total + limit - 1) // limit,
            }

    def available_times(self, court_id: int, date_iso: Optional[str] = None) -> List[str]:
        return self.slot_service.available_times(court_id, date_iso or today_iso())

    def start_scheduler(self, interval_minutes: int = Config.BOOKING_COMPLETION_INTERVAL_MINUTES):
        """Run complete_past_bookings periodically in the background"""
        if self.scheduler:
            return self.scheduler
        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            func=self.complete_past_bookings,
            trigger='interval',
            minutes=interval_minutes,
            id='complete_past_bookings',
            replace_existing=True
        )
        self.scheduler.start()
        atexit.register(self.stop_scheduler)
        logger.info(f"Booking completion job scheduled every {interval_minutes} minutes")
        return self.scheduler

    def stop_scheduler(self):
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None

    def _active_court(self, db, court_id) -> Court:
        court = db.get(Court, parse_int(court_id, 'courtId'))
        if not court or not court.is_active:
            raise NotFoundError('Court not found')
        return court
