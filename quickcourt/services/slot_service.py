from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from quickcourt.database import get_db
from quickcourt.models import Booking, Court, TimeSlot
from quickcourt.models.booking import ACTIVE_BOOKING_STATUSES
from quickcourt.services.facility_service import assert_can_manage
from quickcourt.utils.errors import NotFoundError, SlotUnavailableError, ValidationError
from quickcourt.utils.timeslots import default_grid, hourly_windows, is_grid_window, overlaps
from quickcourt.utils.validators import check, validate_date_iso, validate_time
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)


def _window(court_id: int, date_iso: str, start: str, end: str):
    return (
        TimeSlot.court_id == court_id,
        TimeSlot.date_iso == date_iso,
        TimeSlot.start == start,
        TimeSlot.end == end,
    )


def _validate_window(date_iso: str, start: str, end: str):
    check(validate_date_iso(date_iso))
    check(validate_time(start))
    check(validate_time(end))
    if start >= end:
        raise ValidationError('end must be after start')


class SlotService:
    """Per-court hourly reservation rows"""

    def reserve(self, db, court_id: int, date_iso: str, start: str, end: str,
                price: Optional[float] = None):
        """
        Mark one window booked inside the caller's transaction.

        The flip is a single conditional UPDATE, so of two concurrent
        reservations at most one sees a row count of 1. A window with no row
        yet is inserted already booked; the unique constraint on the window
        rejects a concurrent insert. Raises SlotUnavailableError otherwise.
        """
        updated = db.query(TimeSlot).filter(
            *_window(court_id, date_iso, start, end),
            TimeSlot.is_booked.is_(False),
            TimeSlot.is_blocked.is_(False)
        ).update(
            {TimeSlot.is_booked: True, TimeSlot.price_snapshot: price},
            synchronize_session=False
        )
        if updated == 1:
            return

        existing = db.query(TimeSlot.id).filter(*_window(court_id, date_iso, start, end)).first()
        if existing or not is_grid_window(start, end):
            raise SlotUnavailableError()

        db.add(TimeSlot(
            court_id=court_id, date_iso=date_iso, start=start, end=end,
            is_booked=True, is_blocked=False, price_snapshot=price
        ))
        try:
            db.flush()
        except IntegrityError:
            raise SlotUnavailableError()

    def reserve_range(self, db, court_id: int, date_iso: str, start: str, end: str, price: float):
        """Reserve every hourly window of [start, end); the price is spread evenly"""
        windows = hourly_windows(start, end)
        if not windows:
            raise ValidationError('end must be after start')
        per_window = round(price / len(windows), 2) if price is not None else None
        for window_start, window_end in windows:
            self.reserve(db, court_id, date_iso, window_start, window_end, per_window)

    def release(self, db, court_id: int, date_iso: str, start: str, end: str):
        """Idempotently clear the booked flag of one window"""
        updated = db.query(TimeSlot).filter(*_window(court_id, date_iso, start, end)).update(
            {TimeSlot.is_booked: False}, synchronize_session=False
        )
        if not updated:
            db.add(TimeSlot(
                court_id=court_id, date_iso=date_iso, start=start, end=end,
                is_booked=False, is_blocked=False
            ))
            db.flush()

    def release_range(self, db, court_id: int, date_iso: str, start: str, end: str):
        for window_start, window_end in hourly_windows(start, end):
            self.release(db, court_id, date_iso, window_start, window_end)

    def block(self, actor: Dict, court_id: int, date_iso: str, start: str, end: str,
              is_blocked: bool = True) -> Dict:
        """Block (or unblock) a window for maintenance; owner of the court's facility only"""
        _validate_window(date_iso, start, end)

        with get_db() as db:
            court = db.get(Court, court_id)
            if not court:
                raise NotFoundError('Court not found')
            assert_can_manage(court.facility, actor)

            if is_blocked and self.has_active_booking(db, court_id, date_iso, start, end):
                raise ValidationError('Cannot block a slot that has an active booking')

            slot = db.query(TimeSlot).filter(*_window(court_id, date_iso, start, end)).first()
            if not slot:
                slot = TimeSlot(court_id=court_id, date_iso=date_iso, start=start, end=end, is_booked=False)
                db.add(slot)
            slot.is_blocked = is_blocked
            slot.price_snapshot = court.price_per_hour
            db.flush()

            logger.info(f"Slot {date_iso} {start}-{end} on court {court_id} "
                        f"{'blocked' if is_blocked else 'unblocked'} by user {actor['user_id']}")
            return slot.to_dict()

    def list_slots(self, court_id: int, date_iso: Optional[str] = None) -> List[Dict]:
        """Persisted rows for a court, optionally one date"""
        with get_db() as db:
            query = db.query(TimeSlot).filter(TimeSlot.court_id == court_id)
            if date_iso:
                query = query.filter(TimeSlot.date_iso == date_iso)
            slots = query.order_by(TimeSlot.date_iso, TimeSlot.start).all()
            return [slot.to_dict() for slot in slots]

    def availability(self, court_id: int, date_iso: str, actor: Optional[Dict] = None) -> List[Dict]:
        """
        The day's grid for a court: persisted rows where they exist, otherwise
        free windows priced at the court's current hourly rate.
        """
        check(validate_date_iso(date_iso))

        with get_db() as db:
            court = db.get(Court, court_id)
            if not court:
                raise NotFoundError('Court not found')
            if actor is not None:
                assert_can_manage(court.facility, actor)

            persisted = {
                (slot.start, slot.end): slot.to_dict()
                for slot in db.query(TimeSlot).filter(
                    TimeSlot.court_id == court_id, TimeSlot.date_iso == date_iso
                ).all()
            }
            merged = []
            for start, end in default_grid():
                merged.append(persisted.pop((start, end), None) or {
                    '_id': None,
                    'courtId': court_id,
                    'dateISO': date_iso,
                    'start': start,
                    'end': end,
                    'isBlocked': False,
                    'isBooked': False,
                    'priceSnapshot': court.price_per_hour,
                })
            # Off-grid rows (blocks on odd windows) are still part of the day
            merged.extend(persisted.values())
            return sorted(merged, key=lambda slot: slot['start'])

    def available_times(self, court_id: int, date_iso: str) -> List[str]:
        """Start times that are neither blocked, booked nor held by a pending booking"""
        slots = self.availability(court_id, date_iso)
        with get_db() as db:
            held = db.query(Booking.start, Booking.end).filter(
                Booking.court_id == court_id,
                Booking.date_iso == date_iso,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES)
            ).all()

        return [
            slot['start'] for slot in slots
            if not slot['isBlocked'] and not slot['isBooked']
            and not any(overlaps(slot['start'], slot['end'], start, end) for start, end in held)
        ]

    def window_is_free(self, db, court_id: int, date_iso: str, start: str, end: str) -> bool:
        """True if no active booking overlaps and every hourly window could be reserved"""
        if self.has_active_booking(db, court_id, date_iso, start, end):
            return False
        for window_start, window_end in hourly_windows(start, end):
            slot = db.query(TimeSlot).filter(*_window(court_id, date_iso, window_start, window_end)).first()
            if slot is None:
                if not is_grid_window(window_start, window_end):
                    return False
            elif slot.is_booked or slot.is_blocked:
                return False
        return True

    def has_active_booking(self, db, court_id: int, date_iso: str, start: str, end: str) -> bool:
        bookings = db.query(Booking.start, Booking.end).filter(
            Booking.court_id == court_id,
            Booking.date_iso == date_iso,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).all()
        return any(overlaps(start, end, b_start, b_end) for b_start, b_end in bookings)
