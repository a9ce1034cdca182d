from datetime import datetime, timedelta
from typing import Dict, List
from sqlalchemy import func
from quickcourt.database import get_db
from quickcourt.models import Booking, Court, Facility, User
from quickcourt.models.booking import ACTIVE_BOOKING_STATUSES, BookingStatus
from quickcourt.models.facility import FacilityStatus
from quickcourt.services.booking_service import booking_with_refs
from quickcourt.services.facility_service import is_admin
from quickcourt.utils.errors import ForbiddenError
from quickcourt.utils.timeslots import DATE_FORMAT, today_iso

# Bookings that brought in money
PAID_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


def last_days(days: int = 7) -> List[str]:
    today = datetime.utcnow()
    return [(today - timedelta(days=offset)).strftime(DATE_FORMAT) for offset in range(days - 1, -1, -1)]


class StatsService:
    """Dashboard figures for players, owners and admins"""

    def user_stats(self, user_id: int) -> Dict:
        with get_db() as db:
            by_status = dict(db.query(Booking.status, func.count(Booking.id)).filter(
                Booking.user_id == user_id
            ).group_by(Booking.status).all())
            spent = db.query(func.coalesce(func.sum(Booking.price), 0)).filter(
                Booking.user_id == user_id, Booking.status.in_(PAID_STATUSES)
            ).scalar()
            trend = [
                {'date': day, 'count': db.query(Booking).filter(
                    Booking.user_id == user_id, Booking.date_iso == day
                ).count()}
                for day in last_days()
            ]

        return {
            'totalBookings': sum(by_status.values()),
            'byStatus': {status.value: by_status.get(status, 0) for status in BookingStatus},
            'totalSpent': float(spent or 0),
            'trend': trend,
        }

    def owner_stats(self, owner_id: int) -> Dict:
        """Earnings and booking counts per facility"""
        with get_db() as db:
            facilities = db.query(Facility).filter(Facility.owner_id == owner_id).order_by(Facility.id).all()
            earnings, bookings = [], []
            for facility in facilities:
                revenue = db.query(func.coalesce(func.sum(Booking.price), 0)).filter(
                    Booking.facility_id == facility.id, Booking.status.in_(PAID_STATUSES)
                ).scalar()
                count = db.query(Booking).filter(Booking.facility_id == facility.id).count()
                earnings.append({'facilityId': facility.id, 'name': facility.name, 'amount': float(revenue or 0)})
                bookings.append({'facilityId': facility.id, 'name': facility.name, 'count': count})

        return {'earnings': earnings, 'bookings': bookings}

    def admin_stats(self) -> Dict:
        with get_db() as db:
            return {
                'totalUsers': db.query(User).count(),
                'totalFacilities': db.query(Facility).count(),
                'totalBookings': db.query(Booking).count(),
                'pendingFacilities': db.query(Facility).filter(
                    Facility.status == FacilityStatus.PENDING
                ).count(),
                'bannedUsers': db.query(User).filter(User.banned.is_(True)).count(),
            }

    def facility_owner_dashboard(self, actor: Dict, owner_id: int) -> Dict:
        """KPIs, bookings per day for the last week and recent activity"""
        if owner_id != actor['user_id'] and not is_admin(actor):
            raise ForbiddenError('Access denied')

        with get_db() as db:
            facility_ids = [
                facility_id for (facility_id,) in
                db.query(Facility.id).filter(Facility.owner_id == owner_id).all()
            ]
            court_count = db.query(Court).filter(Court.facility_id.in_(facility_ids)).count()
            upcoming = db.query(Booking).filter(
                Booking.facility_id.in_(facility_ids),
                Booking.date_iso >= today_iso(),
                Booking.status.in_(ACTIVE_BOOKING_STATUSES)
            ).count()
            revenue = db.query(func.coalesce(func.sum(Booking.price), 0)).filter(
                Booking.facility_id.in_(facility_ids),
                Booking.status == BookingStatus.COMPLETED
            ).scalar()

            bookings_by_day = [
                {'date': day, 'count': db.query(Booking).filter(
                    Booking.facility_id.in_(facility_ids), Booking.date_iso == day
                ).count()}
                for day in last_days()
            ]

            recent = db.query(Booking).filter(
                Booking.facility_id.in_(facility_ids)
            ).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(5).all()
            recent_activity = []
            for booking in recent:
                data = booking_with_refs(booking)
                recent_activity.append({
                    'id': booking.id,
                    'type': 'booking',
                    'status': data['status'],
                    'user': data.get('user'),
                    'facility': data.get('facility'),
                    'court': data.get('court'),
                    'date': booking.date_iso,
                    'time': f"{booking.start} - {booking.end}",
                    'amount': booking.price,
                    'createdAt': data['createdAt'],
                })

        return {
            'kpis': [
                {'label': 'Facilities', 'value': len(facility_ids)},
                {'label': 'Courts', 'value': court_count},
                {'label': 'Upcoming Bookings', 'value': upcoming},
                {'label': 'Total Revenue', 'value': float(revenue or 0), 'format': 'currency'},
            ],
            'charts': {'bookingsByDay': bookings_by_day},
            'recentActivity': recent_activity,
        }
