from typing import Dict, List, Optional
from quickcourt.database import get_db
from quickcourt.models import Facility, User
from quickcourt.models.facility import FacilityStatus
from quickcourt.models.user import UserRole
from quickcourt.utils.errors import ForbiddenError, NotFoundError, ValidationError
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)

FACILITY_DECISIONS = {
    'approve': FacilityStatus.APPROVED,
    'reject': FacilityStatus.REJECTED,
}

USER_ACTIONS = {
    'ban': True,
    'unban': False,
}


class AdminService:
    """Moderation of facilities and accounts"""

    def pending_facilities(self) -> List[Dict]:
        with get_db() as db:
            facilities = db.query(Facility).filter(
                Facility.status == FacilityStatus.PENDING
            ).order_by(Facility.created_at).all()
            return [facility.to_dict() for facility in facilities]

    def decide_facility(self, admin_id: int, facility_id: int, decision: str) -> Dict:
        if decision not in FACILITY_DECISIONS:
            raise ValidationError(f"Invalid decision '{decision}'")

        with get_db() as db:
            facility = db.get(Facility, facility_id)
            if not facility:
                raise NotFoundError('Facility not found')
            facility.status = FACILITY_DECISIONS[decision]
            db.flush()
            logger.info(f"Facility {facility_id} {facility.status.value} by admin {admin_id}")
            return facility.to_dict()

    def list_users(self, role: Optional[str] = None) -> List[Dict]:
        with get_db() as db:
            query = db.query(User)
            if role:
                try:
                    query = query.filter(User.role == UserRole(role))
                except ValueError:
                    raise ValidationError(f"Invalid role '{role}'")
            return [user.to_dict() for user in query.order_by(User.id).all()]

    def set_banned(self, admin_id: int, user_id: int, action: str) -> Dict:
        """Ban or unban an account; admins cannot be banned"""
        if action not in USER_ACTIONS:
            raise ValidationError(f"Invalid action '{action}'")

        with get_db() as db:
            user = db.get(User, user_id)
            if not user:
                raise NotFoundError('User not found')
            if USER_ACTIONS[action] and user.role == UserRole.ADMIN:
                raise ForbiddenError('Admins cannot be banned')

            user.banned = USER_ACTIONS[action]
            db.flush()
            logger.info(f"User {user_id} {action}ned by admin {admin_id}")
            return user.to_dict()
