from typing import Dict
from sqlalchemy import func
from quickcourt.database import get_db
from quickcourt.models import Facility, Review
from quickcourt.models.user import UserRole, canonical_role
from quickcourt.utils.errors import ForbiddenError, NotFoundError, ValidationError
from quickcourt.utils.validators import parse_int, require_fields
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)


class ReviewService:
    """Facility reviews and the rating summary derived from them"""

    def list_for_facility(self, facility_id: int, page: int, limit: int) -> Dict:
        with get_db() as db:
            query = db.query(Review).filter(Review.facility_id == facility_id)
            total = query.count()
            reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).offset(
                (page - 1) * limit
            ).limit(limit).all()
            return {
                'data': [review.to_dict() for review in reviews],
                'total': total,
                'page': page,
                'limit': limit,
            }

    def create(self, actor: Dict, data: Dict) -> Dict:
        """Players only; recomputes the facility's rating average and count"""
        if canonical_role(actor.get('role')) != UserRole.USER:
            raise ForbiddenError('Only players can leave reviews')

        require_fields(data, ['facilityId', 'rating'])
        try:
            rating = int(data['rating'])
        except (TypeError, ValueError):
            raise ValidationError('rating must be an integer')
        if not 1 <= rating <= 5:
            raise ValidationError('rating must be between 1 and 5')

        with get_db() as db:
            facility = db.get(Facility, parse_int(data['facilityId'], 'facilityId'))
            if not facility:
                raise NotFoundError('Facility not found')

            review = Review(user_id=actor['user_id'], facility_id=facility.id,
                            rating=rating, text=data.get('text'))
            db.add(review)
            db.flush()

            avg, count = db.query(func.avg(Review.rating), func.count(Review.id)).filter(
                Review.facility_id == facility.id
            ).one()
            facility.rating_avg = round(float(avg or 0), 2)
            facility.rating_count = count or 0
            db.flush()

            logger.info(f"Review {review.id} for facility {facility.id}: {rating} stars")
            return review.to_dict()
