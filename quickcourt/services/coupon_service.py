from datetime import datetime
from typing import Dict, Optional
from quickcourt.database import get_db
from quickcourt.models import Coupon
from quickcourt.models.pricing import CouponType
from quickcourt.utils.errors import NotFoundError, ValidationError
from quickcourt.utils.validators import parse_float, parse_int, require_fields
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)


def _parse_datetime(value, name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f'Invalid {name} format. Use ISO format')


class CouponService:
    """Discount codes issued by owners and admins"""

    def create(self, actor: Dict, data: Dict) -> Dict:
        require_fields(data, ['code', 'type', 'value'])
        try:
            coupon_type = CouponType(str(data['type']).lower())
        except ValueError:
            raise ValidationError("type must be 'flat' or 'percent'")
        value = parse_float(data['value'], 'value')
        if value <= 0 or (coupon_type == CouponType.PERCENT and value > 100):
            raise ValidationError('Invalid coupon value')

        valid_from = _parse_datetime(data.get('validFrom'), 'validFrom')
        valid_to = _parse_datetime(data.get('validTo'), 'validTo')
        if valid_from and valid_to and valid_to < valid_from:
            raise ValidationError('validTo must be after validFrom')

        code = str(data['code']).strip().upper()
        with get_db() as db:
            if db.query(Coupon).filter(Coupon.code == code).first():
                raise ValidationError('Coupon code already exists')

            coupon = Coupon(
                code=code,
                type=coupon_type,
                value=value,
                min_bookings=parse_int(data.get('minBookings'), 'minBookings') or 0,
                max_redemptions=parse_int(data.get('maxRedemptions'), 'maxRedemptions') or 100,
                redeemed=0,
                valid_from=valid_from,
                valid_to=valid_to,
                created_by=actor['user_id']
            )
            db.add(coupon)
            db.flush()
            logger.info(f"Coupon {code} created by user {actor['user_id']}")
            return coupon.to_dict()

    def validate(self, code: str, amount=None) -> Dict:
        """Check a code against its date window and redemption cap"""
        if not code:
            raise ValidationError('code is required')

        with get_db() as db:
            coupon = db.query(Coupon).filter(Coupon.code == str(code).strip().upper()).first()
            if not coupon:
                raise NotFoundError('Invalid code')

            valid = coupon.is_valid()
            result = {'valid': valid, 'coupon': coupon.to_dict()}

            amount = parse_float(amount, 'amount')
            if valid and amount is not None:
                if coupon.type == CouponType.PERCENT:
                    discount = round(amount * coupon.value / 100, 2)
                else:
                    discount = min(coupon.value, amount)
                result['discount'] = discount
                result['finalAmount'] = round(amount - discount, 2)
            return result
