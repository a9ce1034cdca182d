from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, ForeignKey, DateTime, Enum
import enum
from .base import BaseModel, isoformat


class CouponType(enum.Enum):
    FLAT = "flat"
    PERCENT = "percent"


class Coupon(BaseModel):
    __tablename__ = 'coupons'

    code = Column(String(50), unique=True, nullable=False, index=True)
    type = Column(Enum(CouponType), nullable=False)
    value = Column(Float, nullable=False)
    min_bookings = Column(Integer, default=0)
    max_redemptions = Column(Integer, default=100)
    redeemed = Column(Integer, default=0)
    valid_from = Column(DateTime)
    valid_to = Column(DateTime)
    created_by = Column(Integer, ForeignKey('users.id'))

    def is_valid(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        if self.valid_from and now < self.valid_from:
            return False
        if self.valid_to and now > self.valid_to:
            return False
        return (self.redeemed or 0) < (self.max_redemptions or 0)

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'code': self.code,
            'type': self.type.value,
            'value': self.value,
            'minBookings': self.min_bookings,
            'maxRedemptions': self.max_redemptions,
            'redeemed': self.redeemed,
            'validFrom': isoformat(self.valid_from),
            'validTo': isoformat(self.valid_to),
            'createdBy': self.created_by,
        })
        return data


class PriceEvent(BaseModel):
    """Hourly price history of a court"""
    __tablename__ = 'price_events'

    court_id = Column(Integer, ForeignKey('courts.id'), nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    price = Column(Float, nullable=False)

    def to_dict(self) -> dict:
        return {
            '_id': self.id,
            'courtId': self.court_id,
            'timestamp': isoformat(self.timestamp),
            'price': self.price,
        }
