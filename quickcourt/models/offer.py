from sqlalchemy import Column, String, Integer, Float, ForeignKey, Enum
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class OfferStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"


class Offer(BaseModel):
    __tablename__ = 'offers'

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    facility_id = Column(Integer, ForeignKey('facilities.id'), nullable=False, index=True)
    court_id = Column(Integer, ForeignKey('courts.id'), nullable=False)
    booking_id = Column(Integer, ForeignKey('bookings.id'))

    # Requested window
    date_iso = Column(String(10))
    start = Column(String(5))
    end = Column(String(5))

    # Negotiation
    original_price = Column(Float, nullable=False)
    offered_price = Column(Float, nullable=False)
    counter_price = Column(Float)
    status = Column(Enum(OfferStatus), default=OfferStatus.PENDING, index=True)

    # Relationships
    facility = relationship("Facility")
    booking = relationship("Booking")

    @property
    def agreed_price(self) -> float:
        """Price both sides settled on; the counter price once one was made"""
        return self.counter_price if self.counter_price is not None else self.offered_price

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'userId': self.user_id,
            'facilityId': self.facility_id,
            'courtId': self.court_id,
            'bookingId': self.booking_id,
            'dateISO': self.date_iso,
            'start': self.start,
            'end': self.end,
            'originalPrice': self.original_price,
            'offeredPrice': self.offered_price,
            'counterPrice': self.counter_price,
            'status': self.status.value,
        })
        return data
