from sqlalchemy import Column, String, Integer, Float, Boolean, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel, isoformat


class BookingStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy a court window
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class Booking(BaseModel):
    __tablename__ = 'bookings'

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    facility_id = Column(Integer, ForeignKey('facilities.id'), index=True)
    court_id = Column(Integer, ForeignKey('courts.id'), nullable=False, index=True)

    # Schedule
    date_iso = Column(String(10), nullable=False, index=True)
    start = Column(String(5), nullable=False)
    end = Column(String(5), nullable=False)

    # Pricing
    price = Column(Float, nullable=False)
    base_price = Column(Float)
    is_negotiated = Column(Boolean, default=False)

    # Status
    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, index=True)
    confirmed_at = Column(DateTime)

    # Payment details
    payment_method = Column(String(50), default='stripe')
    payment_txn_id = Column(String(255))
    payment_intent_id = Column(String(255), index=True)
    payment_client_secret = Column(String(255))
    payment_status = Column(String(50))
    payment_amount = Column(Float)

    # Relationships
    user = relationship("User", back_populates="bookings")
    facility = relationship("Facility")
    court = relationship("Court")

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'userId': self.user_id,
            'facilityId': self.facility_id,
            'courtId': self.court_id,
            'dateISO': self.date_iso,
            'start': self.start,
            'end': self.end,
            'price': self.price,
            'basePrice': self.base_price,
            'isNegotiated': bool(self.is_negotiated),
            'status': self.status.value,
            'confirmedAt': isoformat(self.confirmed_at),
            'payment': {
                'method': self.payment_method,
                'txnId': self.payment_txn_id,
                'paymentIntentId': self.payment_intent_id,
                'clientSecret': self.payment_client_secret,
                'status': self.payment_status,
                'amount': self.payment_amount,
            },
        })
        return data
