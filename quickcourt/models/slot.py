from sqlalchemy import Column, String, Integer, Float, Boolean, ForeignKey, UniqueConstraint
from .base import BaseModel


class TimeSlot(BaseModel):
    __tablename__ = 'time_slots'

    court_id = Column(Integer, ForeignKey('courts.id'), nullable=False, index=True)
    date_iso = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    start = Column(String(5), nullable=False)  # HH:MM
    end = Column(String(5), nullable=False)  # HH:MM

    # Status
    is_blocked = Column(Boolean, default=False, nullable=False)
    is_booked = Column(Boolean, default=False, nullable=False)
    price_snapshot = Column(Float)

    __table_args__ = (
        # One row per court window; concurrent lazy inserts collide here
        UniqueConstraint('court_id', 'date_iso', 'start', 'end', name='uq_court_slot_window'),
    )

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'courtId': self.court_id,
            'dateISO': self.date_iso,
            'start': self.start,
            'end': self.end,
            'isBlocked': bool(self.is_blocked),
            'isBooked': bool(self.is_booked),
            'priceSnapshot': self.price_snapshot,
        })
        return data
