from sqlalchemy import Column, String, Integer, Float, Boolean, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class FacilityStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Facility(BaseModel):
    __tablename__ = 'facilities'

    owner_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Basic Info
    name = Column(String(255), nullable=False)
    description = Column(String(2000))
    address = Column(String(500))
    latitude = Column(Float)
    longitude = Column(Float)

    # Catalog
    sports = Column(JSON, default=list)
    amenities = Column(JSON, default=list)
    photos = Column(JSON, default=list)

    # Moderation
    status = Column(Enum(FacilityStatus), default=FacilityStatus.PENDING, index=True)

    # Ratings and pricing
    rating_avg = Column(Float, default=0)
    rating_count = Column(Integer, default=0)
    starting_price_per_hour = Column(Float, default=0)
    highlight = Column(Boolean, default=False)

    # Relationships
    owner = relationship("User", back_populates="facilities")
    courts = relationship("Court", back_populates="facility", lazy='dynamic')

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'ownerId': self.owner_id,
            'name': self.name,
            'description': self.description,
            'address': self.address,
            'geolocation': {'lat': self.latitude, 'lng': self.longitude},
            'sports': self.sports or [],
            'amenities': self.amenities or [],
            'photos': self.photos or [],
            'status': self.status.value if self.status else None,
            'ratingAvg': self.rating_avg or 0,
            'ratingCount': self.rating_count or 0,
            'startingPricePerHour': self.starting_price_per_hour or 0,
            'highlight': bool(self.highlight),
        })
        return data


class Court(BaseModel):
    __tablename__ = 'courts'

    facility_id = Column(Integer, ForeignKey('facilities.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sport = Column(String(100))
    price_per_hour = Column(Float, default=0)
    open_time = Column(String(5), default='06:00')
    close_time = Column(String(5), default='22:00')
    is_active = Column(Boolean, default=True)

    # Relationships
    facility = relationship("Facility", back_populates="courts")

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'facilityId': self.facility_id,
            'name': self.name,
            'sport': self.sport,
            'pricePerHour': self.price_per_hour or 0,
            'operatingHours': {'open': self.open_time, 'close': self.close_time},
            'isActive': bool(self.is_active),
        })
        return data
