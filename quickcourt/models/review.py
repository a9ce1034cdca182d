from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from .base import BaseModel


class Review(BaseModel):
    __tablename__ = 'reviews'

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    facility_id = Column(Integer, ForeignKey('facilities.id'), nullable=False, index=True)

    rating = Column(Integer, nullable=False)  # 1-5 scale
    text = Column(String(2000))

    # Relationships
    user = relationship("User")

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'facilityId': self.facility_id,
            'userId': {'_id': self.user.id, 'name': self.user.name, 'email': self.user.email}
            if self.user else self.user_id,
            'rating': self.rating,
            'text': self.text,
        })
        return data
