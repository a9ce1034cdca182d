from sqlalchemy import Column, String, Float, Boolean, Enum, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class UserRole(enum.Enum):
    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


# Client-facing role names that map onto a canonical role
ROLE_ALIASES = {
    'facility_owner': UserRole.OWNER,
}


def canonical_role(value) -> UserRole:
    """
    Translate a role claim ('facility_owner', 'owner', UserRole.OWNER, ...)
    into the canonical UserRole. Raises ValueError for unknown roles.
    """
    if isinstance(value, UserRole):
        return value
    name = (value or '').strip().lower()
    if name in ROLE_ALIASES:
        return ROLE_ALIASES[name]
    return UserRole(name)


class User(BaseModel):
    __tablename__ = 'users'

    # Basic Info
    name = Column(String(255))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(500))
    phone = Column(String(20))
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)

    # Email verification
    otp = Column(String(10))
    otp_expires_at = Column(DateTime)
    otp_verified = Column(Boolean, default=False)

    # Trust signals
    reliability_score = Column(Float, default=80)
    cancellations = Column(Integer, default=0)
    banned = Column(Boolean, default=False)

    # Relationships
    facilities = relationship("Facility", back_populates="owner", lazy='dynamic')
    bookings = relationship("Booking", back_populates="user", lazy='dynamic')
    owner_profile = relationship("OwnerProfile", back_populates="user", uselist=False)

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'name': self.name,
            'email': self.email,
            'avatar': self.avatar,
            'phone': self.phone,
            'role': self.role.value,
            'otpVerified': bool(self.otp_verified),
            'reliabilityScore': self.reliability_score,
            'cancellations': self.cancellations or 0,
            'banned': bool(self.banned),
        })
        return data


class KycStatus(enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class OwnerProfile(BaseModel):
    __tablename__ = 'owner_profiles'

    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False)
    org_name = Column(String(255))
    kyc_status = Column(Enum(KycStatus), default=KycStatus.PENDING)
    highlight_credits = Column(Integer, default=0)

    user = relationship("User", back_populates="owner_profile")

    def to_dict(self) -> dict:
        data = self.timestamps()
        data.update({
            'userId': self.user_id,
            'orgName': self.org_name,
            'kycStatus': self.kyc_status.value if self.kyc_status else None,
            'highlightCredits': self.highlight_credits or 0,
        })
        return data
