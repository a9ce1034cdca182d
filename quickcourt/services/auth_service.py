from datetime import datetime, timedelta
from typing import Dict, Optional
from config.config import Config
from quickcourt.database import get_db
from quickcourt.models import OwnerProfile, User
from quickcourt.models.user import UserRole, canonical_role
from quickcourt.services.notification_service import NotificationService
from quickcourt.utils.errors import ForbiddenError, NotFoundError, ValidationError
from quickcourt.utils.reliability import init_reliability
from quickcourt.utils.security import (
    hash_password, verify_password, generate_user_token, generate_verification_code
)
from quickcourt.utils.validators import check, require_fields, validate_email, validate_password
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)

# Roles a visitor may pick at signup
SELF_SERVICE_ROLES = (UserRole.USER, UserRole.OWNER)

PROFILE_FIELDS = ('name', 'avatar', 'phone')


class AuthService:
    """Service for handling authentication"""

    def __init__(self, notification_service: Optional[NotificationService] = None):
        self.notifications = notification_service or NotificationService()

    def signup(self, data: Dict) -> Dict:
        """Register a new account and email it a one-time code"""
        require_fields(data, ['name', 'email', 'password'])
        email = data['email'].strip().lower()
        check(validate_email(email))
        check(validate_password(data['password']))

        try:
            role = canonical_role(data.get('role') or 'user')
        except ValueError:
            raise ValidationError(f"Invalid role '{data.get('role')}'")
        if role not in SELF_SERVICE_ROLES:
            raise ForbiddenError('This role cannot be self-assigned')

        otp = generate_verification_code()
        with get_db() as db:
            if db.query(User).filter(User.email == email).first():
                raise ValidationError('Email in use', code='EMAIL_IN_USE')

            user = User(
                name=data['name'],
                email=email,
                password_hash=hash_password(data['password']),
                phone=data.get('phone'),
                role=role,
                otp=otp,
                otp_expires_at=datetime.utcnow() + timedelta(minutes=Config.OTP_EXPIRE_MINUTES),
                otp_verified=False,
                reliability_score=init_reliability()
            )
            db.add(user)
            db.flush()
            if role == UserRole.OWNER:
                db.add(OwnerProfile(user_id=user.id, org_name=data.get('orgName')))
            user_id, name = user.id, user.name

        logger.info(f"User registered: {user_id} ({role.value})")
        self.notifications.send_otp(email, name, otp)
        return {'message': 'OTP sent', 'userId': user_id}

    def verify_otp(self, user_id: int, otp: str) -> Dict:
        """Exchange a valid one-time code for a session token"""
        with get_db() as db:
            user = db.get(User, user_id)
            if not user:
                raise NotFoundError('User not found')
            if not user.otp or user.otp != str(otp):
                raise ValidationError('Invalid OTP')
            if user.otp_expires_at and user.otp_expires_at < datetime.utcnow():
                raise ValidationError('OTP expired', code='OTP_EXPIRED')

            user.otp_verified = True
            user.otp = None
            user.otp_expires_at = None
            db.flush()
            logger.info(f"User {user.id} verified email")
            return {'token': generate_user_token(user), 'user': user.to_dict()}

    def resend_otp(self, email: Optional[str] = None, user_id: Optional[int] = None) -> Dict:
        if not email and not user_id:
            raise ValidationError('email or userId is required')

        otp = generate_verification_code()
        with get_db() as db:
            query = db.query(User)
            user = query.filter(User.id == user_id).first() if user_id else \
                query.filter(User.email == email.strip().lower()).first()
            if not user:
                raise NotFoundError('User not found')
            if user.otp_verified:
                raise ValidationError('Email already verified')

            user.otp = otp
            user.otp_expires_at = datetime.utcnow() + timedelta(minutes=Config.OTP_EXPIRE_MINUTES)
            address, name, uid = user.email, user.name, user.id

        self.notifications.send_otp(address, name, otp)
        return {'message': 'OTP sent', 'userId': uid}

    def login(self, email: str, password: str) -> Dict:
        """Authenticate user and return token"""
        with get_db() as db:
            user = db.query(User).filter(User.email == (email or '').strip().lower()).first()
            if not user or not verify_password(password or '', user.password_hash):
                raise ValidationError('Invalid credentials')
            if user.banned:
                raise ForbiddenError('Account banned', code='BANNED')
            if not user.otp_verified:
                raise ForbiddenError('Email not verified', code='OTP_REQUIRED', extra={'userId': user.id})

            logger.info(f"User {user.id} logged in")
            return {'token': generate_user_token(user), 'user': user.to_dict()}

    def me(self, user_id: int) -> Dict:
        with get_db() as db:
            user = db.get(User, user_id)
            if not user:
                raise NotFoundError('User not found')
            data = user.to_dict()
            if user.owner_profile:
                data['ownerProfile'] = user.owner_profile.to_dict()
            return data

    def update_profile(self, user_id: int, data: Dict) -> Dict:
        with get_db() as db:
            user = db.get(User, user_id)
            if not user:
                raise NotFoundError('User not found')
            for field in PROFILE_FIELDS:
                if field in data:
                    setattr(user, field, data[field])
            if 'orgName' in data and user.owner_profile:
                user.owner_profile.org_name = data['orgName']
            db.flush()
            return user.to_dict()

    def change_password(self, user_id: int, current_password: str, new_password: str) -> Dict:
        check(validate_password(new_password))
        with get_db() as db:
            user = db.get(User, user_id)
            if not user:
                raise NotFoundError('User not found')
            if not verify_password(current_password or '', user.password_hash):
                raise ValidationError('Current password is incorrect')
            user.password_hash = hash_password(new_password)

        logger.info(f"User {user_id} changed password")
        return {'message': 'Password updated'}
