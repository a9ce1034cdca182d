import os

# Config and the engine read the environment at import time
os.environ['FLASK_ENV'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///test_quickcourt.db'
os.environ['PAYMENT_BACKEND'] = 'mock'
os.environ['ENABLE_SCHEDULER'] = 'false'
os.environ['SENDGRID_API_KEY'] = ''
os.environ['JWT_SECRET'] = 'test-secret'
os.environ['LOG_FILE'] = 'logs/test_quickcourt.log'

import pytest
from quickcourt.database import drop_db, init_db, DatabaseManager
from quickcourt.integrations import MockPaymentGateway
from quickcourt.models import User, Facility, Court
from quickcourt.models.user import UserRole
from quickcourt.models.facility import FacilityStatus
from quickcourt.utils.security import hash_password, generate_token, generate_user_token

PASSWORD = 'Secret123'


@pytest.fixture
def database():
    """Fresh schema per test"""
    drop_db()
    init_db()
    yield
    drop_db()


@pytest.fixture
def seed(database):
    """A player, an owner with one approved facility and a 500/hour court, and an admin"""
    user_db = DatabaseManager(User)
    player = user_db.create(
        name='Player', email='player@test.com', password_hash=hash_password(PASSWORD),
        role=UserRole.USER, otp_verified=True
    )
    owner = user_db.create(
        name='Owner', email='owner@test.com', password_hash=hash_password(PASSWORD),
        role=UserRole.OWNER, otp_verified=True
    )
    other_owner = user_db.create(
        name='Other Owner', email='other.owner@test.com', password_hash=hash_password(PASSWORD),
        role=UserRole.OWNER, otp_verified=True
    )
    admin = user_db.create(
        name='Admin', email='admin@test.com', password_hash=hash_password(PASSWORD),
        role=UserRole.ADMIN, otp_verified=True
    )

    facility = DatabaseManager(Facility).create(
        owner_id=owner.id, name='Galaxy Sports Arena', address='MG Road',
        latitude=22.72, longitude=75.86, sports=['badminton'],
        status=FacilityStatus.APPROVED, starting_price_per_hour=500
    )
    court = DatabaseManager(Court).create(
        facility_id=facility.id, name='Court 1', sport='badminton', price_per_hour=500
    )

    return {
        'player': player,
        'owner': owner,
        'other_owner': other_owner,
        'admin': admin,
        'facility': facility,
        'court': court,
    }


def actor(user, role=None):
    """Token payload as require_auth hands it to a route"""
    return {'user_id': user.id, 'role': role or user.role.value}


def auth_header(user, role=None):
    token = generate_token({'user_id': user.id, 'role': role}) if role else generate_user_token(user)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def app(database):
    from quickcourt.main import create_app
    app = create_app('testing', payment_gateway=MockPaymentGateway())
    yield app
    app.extensions['quickcourt'].close()


@pytest.fixture
def client(app):
    return app.test_client()
