#!/usr/bin/env python3
"""
Script to seed the database with sample data for local development
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timedelta
from quickcourt.database import init_db, drop_db, get_db
from quickcourt.models import User, OwnerProfile, Facility, Court, TimeSlot, PriceEvent, Review
from quickcourt.models.user import UserRole, KycStatus
from quickcourt.models.facility import FacilityStatus
from quickcourt.utils.security import hash_password
from quickcourt.utils.timeslots import default_grid
import random

SEED_DAYS = 3


def upcoming_dates(days):
    today = datetime.utcnow()
    return [(today + timedelta(days=i)).strftime('%Y-%m-%d') for i in range(days)]


def create_users(db):
    """Create one account per role, all verified"""
    admin = User(
        name='Admin',
        email='admin@qc.com',
        password_hash=hash_password('Admin1234'),
        role=UserRole.ADMIN,
        otp_verified=True
    )
    owner = User(
        name='Owner',
        email='owner@qc.com',
        password_hash=hash_password('Owner1234'),
        role=UserRole.OWNER,
        otp_verified=True
    )
    player = User(
        name='User',
        email='user@qc.com',
        password_hash=hash_password('User1234'),
        role=UserRole.USER,
        otp_verified=True
    )
    db.add_all([admin, owner, player])
    db.flush()

    db.add(OwnerProfile(user_id=owner.id, org_name='Galaxy Sports', kyc_status=KycStatus.VERIFIED))
    return {'admin': admin, 'owner': owner, 'player': player}


def create_facility(db, owner, player):
    """One approved facility with two badminton courts, open slots and price history"""
    facility = Facility(
        owner_id=owner.id,
        name='Galaxy Sports Arena',
        description='Indoor courts',
        address='MG Road',
        latitude=22.72,
        longitude=75.86,
        sports=['badminton', 'table-tennis'],
        amenities=['Parking', 'Water'],
        photos=[],
        status=FacilityStatus.APPROVED,
        starting_price_per_hour=500,
        rating_avg=4.5,
        rating_count=1
    )
    db.add(facility)
    db.flush()

    courts = [
        Court(facility_id=facility.id, name='Court 1', sport='badminton', price_per_hour=500,
              open_time='06:00', close_time='22:00'),
        Court(facility_id=facility.id, name='Court 2', sport='badminton', price_per_hour=600,
              open_time='06:00', close_time='22:00'),
    ]
    db.add_all(courts)
    db.flush()

    slot_count = 0
    for court in courts:
        for date_iso in upcoming_dates(SEED_DAYS):
            for start, end in default_grid():
                db.add(TimeSlot(court_id=court.id, date_iso=date_iso, start=start, end=end,
                                is_blocked=False, is_booked=False, price_snapshot=court.price_per_hour))
                slot_count += 1

        now = datetime.utcnow()
        for i in range(40):
            db.add(PriceEvent(
                court_id=court.id,
                price=court.price_per_hour + random.randint(-75, 74),
                timestamp=now - timedelta(hours=40 - i)
            ))

    db.add(Review(user_id=player.id, facility_id=facility.id, rating=5,
                  text='Great lighting and well kept courts.'))

    return {'facility': facility, 'courts': courts, 'slots': slot_count}


def main():
    """Main seeding function"""
    print("Dropping existing database...")
    drop_db()

    print("Initializing new database...")
    init_db()

    with get_db() as db:
        print("Creating users...")
        users = create_users(db)

        print("Creating facility, courts and slots...")
        catalog = create_facility(db, users['owner'], users['player'])

    print("\nDatabase seeded successfully!")
    print("Created:")
    print("- 1 Admin user (admin@qc.com / Admin1234)")
    print("- 1 Owner (owner@qc.com / Owner1234)")
    print("- 1 Player (user@qc.com / User1234)")
    print(f"- 1 Facility with {len(catalog['courts'])} courts and {catalog['slots']} open slots")

    print("\nYou can now run the application and log in with any of the created users.")


if __name__ == "__main__":
    main()
