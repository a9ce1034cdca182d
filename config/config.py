import os
from dotenv import load_dotenv

load_dotenv()

# Sentinel shipped in .env.example; a key containing it is not a live credential
STRIPE_PLACEHOLDER = 'YourStripeSecretKey'


class Config:
    SECRET_KEY = os.environ.get('JWT_SECRET') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///quickcourt.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL

    # API Keys
    STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY', f'sk_test_{STRIPE_PLACEHOLDER}')
    # 'mock' or 'stripe'; empty means decide from STRIPE_SECRET_KEY at startup
    PAYMENT_BACKEND = os.environ.get('PAYMENT_BACKEND', '').lower()
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    MAIL_FROM = os.environ.get('MAIL_FROM', 'noreply@quickcourt.app')

    # Server
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '5000'))
    CLIENT_ORIGINS = [
        origin.strip()
        for origin in os.environ.get('CLIENT_ORIGIN', 'http://localhost:5173').split(',')
        if origin.strip()
    ]

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days
    OTP_LENGTH = 6
    OTP_EXPIRE_MINUTES = 10

    # Booking Settings
    CURRENCY = os.environ.get('CURRENCY', 'inr')
    DEFAULT_RELIABILITY_SCORE = 80
    SLOT_GRID_FIRST_HOUR = 6
    SLOT_GRID_LAST_HOUR = 22
    BOOKING_COMPLETION_INTERVAL_MINUTES = int(os.environ.get('BOOKING_COMPLETION_INTERVAL_MINUTES', '15'))
    ENABLE_SCHEDULER = os.environ.get('ENABLE_SCHEDULER', 'true').lower() == 'true'

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/quickcourt.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    PAYMENT_BACKEND = 'mock'
    ENABLE_SCHEDULER = False


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
