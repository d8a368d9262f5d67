"""
Flask application configuration classes.
Provides configuration for development, production, and testing environments.
"""

import os


class Config:
    """Base configuration class with common settings."""

    # Secret key for session signing
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or 'instance/noir.db'

    # JSON API only, CSRF tokens are not exchanged
    WTF_CSRF_ENABLED = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Venue defaults (overridden by the persisted settings row)
    TIMEZONE = os.environ.get('VENUE_TIMEZONE') or 'America/Chicago'
    DEFAULT_BOOKING_WINDOW_DAYS = int(os.environ.get('DEFAULT_BOOKING_WINDOW_DAYS', 60))
    HOLD_FEE_ENABLED = os.environ.get('HOLD_FEE_ENABLED', 'true').lower() == 'true'
    HOLD_FEE_AMOUNT = float(os.environ.get('HOLD_FEE_AMOUNT', 25.00))

    # SMS gateway (OpenPhone)
    OPENPHONE_API_KEY = os.environ.get('OPENPHONE_API_KEY')
    OPENPHONE_PHONE_NUMBER_ID = os.environ.get('OPENPHONE_PHONE_NUMBER_ID')
    OPENPHONE_BASE_URL = os.environ.get('OPENPHONE_BASE_URL') or 'https://api.openphone.com'
    MESSAGING_TIMEOUT = float(os.environ.get('MESSAGING_TIMEOUT', 10))

    # Application settings
    APP_NAME = 'Noir Reservations'
    APP_VERSION = '1.0.0'


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'true').lower() == 'true'

    SECRET_KEY = os.environ.get('SECRET_KEY') or Config.SECRET_KEY
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or Config.DATABASE_PATH

    @classmethod
    def validate(cls) -> None:
        """Validate that required production environment variables are set."""
        secret_key = os.environ.get('SECRET_KEY')
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters in production")
        if not os.environ.get('DATABASE_PATH'):
            raise ValueError("DATABASE_PATH environment variable must be set in production")


class TestConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    DATABASE_PATH = os.environ.get('DATABASE_PATH', ':memory:')
    SECRET_KEY = 'test-secret-key'
    OPENPHONE_API_KEY = None
    OPENPHONE_PHONE_NUMBER_ID = None


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'test': TestConfig,
    'default': DevelopmentConfig
}
