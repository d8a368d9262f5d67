"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import os
import pytest
import tempfile
from datetime import date, timedelta

import httpx

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'noir_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH


def upcoming(weekday: int, min_days: int = 7) -> date:
    """First date at least ``min_days`` ahead falling on ``weekday`` (0=Sunday)."""
    day = date.today() + timedelta(days=min_days)
    while int(day.strftime('%w')) != weekday:
        day += timedelta(days=1)
    return day


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for suffix in ('', '-wal', '-shm'):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def app():
    """Create test application with isolated database."""
    from app import create_app
    from database import init_db

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['DATABASE_PATH'] = TEST_DB_PATH

    with app.app_context():
        init_db()
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def api(app):
    """Booking API client talking to the test app in-process."""
    from booking.api_client import BookingApiClient

    http = httpx.Client(transport=httpx.WSGITransport(app=app), base_url='http://testserver')
    client = BookingApiClient(client=http)
    yield client
    client.close()


@pytest.fixture
def friday():
    """A Friday comfortably inside the default booking window."""
    return upcoming(5)


@pytest.fixture
def member(app):
    """A registered member."""
    from models.member import create_member

    member_id = create_member('M-100', 'Ada', 'Lovelace', '(312) 555-0100', email='ada@example.com')
    return {'id': member_id, 'member_id': 'M-100', 'phone': '+13125550100'}


@pytest.fixture
def next_weekday():
    """Factory for upcoming dates by weekday index (0=Sunday)."""
    return upcoming
