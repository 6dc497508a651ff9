import datetime

import pytest

from config import TestConfig
from fleet import create_app
from fleet.extensions import db as _db
from fleet.models.user import User
from fleet.models.vehicle import Vehicle

OWNER_A = 'owner_a'
OWNER_B = 'owner_b'
PASSWORD = 'correct-horse-battery'


@pytest.fixture
def http_app():
    """Fresh schema, no context left pushed, so each test request gets its own."""
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def app(http_app):
    """Same application with an active app context, for calling services directly."""
    with http_app.app_context():
        yield http_app
        _db.session.remove()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_vehicle(app):
    def _make(owner_id=OWNER_A, make='Toyota', model='Corolla', year=2020, license_plate='ABC-123', **kwargs):
        vehicle = Vehicle(owner_id=owner_id, make=make, model=model, year=year, license_plate=license_plate, **kwargs)
        _db.session.add(vehicle)
        _db.session.commit()
        return vehicle
    return _make


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle()


@pytest.fixture
def users(http_app):
    with http_app.app_context():
        for user_id, username in ((OWNER_A, 'alice'), (OWNER_B, 'bob')):
            user = User(user_id=user_id, username=username, email=f'{username}@example.com')
            user.set_password(PASSWORD)
            _db.session.add(user)
        _db.session.commit()
    return OWNER_A, OWNER_B


def _login(app, email):
    client = app.test_client()
    response = client.post('/auth/login', json={'email': email, 'password': PASSWORD})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def client(http_app, users):
    """Test client logged in as the first owner."""
    return _login(http_app, 'alice@example.com')


@pytest.fixture
def other_client(http_app, users):
    """Test client logged in as the second owner."""
    return _login(http_app, 'bob@example.com')


@pytest.fixture
def anonymous_client(http_app):
    return http_app.test_client()


def day(month, dom, year=2024):
    return datetime.date(year, month, dom)
