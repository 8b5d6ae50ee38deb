import itertools
from datetime import date

import pytest
from fastapi.testclient import TestClient

from deckly.api import create_application
from deckly.auth import issue_session_token
from deckly.catalog import DJRoster
from deckly.config.security import AuthConfig, CronConfig
from deckly.db import Database, DatabaseConfig
from deckly.models import Event, User, UserRole, Venue, EventStatus, ExternalSource

SESSION_SECRET = "test-session-secret"
CRON_SECRET = "test-cron-secret"


@pytest.fixture
def database():
    """Fresh in-memory database per test."""
    db = Database(DatabaseConfig(database_url="sqlite://"))
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def make_venue(database):
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        data = {
            'name': f"Venue {n}",
            'city': 'Boston',
            'state': 'MA',
            'timezone': 'America/New_York',
            'is_active': True,
            'ticketmaster_venue_id': f"KovZ{n}",
            'auto_import_enabled': True,
        }
        data.update(overrides)
        with database.session() as session:
            venue = Venue(**data)
            session.add(venue)
            session.flush()
        return venue

    return _make


@pytest.fixture
def venue(make_venue):
    return make_venue(name='Big Night Live')


@pytest.fixture
def make_event(database, venue):
    def _make(**overrides):
        data = {
            'name': 'Manual Night',
            'venue_id': venue.id,
            'date': date(2025, 6, 1),
            'start_time': '21:00',
            'end_time': '02:00',
            'status': EventStatus.DRAFT,
            'external_source': ExternalSource.MANUAL,
        }
        data.update(overrides)
        with database.session() as session:
            event = Event(**data)
            session.add(event)
            session.flush()
            return event.id

    return _make


@pytest.fixture
def make_dj(database):
    roster = DJRoster(database)
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        data = {'name': f"DJ {n}", 'email': f"dj{n}@example.com", 'genres': ['house']}
        data.update(overrides)
        return roster.create_dj(**data)['id']

    return _make


@pytest.fixture
def make_user(database):
    def _make(email, role, dj_id=None):
        with database.session() as session:
            session.add(User(email=email, role=role, dj_id=dj_id))
        return issue_session_token(email, SESSION_SECRET)

    return _make


@pytest.fixture
def app(database):
    return create_application(
        database=database,
        auth_config=AuthConfig(session_secret=SESSION_SECRET),
        cron_config=CronConfig(secret=CRON_SECRET),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(make_user):
    token = make_user('admin@example.com', UserRole.ADMIN)
    return {'Authorization': f"Bearer {token}"}
