#!/usr/bin/env python3
"""Seed a development database with venues, DJs, users, events and a run of show.

Existing rows are deleted first. Refuses to run in production.
"""

import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add the project root to Python path when running directly
sys.path.append(str(Path(__file__).parent.parent))

from deckly.auth import issue_session_token
from deckly.catalog import DJRoster, EventCatalog
from deckly.config.environment import IS_PRODUCTION_ENVIRONMENT
from deckly.config.security import AuthConfig
from deckly.db import Database
from deckly.models import (
    DJAssignment, DJ, Event, RunOfShow, TimeSlot, User, UserRole, Venue, SlotType
)
from deckly.schedule import RunOfShowService, TimeSlotDraft, AssignmentDraft
from deckly.utils.logging_config import setup_logging
from deckly.utils.timezone import now_utc

logger = logging.getLogger(__name__)

VENUES = [
    {'name': 'Big Night Live', 'address': '100 Causeway St', 'city': 'Boston', 'state': 'MA',
     'zip_code': '02114', 'capacity': 2000, 'timezone': 'America/New_York'},
    {'name': 'The Grand', 'address': '58 Seaport Blvd', 'city': 'Boston', 'state': 'MA',
     'zip_code': '02210', 'capacity': 800, 'timezone': 'America/New_York'},
    {'name': 'Mystique', 'address': '1 Broadway', 'city': 'Everett', 'state': 'MA',
     'zip_code': '02149', 'capacity': 450, 'timezone': 'America/New_York'},
]

DJS = [
    {'name': 'DJ Nova', 'email': 'nova@example.com', 'genres': ['house', 'techno']},
    {'name': 'Marco Vee', 'email': 'marco@example.com', 'genres': ['hip-hop', 'open format']},
    {'name': 'Lumen', 'email': 'lumen@example.com', 'genres': ['edm']},
]


def clear(database: Database) -> None:
    with database.session() as session:
        for model in (DJAssignment, TimeSlot, RunOfShow, Event, User, DJ, Venue):
            session.query(model).delete()
    logger.info("Cleared existing data")


def seed(database: Database) -> None:
    with database.session() as session:
        venues = [Venue(is_active=True, **data) for data in VENUES]
        session.add_all(venues)
        session.flush()
        venue_ids = [venue.id for venue in venues]
    logger.info(f"Created {len(venue_ids)} venues")

    roster = DJRoster(database)
    dj_ids = [roster.create_dj(**data)['id'] for data in DJS]

    with database.session() as session:
        session.add(User(email='admin@example.com', role=UserRole.ADMIN, name='Admin'))
        for data, dj_id in zip(DJS, dj_ids):
            session.add(User(email=data['email'], role=UserRole.DJ, dj_id=dj_id, name=data['name']))

    catalog = EventCatalog(database)
    today = now_utc().date()
    event_ids = [
        catalog.create_manual_event('Saturday Sessions', venue_ids[0], today + timedelta(days=3), '22:00', '03:00')['id'],
        catalog.create_manual_event('Grand Fridays', venue_ids[1], today + timedelta(days=9), '21:00')['id'],
    ]

    schedule = RunOfShowService(database)
    schedule.create_run_of_show(event_ids[0], [
        TimeSlotDraft('Opening set', '22:00', '23:30', SlotType.OPENER,
                      dj_assignments=[AssignmentDraft(dj_id=dj_ids[2])]),
        TimeSlotDraft('Headliner', '23:30', '01:30', SlotType.MAIN, max_djs=1,
                      dj_assignments=[AssignmentDraft(dj_id=dj_ids[0])]),
        TimeSlotDraft('Closing set', '01:30', '03:00', SlotType.CLOSER, max_djs=2),
    ])
    logger.info(f"Created {len(event_ids)} events and one run of show")


def main() -> int:
    setup_logging()
    if IS_PRODUCTION_ENVIRONMENT:
        logger.error("Refusing to seed a production database")
        return 1

    database = Database()
    try:
        database.ensure_tables_exist()
        clear(database)
        seed(database)
    finally:
        database.dispose()

    auth_config = AuthConfig()
    if auth_config.session_secret:
        print("\nDevelopment session tokens:")
        for email in ['admin@example.com'] + [dj['email'] for dj in DJS]:
            print(f"  {email}: {issue_session_token(email, auth_config.session_secret)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
