from datetime import datetime, timezone

import pytest

from deckly.config.imports import ImportConfig
from deckly.errors import ExternalAPIError
from deckly.importing import ImportOrchestrator, summarize
from deckly.models import Event, Venue
from deckly.sources.base import EventSource, VenueEventsPage

NOW = datetime(2025, 5, 20, 15, 30, tzinfo=timezone.utc)


class FakeSource(EventSource):
    """In-memory event source keyed by Ticketmaster venue id."""

    def __init__(self, events_by_venue=None, failing=()):
        super().__init__('fake')
        self.events_by_venue = events_by_venue or {}
        self.failing = set(failing)
        self.calls = []

    def search_venues(self, keyword=None, city=None, state_code=None, country_code=None, size=None, **filters):
        return []

    def get_venue_events(self, venue_id, start_date_time=None, end_date_time=None, size=None, page=None, sort=None):
        self.calls.append((venue_id, start_date_time, end_date_time))
        if venue_id in self.failing:
            raise ExternalAPIError("Ticketmaster API error: 503 - unavailable")
        events = self.events_by_venue.get(venue_id, [])
        return VenueEventsPage(events=events, total_pages=1, total_elements=len(events))


def raw_event(event_id, day='2025-06-01', local_time='21:00:00'):
    return {'id': event_id, 'name': f'Event {event_id}',
            'dates': {'start': {'localDate': day, 'localTime': local_time}}}


@pytest.fixture
def sleeps():
    return []


def make_orchestrator(database, source, sleeps):
    return ImportOrchestrator(
        database,
        source,
        ImportConfig(days_ahead=30, venue_delay_seconds=0.5),
        sleep=sleeps.append,
        clock=lambda: NOW,
    )


def test_only_auto_import_venues_with_ids_are_eligible(database, make_venue, sleeps):
    eligible = make_venue(name='Eligible')
    make_venue(name='Disabled', auto_import_enabled=False)
    make_venue(name='Unlinked', ticketmaster_venue_id=None)

    orchestrator = make_orchestrator(database, FakeSource(), sleeps)
    assert [v.id for v in orchestrator.eligible_venues()] == [eligible.id]


def test_imports_each_venue_and_sleeps_between(database, make_venue, sleeps):
    first = make_venue(name='First')
    second = make_venue(name='Second')
    source = FakeSource({
        first.ticketmaster_venue_id: [raw_event('A'), raw_event('B', day='2025-06-02')],
        second.ticketmaster_venue_id: [raw_event('C')],
    })

    results = make_orchestrator(database, source, sleeps).import_all_venue_events()

    assert [(r.venue_name, r.events_imported, r.events_updated) for r in results] == [
        ('First', 2, 0),
        ('Second', 1, 0),
    ]
    assert sleeps == [0.5, 0.5]
    assert source.calls[0] == (first.ticketmaster_venue_id, '2025-05-20T15:30:00Z', '2025-06-19T15:30:00Z')
    assert summarize(results) == {
        'venues_processed': 2,
        'events_imported': 3,
        'events_updated': 0,
        'errors': 0,
    }


def test_failing_venue_does_not_stop_the_batch(database, make_venue, sleeps):
    broken = make_venue(name='Broken')
    working = make_venue(name='Working')
    source = FakeSource({working.ticketmaster_venue_id: [raw_event('W1')]}, failing=[broken.ticketmaster_venue_id])

    results = make_orchestrator(database, source, sleeps).import_all_venue_events()

    assert results[0].errors == ['Error fetching events: Ticketmaster API error: 503 - unavailable']
    assert results[1].events_imported == 1
    assert results[1].errors == []

    with database.session() as session:
        assert session.get(Venue, broken.id).last_import_date is None
        assert session.get(Venue, working.id).last_import_date is not None


def test_second_run_updates_instead_of_duplicating(database, make_venue, sleeps):
    venue = make_venue()
    source = FakeSource({venue.ticketmaster_venue_id: [raw_event('A')]})
    orchestrator = make_orchestrator(database, source, sleeps)

    orchestrator.import_all_venue_events()
    results = orchestrator.import_all_venue_events()

    assert (results[0].events_imported, results[0].events_updated) == (0, 1)
    with database.session() as session:
        assert session.query(Event).count() == 1


def test_record_errors_are_reported_per_venue(database, make_venue, sleeps):
    venue = make_venue()
    broken = {'id': 'X', 'name': 'No Date', 'dates': {'start': {}}}
    source = FakeSource({venue.ticketmaster_venue_id: [raw_event('A'), broken]})

    result = make_orchestrator(database, source, sleeps).import_all_venue_events()[0]

    assert result.events_imported == 1
    assert len(result.errors) == 1
    assert result.to_dict()['errors'][0].startswith('Error processing event No Date')


def test_restrict_to_one_venue(database, make_venue, sleeps):
    make_venue(name='Skipped')
    chosen = make_venue(name='Chosen')
    source = FakeSource()

    results = make_orchestrator(database, source, sleeps).import_all_venue_events(venue_id=chosen.id)

    assert [r.venue_id for r in results] == [chosen.id]
    assert [call[0] for call in source.calls] == [chosen.ticketmaster_venue_id]
