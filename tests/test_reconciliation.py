from datetime import date

import pytest

from deckly.importing import EventReconciler, ReconcileOutcome
from deckly.importing.reconciliation import find_matching_manual_event
from deckly.models import Event, EventStatus, ExternalSource


def raw_event(event_id='TM1', day='2025-06-01', local_time='21:45:00', name='Imported Night'):
    start = {'localTime': local_time}
    if day is not None:
        start['localDate'] = day
    return {'id': event_id, 'name': name, 'url': f'https://tm/{event_id}', 'dates': {'start': start}}


@pytest.fixture
def reconciler(database):
    return EventReconciler(database)


def all_events(database):
    with database.session() as session:
        return session.query(Event).order_by(Event.id).all()


def set_status(database, event_id, status):
    with database.session() as session:
        session.get(Event, event_id).status = status


def test_reconciling_same_record_twice_is_idempotent(database, reconciler, venue):
    assert reconciler.reconcile(raw_event(), venue) == ReconcileOutcome.CREATED
    assert reconciler.reconcile(raw_event(name='Renamed Night'), venue) == ReconcileOutcome.UPDATED

    events = all_events(database)
    assert len(events) == 1
    assert events[0].name == 'Renamed Night'
    assert events[0].status == EventStatus.IMPORTED
    assert events[0].ticketmaster_id == 'TM1'


def test_batch_counts_across_two_runs(reconciler, venue):
    first = reconciler.reconcile_batch([raw_event()], venue)
    second = reconciler.reconcile_batch([raw_event()], venue)
    assert (first.events_imported, first.events_updated) == (1, 0)
    assert (second.events_imported, second.events_updated) == (0, 1)


def test_resync_keeps_advanced_status(database, reconciler, venue):
    reconciler.reconcile(raw_event(), venue)
    event_id = all_events(database)[0].id
    set_status(database, event_id, EventStatus.CONFIRMED)

    assert reconciler.reconcile(raw_event(local_time='22:00:00'), venue) == ReconcileOutcome.UPDATED

    event = all_events(database)[0]
    assert event.status == EventStatus.CONFIRMED
    assert event.start_time == '22:00'


def test_manual_event_is_linked_and_keeps_status(database, reconciler, venue, make_event):
    manual_id = make_event(start_time='21:00', status=EventStatus.ROS_DRAFT)

    assert reconciler.reconcile(raw_event(local_time='21:45:00'), venue) == ReconcileOutcome.UPDATED

    events = all_events(database)
    assert len(events) == 1
    event = events[0]
    assert event.id == manual_id
    assert event.status == EventStatus.ROS_DRAFT
    assert event.external_source == ExternalSource.TICKETMASTER
    assert event.ticketmaster_id == 'TM1'
    assert event.start_time == '21:45'


def test_match_window_is_inclusive_at_120_minutes(database, reconciler, venue, make_event):
    make_event(start_time='20:00')
    assert reconciler.reconcile(raw_event(local_time='22:00:00'), venue) == ReconcileOutcome.UPDATED
    assert len(all_events(database)) == 1


def test_no_match_at_121_minutes(database, reconciler, venue, make_event):
    make_event(start_time='20:00')
    assert reconciler.reconcile(raw_event(local_time='22:01:00'), venue) == ReconcileOutcome.CREATED

    events = all_events(database)
    assert len(events) == 2
    assert events[0].external_source == ExternalSource.MANUAL
    assert events[0].ticketmaster_id is None


def test_match_across_midnight(database, reconciler, venue, make_event):
    manual_id = make_event(date=date(2025, 6, 1), start_time='23:30')
    outcome = reconciler.reconcile(raw_event(day='2025-06-02', local_time='00:30:00'), venue)

    assert outcome == ReconcileOutcome.UPDATED
    event = all_events(database)[0]
    assert event.id == manual_id
    assert event.date == date(2025, 6, 2)


def test_other_venue_and_linked_events_are_not_candidates(database, reconciler, venue, make_venue, make_event):
    other = make_venue(name='Elsewhere')
    make_event(venue_id=other.id, start_time='21:30')
    make_event(start_time='21:30', external_source=ExternalSource.TICKETMASTER, ticketmaster_id='TM-OLD')

    assert reconciler.reconcile(raw_event(), venue) == ReconcileOutcome.CREATED
    assert len(all_events(database)) == 3


def test_first_candidate_wins(database, venue, make_event):
    first = make_event(name='First', start_time='20:30')
    make_event(name='Second', start_time='21:40')
    with database.session() as session:
        match = find_matching_manual_event(session, venue.id, date(2025, 6, 1), '21:45')
        assert match.id == first


def test_batch_with_unmappable_record_continues(database, reconciler, venue):
    raws = [
        raw_event('TM1', name='One'),
        raw_event('TM2', name='Two', local_time='18:00:00', day='2025-06-02'),
        raw_event('TM3', name='Three', day=None),
        raw_event('TM4', name='Four', day='2025-06-03'),
        raw_event('TM1', name='One again'),
    ]
    result = reconciler.reconcile_batch(raws, venue)

    assert result.events_imported == 3
    assert result.events_updated == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith('Error processing event Three:')
    assert 'no valid date' in result.errors[0]
    assert len(all_events(database)) == 3


def test_manual_event_found_at_venue_without_timezone(database, reconciler, make_venue, make_event):
    venue = make_venue(name='Zoneless Room', timezone=None)
    manual_id = make_event(venue_id=venue.id, start_time='21:00')
    raw = {'id': 'TM9', 'name': 'Late Show',
           'dates': {'start': {'localDate': '2025-06-01', 'localTime': '21:00:00',
                               'dateTime': '2025-06-02T01:00:00Z'}}}

    assert reconciler.reconcile(raw, venue) == ReconcileOutcome.UPDATED

    events = all_events(database)
    assert [e.id for e in events] == [manual_id]
    assert events[0].ticketmaster_id == 'TM9'
    assert events[0].date == date(2025, 6, 1)


def test_batch_survives_records_that_are_not_objects(database, reconciler, venue):
    result = reconciler.reconcile_batch([None, 'TM1', raw_event('TM2')], venue)

    assert result.events_imported == 1
    assert len(result.errors) == 2
    assert result.errors[0].startswith('Error processing event None:')
    assert result.errors[1].startswith('Error processing event TM1:')
    assert len(all_events(database)) == 1
