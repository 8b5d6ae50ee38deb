from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from deckly.api.dependencies import get_import_orchestrator
from deckly.importing import ImportOrchestrator
from deckly.models import UserRole
from deckly.sources.base import VenueEventsPage

SLOTS = [
    {'slot_name': 'Opener', 'start_time': '21:00', 'end_time': '23:00'},
    {'slot_name': 'Headliner', 'start_time': '23:00', 'end_time': '01:00', 'slot_type': 'closer'},
]


def run_of_show_url(event_id):
    return f"/api/admin/events/{event_id}/run-of-show"


@pytest.fixture
def dj_headers(make_user, make_dj):
    def _make():
        dj_id = make_dj()
        token = make_user(f"dj{dj_id}@example.com", UserRole.DJ, dj_id=dj_id)
        return dj_id, {'Authorization': f"Bearer {token}"}

    return _make


def test_health(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


class TestCron:
    def test_not_configured(self, app, client):
        app.state.cron_config.secret = ''
        response = client.get('/api/cron/import-events', headers={'Authorization': 'Bearer anything'})
        assert response.status_code == 500
        assert response.json()['error']['code'] == 'CRON_NOT_CONFIGURED'

    def test_wrong_secret(self, client):
        response = client.get('/api/cron/import-events', headers={'Authorization': 'Bearer nope'})
        assert response.status_code == 401
        assert client.get('/api/cron/import-events').status_code == 401

    def test_runs_import(self, app, client, database, venue):
        secret = app.state.cron_config.secret
        source = MagicMock()
        source.get_venue_events.return_value = VenueEventsPage(
            events=[{'id': 'tm-1', 'name': 'Imported Night',
                     'dates': {'start': {'localDate': '2025-06-01', 'localTime': '22:00:00'}}}],
            total_pages=1,
            total_elements=1,
        )
        app.dependency_overrides[get_import_orchestrator] = lambda: ImportOrchestrator(
            database, source, sleep=lambda _: None,
            clock=lambda: datetime(2025, 5, 20, tzinfo=timezone.utc),
        )

        response = client.get('/api/cron/import-events', headers={'Authorization': f"Bearer {secret}"})

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['summary'] == {'venues_processed': 1, 'events_imported': 1, 'events_updated': 0, 'errors': 0}
        assert body['venues'] == [{'venue_id': venue.id, 'venue_name': 'Big Night Live',
                                   'imported': 1, 'updated': 0, 'errors': []}]

    def test_failure_body(self, app, client):
        secret = app.state.cron_config.secret
        orchestrator = MagicMock()
        orchestrator.import_all_venue_events.side_effect = RuntimeError("database unreachable")
        app.dependency_overrides[get_import_orchestrator] = lambda: orchestrator

        response = client.get('/api/cron/import-events', headers={'Authorization': f"Bearer {secret}"})

        assert response.status_code == 500
        assert response.json()['success'] is False
        assert response.json()['error'] == "database unreachable"


class TestAdminAccess:
    def test_requires_token(self, client, make_event):
        event_id = make_event()
        response = client.get(run_of_show_url(event_id))
        assert response.status_code == 401
        assert response.json()['error']['code'] == 'UNAUTHENTICATED'

    def test_rejects_dj_role(self, client, make_event, dj_headers):
        event_id = make_event()
        _, headers = dj_headers()
        response = client.get(run_of_show_url(event_id), headers=headers)
        assert response.status_code == 403


class TestRunOfShowRoutes:
    def test_get_creates_empty_schedule(self, client, admin_headers, make_event):
        event_id = make_event()
        response = client.get(run_of_show_url(event_id), headers=admin_headers)
        assert response.status_code == 200
        assert response.json()['run_of_show']['time_slots'] == []

        assert client.get(run_of_show_url(999), headers=admin_headers).status_code == 404

    def test_create_then_conflict(self, client, admin_headers, make_event):
        event_id = make_event()
        response = client.post(run_of_show_url(event_id), json={'time_slots': SLOTS}, headers=admin_headers)
        assert response.status_code == 201
        names = [slot['slot_name'] for slot in response.json()['run_of_show']['time_slots']]
        assert names == ['Opener', 'Headliner']

        again = client.post(run_of_show_url(event_id), headers=admin_headers)
        assert again.status_code == 409
        assert again.json()['error']['code'] == 'RUN_OF_SHOW_EXISTS'

    def test_put_rejects_overlap(self, client, admin_headers, make_event):
        event_id = make_event()
        overlapping = [
            {'slot_name': 'Late', 'start_time': '23:30', 'end_time': '01:30'},
            {'slot_name': 'After', 'start_time': '01:00', 'end_time': '02:00'},
        ]
        response = client.put(run_of_show_url(event_id), json={'time_slots': overlapping}, headers=admin_headers)
        assert response.status_code == 422
        assert response.json()['error']['code'] == 'OVERLAPPING_SLOTS'

        current = client.get(run_of_show_url(event_id), headers=admin_headers).json()['run_of_show']
        assert current['time_slots'] == []

    def test_put_with_stale_version(self, client, admin_headers, make_event):
        event_id = make_event()
        created = client.put(run_of_show_url(event_id), json={'time_slots': SLOTS}, headers=admin_headers)
        version = created.json()['run_of_show']['version']

        response = client.put(
            run_of_show_url(event_id),
            json={'time_slots': SLOTS[:1], 'expected_version': version + 5},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'STALE_SCHEDULE'

        fresh = client.put(
            run_of_show_url(event_id),
            json={'time_slots': SLOTS[:1], 'expected_version': version},
            headers=admin_headers,
        )
        assert fresh.status_code == 200
        assert fresh.json()['run_of_show']['version'] > version

    def test_invalid_body(self, client, admin_headers, make_event):
        event_id = make_event()
        response = client.put(run_of_show_url(event_id), json={'time_slots': [{'slot_name': 'x'}]},
                              headers=admin_headers)
        assert response.status_code == 422
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'

    def test_assignment_lifecycle(self, client, admin_headers, make_event, make_dj):
        event_id = make_event()
        dj_id = make_dj()
        slots = client.post(run_of_show_url(event_id), json={'time_slots': SLOTS},
                            headers=admin_headers).json()['run_of_show']['time_slots']
        slot_id = slots[0]['id']
        assignments_url = f"{run_of_show_url(event_id)}/slots/{slot_id}/assignments"

        response = client.post(assignments_url, json={'dj_id': dj_id}, headers=admin_headers)
        assert response.status_code == 201
        assignment = response.json()['run_of_show']['time_slots'][0]['dj_assignments'][0]
        assert assignment['status'] == 'pending'
        assert assignment['dj']['email'] == f"dj{dj_id}@example.com"

        again = client.post(assignments_url, json={'dj_id': dj_id}, headers=admin_headers)
        assert again.status_code == 422
        assert again.json()['error']['code'] == 'ALREADY_ASSIGNED'

        missing = client.post(assignments_url, json={'dj_id': 999}, headers=admin_headers)
        assert missing.status_code == 404

        patched = client.patch(f"{assignments_url}/{dj_id}", json={'status': 'confirmed'}, headers=admin_headers)
        assert patched.status_code == 200
        assert patched.json()['run_of_show']['time_slots'][0]['dj_assignments'][0]['confirmed_at']

        notified = client.post(f"{assignments_url}/{dj_id}/notification-sent", headers=admin_headers)
        assert notified.json()['run_of_show']['time_slots'][0]['dj_assignments'][0]['notification_sent'] is True

        back = client.patch(f"{assignments_url}/{dj_id}", json={'status': 'pending'}, headers=admin_headers)
        assert back.status_code == 422
        assert back.json()['error']['code'] == 'INVALID_TRANSITION'

        removed = client.delete(f"{assignments_url}/{dj_id}", headers=admin_headers)
        assert removed.json()['run_of_show']['time_slots'][0]['dj_assignments'] == []

    def test_delete_slot_and_schedule(self, client, admin_headers, make_event):
        event_id = make_event()
        slots = client.post(run_of_show_url(event_id), json={'time_slots': SLOTS},
                            headers=admin_headers).json()['run_of_show']['time_slots']

        response = client.delete(f"{run_of_show_url(event_id)}/slots/{slots[0]['id']}", headers=admin_headers)
        assert [s['slot_name'] for s in response.json()['run_of_show']['time_slots']] == ['Headliner']

        assert client.delete(run_of_show_url(event_id), headers=admin_headers).status_code == 204
        assert client.delete(run_of_show_url(event_id), headers=admin_headers).status_code == 404


class TestEventRoutes:
    def test_create_list_and_status(self, client, admin_headers, venue):
        response = client.post('/api/admin/events', json={
            'name': 'Saturday Session', 'venue_id': venue.id, 'date': '2025-06-07', 'start_time': '22:00',
        }, headers=admin_headers)
        assert response.status_code == 201
        event = response.json()['event']
        assert event['status'] == 'draft'
        assert event['end_time'] == '02:00'

        listed = client.get('/api/admin/events', params={'venue_id': venue.id}, headers=admin_headers)
        assert [e['id'] for e in listed.json()['events']] == [event['id']]

        fetched = client.get(f"/api/admin/events/{event['id']}", headers=admin_headers)
        assert fetched.json()['event']['name'] == 'Saturday Session'

        cancelled = client.patch(f"/api/admin/events/{event['id']}/status", json={'status': 'cancelled'},
                                 headers=admin_headers)
        assert cancelled.json()['event']['status'] == 'cancelled'

        reopened = client.patch(f"/api/admin/events/{event['id']}/status", json={'status': 'draft'},
                                headers=admin_headers)
        assert reopened.status_code == 422

    def test_unknown_venue(self, client, admin_headers):
        response = client.post('/api/admin/events', json={
            'name': 'Nowhere', 'venue_id': 404, 'date': '2025-06-07', 'start_time': '22:00',
        }, headers=admin_headers)
        assert response.status_code == 404


class TestDJRoutes:
    def test_bookings_confirm_and_decline(self, client, admin_headers, make_event, dj_headers):
        dj_id, headers = dj_headers()
        event_id = make_event()
        slots = client.post(run_of_show_url(event_id), json={'time_slots': SLOTS},
                            headers=admin_headers).json()['run_of_show']['time_slots']
        for slot in slots:
            client.post(f"{run_of_show_url(event_id)}/slots/{slot['id']}/assignments",
                        json={'dj_id': dj_id}, headers=admin_headers)

        profile = client.get('/api/dj/profile', headers=headers)
        assert profile.json()['dj']['booking_count'] == 2

        bookings = client.get('/api/dj/bookings', headers=headers).json()['bookings']
        assert len(bookings) == 1
        assert bookings[0]['event']['id'] == event_id
        assert [s['slot_name'] for s in bookings[0]['slots']] == ['Opener', 'Headliner']

        base = f"/api/dj/bookings/{event_id}/slots"
        confirmed = client.post(f"{base}/{slots[0]['id']}/confirm", headers=headers)
        assert confirmed.status_code == 200
        assert confirmed.json()['assignment']['status'] == 'confirmed'

        declined = client.post(f"{base}/{slots[1]['id']}/decline", headers=headers)
        assert declined.json()['assignment']['status'] == 'declined'

        assert client.get('/api/dj/profile', headers=headers).json()['dj']['booking_count'] == 1

    def test_cannot_answer_someone_elses_booking(self, client, admin_headers, make_event, dj_headers):
        booked_id, _ = dj_headers()
        _, other_headers = dj_headers()
        event_id = make_event()
        slot_id = client.post(run_of_show_url(event_id), json={'time_slots': SLOTS[:1]},
                              headers=admin_headers).json()['run_of_show']['time_slots'][0]['id']
        client.post(f"{run_of_show_url(event_id)}/slots/{slot_id}/assignments",
                    json={'dj_id': booked_id}, headers=admin_headers)

        response = client.post(f"/api/dj/bookings/{event_id}/slots/{slot_id}/confirm", headers=other_headers)
        assert response.status_code == 404

    def test_admin_is_not_a_dj(self, client, admin_headers):
        assert client.get('/api/dj/bookings', headers=admin_headers).status_code == 403
