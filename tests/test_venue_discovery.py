from unittest.mock import MagicMock

from deckly.errors import ExternalAPIError
from deckly.importing.venue_discovery import best_candidate, link_ticketmaster_venues, score_candidate
from deckly.models import Venue


def candidate(venue_id, name, city='Boston', state='MA'):
    return {'id': venue_id, 'name': name, 'city': {'name': city}, 'state': {'stateCode': state}}


def test_score_candidate():
    venue = Venue(name='The Grand', city='Boston', state='MA')
    assert score_candidate(venue, candidate('1', 'The Grand Boston')) == 100
    assert score_candidate(venue, candidate('2', 'Grand', city='Cambridge')) == 70
    assert score_candidate(venue, candidate('3', 'Fenway Park')) == 50
    assert score_candidate(venue, candidate('4', 'Other', city='Hartford', state='CT')) == 0


def test_best_candidate_prefers_higher_score():
    venue = Venue(name='Empire', city='Boston', state='MA')
    match = best_candidate(venue, [candidate('1', 'Empire', city='Providence', state='RI'), candidate('2', 'Empire')])
    assert match['id'] == '2'
    assert match['score'] == 100


def test_links_confident_matches_only(database, make_venue):
    confident = make_venue(name='Big Night Live', ticketmaster_venue_id=None, auto_import_enabled=False)
    doubtful = make_venue(name='Mystique', city='Everett', ticketmaster_venue_id=None, auto_import_enabled=False)
    make_venue(name='Already Linked')

    source = MagicMock()
    source.search_venues.side_effect = [
        [candidate('KovZ9', 'Big Night Live')],
        [candidate('KovZ8', 'Encore Theater', city='Boston', state='NY')],
    ]
    sleeps = []

    report = link_ticketmaster_venues(database, source, sleep=sleeps.append)

    assert [r['venue_id'] for r in report['linked']] == [confident.id]
    assert report['unmatched'][0]['venue_id'] == doubtful.id
    assert 'best score: 0/100' in report['unmatched'][0]['reason']
    assert sleeps == [0.2, 0.2]
    assert source.search_venues.call_args_list[0].kwargs['country_code'] == 'US'

    with database.session() as session:
        linked = session.get(Venue, confident.id)
        assert linked.ticketmaster_venue_id == 'KovZ9'
        assert linked.auto_import_enabled is True
        assert session.get(Venue, doubtful.id).ticketmaster_venue_id is None


def test_search_errors_are_reported(database, make_venue):
    make_venue(ticketmaster_venue_id=None)
    source = MagicMock()
    source.search_venues.side_effect = ExternalAPIError("Ticketmaster API error: 429 - slow down")

    report = link_ticketmaster_venues(database, source, sleep=lambda _: None)

    assert report['linked'] == []
    assert report['unmatched'][0]['reason'] == "Ticketmaster API error: 429 - slow down"
