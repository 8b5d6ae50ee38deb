"""Linking local venues to their Ticketmaster venue records."""

import logging
import time
from typing import Callable, Dict, Any, List, Optional

from ..db import Database
from ..errors import DecklyError
from ..models import Venue
from ..sources.base import EventSource

logger = logging.getLogger(__name__)

NAME_SCORE = 50
CITY_SCORE = 30
STATE_SCORE = 20
MIN_LINK_SCORE = 50
SEARCH_RESULT_SIZE = 5


def score_candidate(venue: Venue, candidate: Dict[str, Any]) -> int:
    """
    Score how well a Ticketmaster venue record matches a local venue (0-100).

    Name containment either way scores 50, the same city 30, the same state
    code 20.
    """
    score = 0
    local_name = (venue.name or '').lower()
    remote_name = (candidate.get('name') or '').lower()
    if local_name and remote_name and (local_name in remote_name or remote_name in local_name):
        score += NAME_SCORE

    remote_city = ((candidate.get('city') or {}).get('name') or '').lower()
    if venue.city and remote_city == venue.city.lower():
        score += CITY_SCORE

    remote_state = (candidate.get('state') or {}).get('stateCode')
    if venue.state and remote_state == venue.state:
        score += STATE_SCORE

    return score


def best_candidate(venue: Venue, candidates: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return the highest scoring candidate (first one on ties) with its score under `score`."""
    best, best_score = None, 0
    for candidate in candidates:
        score = score_candidate(venue, candidate)
        if score > best_score:
            best, best_score = candidate, score
    if best is None:
        return None
    return {**best, 'score': best_score}


def link_ticketmaster_venues(
    db: Database,
    source: EventSource,
    country_code: str = 'US',
    delay_seconds: float = 0.2,
    sleep: Callable[[float], None] = time.sleep
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Search Ticketmaster for every active venue that is not linked yet.

    A venue is linked, and auto-import enabled, when its best candidate
    scores at least 50.

    Returns:
        Dict[str, List[Dict[str, Any]]]: `linked` and `unmatched` venue reports
    """
    with db.session() as session:
        venues = session.query(Venue).filter(
            Venue.is_active.is_(True),
            Venue.ticketmaster_venue_id.is_(None),
        ).order_by(Venue.id).all()

    logger.info(f"Found {len(venues)} active venues without a Ticketmaster id")
    report: Dict[str, List[Dict[str, Any]]] = {'linked': [], 'unmatched': []}

    for venue in venues:
        logger.info(f"Searching for: {venue.name} ({venue.city}, {venue.state})")
        try:
            candidates = source.search_venues(
                keyword=venue.name,
                city=venue.city,
                state_code=venue.state,
                country_code=country_code,
                size=SEARCH_RESULT_SIZE,
            )
        except DecklyError as e:
            logger.error(f"Error searching for {venue.name}: {e.message}")
            report['unmatched'].append({'venue_id': venue.id, 'name': venue.name, 'reason': e.message})
            sleep(delay_seconds)
            continue

        match = best_candidate(venue, candidates)
        if match and match['score'] >= MIN_LINK_SCORE:
            with db.session() as session:
                stored = session.get(Venue, venue.id)
                stored.ticketmaster_venue_id = match['id']
                stored.auto_import_enabled = True
            logger.info(f"Linked {venue.name} to Ticketmaster venue {match['id']} (score {match['score']}/100)")
            report['linked'].append({
                'venue_id': venue.id,
                'name': venue.name,
                'ticketmaster_venue_id': match['id'],
                'score': match['score'],
            })
        else:
            if candidates:
                best_score = match['score'] if match else 0
                reason = f"No confident match (best score: {best_score}/100)"
            else:
                reason = "No results found"
            logger.warning(f"{venue.name}: {reason}")
            report['unmatched'].append({'venue_id': venue.id, 'name': venue.name, 'reason': reason})

        sleep(delay_seconds)

    logger.info(f"Venue discovery complete: {len(report['linked'])} linked, {len(report['unmatched'])} unmatched")
    return report
