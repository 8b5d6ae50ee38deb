#!/usr/bin/env python3
"""Link local venues to their Ticketmaster venue records.

Searches Ticketmaster for every active venue without a Ticketmaster id and
links the confident matches, enabling auto-import for them.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add the project root to Python path when running directly
sys.path.append(str(Path(__file__).parent.parent))

from deckly.config.external_services import get_ticketmaster_config
from deckly.db import Database
from deckly.importing.venue_discovery import link_ticketmaster_venues
from deckly.sources import TicketmasterClient
from deckly.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Find and link Ticketmaster venues")
    parser.add_argument('--country', default='US', help="Country code to search in (default: US)")
    args = parser.parse_args(argv)

    setup_logging()
    database = Database()
    try:
        database.ensure_tables_exist()
        report = link_ticketmaster_venues(
            database,
            TicketmasterClient(get_ticketmaster_config()),
            country_code=args.country,
        )
    except Exception as e:
        logger.error(f"Error during venue discovery: {e}")
        return 1
    finally:
        database.dispose()

    print(f"\nFound and linked: {len(report['linked'])} venues")
    for linked in report['linked']:
        print(f"  - {linked['name']} -> {linked['ticketmaster_venue_id']} (score {linked['score']}/100)")
    print(f"Not found or low confidence: {len(report['unmatched'])} venues")
    for unmatched in report['unmatched']:
        print(f"  - {unmatched['name']}: {unmatched['reason']}")
    if report['linked']:
        print("\nReview the matched venues, then run scripts/import_events.py to fetch events.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
