#!/usr/bin/env python3
"""Import upcoming Ticketmaster events for all auto-import venues.

Usage:
    python scripts/import_events.py [--days N] [--venue ID] [--log-file PATH]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add the project root to Python path when running directly
sys.path.append(str(Path(__file__).parent.parent))

from deckly.config.external_services import get_ticketmaster_config
from deckly.config.imports import ImportConfig
from deckly.db import Database
from deckly.importing import ImportOrchestrator, summarize
from deckly.sources import TicketmasterClient
from deckly.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import Ticketmaster events for auto-import venues")
    parser.add_argument('--days', type=int, default=None, help="Days ahead to import (default: IMPORT_DAYS_AHEAD or 90)")
    parser.add_argument('--venue', type=int, default=None, help="Only import this local venue id")
    parser.add_argument('--log-file', type=Path, default=None, help="Also write logs to this file")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(log_file=args.log_file)

    config = ImportConfig(days_ahead=args.days)
    config.validate()

    database = Database()
    try:
        database.ensure_tables_exist()
        orchestrator = ImportOrchestrator(database, TicketmasterClient(get_ticketmaster_config()), config)
        results = orchestrator.import_all_venue_events(venue_id=args.venue)
    except Exception as e:
        logger.error(f"Error during import: {e}")
        return 1
    finally:
        database.dispose()

    totals = summarize(results)
    print(f"\nVenues processed: {totals['venues_processed']}")
    print(f"Events imported:  {totals['events_imported']}")
    print(f"Events updated:   {totals['events_updated']}")
    if totals['errors']:
        print(f"Errors:           {totals['errors']}")
        for result in results:
            for error in result.errors:
                print(f"  - {result.venue_name}: {error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
