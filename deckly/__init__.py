"""Deckly: run-of-show scheduling and Ticketmaster event import for nightlife venues."""

__version__ = "1.0.0"
