"""Ticketmaster import pipeline: mapping, reconciliation and the per-venue orchestrator."""

from .mapping import EventDraft, map_external_event
from .reconciliation import (
    MATCH_WINDOW_MINUTES, BatchResult, EventReconciler, ReconcileOutcome, find_matching_manual_event
)
from .orchestrator import ImportOrchestrator, VenueImportResult, summarize

__all__ = [
    'EventDraft',
    'map_external_event',
    'MATCH_WINDOW_MINUTES',
    'BatchResult',
    'EventReconciler',
    'ReconcileOutcome',
    'find_matching_manual_event',
    'ImportOrchestrator',
    'VenueImportResult',
    'summarize',
]
