"""Route for the externally scheduled Ticketmaster import.

Called by the platform's cron scheduler with
`Authorization: Bearer <CRON_SECRET>`.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from ...config.security import CronConfig
from ...errors import AuthenticationError
from ...importing import ImportOrchestrator, summarize
from ...utils.timezone import now_utc
from ..dependencies import get_cron_config, get_import_orchestrator
from ..errors import error_response

router = APIRouter(prefix="/cron", tags=["cron"])
logger = logging.getLogger(__name__)


def _venue_report(result) -> dict:
    return {
        "venue_id": result.venue_id,
        "venue_name": result.venue_name,
        "imported": result.events_imported,
        "updated": result.events_updated,
        "errors": result.errors,
    }


@router.get("/import-events")
def import_events(
    authorization: Optional[str] = Header(None),
    cron_config: CronConfig = Depends(get_cron_config),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
):
    """
    Import upcoming Ticketmaster events for every auto-import venue.

    The import runs to completion before the response is sent.
    """
    if not cron_config.is_configured:
        logger.error("CRON_SECRET is not configured")
        return error_response(500, "CRON_NOT_CONFIGURED", "Cron job is not configured")

    if not cron_config.verify_bearer(authorization):
        logger.error("Unauthorized cron job attempt")
        raise AuthenticationError("Unauthorized")

    logger.info("Cron job started: Ticketmaster event import")
    started = time.monotonic()

    try:
        results = orchestrator.import_all_venue_events()
    except Exception as e:
        logger.exception(f"Cron job failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e),
                "timestamp": now_utc().isoformat(),
            },
        )

    summary = summarize(results)
    logger.info(
        f"Cron job completed: {summary['events_imported']} imported, "
        f"{summary['events_updated']} updated, {summary['errors']} errors"
    )
    return {
        "success": True,
        "timestamp": now_utc().isoformat(),
        "duration": f"{time.monotonic() - started:.2f}s",
        "summary": summary,
        "venues": [_venue_report(result) for result in results],
    }
