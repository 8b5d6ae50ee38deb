"""Request dependencies: database, services and the caller's identity."""

from typing import Optional

from fastapi import Depends, Header, Request

from ..auth import Identity, resolve_identity
from ..catalog import DJRoster, EventCatalog
from ..config.external_services import TicketmasterConfig
from ..config.imports import ImportConfig
from ..config.security import AuthConfig, CronConfig
from ..db import Database
from ..errors import AuthenticationError
from ..importing import ImportOrchestrator
from ..schedule import RunOfShowService
from ..sources import TicketmasterClient


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.auth_config


def get_cron_config(request: Request) -> CronConfig:
    return request.app.state.cron_config


def get_run_of_show_service(db: Database = Depends(get_database)) -> RunOfShowService:
    return RunOfShowService(db)


def get_event_catalog(db: Database = Depends(get_database)) -> EventCatalog:
    return EventCatalog(db)


def get_dj_roster(db: Database = Depends(get_database)) -> DJRoster:
    return DJRoster(db)


def get_import_orchestrator(db: Database = Depends(get_database)) -> ImportOrchestrator:
    """Orchestrator backed by the live Ticketmaster API."""
    return ImportOrchestrator(db, TicketmasterClient(TicketmasterConfig()), ImportConfig())


def get_identity(
    authorization: Optional[str] = Header(None),
    db: Database = Depends(get_database),
    auth_config: AuthConfig = Depends(get_auth_config),
) -> Identity:
    """Resolve the `Authorization: Bearer <session token>` header to a user."""
    if not authorization:
        raise AuthenticationError("Authentication required")
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        raise AuthenticationError("Authentication required")
    return resolve_identity(db, token.strip(), auth_config.session_secret)


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    return identity.require_admin()


def require_dj(identity: Identity = Depends(get_identity)) -> int:
    """The caller's DJ id."""
    return identity.require_dj()
