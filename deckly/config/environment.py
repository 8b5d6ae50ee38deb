"""Deployment environment.

Import this before any other deckly config module: it loads `.env` (local
development only; deployed instances get their variables from the platform)
and decides whether we run as production.

Usage:
    from deckly.config.environment import ENVIRONMENT_NAME, IS_PRODUCTION_ENVIRONMENT
"""

import os
import logging
from dotenv import load_dotenv

load_dotenv()

VALID_ENVIRONMENTS = ('development', 'production')

ENVIRONMENT_NAME = os.environ.get('ENVIRONMENT', '').strip().lower()

if ENVIRONMENT_NAME not in VALID_ENVIRONMENTS:
    logging.warning(
        f"ENVIRONMENT is '{ENVIRONMENT_NAME}', expected one of {', '.join(VALID_ENVIRONMENTS)}. "
        "Running as development."
    )
    ENVIRONMENT_NAME = 'development'

IS_PRODUCTION_ENVIRONMENT = ENVIRONMENT_NAME == 'production'

__all__ = ['ENVIRONMENT_NAME', 'IS_PRODUCTION_ENVIRONMENT']
