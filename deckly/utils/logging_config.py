"""Logging configuration for the application."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None):
    """
    Configure logging for the application.

    Args:
        level: Root log level name, defaults to LOG_LEVEL env variable or INFO
        log_file: Optional file to also write logs to, rotated at 10MB
    """
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level or os.environ.get('LOG_LEVEL', 'INFO').upper())
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=30,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Set higher log levels for noisy components
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    # Import pipeline progress is always worth keeping
    for logger_name in [
        'deckly.importing.orchestrator',
        'deckly.importing.reconciliation',
    ]:
        logging.getLogger(logger_name).setLevel(logging.INFO)
