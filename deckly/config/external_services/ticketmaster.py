"""Ticketmaster Discovery API configuration."""

import os
from typing import Dict, Any
from dataclasses import dataclass


@dataclass
class TicketmasterConfig:
    """Ticketmaster Discovery API configuration settings."""

    # API configuration
    base_url: str = "https://app.ticketmaster.com/discovery/v2"
    page_size: int = 200  # Largest page the Discovery API serves
    sort: str = "date,asc"

    # Request behaviour
    timeout: float = 0.0
    max_attempts: int = 3
    retry_delay: float = 1.0

    # Authentication
    api_key: str = ""

    def __post_init__(self):
        """Load unset values from environment."""
        if not self.api_key:
            self.api_key = os.environ.get('TICKETMASTER_API_KEY', '')
        if not self.timeout:
            self.timeout = float(os.environ.get('TICKETMASTER_TIMEOUT', '20'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            'base_url': self.base_url,
            'page_size': self.page_size,
            'sort': self.sort,
            'timeout': self.timeout,
            'max_attempts': self.max_attempts,
            'retry_delay': self.retry_delay,
            'api_key': self.api_key,
        }

    def validate(self) -> bool:
        """Validate the configuration."""
        if not self.api_key:
            raise ValueError("TICKETMASTER_API_KEY environment variable is required")
        if self.timeout <= 0:
            raise ValueError("TICKETMASTER_TIMEOUT must be positive")
        return True


def get_ticketmaster_config() -> TicketmasterConfig:
    """Get Ticketmaster configuration with validation."""
    config = TicketmasterConfig()
    config.validate()
    return config
