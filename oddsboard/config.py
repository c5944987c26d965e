"""Configuration loading and validation"""
import os
from typing import Optional
from dotenv import load_dotenv
import pytz

from .services.events_fetcher import DEFAULT_EVENTS_URL
from .utils.logger import setup_logger

logger = setup_logger(__name__)

# Load environment variables from .env file
load_dotenv()


class Config:
    """Application configuration"""

    def __init__(self):
        """Load and validate configuration"""
        # Feed configuration
        self.events_url = os.getenv("EVENTS_URL", DEFAULT_EVENTS_URL)
        self.request_timeout = float(os.getenv("REQUEST_TIMEOUT", "10"))
        self.retry_attempts = int(os.getenv("RETRY_ATTEMPTS", "3"))
        self.retry_delay = float(os.getenv("RETRY_DELAY", "1.0"))

        # Data source for the initial load: 'api' or 'json'
        self.data_source = os.getenv("DATA_SOURCE", "api").strip().lower()
        self.snapshot_path = os.getenv("SNAPSHOT_PATH", "data/matches.json")

        # Update settings
        self.polling_interval_ms = int(os.getenv("POLLING_INTERVAL_MS", "5000"))
        self.update_mode = os.getenv("UPDATE_MODE", "api").strip().lower()
        self.update_probability = float(os.getenv("UPDATE_PROBABILITY", "0.3"))
        self.volatility = float(os.getenv("VOLATILITY", "0.15"))
        self.trend_reset_delay = float(os.getenv("TREND_RESET_DELAY", "2.0"))
        self.max_retries = int(os.getenv("MAX_RETRIES", "3"))

        # Full refresh interval in minutes (0 disables)
        self.refresh_interval = int(os.getenv("REFRESH_INTERVAL", "0"))

        # Display timezone; system local time when unset
        tz = os.getenv("DISPLAY_TIMEZONE", "").strip()
        self.display_timezone: Optional[str] = tz or None

        self._validate()
        logger.info("Configuration loaded successfully")

    def _validate(self):
        """Validate configuration values"""
        if self.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")

        if self.retry_attempts < 1:
            raise ValueError("RETRY_ATTEMPTS must be at least 1")

        if self.retry_delay < 0:
            raise ValueError("RETRY_DELAY must be non-negative")

        if self.data_source not in ("api", "json"):
            raise ValueError("DATA_SOURCE must be 'api' or 'json'")

        if self.update_mode not in ("api", "mock"):
            raise ValueError("UPDATE_MODE must be 'api' or 'mock'")

        if self.polling_interval_ms < 1:
            raise ValueError("POLLING_INTERVAL_MS must be at least 1 millisecond")

        if not 0 <= self.update_probability <= 1:
            raise ValueError("UPDATE_PROBABILITY must be between 0 and 1")

        if not 0 <= self.volatility <= 1:
            raise ValueError("VOLATILITY must be between 0 and 1")

        if self.max_retries < 0:
            raise ValueError("MAX_RETRIES must be non-negative")

        if self.refresh_interval < 0:
            raise ValueError("REFRESH_INTERVAL must be non-negative")

        if self.display_timezone and self.display_timezone not in pytz.all_timezones_set:
            raise ValueError(f"DISPLAY_TIMEZONE '{self.display_timezone}' is not a known timezone")

        logger.info(f"Events endpoint: {self.events_url}")
        logger.info(f"Initial data source: {self.data_source}")
        logger.info(f"Update mode: {self.update_mode}, polling every {self.polling_interval_ms}ms")
        if self.refresh_interval:
            logger.info(f"Full refresh interval: {self.refresh_interval} minutes")
        else:
            logger.info("Full refresh: disabled")
