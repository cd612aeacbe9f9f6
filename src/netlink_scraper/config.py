from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
from pathlib import Path
import json
import os

from netlink_scraper.browser_config import BrowserConfig
from netlink_scraper.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGES_PER_BATCH,
    DEFAULT_TIMEOUT_MS,
)
from netlink_scraper.exceptions import ConfigError
from netlink_scraper.models import ScrapeOptions

load_dotenv()  # Loads variables from .env file


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


@dataclass
class Config:
    """Scalar knobs consumed by the scraper."""
    headless: bool = True
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    concurrency: int = DEFAULT_CONCURRENCY
    retries: int = DEFAULT_MAX_RETRIES
    delay_ms: int = DEFAULT_DELAY_MS
    skip_errors: bool = True
    batch_size: int = DEFAULT_PAGES_PER_BATCH
    dashboard_base_url: Optional[str] = None
    dashboard_token: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")
        if self.retries < 1:
            raise ConfigError("retries must be at least 1")
        if self.timeout_ms < 1:
            raise ConfigError("timeout_ms must be positive")
        if self.delay_ms < 0:
            raise ConfigError("delay_ms cannot be negative")

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config: Configuration instance with values from environment
        """
        return cls(
            headless=_env_bool("BROWSER_HEADLESS", True),
            timeout_ms=_env_int("SCRAPE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            concurrency=_env_int("SCRAPE_CONCURRENCY", DEFAULT_CONCURRENCY),
            retries=_env_int("SCRAPE_RETRIES", DEFAULT_MAX_RETRIES),
            delay_ms=_env_int("SCRAPE_DELAY_MS", DEFAULT_DELAY_MS),
            skip_errors=_env_bool("SCRAPE_SKIP_ERRORS", True),
            batch_size=_env_int("SCRAPE_BATCH_SIZE", DEFAULT_PAGES_PER_BATCH),
            dashboard_base_url=os.getenv("DASHBOARD_BASE_URL"),
            dashboard_token=os.getenv("DASHBOARD_API_TOKEN"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_file(cls, path: str) -> "Config":
        """Load configuration from a JSON file.

        Unknown keys are ignored; missing keys keep their defaults.

        Args:
            path: Path to JSON configuration file

        Returns:
            Config with values from file
        """
        file_path = Path(path)

        if not file_path.exists():
            raise ConfigError(f"Config file not found: {path}")

        with open(file_path, 'r') as f:
            data = json.load(f)

        values = data.get('scraper', data)
        known = {
            name: values[name]
            for name in cls.__dataclass_fields__
            if name in values
        }
        return cls(**known)

    def to_scrape_options(self, **callbacks) -> ScrapeOptions:
        """Build ScrapeOptions from these knobs plus optional callbacks."""
        return ScrapeOptions(
            concurrency=self.concurrency,
            timeout_ms=self.timeout_ms,
            retries=self.retries,
            delay_ms=self.delay_ms,
            skip_errors=self.skip_errors,
            **callbacks,
        )

    def browser_config(self) -> BrowserConfig:
        """Browser settings derived from these knobs."""
        return BrowserConfig(headless=self.headless)
