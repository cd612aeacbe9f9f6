"""Logging setup for scrape runs.

Log records go to stderr (and optionally a file) so that JSON written to
stdout by the CLI stays machine-readable.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from netlink_scraper.exceptions import ConfigError

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Chatty at DEBUG during a batch run
NOISY_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'playwright')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure the root logger for a scrape run.

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL (case-insensitive)
        log_file: Optional log file path, parent directories are created
        format_string: Optional custom format string
        quiet: Logger names capped at WARNING

    Raises:
        ConfigError: If ``level`` is not a known level name
    """
    level_name = (level or "INFO").upper()
    if level_name not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level: {level!r}")

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level_name),
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ProgressLogger:
    """``on_progress`` callback that logs how far a batch has got.

    Logs every ``every``-th claimed target and always the last one.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, every: int = 1):
        self.logger = logger or logging.getLogger("netlink_scraper.progress")
        self.every = max(1, every)

    def __call__(self, current: int, total: int, url: str) -> None:
        if current % self.every and current != total:
            return
        percent = current / total * 100 if total else 100.0
        self.logger.info(f"Progress: {percent:.1f}% ({current}/{total}) - {url}")
