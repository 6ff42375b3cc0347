"""Logging setup, startup banners and per-pass progress reporting."""

import logging
import logging.handlers
import time
from typing import Any, Dict, Iterable, Iterator, List, Optional

import colorlog
from tqdm import tqdm

LOGGER_NAME = 'blog_markdown_migrator'

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def _resolve_level(verbosity: int, level: Optional[str]) -> int:
    """An explicit level name wins; otherwise each -v lowers the threshold one step."""
    if not level:
        return VERBOSITY_LEVELS[min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)]

    level_name = level.upper()
    if level_name not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        raise ValueError(f"Invalid log level '{level}'")
    return getattr(logging, level_name)


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Configure the migrator's logger hierarchy.

    Console output is colored by level; a rotating log file is added when
    ``log_file`` is given. Loggers of other libraries stay at WARNING.

    Args:
        verbosity: Number of -v flags (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit level name (overrides verbosity)

    Returns:
        The ``blog_markdown_migrator`` logger

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    log_level = _resolve_level(verbosity, level)
    log_format = log_format or DEFAULT_LOG_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    logging.basicConfig(level=logging.WARNING, format=log_format, datefmt=date_format)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors=LOG_COLORS
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding='utf-8'
            )
        except OSError as e:
            logger.warning(f"Cannot write log file {log_file}: {e}")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)
            logger.info(f"Also logging to {log_file}")

    logger.debug(f"Log level set to {logging.getLevelName(log_level)}")
    return logger


class ProgressTracker:
    """
    Tracks one pass over a list of items.

    Usable as a context manager; iterating over the tracker yields the items,
    behind a tqdm bar when ``show_bar`` is set. Outcomes are reported with
    :meth:`record`, and a summary is logged when the context exits.
    """

    LOG_EVERY = 10

    def __init__(self, items: Iterable[Any], item_type: str = "items", show_bar: bool = False):
        self.items = list(items)
        self.item_type = item_type
        self.show_bar = show_bar

        self.succeeded = 0
        self.failed_keys: List[str] = []
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(LOGGER_NAME)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def processed(self) -> int:
        return self.succeeded + len(self.failed_keys)

    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.time()
        self.logger.info(f"Processing {self.total} {self.item_type}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return

        if self.failed_keys and len(self.failed_keys) == self.total:
            log_method = self.logger.error
        elif self.failed_keys:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info

        stats = self.get_stats()
        log_method(
            f"{self.item_type.capitalize()}: {stats['succeeded']}/{stats['total']} succeeded, "
            f"{stats['failed']} failed in {stats['elapsed_time_formatted']}"
        )

    def __iter__(self) -> Iterator[Any]:
        if self.show_bar:
            return iter(tqdm(self.items, desc=self.item_type.capitalize(), unit='doc'))
        return iter(self.items)

    def record(self, key: str, success: bool = True) -> None:
        """
        Record the outcome of one item.

        Args:
            key: Identifier of the item, kept when it failed
            success: Whether the item was processed successfully
        """
        if success:
            self.succeeded += 1
        else:
            self.failed_keys.append(key)

        if self.processed % self.LOG_EVERY == 0:
            self.logger.info(f"{self.processed}/{self.total} {self.item_type} processed")

    def get_stats(self) -> Dict[str, Any]:
        elapsed = 0.0 if self.start_time is None else time.time() - self.start_time

        return {
            'total': self.total,
            'processed': self.processed,
            'succeeded': self.succeeded,
            'failed': len(self.failed_keys),
            'elapsed_time': elapsed,
            'elapsed_time_formatted': format_elapsed(elapsed)
        }


def format_elapsed(seconds: float) -> str:
    """Human-readable duration: ``42.0s``, ``3m 5s`` or ``1h 2m 3s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, seconds = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"

    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {seconds}s"


def log_section(title: str) -> None:
    """Log a banner line for the start of a stage."""
    logger = logging.getLogger(LOGGER_NAME)

    separator = "=" * 60
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)


def log_config(settings) -> None:
    """
    Log the effective export settings.

    Args:
        settings: ExportSettings instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    log_section("Configuration")

    for name, value in settings.to_dict().items():
        logger.info(f"{name}: {value}")

    if not settings.verify_ssl:
        logger.warning("SSL certificate verification is disabled")


__all__ = [
    'setup_logging',
    'ProgressTracker',
    'format_elapsed',
    'log_section',
    'log_config'
]
