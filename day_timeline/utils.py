import logging
import sys
import uuid
from datetime import date, datetime
from typing import Optional

from . import config

logger = logging.getLogger("day_timeline")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ---------------- Logging ----------------
def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """Send package logs to stderr and errors to the error log file.

    Safe to call more than once; handlers are only attached the first time.
    """
    if getattr(logger, "_timeline_configured", False):
        return logger
    formatter = logging.Formatter(_LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    file_handler = logging.FileHandler(log_file or config.ERROR_LOG, encoding="utf-8", delay=True)
    file_handler.setLevel(logging.ERROR)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.setLevel(level)
    logger._timeline_configured = True
    return logger


def log_error(e: Exception, context: str = "") -> None:
    """Record an exception with its traceback in the error log."""
    message = f"{context}: {e}" if context else str(e)
    logger.error(message, exc_info=(type(e), e, e.__traceback__))


# ---------------- Ids, dates, formatting ----------------
def new_id() -> str:
    return uuid.uuid4().hex


def date_key(moment: datetime) -> str:
    """Calendar-day key (YYYY-MM-DD) used as a day's storage key."""
    return moment.date().isoformat()


def is_date_key(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


def format_seconds(sec: int) -> str:
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    return f"{h}:{m:02d}:{s:02d}"


def format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M:%S")
