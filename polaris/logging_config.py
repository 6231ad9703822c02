"""Local logging for polaris.

Two streams are written under ``<data dir>/logs``:

- ``local-YYYY-MM-DD.log``: the ``polaris`` logger hierarchy
- ``sync-events-YYYY-MM-DD.log``: one line per load/degrade/reconcile event,
  easy to grep when a widget unexpectedly ends up in local mode
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from polaris.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _log_dir() -> Path:
    log_dir = get_settings().resolved_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def setup_polaris_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``polaris`` logger with a dated file handler.

    Safe to call repeatedly: handlers are only added once. DEBUG also
    echoes to the console.

    Args:
        level: Level name, case-insensitive. Unknown names fall back to INFO.

    Returns:
        The configured ``polaris`` logger.
    """
    logger = logging.getLogger("polaris")
    resolved = _LEVELS.get(level.upper(), logging.INFO)
    logger.setLevel(resolved)

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(_log_dir() / f"local-{_today()}.log", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if resolved == logging.DEBUG and not has_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console)

    return logger


def log_sync_event(event_type: str, details: str, kind: str = "default") -> None:
    """Append one line to the sync events log.

    Failures to write are swallowed into the regular logger; event logging
    must never break a widget operation.
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    line = f"{timestamp} | {event_type} | kind={kind} | {details}\n"
    try:
        with open(_log_dir() / f"sync-events-{_today()}.log", "a", encoding="utf-8") as f:
            f.write(line)
    except OSError as e:
        logging.getLogger(__name__).debug(f"Could not write sync event: {e}")


def log_load(kind: str, mode: str, count: int, error: Optional[str] = None) -> None:
    """Record the outcome of a collection load."""
    details = f"mode={mode}, count={count}"
    if error:
        details += f", error={error}"
    log_sync_event("load", details, kind=kind)


def log_degrade(kind: str, operation: str, reason: str) -> None:
    """Record a REMOTE to LOCAL transition."""
    log_sync_event("degrade", f"operation={operation}, reason={reason[:200]}", kind=kind)


def log_reconcile(kind: str, provisional_id: str, server_id: str) -> None:
    """Record a provisional record being replaced by the server copy."""
    log_sync_event(
        "reconcile", f"provisional={provisional_id[:14]}..., server={server_id}", kind=kind
    )
