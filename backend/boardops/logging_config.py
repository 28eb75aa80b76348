"""
BoardOps - Structured logging

JSON (default) or plain text output, configured from settings:
- LOG_LEVEL: root log level
- LOG_FORMAT: "json" or "text"
- LOG_FILE: optional file to append to, in addition to stderr

Usage:
    from boardops.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Production order started", extra={"order_id": order.id})
"""
import json
import logging
import sys
import threading
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from boardops.core.settings import get_settings

# Attributes every LogRecord carries; anything else came in through `extra=`
_STDLIB_KEYS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class _JSONEncoder(json.JSONEncoder):
    """Handle datetime and Decimal values passed through `extra`."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        return repr(obj)


class JSONFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            error_code = getattr(exc, "error_code", None)
            if error_code:
                payload["error_code"] = error_code
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder)


_configured = False
_lock = threading.Lock()


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure the root logger (idempotent unless force=True).

    Arguments override the corresponding LOG_* settings.
    """
    global _configured
    with _lock:
        if _configured and not force:
            return
        _configured = True

    settings = get_settings()
    level_name = (level or settings.LOG_LEVEL).upper()
    fmt = (log_format or settings.LOG_FORMAT).lower()
    file_path = log_file if log_file is not None else settings.LOG_FILE

    formatter: logging.Formatter
    if fmt == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FORMAT)

    handlers: list = [logging.StreamHandler(sys.stderr)]
    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(file_path, encoding="utf-8"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_boardops_handler", False):
            root.removeHandler(existing)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._boardops_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # SQL echo is controlled by DB_ECHO, keep the engine logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger. Call setup_logging() once at startup."""
    return logging.getLogger(name)
