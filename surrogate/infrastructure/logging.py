"""
Centralized Logging

Architectural Intent:
- One place that decides where build logs go and how they look
- Every other module only calls logging.getLogger(__name__) and logs with
  %-style arguments, so configuration never leaks into the build core
- JSON output keeps resource ids and build stages as their own fields for
  log pipelines that index them
"""

import json
import logging
import sys
from datetime import datetime, UTC

EXTRA_FIELDS = ("build_id", "stage", "resource_id")
HUMAN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# The SDK logs every HTTP request at INFO.
SDK_LOGGERS = ("oci",)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extras included."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, str(getattr(record, name)))
            for name in EXTRA_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
) -> None:
    """Send the ``surrogate`` logger tree to stderr.

    Args:
        level: Logging level as int or name; unknown names mean WARNING.
        json_format: If True, use JSON structured output. Otherwise human-readable.
    """
    level = _resolve_level(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(HUMAN_FORMAT))

    package_logger = logging.getLogger("surrogate")
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)

    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
