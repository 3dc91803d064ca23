"""
Logging configuration.

- text: human-readable single line per record (local / debug)
- json: one JSON object per record (log aggregators)
Level and format come from Settings (LOG_LEVEL / LOG_FORMAT).
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from tracker.core.config import Settings

_CONFIGURED = False


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("deliverable_id", "task_id", "milestone_id", "actor_role", "action"):
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = str(val)
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")


def configure_logging(settings: Settings) -> None:
    """Idempotent: repeated calls (reload, tests) do not stack handlers."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    handler = logging.StreamHandler(sys.stderr)
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ReadableFormatter())

    root = logging.getLogger("tracker")
    root.setLevel(settings.log_level.upper())
    root.addHandler(handler)
    root.propagate = False

    _CONFIGURED = True
