"""Logging for the VM snapshot builder.

Records go to stderr, one JSON object per line by default, so command output
on stdout stays machine-readable. Structured context (the VM being checked,
the stage that emitted the record) travels in an `extra_fields` dict that
`vm_event` builds.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO


TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_RESERVED_ATTRS = set(
    logging.LogRecord("name", logging.INFO, "path", 1, "msg", None, None).__dict__
) | {"message", "asctime", "stack_info", "taskName"}


def vm_event(event: str, vm_name: str, **fields: Any) -> dict[str, Any]:
    """Builds the `extra` mapping for a structured record about one VM.

    Example:
        logger.info("Snapshots loaded", extra=vm_event("snapshot_tree_loaded", "vm1"))
    """
    return {"extra_fields": {"event": event, "vm_name": vm_name, **fields}}


class JsonFormatter(logging.Formatter):
    """Renders each record as a single JSON line.

    `extra_fields` is merged into the top level; any other attribute passed
    through `extra` is copied under its own name.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if key == "extra_fields" and isinstance(value, dict):
                entry.update(value)
            else:
                entry[key] = value

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends `extra_fields` as key=value."""

    def __init__(self):
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict) and fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def setup_logging(
    level: Optional[str] = None,
    stream: Optional[TextIO] = None,
    json_format: bool = True,
):
    """Configures the root logger.

    Args:
        level: Log level override. Defaults to the LOG_LEVEL env var or INFO.
        stream: Destination of the records. Defaults to stderr.
        json_format: Emit JSON lines when True, plain text otherwise.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(log_level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else TextFormatter())

    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
