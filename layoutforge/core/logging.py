"""Centralized logging configuration with JSON-formatted extras."""

import json
import logging
import sys


class JSONExtrasFormatter(logging.Formatter):
    """Formatter that outputs a readable log line with extras as JSON.

    Output format:
        2024-01-15 10:30:45 | INFO | layoutforge.module | Message {"key": "value"}
    """

    RESERVED_ATTRS = frozenset(
        set(vars(logging.makeLogRecord({})))
        | {"message", "asctime", "taskName"}
    )

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        timestamp = self.formatTime(record, self.datefmt)
        base = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.message}"

        extras = {
            k: v
            for k, v in record.__dict__.items()
            if k not in self.RESERVED_ATTRS and not k.startswith("_")
        }

        if extras:
            try:
                extras_str = json.dumps(extras, default=str, ensure_ascii=False)
                base = f"{base} {extras_str}"
            except (TypeError, ValueError):
                base = f"{base} {extras!r}"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            base = f"{base}\n{record.exc_text}"

        return base


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the 'layoutforge' logger with console output and JSON extras."""
    logger = logging.getLogger("layoutforge")
    logger.setLevel(level)

    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONExtrasFormatter(datefmt="%Y-%m-%d %H:%M:%S"))

    logger.addHandler(handler)

    # Prevent propagation to root logger (avoid duplicate output)
    logger.propagate = False
