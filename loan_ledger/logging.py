"""Logging setup for loan-ledger scripts and services.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed by the entry point through ``setup_logging``. Loan context is
attached with ``extra=`` and rendered as top-level keys by the JSON
formatter.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
STANDARD_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Record attributes set through ``extra=`` that the JSON output keeps
CONTEXT_FIELDS = ("loan_id", "lender_id", "installment_index", "version", "topic", "count")

NOISY_LOGGERS = ("confluent_kafka", "psycopg", "faker")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with loan context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Decimal amounts and dates go out as strings
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single root handler for the process.

    Parameters
    ----------
    level : str
        Level name; unknown names fall back to INFO.
    format_type : str
        "standard" for human-readable lines, "json" for one object per line.
    stream : TextIO | None
        Destination, stdout by default.

    Returns
    -------
    logging.Handler
        The installed handler.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(STANDARD_FORMAT, STANDARD_DATEFMT))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    logging.getLogger("loan_ledger").setLevel(log_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
