"""Logging for the catalog sync.

Operators get plain console lines; structured sync events also go to a JSONL
file under logs/ that rolls over at midnight.
"""

import json
import logging
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = ["setup_logging", "get_logger", "log_sync_event", "LOG_DIR"]

LOG_DIR = Path(__file__).parent.parent / "logs"
ROOT_LOGGER = "woosync"


class JSONLineFormatter(logging.Formatter):
    """Renders a record, plus any sync event attached to it, as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event_type = getattr(record, "event_type", None)
        if event_type:
            entry["event_type"] = event_type
            entry.update(getattr(record, "event_data", {}))
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Attach console and (optionally) JSONL file handlers to the woosync logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(console)

    if log_to_file:
        directory = log_dir or LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(directory / "sync.jsonl", when="midnight", encoding="utf-8")
        file_handler.setFormatter(JSONLineFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_sync_event(event_type: str, data: Dict[str, Any], level: int = logging.INFO) -> None:
    """Log a structured sync event (e.g. 'sync_start', 'product_error')."""
    logging.getLogger(ROOT_LOGGER).log(
        level,
        event_type,
        extra={"event_type": event_type, "event_data": data},
    )
