"""Diagnostic logging for the chord detector and web server."""

import json
import logging
import sys
from typing import Optional

LOG_FORMATS = ("text", "json")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def make_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    if log_format == "text":
        return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)
    raise ValueError(f"Unknown log format '{log_format}' (choose from {', '.join(LOG_FORMATS)})")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = "text",
) -> logging.Logger:
    """Configure the "chordkit" logger.

    Detection results are printed to stdout by the output handlers, so
    diagnostics go to stderr and, optionally, to a file.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        log_file: optional path to also write diagnostics to
        log_format: "text" or "json"

    Returns:
        The configured logger; module loggers under "chordkit." propagate to it
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = make_formatter(log_format)

    logger = logging.getLogger("chordkit")
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
