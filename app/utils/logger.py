"""
Logging Utility.

Structured JSON logging for background-style work such as derivation runs,
on top of the standard module loggers used by the rest of the API.
"""

import json
import logging
import os
import sys
from datetime import datetime

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = LOG_LEVEL):
    """Attach a stdout handler to the root logger once."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    if any(getattr(h, "_docvault_handler", False) for h in root.handlers):
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    console_handler._docvault_handler = True
    root.addHandler(console_handler)


class StructuredLogger:
    """Logger that renders a message plus keyword fields as one JSON line."""

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name, usually the calling module's __name__
        """
        self.logger = logging.getLogger(name)

    def _log_structured(self, level: int, message: str, **kwargs):
        """
        Log a structured message.

        Args:
            level: Logging level
            message: Log message
            **kwargs: Additional structured data
        """
        if self.logger.isEnabledFor(level):
            log_data = {
                "timestamp": datetime.utcnow().isoformat(),
                "level": logging.getLevelName(level),
                "message": message,
                "service": self.logger.name
            }
            log_data.update(kwargs)

            self.logger.log(level, json.dumps(log_data, default=str))

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._log_structured(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._log_structured(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._log_structured(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message."""
        self._log_structured(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        if self.logger.isEnabledFor(logging.ERROR):
            log_data = {
                "timestamp": datetime.utcnow().isoformat(),
                "level": "ERROR",
                "message": message,
                "service": self.logger.name,
                "exception": True
            }
            log_data.update(kwargs)

            self.logger.exception(json.dumps(log_data, default=str))


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
