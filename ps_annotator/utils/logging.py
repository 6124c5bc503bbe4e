"""Logging setup for the PowerShell function annotator.

Log records go to stdout and, if configured, to a UTF-8 log file.
Gemini API keys are masked in every record before it is written. A
configured endpoint may carry the key as a ``key=`` query parameter,
and ``requests`` quotes the full URL in its HTTP errors.
"""

import logging
import re
import sys
from typing import Optional

LOGGER_NAME = "ps_annotator"

API_KEY_PATTERN = re.compile(r"AIza[0-9A-Za-z_-]{35}")
REDACTED = "AIza***"


def redact_api_keys(text: str) -> str:
    """Replace anything shaped like a Google API key with a mask."""
    return API_KEY_PATTERN.sub(REDACTED, text)


class ApiKeyRedactingFilter(logging.Filter):
    """Mask Google API keys in log messages and their arguments.

    The record is rewritten in place and always passed through.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_api_keys(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: str = "INFO",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger.

    Handlers left over from an earlier call are closed first, so a
    second call replaces the configuration rather than doubling every
    line. Loggers under ``ps_annotator.`` propagate here.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_format: Format string for log messages.
        log_file: Also append to this file when set.

    Returns:
        The ``ps_annotator`` logger.
    """
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        handler.close()
    package_logger.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    package_logger.setLevel(numeric_level)

    formatter = logging.Formatter(log_format)
    redactor = ApiKeyRedactingFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        package_logger.addHandler(handler)

    package_logger.debug("Logging initialized at level %s", level)
    return package_logger
