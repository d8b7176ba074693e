"""Logging for docdigest runs: JSON lines on disk, plain text on stderr.

``setup_logging()`` wires the root logger once per process:

    * ``<log_dir>/docdigest.log`` -- one JSON object per record, rotated by
      size, everything from DEBUG up.  Fields: timestamp, component, level,
      message, plus any ``extra=`` keys.
    * stderr -- short human-readable lines, INFO and up by default.  stdout is
      left alone because the CLI prints the run report there.

Both handlers carry a ``SecretFilter`` that masks configured secrets (the
notification webhook URL) wherever they appear in a rendered message.
Modules log through ``logging.getLogger(__name__)`` and never configure
handlers themselves.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from collections.abc import Iterable
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

LOG_FILENAME = "docdigest.log"
REDACTED = "<redacted>"

_JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s"
_JSON_RENAMES = {"asctime": "timestamp", "levelname": "level", "name": "component"}
_CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"

# pdfminer floods DEBUG with per-object parser traces; httpx/httpcore log
# full request URLs at INFO, and a webhook URL embeds its credential
_QUIET_LOGGERS = ("pdfminer", "httpcore", "httpx")


class SecretFilter(logging.Filter):
    """Replace secret substrings in log messages with ``<redacted>``."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = [s for s in secrets if s and s.strip()]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, REDACTED)
        if masked != message:
            # Freeze the masked text; args are already merged into it
            record.msg = masked
            record.args = None
        return True


def _file_handler(
    log_file: Path,
    level: int,
    max_bytes: int,
    backup_count: int,
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        JsonFormatter(
            fmt=_JSON_FIELDS,
            rename_fields=_JSON_RENAMES,
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def setup_logging(
    log_dir: str | Path = "logs",
    log_level_file: int = logging.DEBUG,
    log_level_console: int = logging.INFO,
    max_bytes: int = 10_485_760,  # 10MB
    backup_count: int = 5,
    secrets: Iterable[str] = (),
) -> Path:
    """Install the file and console handlers on the root logger.

    Safe to call more than once: handlers from an earlier call are closed
    and replaced rather than stacked.

    Args:
        log_dir: Directory for ``docdigest.log``; created if missing.
        log_level_file: Minimum level written to the JSON file.
        log_level_console: Minimum level written to stderr.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files kept next to the active one.
        secrets: Strings masked in every message (e.g. the webhook URL).

    Returns:
        Path of the active JSON log file.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILENAME

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(min(log_level_file, log_level_console))

    secret_filter = SecretFilter(secrets)
    for handler in (
        _file_handler(log_file, log_level_file, max_bytes, backup_count),
        _console_handler(log_level_console),
    ):
        handler.addFilter(secret_filter)
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
