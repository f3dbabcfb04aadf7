"""Logging setup for the summarizer client.

Interactive runs log plain text to stderr. With ``SUMMARIZER_LOG_JSON`` set,
each record becomes one python-json-logger object so CLI runs can be piped
into a log collector.
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

_JSON_FIELDS = "%(message)s %(name)s %(funcName)s %(lineno)d"
_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d  %(message)s"


class SeverityJsonFormatter(JsonFormatter):
    """Emit the level as ``severity`` and the logger name as ``logger``."""

    def __init__(self) -> None:
        super().__init__(fmt=_JSON_FIELDS, rename_fields={"name": "logger"})

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.pop("levelname", None)
        log_record["severity"] = record.levelname


def _make_formatter(json: bool) -> logging.Formatter:
    if json:
        return SeverityJsonFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S")


def setup_logging(*, level: str = "INFO", json: bool = False) -> None:
    """Route all client logging through one stderr handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(_make_formatter(json))
    root.handlers[:] = [handler]

    # Request lines include pre-signed storage URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
