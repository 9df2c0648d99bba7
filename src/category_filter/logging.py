"""Structured logging configuration for the category filter.

Log records carry up to three context fields, attached either through
``extra`` or through a context adapter from ``get_logger(...).with_context``:

- ``session_id``: the filter session a record belongs to
- ``category``: the category a command touched
- ``storage_key``: the catalog's storage key

Debug records may also carry a ``diagnostic_tag`` (``parser``, ``state``,
...). Tagged debug output is off unless the tag is enabled through
``CATEGORY_FILTER_DIAGNOSTIC_TAGS``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import MutableMapping
from datetime import UTC, datetime
from typing import Any

# Context attributes rendered by both formatters, in output order.
CONTEXT_FIELDS = ("session_id", "category", "storage_key")


def _component(record: logging.LogRecord) -> str:
    """Last dotted part of the logger name ("category_filter.catalog" -> "catalog")."""
    return record.name.rsplit(".", 1)[-1]


def _context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields present on ``record``."""
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class DiagnosticFilter(logging.Filter):
    """Handler filter that gates tagged DEBUG records.

    A DEBUG record with a ``diagnostic_tag`` attribute passes only if its tag
    is enabled (or ``"*"`` is). Untagged records and records above DEBUG
    always pass.

    Attributes:
        enabled_tags: Tags allowed through.
        allow_all: True when ``"*"`` is among the enabled tags.
    """

    def __init__(self, enabled_tags: frozenset[str] | None = None) -> None:
        super().__init__()
        self.enabled_tags: frozenset[str] = enabled_tags or frozenset()
        self.allow_all: bool = "*" in self.enabled_tags

    def filter(self, record: logging.LogRecord) -> bool:
        tag: str | None = getattr(record, "diagnostic_tag", None)
        if record.levelno != logging.DEBUG or tag is None:
            return True
        return self.allow_all or tag in self.enabled_tags

    @classmethod
    def from_config_string(cls, tags_csv: str) -> DiagnosticFilter:
        """Build a filter from a comma-separated tag list such as ``"parser, state"``.

        Whitespace around tags is ignored; an empty string enables nothing.
        """
        return cls(frozenset(tag.strip() for tag in tags_csv.split(",") if tag.strip()))


class StructuredFormatter(logging.Formatter):
    """Single-line human-readable format.

    Example:
        2024-05-01 12:00:00.123 [INFO    ] [catalog   ] [storage_key=category-filter.categories] Added category Nightly
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).strftime(
            "%Y-%m-%d %H:%M:%S.%f"
        )[:-3]
        parts = [timestamp, f"[{record.levelname:8}]", f"[{_component(record):10}]"]

        context = _context(record)
        if context:
            parts.append("[" + " ".join(f"{key}={value}" for key, value in context.items()) + "]")

        parts.append(record.getMessage())
        if record.exc_info:
            parts.append(self.formatException(record.exc_info))
        return " ".join(parts)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class ContextAdapter(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that stamps fixed context fields on every record.

    Usage:
        ctx_logger = get_logger(__name__).with_context(session_id="3f2a")
        ctx_logger.info("Category toggled", extra={"category": "Smoke"})
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **(self.extra or {})}
        return msg, kwargs


class CategoryFilterLogger(logging.Logger):
    """Logger class installed for the package, adding ``with_context``."""

    def with_context(self, **context: Any) -> ContextAdapter:
        """Return an adapter adding ``context`` to every record.

        Raises:
            ValueError: If a field is not one of CONTEXT_FIELDS; formatters
                would silently drop it.
        """
        unknown = sorted(set(context) - set(CONTEXT_FIELDS))
        if unknown:
            raise ValueError(f"Unknown log context fields: {', '.join(unknown)}")
        return ContextAdapter(self, context)


logging.setLoggerClass(CategoryFilterLogger)


def get_logger(name: str) -> CategoryFilterLogger:
    """Get a package logger (typically ``get_logger(__name__)``)."""
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    replace_handlers: bool = True,
    diagnostic_tags: str = "",
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR). Unknown
            levels fall back to INFO.
        json_format: If True, output JSON-formatted logs.
        replace_handlers: If True, remove existing root handlers first.
            Set to False to preserve existing handlers (e.g., from uvicorn).
        diagnostic_tags: Comma-separated diagnostic tags to enable, or ``"*"``.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if json_format else StructuredFormatter())
    handler.addFilter(DiagnosticFilter.from_config_string(diagnostic_tags))

    root_logger = logging.getLogger()
    if replace_handlers:
        for existing in root_logger.handlers[:]:
            root_logger.removeHandler(existing)
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    logging.getLogger("category_filter").setLevel(numeric_level)


__all__ = [
    "CONTEXT_FIELDS",
    "CategoryFilterLogger",
    "ContextAdapter",
    "DiagnosticFilter",
    "JSONFormatter",
    "StructuredFormatter",
    "get_logger",
    "setup_logging",
]
