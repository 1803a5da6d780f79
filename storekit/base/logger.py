"""
Structured logging for Storekit.

Records are rendered as one JSON object per line. Besides the message they
carry object store context: the provider, the operation, the bucket and key,
the provider error code, and a correlation id. The correlation id is what
ties a completion logged on an SDK worker thread back to the call that
started it.

The level defaults to INFO and can be changed with ``STOREKIT_LOG_LEVEL``.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from typing import Any

_CONTEXT_FIELDS = ("correlation_id", "provider", "operation", "bucket", "key", "code")


class StructuredFormatter(logging.Formatter):
    """Render a record and its context fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in _CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            entry["exception"] = f"{type(exc).__name__}: {exc}"
        return json.dumps(entry)


class BoundLogger:
    """A :class:`StorekitLogger` with context fields filled in.

    Keyword arguments given per call override the bound ones.
    """

    def __init__(self, parent: StorekitLogger, context: dict[str, Any]) -> None:
        self._parent = parent
        self.context = context

    def bind(self, **context: Any) -> BoundLogger:
        return BoundLogger(self._parent, {**self.context, **context})

    def log_operation(self, level: int, message: str, **kwargs: Any) -> None:
        self._parent.log_operation(level, message, **{**self.context, **kwargs})

    def info(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.DEBUG, message, **kwargs)


class StorekitLogger:
    """Wrapper around :mod:`logging` that attaches object store context."""

    def __init__(self, name: str = "storekit") -> None:
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(os.environ.get("STOREKIT_LOG_LEVEL", "INFO").upper())

    def bind(self, **context: Any) -> BoundLogger:
        """Return a logger that adds *context* to every record."""
        return BoundLogger(self, context)

    def log_operation(
        self,
        level: int,
        message: str,
        *,
        provider: str | None = None,
        operation: str | None = None,
        bucket: str | None = None,
        key: str | None = None,
        code: str | None = None,
        correlation_id: str | None = None,
        exc_info: bool = False,
    ) -> None:
        """Emit one structured record.

        Args:
            level: Logging level (e.g. logging.INFO).
            message: Human-readable message.
            provider: Store provider name ('aws', 'gcp').
            operation: Store call, e.g. 'store_object_async' or 'put_bucket_acl'.
            bucket: Bucket the call targets.
            key: Object key, when the call targets an object.
            code: Provider error code, for failures.
            correlation_id: Label matching a completion to its request.
                A random one is generated when omitted.
            exc_info: Whether to include exception info.
        """
        extra = {
            "provider": provider,
            "operation": operation,
            "bucket": bucket,
            "key": key,
            "code": code,
            "correlation_id": correlation_id or uuid.uuid4().hex[:12],
        }
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.DEBUG, message, **kwargs)


sk_logger = StorekitLogger()
