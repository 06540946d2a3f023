"""
Logging integration.

Puts a StringRedactor in front of stdlib logging handlers and structlog
so messages are redacted before they reach any output.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, MutableMapping, Optional, Set, Tuple

import structlog

from .redactor import StringRedactor

logger = structlog.get_logger(__name__)


class RedactorFilter(logging.Filter):
    """
    Filter that rewrites a record's message with its redacted form.

    Records are never dropped. When no rule fires the record is left
    untouched, including its ``args``.

    A record is shared by every handler it reaches, so it is redacted once:
    the first filter sets ``record.redacted`` (and ``record.exc_redacted``
    for exception text) and later filters leave those parts alone.
    """

    def __init__(self, redactor: StringRedactor, redact_exceptions: bool = False) -> None:
        super().__init__()
        self.redactor = redactor
        self.redact_exceptions = redact_exceptions

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "redacted", False):
            redacted = self.redactor.redact(record.getMessage())
            if redacted is not None:
                record.msg = redacted
                record.args = None
            record.redacted = True

        if (
            self.redact_exceptions
            and record.exc_info
            and not getattr(record, "exc_redacted", False)
        ):
            if not record.exc_text:
                record.exc_text = logging.Formatter().formatException(record.exc_info)
            redacted_exc = self.redactor.redact(record.exc_text)
            if redacted_exc is not None:
                record.exc_text = redacted_exc
            record.exc_redacted = True

        return True


def _all_loggers() -> List[logging.Logger]:
    loggers = [logging.getLogger()]
    loggers.extend(
        existing
        for existing in logging.Logger.manager.loggerDict.values()
        if isinstance(existing, logging.Logger)
    )
    return loggers


def wrap_handlers(
    redactor: StringRedactor,
    handler_names: Optional[Iterable[str]] = None,
    target: Optional[logging.Logger] = None,
    redact_exceptions: bool = False,
) -> int:
    """
    Attach a RedactorFilter to logging handlers.

    Args:
        redactor: Redactor shared by all attached filters
        handler_names: Names of the handlers to wrap; None wraps every handler
        target: Only wrap handlers of this logger; None means the root
            logger and every logger created so far
        redact_exceptions: Also redact formatted exception text

    Returns:
        Number of handlers that received a filter
    """
    names: Optional[Set[str]] = None
    if handler_names is not None:
        names = {name.strip() for name in handler_names if name.strip()}

    loggers = [target] if target is not None else _all_loggers()
    redactor_filter = RedactorFilter(redactor, redact_exceptions=redact_exceptions)
    wrapped = 0

    for current in loggers:
        for handler in current.handlers:
            if names is not None and handler.name not in names:
                continue
            # A handler may be attached to several loggers
            if any(isinstance(f, RedactorFilter) for f in handler.filters):
                continue
            handler.addFilter(redactor_filter)
            wrapped += 1

    logger.info("Logging handlers wrapped for redaction", handlers=wrapped)
    return wrapped


def redaction_processor(
    redactor: StringRedactor,
) -> Callable[[Any, str, MutableMapping[str, Any]], MutableMapping[str, Any]]:
    """Build a structlog processor that redacts the ``event`` message."""

    def processor(
        _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event = event_dict.get("event")
        if isinstance(event, str):
            redacted = redactor.redact(event)
            if redacted is not None:
                event_dict["event"] = redacted
        return event_dict

    return processor


def mark_redacted(
    _logger: Any, _method_name: str, rendered: str
) -> Tuple[Tuple[str], Dict[str, Any]]:
    """
    Final structlog step after the renderer when ``redaction_processor`` ran.

    Passes the rendered line to the stdlib logger with ``redacted`` set on
    the record, so wrapped handlers do not apply the rules a second time.
    """
    return (rendered,), {"extra": {"redacted": True}}
