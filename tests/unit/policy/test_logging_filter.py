"""
Tests for the logging integration.

Tests RedactorFilter on stdlib handlers, handler wrapping and the
structlog processor.
"""

import logging

import pytest
import structlog

from logredact import RedactorFilter, StringRedactor, redaction_processor, wrap_handlers
from logredact.core.policy import mark_redacted
from logredact.main import configure_logging


RULES = "SSN::\\d{3}-\\d{2}-\\d{4}::XXX-XX-XXXX||Traceback::secret=\\w+::secret=***"


@pytest.fixture
def redactor() -> StringRedactor:
    return StringRedactor.create_from_string(RULES)


class TestRedactorFilter:
    """Test record rewriting."""

    def test_message_redacted(self, redactor, collecting_logger):
        """Test the formatted message is replaced by its redacted form."""
        test_logger, handler = collecting_logger
        handler.addFilter(RedactorFilter(redactor))

        test_logger.info("SSN %s on file", "123-45-6789")

        record = handler.records[0]
        assert record.getMessage() == "SSN XXX-XX-XXXX on file"
        assert record.args is None

    def test_unmatched_record_untouched(self, redactor, collecting_logger):
        """Test records without matches keep their msg and args."""
        test_logger, handler = collecting_logger
        handler.addFilter(RedactorFilter(redactor))

        test_logger.info("user %s logged in", "bob")

        record = handler.records[0]
        assert record.msg == "user %s logged in"
        assert record.args == ("bob",)

    def test_records_never_dropped(self, redactor):
        """Test the filter passes every record."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "plain", None, None)
        assert RedactorFilter(redactor).filter(record) is True

    def test_exception_text_redacted(self, redactor, collecting_logger):
        """Test formatted tracebacks are redacted when enabled."""
        test_logger, handler = collecting_logger
        handler.addFilter(RedactorFilter(redactor, redact_exceptions=True))

        try:
            raise ValueError("bad secret=hunter2")
        except ValueError:
            test_logger.exception("request failed")

        record = handler.records[0]
        assert "hunter2" not in record.exc_text
        assert "secret=***" in record.exc_text

    def test_exception_text_left_alone_by_default(self, redactor, collecting_logger):
        test_logger, handler = collecting_logger
        handler.addFilter(RedactorFilter(redactor))

        try:
            raise ValueError("bad secret=hunter2")
        except ValueError:
            test_logger.exception("request failed")

        assert handler.records[0].exc_text is None


class TestWrapHandlers:
    """Test attaching filters to existing handlers."""

    def test_wrap_named_handler(self, redactor, collecting_logger, other_handler):
        """Test only handlers with the given names are wrapped."""
        test_logger, handler = collecting_logger
        test_logger.addHandler(other_handler)
        try:
            wrapped = wrap_handlers(redactor, ["collector"], target=test_logger)
            test_logger.info("SSN 123-45-6789")
        finally:
            test_logger.removeHandler(other_handler)

        assert wrapped == 1
        assert handler.records[0].getMessage() == "SSN XXX-XX-XXXX"
        assert len(other_handler.filters) == 0

    def test_wrap_is_not_repeated(self, redactor, collecting_logger):
        """Test a handler already wrapped is skipped."""
        test_logger, handler = collecting_logger

        assert wrap_handlers(redactor, None, target=test_logger) == 1
        assert wrap_handlers(redactor, None, target=test_logger) == 0
        assert len(handler.filters) == 1

    def test_wrap_all_loggers(self, redactor, collecting_logger):
        """Test handlers on loggers other than root are found by name."""
        _test_logger, handler = collecting_logger

        assert wrap_handlers(redactor, [" collector "]) == 1
        assert isinstance(handler.filters[0], RedactorFilter)

    def test_unknown_name_wraps_nothing(self, redactor, collecting_logger):
        test_logger, _handler = collecting_logger
        assert wrap_handlers(redactor, ["missing"], target=test_logger) == 0

    @pytest.mark.parametrize("handler_names", [["collector", "other"], None])
    def test_record_redacted_once_across_handlers(
        self, collecting_logger, other_handler, handler_names
    ):
        """Test a second wrapped handler does not re-apply a non-idempotent mask."""
        test_logger, handler = collecting_logger
        growing = StringRedactor.create_from_string("x::x::xx")
        test_logger.addHandler(other_handler)
        try:
            assert wrap_handlers(growing, handler_names, target=test_logger) == 2
            test_logger.info("x")
        finally:
            test_logger.removeHandler(other_handler)

        assert [r.getMessage() for r in handler.records] == ["xx"]
        assert [r.getMessage() for r in other_handler.records] == ["xx"]

    def test_separately_wrapped_handlers_redact_once(self, collecting_logger, other_handler):
        """Test filters from separate wrap calls share the record's redacted state."""
        test_logger, handler = collecting_logger
        growing = StringRedactor.create_from_string("x::x::xx")
        test_logger.addHandler(other_handler)
        try:
            wrap_handlers(growing, ["collector"], target=test_logger)
            wrap_handlers(growing, ["other"], target=test_logger)
            test_logger.info("x")
        finally:
            test_logger.removeHandler(other_handler)

        assert handler.records[0].getMessage() == "xx"
        assert other_handler.records[0].getMessage() == "xx"

    def test_exception_text_redacted_once(self, collecting_logger, other_handler):
        test_logger, _handler = collecting_logger
        growing = StringRedactor.create_from_string("secret::secret::secret-secret")
        test_logger.addHandler(other_handler)
        try:
            wrap_handlers(growing, None, target=test_logger, redact_exceptions=True)
            try:
                raise ValueError("secret")
            except ValueError:
                test_logger.exception("failed")
        finally:
            test_logger.removeHandler(other_handler)

        exc_text = other_handler.records[0].exc_text
        assert "ValueError: secret-secret" in exc_text
        assert "secret-secret-secret" not in exc_text


class TestRedactionProcessor:
    """Test the structlog processor."""

    def test_event_redacted(self, redactor):
        processor = redaction_processor(redactor)
        event_dict = processor(None, "info", {"event": "SSN 123-45-6789", "user": "bob"})

        assert event_dict == {"event": "SSN XXX-XX-XXXX", "user": "bob"}

    def test_event_unchanged(self, redactor):
        processor = redaction_processor(redactor)
        event_dict = {"event": "nothing here"}

        assert processor(None, "info", event_dict) == {"event": "nothing here"}

    def test_non_string_event_ignored(self, redactor):
        processor = redaction_processor(redactor)
        assert processor(None, "info", {"event": 42}) == {"event": 42}

    def test_mark_redacted_sets_record_flag(self):
        args, kwargs = mark_redacted(None, "info", "line")

        assert args == ("line",)
        assert kwargs == {"extra": {"redacted": True}}


class TestStructlogThroughWrappedHandler:
    """Test structlog output passing through a wrapped stdlib handler."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_event_redacted_once(self, collecting_logger):
        test_logger, handler = collecting_logger
        growing = StringRedactor.create_from_string("x::x::xx")
        configure_logging("DEBUG", growing)
        wrap_handlers(growing, None, target=test_logger)

        structlog.get_logger(test_logger.name).info("x")

        record = handler.records[0]
        assert record.redacted is True
        assert "xx" in record.getMessage()
        assert "xxxx" not in record.getMessage()
