"""
Bootstrap entry points.

Builds a StringRedactor from settings and installs it into stdlib
logging and structlog.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

import structlog

from .config import Settings, get_settings
from .core.exceptions import ConfigurationError
from .core.metrics import MetricsCollector, get_metrics_collector
from .core.policy import mark_redacted, redaction_processor, wrap_handlers
from .core.redactor import StringRedactor


def configure_logging(
    log_level: str = "INFO",
    redactor: Optional[StringRedactor] = None,
) -> None:
    """Configure structured logging, redacting event messages when a redactor is given."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    processors: List[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]
    if redactor is not None:
        # After positional args are merged into the event, before rendering
        processors.append(redaction_processor(redactor))
    processors.extend([
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ])
    if redactor is not None:
        processors.append(mark_redacted)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_redactor(
    settings: Optional[Settings] = None,
    metrics: Optional[MetricsCollector] = None,
) -> StringRedactor:
    """
    Create a redactor from the configured rule source.

    An explicit ``rules_file`` wins; otherwise ``rules`` is a file path
    when it starts with '/' and an inline '||' rule string when not.

    Raises:
        ConfigurationError: If no rule source is configured
        RuleError: If the rule source cannot be loaded
    """
    settings = settings or get_settings()
    rules = settings.rules

    rule_file: Optional[Path] = rules.rules_file
    if rule_file is None and rules.rules.startswith("/"):
        rule_file = Path(rules.rules)

    if rule_file is not None:
        rules_format = rules.rules_format
        if rules_format == "auto":
            rules_format = "json" if rule_file.suffix.lower() == ".json" else "lines"
        if rules_format == "json":
            return StringRedactor.create_from_json_file(rule_file, metrics=metrics)
        return StringRedactor.create_from_file(rule_file, metrics=metrics)

    if rules.rules:
        return StringRedactor.create_from_string(rules.rules, metrics=metrics)

    raise ConfigurationError(
        "No redaction rules configured",
        details={"env": ["LOGREDACT_RULES_RULES", "LOGREDACT_RULES_RULES_FILE"]},
    )


def install(
    settings: Optional[Settings] = None,
    metrics: Optional[MetricsCollector] = None,
) -> StringRedactor:
    """
    Build the configured redactor and put it in front of logging output.

    Args:
        settings: Settings to use; defaults to the cached process settings
        metrics: Collector to record into; defaults to the process-wide
            collector when metrics are enabled

    Returns:
        The installed redactor
    """
    settings = settings or get_settings()
    if metrics is None and settings.metrics_enabled:
        metrics = get_metrics_collector()
    redactor = create_redactor(settings, metrics=metrics)

    configure_logging(
        settings.log_level,
        redactor if settings.logging.redact_structlog else None,
    )
    wrap_handlers(
        redactor,
        settings.logging.handler_names,
        redact_exceptions=settings.logging.redact_exceptions,
    )
    return redactor
