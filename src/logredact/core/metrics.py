"""
Prometheus metrics collection.

In-memory counters for rule loading and redaction outcomes.
"""

from functools import lru_cache
from typing import List, Optional

import structlog
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Info

from .. import __version__

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for LogRedact.

    Pass a dedicated ``CollectorRegistry`` when more than one collector
    lives in the same process (tests, several redactors).
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else REGISTRY

        self.service_info = Info(
            "logredact",
            "LogRedact library information",
            registry=self.registry,
        )
        self.service_info.info({"version": __version__})

        # Rule loading metrics
        self.rules_loaded = Gauge(
            "redaction_rules_loaded",
            "Number of redaction rules compiled by the last successful load",
            ["source"],
            registry=self.registry,
        )

        self.rule_load_errors_total = Counter(
            "rule_load_errors_total",
            "Total failed attempts to build a redactor",
            ["error_code"],
            registry=self.registry,
        )

        # Redaction metrics
        self.redaction_calls_total = Counter(
            "redaction_calls_total",
            "Total redact() calls",
            ["outcome"],
            registry=self.registry,
        )

        self.redactions_total = Counter(
            "redactions_total",
            "Total rule firings",
            ["trigger"],
            registry=self.registry,
        )

    def record_rules_loaded(self, source: str, rule_count: int) -> None:
        """Record a successful rule load."""
        self.rules_loaded.labels(source=source).set(rule_count)

    def record_load_error(self, error_code: str) -> None:
        """Record a failed rule load."""
        self.rule_load_errors_total.labels(error_code=error_code).inc()

    def record_redaction(self, fired_triggers: List[str]) -> None:
        """Record one redact() call and the triggers of the rules that fired."""
        outcome = "redacted" if fired_triggers else "unchanged"
        self.redaction_calls_total.labels(outcome=outcome).inc()

        for trigger in fired_triggers:
            # Empty triggers would make an unreadable label
            self.redactions_total.labels(trigger=trigger or "<any>").inc()


@lru_cache()
def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector on the default registry, created once."""
    return MetricsCollector()
