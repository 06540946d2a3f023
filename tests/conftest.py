"""
Pytest configuration and shared fixtures.

Contains common rule sources and helpers for all test modules.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pytest
from prometheus_client import CollectorRegistry

from logredact.core.metrics import MetricsCollector


SAMPLE_RULES = [
    "SSN::\\d{3}-\\d{2}-\\d{4}::XXX-XX-XXXX",
    "password=::password=\\S+::password=********",
    "::\\b\\d{16}\\b::[CARD]",
    "@::[\\w.+-]+@[\\w-]+\\.[\\w.]+::<email>",
]


@pytest.fixture
def sample_rules() -> List[str]:
    """Rule lines in trigger::regex::mask form."""
    return list(SAMPLE_RULES)


@pytest.fixture
def rules_string(sample_rules: List[str]) -> str:
    """The sample rules as one '||' separated string."""
    return "||".join(sample_rules)


@pytest.fixture
def rule_file(tmp_path: Path, sample_rules: List[str]) -> Path:
    """The sample rules written one per line."""
    path = tmp_path / "redaction.rules"
    path.write_text("\n".join(sample_rules) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def json_rule_file(tmp_path: Path) -> Path:
    """JSON rule file equivalent to the sample rules."""
    content: Dict[str, Any] = {
        "version": 1,
        "rules": [
            {
                "description": "US social security numbers",
                "trigger": "SSN",
                "search": "\\d{3}-\\d{2}-\\d{4}",
                "replace": "XXX-XX-XXXX",
            },
            {
                "trigger": "password=",
                "search": "password=\\S+",
                "caseSensitive": True,
                "replace": "password=********",
            },
            {
                "search": "\\b\\d{16}\\b",
                "replace": "[CARD]",
            },
            {
                "trigger": "@",
                "search": "[\\w.+-]+@[\\w-]+\\.[\\w.]+",
                "replace": "<email>",
            },
        ],
    }
    path = tmp_path / "redaction.json"
    path.write_text(json.dumps(content, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    """Metrics collector bound to an isolated registry."""
    return MetricsCollector(registry=registry)


class CollectingHandler(logging.Handler):
    """Handler that keeps every record it emits."""

    def __init__(self, name: str = "collector") -> None:
        super().__init__()
        self.set_name(name)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def collecting_logger():
    """Isolated logger with one collecting handler, removed after the test."""
    test_logger = logging.getLogger("logredact.tests.collecting")
    test_logger.setLevel(logging.DEBUG)
    test_logger.propagate = False
    handler = CollectingHandler()
    test_logger.addHandler(handler)
    yield test_logger, handler
    test_logger.removeHandler(handler)


@pytest.fixture
def other_handler() -> CollectingHandler:
    """A second collecting handler with a different name."""
    return CollectingHandler(name="other")
