"""
LogRedact - rule driven redaction of log messages

Applies trigger::regex::mask rules to strings, with a cheap substring
pre-check per rule, per-thread match state and logging integration.
"""

__version__ = "0.1.0"

from .core.exceptions import (
    ConfigurationError,
    InvalidPatternError,
    LogRedactException,
    MalformedRuleError,
    RuleError,
    RuleSourceNotFoundError,
    RuleSourceReadError,
)
from .core.policy import RedactorFilter, redaction_processor, wrap_handlers
from .core.redactor import StringRedactor
from .core.rules import Rule, RuleSet

__all__ = [
    "StringRedactor",
    "Rule",
    "RuleSet",
    "RedactorFilter",
    "redaction_processor",
    "wrap_handlers",
    "LogRedactException",
    "ConfigurationError",
    "RuleError",
    "MalformedRuleError",
    "InvalidPatternError",
    "RuleSourceNotFoundError",
    "RuleSourceReadError",
]
