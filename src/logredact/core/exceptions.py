"""
Custom exceptions for LogRedact.

Provides structured error handling with stable error codes and
details (file, line, offending rule) so operators can fix a rule source.
"""

from typing import Any, Dict, Optional


class LogRedactException(Exception):
    """Base exception for LogRedact."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(LogRedactException):
    """Raised when settings do not describe a usable rule source."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            error_code="configuration_error",
            details=details,
        )


class RuleError(LogRedactException):
    """Base for all errors raised while building a redactor from rules."""

    def __init__(
        self,
        message: str,
        error_code: str,
        file: Optional[str] = None,
        line_no: Optional[int] = None,
        rule: Optional[str] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if file is not None:
            details["file"] = file
        if line_no is not None:
            details["line_no"] = line_no
        if rule is not None:
            details["rule"] = rule

        super().__init__(message=message, error_code=error_code, details=details)
        self.file = file
        self.line_no = line_no
        self.rule = rule


class MalformedRuleError(RuleError):
    """Raised when a rule does not have three parts or its regex is empty."""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line_no: Optional[int] = None,
        rule: Optional[str] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="malformed_rule",
            file=file,
            line_no=line_no,
            rule=rule,
        )


class InvalidPatternError(RuleError):
    """Raised when the regex (or its mask template) is rejected by ``re``."""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line_no: Optional[int] = None,
        rule: Optional[str] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="invalid_pattern",
            file=file,
            line_no=line_no,
            rule=rule,
        )


class RuleSourceNotFoundError(RuleError):
    """Raised when the rule file cannot be opened."""

    def __init__(self, message: str, file: Optional[str] = None) -> None:
        super().__init__(
            message=message,
            error_code="rule_source_not_found",
            file=file,
        )


class RuleSourceReadError(RuleError):
    """Raised when reading an opened rule file fails."""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line_no: Optional[int] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="rule_source_read_error",
            file=file,
            line_no=line_no,
        )
