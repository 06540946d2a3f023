"""
Rule source loaders.

Each loader turns one rule source into a RuleSet or raises a RuleError;
no partially built rule set ever escapes. All I/O of the library happens
here, once, at construction time.
"""

import json
from pathlib import Path
from typing import IO, Union

import structlog
from pydantic import ValidationError

from ..models.rule_file import JsonRuleFile
from .exceptions import (
    MalformedRuleError,
    RuleSourceNotFoundError,
    RuleSourceReadError,
)
from .rules import RuleSet, RuleSetBuilder, parse_rule, split_rules

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


def _open_rule_file(filename: str) -> IO[str]:
    """Open a rule file for reading or raise RuleSourceNotFoundError."""
    try:
        return open(filename, "r", encoding="utf-8")
    except OSError as e:
        raise RuleSourceNotFoundError(
            f"Invalid path in rule file: {filename} ({e.strerror or e})",
            file=filename,
        ) from e


def load_rule_file(path: PathLike) -> RuleSet:
    """
    Load ``trigger::regex::mask`` rules, one per line.

    Lines are trimmed; blank lines are skipped but still counted, so
    reported line numbers (0-based) match the file.

    Raises:
        RuleSourceNotFoundError: If the file cannot be opened
        RuleSourceReadError: If reading fails part way through
        MalformedRuleError: If a line is not a valid rule
        InvalidPatternError: If a regex or mask does not compile
    """
    filename = str(path)
    builder = RuleSetBuilder()

    with _open_rule_file(filename) as f:
        line_no = 0
        try:
            for line in f:
                rule = line.strip()
                if rule:
                    parse_rule(builder, rule, filename, line_no)
                line_no += 1
        except (OSError, UnicodeDecodeError) as e:
            raise RuleSourceReadError(
                f"Bad input in rule file {filename} at line {line_no}: {e}",
                file=filename,
                line_no=line_no,
            ) from e

    logger.debug("Rule file parsed", file=filename, lines=line_no, rules=len(builder))
    return builder.build()


def load_rule_string(rules: str) -> RuleSet:
    """
    Load rules from one ``||`` separated string.

    Raises:
        MalformedRuleError: If a segment is not a valid rule
        InvalidPatternError: If a regex or mask does not compile
    """
    builder = RuleSetBuilder()
    for segment in split_rules(rules):
        parse_rule(builder, segment)
    return builder.build()


def load_json_rule_file(path: PathLike) -> RuleSet:
    """
    Load rules from a JSON rule file.

    The file holds ``{"version": 1, "rules": [...]}`` where each rule has
    ``trigger``, ``search``, ``replace`` and optionally ``caseSensitive``
    and ``description``.

    Raises:
        RuleSourceNotFoundError: If the file cannot be opened
        RuleSourceReadError: If reading fails
        MalformedRuleError: If the content is not valid JSON or does not
            match the rule file schema
        InvalidPatternError: If a regex or mask does not compile
    """
    filename = str(path)

    with _open_rule_file(filename) as f:
        try:
            content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise RuleSourceReadError(
                f"Bad input in rule file {filename}: {e}",
                file=filename,
            ) from e

    try:
        rule_file = JsonRuleFile.model_validate(json.loads(content))
    except json.JSONDecodeError as e:
        raise MalformedRuleError(
            f"Invalid JSON at line {e.lineno - 1} in file {filename}: {e.msg}",
            file=filename,
            line_no=e.lineno - 1,
        ) from e
    except ValidationError as e:
        raise MalformedRuleError(
            f"Invalid rule file {filename}: {e.error_count()} validation error(s): "
            + "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ),
            file=filename,
        ) from e

    builder = RuleSetBuilder()
    for json_rule in rule_file.rules:
        builder.add(
            json_rule.trigger,
            json_rule.search,
            json_rule.replace,
            case_sensitive=json_rule.case_sensitive,
            file=filename,
            rule=f"{json_rule.trigger}::{json_rule.search}::{json_rule.replace}",
        )

    return builder.build()
