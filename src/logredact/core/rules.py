"""
Rule parsing and the immutable rule set.

A rule is one ``trigger::regex::mask`` triple. Rules are grouped by
trigger; groups keep the order in which their trigger was first seen and
rules keep the order in which they were added, which is the order the
redactor applies them in.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import structlog

from .exceptions import InvalidPatternError, MalformedRuleError

logger = structlog.get_logger(__name__)

FIELD_DELIMITER = "::"
RULE_SEPARATOR = "||"


@dataclass(frozen=True)
class Rule:
    """One compiled redaction rule."""
    trigger: str
    pattern: "re.Pattern[str]"
    mask: str
    case_sensitive: bool = True

    def has_trigger(self, message: str) -> bool:
        """Cheap substring pre-check done before any regex work."""
        if self.case_sensitive:
            return self.trigger in message
        return self.trigger.lower() in message.lower()


class RuleSet:
    """
    Read-only mapping of trigger -> rules sharing that trigger.

    Built once through a RuleSetBuilder and never mutated afterwards,
    so it can be shared between threads without locking.
    """

    def __init__(self, groups: Dict[str, Tuple[Rule, ...]]) -> None:
        self._groups = dict(groups)

    def __iter__(self) -> Iterator[Tuple[str, Tuple[Rule, ...]]]:
        return iter(self._groups.items())

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._groups.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleSet):
            return NotImplemented
        return list(self._groups.items()) == list(other._groups.items())

    def __repr__(self) -> str:
        return f"<RuleSet triggers={len(self._groups)} rules={len(self)}>"

    @property
    def triggers(self) -> List[str]:
        return list(self._groups)

    def rules_for(self, trigger: str) -> Tuple[Rule, ...]:
        return self._groups.get(trigger, ())


class RuleSetBuilder:
    """Accumulates compiled rules until ``build()`` freezes them."""

    def __init__(self) -> None:
        self._groups: Dict[str, List[Rule]] = {}

    def add(
        self,
        trigger: str,
        regex: str,
        mask: str,
        case_sensitive: bool = True,
        file: Optional[str] = None,
        line_no: Optional[int] = None,
        rule: Optional[str] = None,
    ) -> Rule:
        """
        Compile one rule and append it to its trigger's group.

        Raises:
            InvalidPatternError: If ``re`` rejects the regex or the mask template
        """
        where = _where(file, line_no)
        flags = 0 if case_sensitive else re.IGNORECASE

        try:
            pattern = re.compile(regex, flags)
        except re.error as e:
            raise InvalidPatternError(
                f"Invalid rule{where}, regex does not compile ({e}): {rule or regex}",
                file=file,
                line_no=line_no,
                rule=rule,
            ) from e

        # Template errors (bad escapes, unknown groups) surface before matching
        try:
            pattern.sub(mask, "")
        except (re.error, IndexError) as e:
            raise InvalidPatternError(
                f"Invalid rule{where}, mask is not a valid replacement ({e}): {rule or mask}",
                file=file,
                line_no=line_no,
                rule=rule,
            ) from e

        compiled = Rule(
            trigger=trigger,
            pattern=pattern,
            mask=mask,
            case_sensitive=case_sensitive,
        )
        self._groups.setdefault(trigger, []).append(compiled)
        logger.debug("Rule compiled", trigger=trigger, file=file, line_no=line_no)
        return compiled

    def build(self) -> RuleSet:
        return RuleSet({trigger: tuple(rules) for trigger, rules in self._groups.items()})

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._groups.values())


def _where(file: Optional[str], line_no: Optional[int]) -> str:
    if file is None:
        return ""
    if line_no is None:
        return f" in file {file}"
    return f" at line {line_no} in file {file}"


def parse_rule(
    builder: RuleSetBuilder,
    line: str,
    file: Optional[str] = None,
    line_no: Optional[int] = None,
) -> Rule:
    """
    Parse one ``trigger::regex::mask`` line into the builder.

    Only the first two delimiters split the line, so the mask may
    itself contain ``::``.

    Args:
        builder: Rule set under construction
        line: Raw rule text
        file: Source file, used for error messages only
        line_no: 0-based line index in ``file``

    Raises:
        MalformedRuleError: If the rule lacks three parts or its regex is empty
        InvalidPatternError: If the regex or mask is rejected by ``re``
    """
    rule = line.strip()
    parts = rule.split(FIELD_DELIMITER, 2)
    where = _where(file, line_no)

    if len(parts) != 3:
        raise MalformedRuleError(
            f"Invalid rule{where}, it should have 3 parts: {rule}",
            file=file,
            line_no=line_no,
            rule=rule,
        )

    trigger, regex, mask = parts
    if not regex:
        raise MalformedRuleError(
            f"Invalid rule{where}, regex cannot be empty: {rule}",
            file=file,
            line_no=line_no,
            rule=rule,
        )

    return builder.add(trigger, regex, mask, file=file, line_no=line_no, rule=rule)


def split_rules(rules: str) -> List[str]:
    """Split a ``||`` separated rule string, dropping blank segments."""
    return [segment for segment in rules.strip().split(RULE_SEPARATOR) if segment.strip()]
