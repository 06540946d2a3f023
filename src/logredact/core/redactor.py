"""
String redaction engine.

Applies ``trigger::regex::mask`` rules to messages. The rule set is shared
read-only by every thread; each thread lazily builds its own MatchContext
(one stateful matcher per rule) and reuses it for all later calls, so the
redact path takes no locks and does no I/O.
"""

import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

import structlog

from .exceptions import RuleError
from .loaders import load_json_rule_file, load_rule_file, load_rule_string
from .metrics import MetricsCollector
from .rules import Rule, RuleSet

logger = structlog.get_logger(__name__)

_CREATE_KEY = object()


class RuleMatcher:
    """Match state for one rule. Owned by a single thread."""

    __slots__ = ("rule", "subject", "match")

    def __init__(self, rule: Rule) -> None:
        self.rule = rule
        self.subject = ""
        self.match = None

    def reset(self, subject: str) -> "RuleMatcher":
        self.subject = subject
        self.match = None
        return self

    def find(self) -> bool:
        """Search the current subject for the rule's pattern."""
        self.match = self.rule.pattern.search(self.subject)
        return self.match is not None

    def replace_all(self) -> str:
        """Replace every non-overlapping match in the subject with the mask."""
        return self.rule.pattern.sub(self.rule.mask, self.subject)


class MatchContext:
    """Per-thread matchers, grouped and ordered exactly like the rule set."""

    def __init__(self, rule_set: RuleSet) -> None:
        self.groups: List[Tuple[str, List[RuleMatcher]]] = [
            (trigger, [RuleMatcher(rule) for rule in rules])
            for trigger, rules in rule_set
        ]
        self.thread_name = threading.current_thread().name


class StringRedactor:
    """
    Redacts strings according to a fixed rule set.

    Build instances with the factories; the constructor is not public:

        redactor = StringRedactor.create_from_string(
            "SSN::\\d{3}-\\d{2}-\\d{4}::XXX-XX-XXXX||password=::password=\\S+::password=****"
        )
        redactor.redact("SSN: 123-45-6789")   # "SSN: XXX-XX-XXXX"
        redactor.redact("nothing here")       # None

    Thread Safety:
        ``redact`` may be called from any number of threads at once.
    """

    def __init__(
        self,
        rule_set: RuleSet,
        metrics: Optional[MetricsCollector] = None,
        *,
        _key: object = None,
    ) -> None:
        if _key is not _CREATE_KEY:
            raise TypeError(
                "StringRedactor cannot be instantiated directly, use "
                "create_from_file(), create_from_string() or create_from_json_file()"
            )
        self._rule_set = rule_set
        self._metrics = metrics
        self._local = threading.local()

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    @classmethod
    def create_from_file(
        cls,
        path: Union[str, Path],
        metrics: Optional[MetricsCollector] = None,
    ) -> "StringRedactor":
        """
        Create a redactor from a file with one ``trigger::regex::mask`` rule per line.

        Raises:
            RuleSourceNotFoundError: If the file cannot be opened
            RuleSourceReadError: If reading the file fails
            MalformedRuleError: If a line is not a valid rule
            InvalidPatternError: If a regex or mask does not compile
        """
        return cls._create(str(path), lambda: load_rule_file(path), metrics)

    @classmethod
    def create_from_string(
        cls,
        rules: str,
        metrics: Optional[MetricsCollector] = None,
    ) -> "StringRedactor":
        """
        Create a redactor from one string of ``||`` separated rules.

        Raises:
            MalformedRuleError: If a rule is not valid
            InvalidPatternError: If a regex or mask does not compile
        """
        return cls._create("<string>", lambda: load_rule_string(rules), metrics)

    @classmethod
    def create_from_json_file(
        cls,
        path: Union[str, Path],
        metrics: Optional[MetricsCollector] = None,
    ) -> "StringRedactor":
        """
        Create a redactor from a JSON rule file.

        Raises:
            RuleSourceNotFoundError: If the file cannot be opened
            RuleSourceReadError: If reading the file fails
            MalformedRuleError: If the file is not a valid rule file
            InvalidPatternError: If a regex or mask does not compile
        """
        return cls._create(str(path), lambda: load_json_rule_file(path), metrics)

    @classmethod
    def _create(
        cls,
        source: str,
        loader: Callable[[], RuleSet],
        metrics: Optional[MetricsCollector],
    ) -> "StringRedactor":
        try:
            rule_set = loader()
        except RuleError as e:
            logger.error(
                "Failed to load redaction rules",
                source=source,
                error=str(e),
                error_code=e.error_code,
            )
            if metrics:
                metrics.record_load_error(e.error_code)
            raise

        logger.info(
            "Redaction rules loaded",
            source=source,
            triggers=len(rule_set.triggers),
            rules=len(rule_set),
        )
        if metrics:
            metrics.record_rules_loaded(source, len(rule_set))

        return cls(rule_set, metrics, _key=_CREATE_KEY)

    def _match_context(self) -> MatchContext:
        """Return this thread's MatchContext, building it on first use."""
        context = getattr(self._local, "context", None)
        if context is None:
            context = MatchContext(self._rule_set)
            self._local.context = context
            logger.debug(
                "Match context created",
                thread=context.thread_name,
                rules=len(self._rule_set),
            )
        return context

    def redact(self, message: str) -> Optional[str]:
        """
        Apply every rule whose trigger occurs in the message.

        Rules run in rule set order against the progressively redacted
        message: a mask can remove the trigger of a later rule, or
        introduce it.

        Args:
            message: Text to redact

        Returns:
            The redacted message, or None when no rule fired
        """
        context = self._match_context()
        metrics = self._metrics
        matched = False
        # Only tracked for metrics
        fired: Optional[List[str]] = [] if metrics is not None else None

        for trigger, matchers in context.groups:
            for matcher in matchers:
                if not matcher.rule.has_trigger(message):
                    continue
                matcher.reset(message)
                if matcher.find():
                    message = matcher.replace_all()
                    matched = True
                    if fired is not None:
                        fired.append(trigger)

        if metrics is not None and fired is not None:
            metrics.record_redaction(fired)

        return message if matched else None

    def __repr__(self) -> str:
        return f"<StringRedactor triggers={len(self._rule_set.triggers)} rules={len(self._rule_set)}>"
