"""Validator rules for fieldcheck.

A rule is a pure callable taking a field value and returning ``True`` when
the value passes. Any other return value is a failure and is stored verbatim
as the rule's message in the field's error state. Rules must not mutate the
value, must be deterministic and must not raise; a rule that raises is a bug,
reported to the caller as RuleExecutionError.

This module provides the rule evaluation contract and a set of canned rule
factories. Canned rules other than ``required`` pass on ``None``, so a field
is optional unless it declares ``required``.

Examples:
    >>> rule = min_length(3)
    >>> rule("abcd")
    True
    >>> rule("ab")
    'Must have a length of at least 3'
"""

import re
from collections.abc import Sized
from datetime import date
from typing import Any, Collection, Dict, Optional, Pattern, Union

from dateutil import parser as date_parser
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from fieldcheck.errors import RuleExecutionError
from fieldcheck.types import Rule, RuleResult


def evaluate_rule(field_name: str, rule_name: str, rule: Rule, value: Any) -> RuleResult:
    """Run a single rule against a value.

    Args:
        field_name: Name of the field being validated (for error reporting)
        rule_name: Name of the rule being run
        rule: The rule callable
        value: The field's current value

    Returns:
        ``True`` if the rule passed, otherwise the failure message

    Raises:
        RuleExecutionError: If the rule itself raises
    """
    try:
        return rule(value)
    except Exception as exc:
        raise RuleExecutionError(field_name, rule_name, exc) from exc


def passed(result: RuleResult) -> bool:
    """Only the identity ``True`` counts as a pass."""
    return result is True


def rule_name(rule: Rule) -> str:
    """Derive the name of a rule declared without an explicit name.

    Raises:
        ValueError: If the callable has no usable ``__name__`` (e.g. a lambda)
    """
    name = getattr(rule, "__name__", None)
    if not name or name == "<lambda>":
        raise ValueError(
            f"Cannot derive a name for rule {rule!r}; declare it in a mapping instead"
        )
    return name


def _named(name: str, rule: Rule) -> Rule:
    rule.__name__ = name
    rule.__qualname__ = name
    return rule


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def required(message: str = "This field is required") -> Rule:
    """Fail on ``None``, blank strings and empty collections."""

    def check(value: Any) -> RuleResult:
        return True if not _is_empty(value) else message

    return _named("required", check)


def min_length(limit: int, message: Optional[str] = None) -> Rule:
    """Require ``len(value) >= limit``.

    Works on strings and sequences alike, which makes it the cardinality rule
    for associations.
    """
    message = message or f"Must have a length of at least {limit}"

    def check(value: Any) -> RuleResult:
        if value is None:
            return True
        return True if len(value) >= limit else message

    return _named("min_length", check)


def max_length(limit: int, message: Optional[str] = None) -> Rule:
    """Require ``len(value) <= limit``."""
    message = message or f"Must have a length of at most {limit}"

    def check(value: Any) -> RuleResult:
        if value is None:
            return True
        return True if len(value) <= limit else message

    return _named("max_length", check)


def matches(pattern: Union[str, Pattern[str]], message: Optional[str] = None) -> Rule:
    """Require a string value to fully match a regular expression."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    message = message or f"Must match pattern: {compiled.pattern}"

    def check(value: Any) -> RuleResult:
        if value is None:
            return True
        if not isinstance(value, str):
            return message
        return True if compiled.fullmatch(value) else message

    return _named("matches", check)


def one_of(choices: Collection[Any], message: Optional[str] = None) -> Rule:
    """Require the value to be one of a fixed set of choices."""
    allowed = tuple(choices)
    message = message or f"Must be one of: {', '.join(repr(c) for c in allowed)}"

    def check(value: Any) -> RuleResult:
        if value is None:
            return True
        return True if value in allowed else message

    return _named("one_of", check)


def is_date(message: str = "Must be a valid date", dayfirst: bool = False) -> Rule:
    """Require a date/datetime, or a string that python-dateutil can parse."""

    def check(value: Any) -> RuleResult:
        if value is None or isinstance(value, date):
            return True
        if not isinstance(value, str):
            return message
        try:
            date_parser.parse(value, dayfirst=dayfirst)
        except (ValueError, OverflowError):
            return message
        return True

    return _named("is_date", check)


def conforms_to(schema: Dict[str, Any], message: Optional[str] = None) -> Rule:
    """Require the value to validate against a JSON Schema (Draft 7).

    The schema is checked once, when the rule is built. On failure the rule
    returns ``message`` if given, otherwise the most relevant jsonschema
    error message.

    Raises:
        jsonschema.SchemaError: If the provided schema is invalid
    """
    Draft7Validator.check_schema(schema)
    validator = Draft7Validator(schema)

    def check(value: Any) -> RuleResult:
        if value is None:
            return True
        error = best_match(validator.iter_errors(value))
        if error is None:
            return True
        return message or error.message

    return _named("conforms_to", check)


__all__ = [
    "evaluate_rule",
    "passed",
    "rule_name",
    "required",
    "min_length",
    "max_length",
    "matches",
    "one_of",
    "is_date",
    "conforms_to",
]
