"""Core type definitions for fieldcheck.

This module defines the fundamental types shared by the validation engine:
- FieldState: Lifecycle states of a field's validation cache
- EventType: Audit event types for the validation event stream
- Rule / RuleResult: The validator rule contract
- ErrorState / ErrorReport: Shapes of per-field and per-model error mappings
- FieldMetadata: The dynamic, dict-based form of a field declaration
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Sequence, Union

from typing_extensions import Literal, NotRequired, TypedDict


class FieldState(str, Enum):
    """Lifecycle states of a field's cached validation outcome.

    A field starts UNVALIDATED with an empty (optimistically valid) error
    state. Validating moves it to VALIDATED. Assigning a new value to a
    validated field makes the cache STALE until the next validate call.
    """
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"
    STALE = "stale"


class EventType(str, Enum):
    """Audit event types emitted while validating models."""
    VALUE_CHANGED = "field.value_changed"
    VALIDATION_PASSED = "validation.passed"
    VALIDATION_FAILED = "validation.failed"
    MODEL_VALIDATED = "model.validated"


RuleResult = Union[Literal[True], Any]
"""A rule returns ``True`` to pass; any other value is the failure message."""

Rule = Callable[[Any], RuleResult]
"""A pure predicate over a single field value."""

Rules = Union[Mapping[str, Rule], Sequence[Rule]]
"""Rules may be declared by name or as a bare sequence of named callables."""

ErrorState = Dict[str, Any]
"""Currently failing rule names mapped to their failure messages."""

ErrorReport = Dict[str, ErrorState]
"""Field names mapped to that field's non-empty error state."""


class FieldMetadata(TypedDict):
    """Dict-based declaration of a single field.

    Examples:
        >>> metadata: FieldMetadata = {
        ...     "default": [],
        ...     "validations": {"hasAtLeastOne": lambda v: len(v) > 0 or "Need more"},
        ... }
    """
    default: NotRequired[Any]
    validations: NotRequired[Rules]
    mixins: NotRequired[List[Any]]


__all__ = [
    "FieldState",
    "EventType",
    "RuleResult",
    "Rule",
    "Rules",
    "ErrorState",
    "ErrorReport",
    "FieldMetadata",
]
