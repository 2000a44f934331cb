"""Validation reports for fieldcheck models.

A ValidationReport is an immutable snapshot of a model's validation state at
the moment it was taken: the validity flag, the nested error mapping, a flat
list of RuleFailure entries, and the fields that have never been validated.

The flat failure list descends into folded association errors, so every
failing rule at any depth is addressable by a dot-notation path.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from fieldcheck.association import NESTED_ERRORS_KEY
from fieldcheck.errors import RuleFailure
from fieldcheck.types import ErrorReport


def flatten_errors(errors: Mapping[str, Mapping[str, Any]], prefix: str = "") -> List[RuleFailure]:
    """Flatten a model error mapping into RuleFailure entries.

    Examples:
        >>> flatten_errors({"tags": {"associations": {0: {"label": {"present": "Missing"}}}}})
        [RuleFailure(path='tags.associations.0.label', rule='present', message='Missing')]
    """
    failures: List[RuleFailure] = []
    for field_name, error_state in errors.items():
        path = f"{prefix}{field_name}"
        for rule, message in error_state.items():
            if rule == NESTED_ERRORS_KEY and isinstance(message, Mapping):
                for index, nested in message.items():
                    failures.extend(flatten_errors(nested, f"{path}.{NESTED_ERRORS_KEY}.{index}."))
            else:
                failures.append(RuleFailure(path=path, rule=rule, message=message))
    return failures


@dataclass(frozen=True)
class ValidationReport:
    """Snapshot of a model's validation state.

    Attributes:
        is_valid: Whether no field currently has a known failure
        errors: Field name to error state, for failing fields only
        failures: Flattened failing rules, in field order
        unvalidated_fields: Fields never validated (optimistically valid)

    Examples:
        >>> report = ValidationReport.from_errors({"name": {"isLongEnough": "Too short"}})
        >>> report.is_valid
        False
        >>> report.failures[0].path
        'name'
    """
    is_valid: bool
    errors: ErrorReport
    failures: List[RuleFailure] = field(default_factory=list)
    unvalidated_fields: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(
        cls, errors: ErrorReport, unvalidated_fields: Optional[List[str]] = None
    ) -> "ValidationReport":
        """Build a report from a model error mapping."""
        return cls(
            is_valid=not errors,
            errors=errors,
            failures=flatten_errors(errors),
            unvalidated_fields=list(unvalidated_fields or []),
        )

    @property
    def is_complete(self) -> bool:
        """Whether every field has been validated at least once."""
        return not self.unvalidated_fields

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
            "failures": [f.to_dict() for f in self.failures],
            "unvalidatedFields": self.unvalidated_fields,
        }


__all__ = [
    "ValidationReport",
    "flatten_errors",
]
