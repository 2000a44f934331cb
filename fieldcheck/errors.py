"""Exception types and failure records for fieldcheck.

Validation outcomes are data, not exceptions: a rule that fails returns a
message which is cached on the field and surfaces through ``Model.errors``.
The exceptions defined here signal programmer errors instead, such as a rule
implementation that raises or a malformed field declaration.

RuleFailure is the flattened, serializable form of a single failing rule,
used by ValidationReport and the event payloads.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class FieldcheckError(Exception):
    """Base class for all fieldcheck errors."""


class RuleExecutionError(FieldcheckError):
    """Raised when a rule function raises during evaluation.

    The engine never swallows these: a raising rule is a bug in the rule, and
    the validate() call that ran it fails. The original exception is chained
    as ``__cause__`` and kept on ``original``.

    Attributes:
        field: Name of the field being validated
        rule: Name of the rule that raised
        original: The exception raised by the rule
    """

    def __init__(self, field: str, rule: str, original: BaseException):
        self.field = field
        self.rule = rule
        self.original = original
        super().__init__(
            f"Rule '{rule}' on field '{field}' raised "
            f"{type(original).__name__}: {original}"
        )


class FieldDefinitionError(FieldcheckError):
    """Raised when a model's field declarations are malformed.

    Attributes:
        problems: One ``path: message`` entry per detected problem
    """

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = problems or []
        if self.problems:
            message = f"{message}:\n" + "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(message)


class AssociationTypeError(FieldcheckError, TypeError):
    """Raised when an association holds an item that is not a target model.

    Attributes:
        field: Name of the association field
        index: Position of the offending item
        expected: The declared target model class
        received: Type name of the offending item
    """

    def __init__(self, field: str, index: int, expected: type, received: Any):
        self.field = field
        self.index = index
        self.expected = expected
        self.received = type(received).__name__
        super().__init__(
            f"Association '{field}' item {index} must be a "
            f"{expected.__name__} instance, got {self.received}"
        )


@dataclass(frozen=True)
class RuleFailure:
    """A single failing rule, located by a dot-notation path.

    Attributes:
        path: Field path, descending through nested associations
            (e.g., "name", "tags.associations.0.label")
        rule: Name of the failing rule
        message: The value the rule returned instead of ``True``

    Examples:
        >>> failure = RuleFailure(path="name", rule="isLongEnough", message="Too short")
        >>> failure.to_dict()
        {'path': 'name', 'rule': 'isLongEnough', 'message': 'Too short'}
    """
    path: str
    rule: str
    message: Any

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "path": self.path,
            "rule": self.rule,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleFailure":
        """Create RuleFailure from dict."""
        return cls(
            path=data["path"],
            rule=data["rule"],
            message=data["message"],
        )


__all__ = [
    "FieldcheckError",
    "RuleExecutionError",
    "FieldDefinitionError",
    "AssociationTypeError",
    "RuleFailure",
]
