"""fieldcheck: declarative, composable validation for models and fields.

fieldcheck provides:
- Per-field rule evaluation with a cached, per-field error state
- Model-level ``is_valid`` / ``errors`` derived live from field caches
- Cheap single-field revalidation that never disturbs sibling fields
- One-to-many associations whose nested models are validated recursively
  and folded into the parent field's errors
- An optional audit event stream of validation activity

Basic usage:
    >>> from fieldcheck import FieldDefinition, Model
    >>> class Person(Model):
    ...     __fields__ = [
    ...         FieldDefinition(
    ...             "name",
    ...             rules={"isLongEnough": lambda v: len(v) > 10 or "Name is not long enough"},
    ...         ),
    ...     ]
    >>> person = Person({"name": "a very long name"})
    >>> person.validate()
    >>> person.is_valid
    True
"""

__version__ = "0.1.0"
__author__ = "fieldcheck contributors"

# Version info
VERSION = (0, 1, 0)

# Core exports
from fieldcheck.association import NESTED_ERRORS_KEY, FieldExtension, HasMany, has_many
from fieldcheck.errors import (
    AssociationTypeError,
    FieldcheckError,
    FieldDefinitionError,
    RuleExecutionError,
    RuleFailure,
)
from fieldcheck.events import EventEmitter, ValidationEvent
from fieldcheck.field import Field, FieldDefinition
from fieldcheck.model import FieldSet, Model, define_model
from fieldcheck.rules import (
    conforms_to,
    is_date,
    matches,
    max_length,
    min_length,
    one_of,
    required,
)
from fieldcheck.types import EventType, FieldState
from fieldcheck.validation import ValidationReport

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "Model",
    "FieldSet",
    "define_model",
    "Field",
    "FieldDefinition",
    "FieldExtension",
    "HasMany",
    "has_many",
    "NESTED_ERRORS_KEY",
    "FieldcheckError",
    "RuleExecutionError",
    "FieldDefinitionError",
    "AssociationTypeError",
    "RuleFailure",
    "ValidationReport",
    "EventEmitter",
    "ValidationEvent",
    "EventType",
    "FieldState",
    "required",
    "min_length",
    "max_length",
    "matches",
    "one_of",
    "is_date",
    "conforms_to",
]
