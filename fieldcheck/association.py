"""Field extensions and the one-to-many association validator.

A FieldExtension is a capability attached to a field definition. It can
contribute extra named rules, evaluated in the same pass as the field's own
rules, and a fold step that runs after the rules and may add entries to the
field's pending failures.

HasMany treats the field value as an ordered collection of nested model
instances. Each nested instance is validated through its own Model.validate(),
and the errors of every invalid instance are folded into the parent field's
error state under the reserved ``associations`` slot, keyed by position.

Examples:
    >>> from fieldcheck import FieldDefinition, Model, has_many, required
    >>> class Tag(Model):
    ...     __fields__ = [FieldDefinition("label", rules={"present": required()})]
    >>> class Post(Model):
    ...     __fields__ = [FieldDefinition("tags", default_factory=list, extensions=[has_many(Tag)])]
    >>> post = Post({"tags": [Tag()]})
    >>> post.validate()
    >>> post.errors
    {'tags': {'associations': {0: {'label': {'present': 'This field is required'}}}}}
"""

from typing import Any, Dict, Optional

from fieldcheck.errors import AssociationTypeError
from fieldcheck.rules import min_length
from fieldcheck.types import ErrorState, Rule

# Reserved error-state slot holding folded nested model errors
NESTED_ERRORS_KEY = "associations"


class FieldExtension:
    """Base class for composable field behaviors.

    Subclasses override ``rules`` to contribute named rules and ``fold`` to
    post-process the failures of a validate pass.
    """

    def rules(self) -> Dict[str, Rule]:
        """Extra named rules evaluated alongside the field's own rules."""
        return {}

    def fold(self, field_name: str, value: Any, failures: ErrorState) -> None:
        """Add entries to ``failures`` after all rules have run."""


class HasMany(FieldExtension):
    """One-to-many association over a collection of nested models.

    Attributes:
        target: The nested Model subclass every item must be an instance of
        minimum: Optional minimum number of items, contributed as the
            ``minimum_count`` rule
        message: Failure message for the ``minimum_count`` rule
    """

    def __init__(self, target: type, minimum: Optional[int] = None, message: Optional[str] = None):
        self.target = target
        self.minimum = minimum
        self.message = message or (
            f"Must contain at least {minimum} {target.__name__}" if minimum is not None else None
        )

    def rules(self) -> Dict[str, Rule]:
        if self.minimum is None:
            return {}
        return {"minimum_count": min_length(self.minimum, self.message)}

    def fold(self, field_name: str, value: Any, failures: ErrorState) -> None:
        """Validate every nested instance and fold in the invalid ones' errors.

        Raises:
            AssociationTypeError: If an item is not an instance of ``target``
        """
        items = list(value) if value is not None else []
        for index, item in enumerate(items):
            if not isinstance(item, self.target):
                raise AssociationTypeError(field_name, index, self.target, item)

        nested: Dict[int, Any] = {}
        for index, item in enumerate(items):
            item.validate()
            if not item.is_valid:
                nested[index] = item.errors

        if nested:
            failures[NESTED_ERRORS_KEY] = nested

    def __repr__(self) -> str:
        return f"HasMany({self.target.__name__}, minimum={self.minimum!r})"


def has_many(target: type, minimum: Optional[int] = None, message: Optional[str] = None) -> HasMany:
    """Declare a one-to-many association to ``target`` models."""
    return HasMany(target, minimum=minimum, message=message)


__all__ = [
    "NESTED_ERRORS_KEY",
    "FieldExtension",
    "HasMany",
    "has_many",
]
