"""Model validation aggregator for fieldcheck.

A Model owns one Field per declared field definition. Field definitions are
declared on the class through ``__fields__`` and resolved once, when the class
is created. ``__fields__`` is either an ordered sequence of FieldDefinition or
a metadata mapping (see fieldcheck.schema).

Validation happens at two granularities:
- ``model.validate()`` revalidates every field, in declaration order
- ``model.fields[name].validate()`` revalidates that one field only

``is_valid`` and ``errors`` never run rules. They are recomputed on every
read from whatever each field's cache currently holds, so after a single-field
validation they combine that field's fresh outcome with the other fields'
last known (possibly never-validated, hence empty) state.

Usage:
    >>> from fieldcheck import FieldDefinition, Model
    >>> class Person(Model):
    ...     __fields__ = [
    ...         FieldDefinition(
    ...             "name",
    ...             rules={"isLongEnough": lambda v: len(v) > 10 or "Name is not long enough"},
    ...         ),
    ...     ]
    >>> person = Person({"name": "shortname", "nickname": "ignored"})
    >>> person.is_valid
    True
    >>> person.validate()
    >>> person.errors
    {'name': {'isLongEnough': 'Name is not long enough'}}
"""

import logging
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence, Type, Union

from fieldcheck.errors import FieldDefinitionError
from fieldcheck.events import EventEmitter, ValidationEvent
from fieldcheck.field import Field, FieldDefinition
from fieldcheck.schema import parse_field_metadata
from fieldcheck.types import ErrorReport, EventType, FieldMetadata, FieldState
from fieldcheck.validation import ValidationReport

logger = logging.getLogger(__name__)

FieldDeclarations = Union[Sequence[FieldDefinition], Mapping[str, FieldMetadata]]


def resolve_field_definitions(declarations: FieldDeclarations) -> List[FieldDefinition]:
    """Turn a ``__fields__`` declaration into an ordered FieldDefinition list.

    Raises:
        FieldDefinitionError: On malformed declarations or duplicate field names
    """
    if isinstance(declarations, Mapping):
        return parse_field_metadata(declarations)

    definitions = list(declarations)
    problems = []
    seen = set()
    for definition in definitions:
        if not isinstance(definition, FieldDefinition):
            problems.append(f"{definition!r} is not a FieldDefinition")
        elif definition.name in seen:
            problems.append(f"{definition.name}: duplicate field name")
        else:
            seen.add(definition.name)
    if problems:
        raise FieldDefinitionError("Invalid field declarations", problems)
    return definitions


class FieldSet(Mapping[str, Field]):
    """Read-only mapping of field name to Field, also readable as attributes.

    ``model.fields["name"]`` and ``model.fields.name`` are equivalent. Field
    names that collide with mapping methods (``keys``, ``items``, ...) are only
    reachable by subscription.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Dict[str, Field]):
        object.__setattr__(self, "_fields", fields)

    def __getitem__(self, name: str) -> Field:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __getattr__(self, name: str) -> Field:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(f"No field named '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Fields cannot be replaced; assign to field.value instead")

    def __reduce__(self):
        # Copies rebuild through __init__, which bypasses __setattr__
        return (type(self), (self._fields,))

    def __repr__(self) -> str:
        return f"FieldSet({list(self._fields)!r})"


class Model:
    """Base class for validated models.

    Attributes:
        field_definitions: Resolved definitions for this model type, by name,
            in declaration order (class attribute)
        emitter: Optional EventEmitter receiving this instance's events

    Examples:
        >>> from fieldcheck import FieldDefinition, has_many, min_length
        >>> class Tag(Model):
        ...     __fields__ = [FieldDefinition("id")]
        >>> class Post(Model):
        ...     __fields__ = {
        ...         "tags": {"default": [], "mixins": [has_many(Tag)], "validations": [min_length(1)]},
        ...     }
        >>> post = Post()
        >>> post.validate()
        >>> post.errors
        {'tags': {'min_length': 'Must have a length of at least 1'}}
    """

    __fields__: ClassVar[FieldDeclarations] = ()
    field_definitions: ClassVar[Dict[str, FieldDefinition]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Parent fields come first; redeclaring a name replaces the parent's definition
        definitions = dict(cls.field_definitions)
        declared = cls.__dict__.get("__fields__")
        if declared is not None:
            for definition in resolve_field_definitions(declared):
                definitions[definition.name] = definition
        cls.field_definitions = definitions

    def __init__(
        self,
        attributes: Optional[Mapping[str, Any]] = None,
        *,
        emitter: Optional[EventEmitter] = None,
    ):
        """Build the model's fields from construction attributes.

        Args:
            attributes: Field values by name. Keys matching no declared field
                are ignored; missing fields take their default.
            emitter: Optional EventEmitter for validation events
        """
        self.emitter = emitter
        attributes = dict(attributes or {})

        unknown = [key for key in attributes if key not in self.field_definitions]
        if unknown:
            logger.debug(
                "Ignoring unknown attributes for %s: %s",
                type(self).__name__,
                ", ".join(sorted(str(key) for key in unknown)),
            )

        fields: Dict[str, Field] = {}
        for name, definition in self.field_definitions.items():
            value = attributes[name] if name in attributes else definition.make_default()
            fields[name] = Field(definition, value, owner=self)
        self._fields = FieldSet(fields)

    @property
    def fields(self) -> FieldSet:
        return self._fields

    def validate(self) -> None:
        """Revalidate every field in declaration order.

        Raises:
            RuleExecutionError: If any rule raises; fields validated before
                the failing one keep their new state
        """
        for field in self._fields.values():
            field.validate()

        errors = self.errors
        logger.debug(
            "Validated %s: %s",
            type(self).__name__,
            f"{len(errors)} invalid field(s)" if errors else "valid",
        )
        if self.emitter is not None:
            self.emitter.emit(
                ValidationEvent.create(
                    type=EventType.MODEL_VALIDATED,
                    model=type(self).__name__,
                    payload={"isValid": not errors, "errors": errors},
                )
            )

    @property
    def is_valid(self) -> bool:
        """True iff no field currently has a known failure."""
        return all(field.is_valid for field in self._fields.values())

    @property
    def errors(self) -> ErrorReport:
        """Error state of every field with at least one known failure."""
        return {
            name: field.error_state
            for name, field in self._fields.items()
            if not field.is_valid
        }

    @property
    def unvalidated_fields(self) -> List[str]:
        """Fields whose validity is assumed because they were never validated."""
        return [
            name
            for name, field in self._fields.items()
            if field.state == FieldState.UNVALIDATED
        ]

    def report(self) -> ValidationReport:
        """Take a snapshot of the current validation state."""
        return ValidationReport.from_errors(self.errors, self.unvalidated_fields)

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={field.value!r}" for name, field in self._fields.items())
        return f"{type(self).__name__}({values})"


def define_model(
    name: str,
    metadata: Mapping[str, FieldMetadata],
    base: Type[Model] = Model,
) -> Type[Model]:
    """Create a Model subclass at runtime from field metadata.

    Raises:
        FieldDefinitionError: If the metadata is invalid

    Examples:
        >>> Tag = define_model("Tag", {"id": {}})
        >>> list(Tag.field_definitions)
        ['id']
    """
    return type(name, (base,), {"__fields__": metadata})


__all__ = [
    "FieldSet",
    "Model",
    "define_model",
    "resolve_field_definitions",
]
