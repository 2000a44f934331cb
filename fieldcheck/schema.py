"""Metadata form of field declarations, checked with JSON Schema.

Besides lists of FieldDefinition, a model's fields can be declared as plain
metadata:

    {
        "name": {"validations": {"isLongEnough": is_long_enough}},
        "assoc": {"default": [], "mixins": [has_many(Tag)], "validations": {...}},
    }

The metadata is validated against FIELD_METADATA_SCHEMA (JSON Schema Draft 7)
using a jsonschema validator extended with two keywords: ``callable`` checks
that a rule is callable and ``extension`` checks that a mixin is a
FieldExtension. Every violation is reported at once in a single
FieldDefinitionError.
"""

from typing import Any, Dict, Iterator, List, Mapping

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import ValidationError, best_match

from fieldcheck.association import FieldExtension
from fieldcheck.errors import FieldDefinitionError
from fieldcheck.field import FieldDefinition
from fieldcheck.types import FieldMetadata


def _callable_keyword(validator, value, instance, schema) -> Iterator[ValidationError]:
    if value and not callable(instance):
        yield ValidationError(f"{instance!r} is not callable")


def _extension_keyword(validator, value, instance, schema) -> Iterator[ValidationError]:
    if value and not isinstance(instance, FieldExtension):
        yield ValidationError(f"{instance!r} is not a field extension")


def _is_array(checker, instance) -> bool:
    return isinstance(instance, (list, tuple))


MetadataValidator = validators.extend(
    Draft7Validator,
    type_checker=Draft7Validator.TYPE_CHECKER.redefine("array", _is_array),
    validators={
        "callable": _callable_keyword,
        "extension": _extension_keyword,
    },
)


FIELD_METADATA_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "propertyNames": {"type": "string", "minLength": 1},
    "additionalProperties": {
        "type": "object",
        "properties": {
            "default": {},
            "validations": {
                "anyOf": [
                    {"type": "object", "additionalProperties": {"callable": True}},
                    {"type": "array", "items": {"callable": True}},
                ],
            },
            "mixins": {
                "type": "array",
                "items": {"extension": True},
            },
        },
        "additionalProperties": False,
    },
}

MetadataValidator.check_schema(FIELD_METADATA_SCHEMA)
_validator = MetadataValidator(FIELD_METADATA_SCHEMA)


def _describe(error: ValidationError) -> str:
    """Format a jsonschema error as ``path: message``."""
    # anyOf failures carry the useful detail in their context
    if error.context:
        error = best_match(error.context)
    path = ".".join(str(p) for p in error.absolute_path) or "<root>"
    return f"{path}: {error.message}"


def parse_field_metadata(metadata: Mapping[str, FieldMetadata]) -> List[FieldDefinition]:
    """Validate field metadata and build the ordered field definitions.

    Args:
        metadata: Mapping of field name to ``default``/``validations``/``mixins``

    Returns:
        FieldDefinition list in the metadata's key order

    Raises:
        FieldDefinitionError: If the metadata does not match the schema, or a
            resulting definition is invalid (e.g. a reserved rule name)

    Examples:
        >>> definitions = parse_field_metadata({"id": {}, "tags": {"default": []}})
        >>> [d.name for d in definitions]
        ['id', 'tags']
    """
    errors = sorted(
        _validator.iter_errors(metadata),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    if errors:
        raise FieldDefinitionError("Invalid field metadata", [_describe(e) for e in errors])

    return [
        FieldDefinition(
            name=name,
            default=settings.get("default"),
            rules=settings.get("validations", {}),
            extensions=tuple(settings.get("mixins", [])),
        )
        for name, settings in metadata.items()
    ]


__all__ = [
    "FIELD_METADATA_SCHEMA",
    "MetadataValidator",
    "parse_field_metadata",
]
