"""Field definitions and runtime fields for fieldcheck.

FieldDefinition is the static descriptor of one field, resolved once when a
model type is declared: its name, default, named rules and extensions.

Field is the runtime unit owned by a model instance. It holds the current
value and the cached outcome of the last validate() call. The cache is only
ever rebuilt by validate(); assigning a new value leaves it untouched (stale)
until the field is validated again.

Examples:
    >>> from fieldcheck.rules import min_length
    >>> definition = FieldDefinition("name", rules={"isLongEnough": min_length(11)})
    >>> field = Field(definition, "shortname")
    >>> field.error_state
    {}
    >>> field.validate()
    >>> field.error_state
    {'isLongEnough': 'Must have a length of at least 11'}
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from fieldcheck.association import NESTED_ERRORS_KEY, FieldExtension
from fieldcheck.errors import FieldDefinitionError
from fieldcheck.events import ValidationEvent
from fieldcheck.rules import evaluate_rule, passed, rule_name
from fieldcheck.state_machine import FieldStateMachine
from fieldcheck.types import ErrorState, EventType, FieldState, Rule, Rules

if TYPE_CHECKING:
    from fieldcheck.events import EventEmitter
    from fieldcheck.model import Model

logger = logging.getLogger(__name__)


def _normalize_rules(field_name: str, rules: Optional[Rules]) -> Dict[str, Rule]:
    if rules is None:
        return {}
    if isinstance(rules, Mapping):
        named = list(rules.items())
    else:
        try:
            named = [(rule_name(rule), rule) for rule in rules]
        except ValueError as exc:
            raise FieldDefinitionError(f"Invalid rules for field '{field_name}'", [str(exc)]) from exc

    normalized: Dict[str, Rule] = {}
    problems = []
    for name, rule in named:
        if not callable(rule):
            problems.append(f"{field_name}.{name}: {rule!r} is not callable")
        elif name in normalized:
            problems.append(f"{field_name}.{name}: duplicate rule name")
        else:
            normalized[name] = rule
    if problems:
        raise FieldDefinitionError(f"Invalid rules for field '{field_name}'", problems)
    return normalized


@dataclass(frozen=True, eq=False)
class FieldDefinition:
    """Static description of a model field.

    Attributes:
        name: Field name, unique within a model
        default: Value used when construction attributes omit the field;
            deep-copied per instance
        default_factory: Zero-argument callable producing the default,
            takes precedence over ``default``
        rules: Mapping of rule name to rule, or a sequence of named rules
        extensions: Field extensions (e.g. ``has_many(...)``)

    Raises:
        FieldDefinitionError: On duplicate or reserved rule names,
            non-callable rules or non-extension entries in ``extensions``
    """
    name: str
    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None
    rules: Rules = field(default_factory=dict)
    extensions: Sequence[FieldExtension] = ()
    all_rules: Dict[str, Rule] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        declared = _normalize_rules(self.name, self.rules)
        extensions: Tuple[FieldExtension, ...] = tuple(self.extensions)

        problems = []
        for extension in extensions:
            if not isinstance(extension, FieldExtension):
                problems.append(f"{self.name}: {extension!r} is not a FieldExtension")

        combined = dict(declared)
        for extension in extensions:
            if not isinstance(extension, FieldExtension):
                continue
            for name, rule in extension.rules().items():
                if name in combined:
                    problems.append(f"{self.name}.{name}: duplicate rule name")
                combined[name] = rule

        if NESTED_ERRORS_KEY in combined:
            problems.append(f"{self.name}.{NESTED_ERRORS_KEY}: rule name is reserved")
        if problems:
            raise FieldDefinitionError(f"Invalid definition for field '{self.name}'", problems)

        object.__setattr__(self, "rules", declared)
        object.__setattr__(self, "extensions", extensions)
        object.__setattr__(self, "all_rules", combined)

    def make_default(self) -> Any:
        """Build a fresh default value for a new instance."""
        if self.default_factory is not None:
            return self.default_factory()
        return copy.deepcopy(self.default)


class Field:
    """A model field: current value plus cached validation outcome.

    Attributes:
        definition: The static FieldDefinition this field was built from
        owner: The model instance owning this field, if any
    """

    def __init__(self, definition: FieldDefinition, value: Any, owner: Optional["Model"] = None):
        self.definition = definition
        self.owner = owner
        self._value = value
        self._error_state: ErrorState = {}
        self._lifecycle = FieldStateMachine(field_name=definition.name)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def rules(self) -> Dict[str, Rule]:
        """All rules run by validate(), declared ones first."""
        return dict(self.definition.all_rules)

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        # The cached error state is kept until the next validate()
        self._value = new_value
        self._lifecycle.value_changed()
        self._emit(EventType.VALUE_CHANGED)

    @property
    def error_state(self) -> ErrorState:
        """Failing rule names mapped to messages, as of the last validate()."""
        return copy.deepcopy(self._error_state)

    @property
    def is_valid(self) -> bool:
        return not self._error_state

    @property
    def state(self) -> FieldState:
        return self._lifecycle.state

    @property
    def validation_count(self) -> int:
        return self._lifecycle.validation_count

    def validate(self) -> None:
        """Run every rule against the current value and replace the cache.

        Extension fold steps run after all rules. The new error state is only
        stored once the whole pass completes.

        Raises:
            RuleExecutionError: If a rule raises; the previous cache is kept
            AssociationTypeError: If an association holds a non-model item
        """
        failures: ErrorState = {}
        for name, rule in self.definition.all_rules.items():
            result = evaluate_rule(self.name, name, rule, self._value)
            if not passed(result):
                failures[name] = result

        for extension in self.definition.extensions:
            extension.fold(self.name, self._value, failures)

        self._error_state = failures
        self._lifecycle.validated()

        logger.debug(
            "Validated field %s: %s",
            self.name,
            f"{len(failures)} failure(s)" if failures else "ok",
        )
        if self.emitter is not None:
            self._emit(
                EventType.VALIDATION_FAILED if failures else EventType.VALIDATION_PASSED,
                {"failures": self.error_state},
            )

    @property
    def emitter(self) -> Optional["EventEmitter"]:
        """The owning model's emitter, if any."""
        return self.owner.emitter if self.owner is not None else None

    def _emit(self, event_type: EventType, payload: Optional[Dict[str, Any]] = None) -> None:
        emitter = self.emitter
        if emitter is None:
            return
        emitter.emit(
            ValidationEvent.create(
                type=event_type,
                model=type(self.owner).__name__,
                field=self.name,
                state=self.state,
                payload=payload,
            )
        )

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, value={self._value!r}, state={self.state.value!r})"


__all__ = [
    "FieldDefinition",
    "Field",
]
