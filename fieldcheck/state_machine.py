"""Field lifecycle state machine for fieldcheck.

Each field tracks whether its cached error state reflects its current value:

    UNVALIDATED --validate--> VALIDATED --assign--> STALE --validate--> VALIDATED

Assigning a value to a field that was never validated leaves it UNVALIDATED.
There is no terminal state; fields are revalidated arbitrarily many times.

Usage:
    >>> from fieldcheck.state_machine import FieldStateMachine
    >>> from fieldcheck.types import FieldState
    >>> sm = FieldStateMachine(field_name="name")
    >>> sm.state
    <FieldState.UNVALIDATED: 'unvalidated'>
    >>> sm.validated()
    >>> sm.value_changed()
    >>> sm.state
    <FieldState.STALE: 'stale'>
"""

from dataclasses import dataclass
from typing import Any, Dict, Set

from fieldcheck.errors import FieldcheckError
from fieldcheck.types import FieldState


class InvalidStateTransitionError(FieldcheckError):
    """Raised when attempting an invalid lifecycle transition.

    Attributes:
        current_state: The current state before the attempted transition
        target_state: The target state that was attempted
    """

    def __init__(self, current_state: FieldState, target_state: FieldState, message: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


# Maps each state to the set of states it can transition to
VALID_TRANSITIONS: Dict[FieldState, Set[FieldState]] = {
    FieldState.UNVALIDATED: {
        FieldState.UNVALIDATED,
        FieldState.VALIDATED,
    },
    FieldState.VALIDATED: {
        FieldState.VALIDATED,
        FieldState.STALE,
    },
    FieldState.STALE: {
        FieldState.STALE,
        FieldState.VALIDATED,
    },
}


@dataclass
class FieldStateMachine:
    """Tracks the lifecycle of one field's validation cache.

    Attributes:
        field_name: Name of the field this machine belongs to
        state: Current lifecycle state
        validation_count: Number of completed validate passes
    """

    field_name: str
    state: FieldState = FieldState.UNVALIDATED
    validation_count: int = 0

    def can_transition_to(self, target_state: FieldState) -> bool:
        """Check if transition to target state is valid."""
        return target_state in VALID_TRANSITIONS.get(self.state, set())

    def transition_to(self, target_state: FieldState) -> None:
        """Move to a new state.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_state):
            raise InvalidStateTransitionError(
                current_state=self.state,
                target_state=target_state,
                message=(
                    f"Invalid state transition for field '{self.field_name}': "
                    f"cannot transition from '{self.state.value}' to '{target_state.value}'"
                ),
            )
        self.state = target_state

    def validated(self) -> None:
        """Record a completed validate pass."""
        self.transition_to(FieldState.VALIDATED)
        self.validation_count += 1

    def value_changed(self) -> None:
        """Record a value assignment; a validated cache becomes stale."""
        if self.state == FieldState.UNVALIDATED:
            self.transition_to(FieldState.UNVALIDATED)
        else:
            self.transition_to(FieldState.STALE)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the state machine to a dictionary.

        Examples:
            >>> FieldStateMachine(field_name="name").to_dict()
            {'field': 'name', 'state': 'unvalidated', 'validationCount': 0}
        """
        return {
            "field": self.field_name,
            "state": self.state.value,
            "validationCount": self.validation_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldStateMachine":
        """Deserialize a state machine from a dictionary."""
        state = data["state"]
        if isinstance(state, str):
            state = FieldState(state)
        return cls(
            field_name=data["field"],
            state=state,
            validation_count=data.get("validationCount", 0),
        )


__all__ = [
    "FieldStateMachine",
    "InvalidStateTransitionError",
    "VALID_TRANSITIONS",
]
