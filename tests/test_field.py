"""Unit tests for field definitions and runtime fields.

Tests cover:
- FieldDefinition normalization (mapping and sequence rules)
- Definition errors (duplicate, reserved and non-callable rules)
- Field.validate cache replacement semantics
- Value assignment leaving the cache stale
- RuleExecutionError propagation without touching the previous cache
- Definitions hashed by identity
"""

import pytest

from fieldcheck import (
    NESTED_ERRORS_KEY,
    Field,
    FieldDefinition,
    FieldDefinitionError,
    RuleExecutionError,
    has_many,
    min_length,
    required,
)
from fieldcheck.association import FieldExtension
from fieldcheck.types import FieldState


def is_even(value):
    return value % 2 == 0 or "Must be even"


def is_positive(value):
    return value > 0 or "Must be positive"


class TestFieldDefinition:
    """Test static field definitions."""

    def test_mapping_rules(self):
        """Should keep rule names from a mapping, in order."""
        definition = FieldDefinition("n", rules={"even": is_even, "positive": is_positive})

        assert list(definition.rules) == ["even", "positive"]
        assert list(definition.all_rules) == ["even", "positive"]

    def test_sequence_rules_named_by_function(self):
        """Should derive rule names from function names."""
        definition = FieldDefinition("n", rules=[is_even, required()])

        assert list(definition.rules) == ["is_even", "required"]

    def test_lambda_in_sequence_rejected(self):
        """Should refuse unnamed rules in sequence form."""
        with pytest.raises(FieldDefinitionError):
            FieldDefinition("n", rules=[lambda v: True])

    def test_non_callable_rule_rejected(self):
        """Should report non-callable rules with their path."""
        with pytest.raises(FieldDefinitionError) as exc_info:
            FieldDefinition("n", rules={"bad": "not a function"})

        assert exc_info.value.problems == ["n.bad: 'not a function' is not callable"]

    def test_duplicate_sequence_rules_rejected(self):
        """Should refuse two rules with the same derived name."""
        with pytest.raises(FieldDefinitionError):
            FieldDefinition("n", rules=[min_length(1), min_length(2)])

    def test_reserved_rule_name_rejected(self):
        """Should refuse rules named like the nested association slot."""
        with pytest.raises(FieldDefinitionError) as exc_info:
            FieldDefinition("n", rules={NESTED_ERRORS_KEY: is_even})

        assert "reserved" in str(exc_info.value)

    def test_extension_rule_collision_rejected(self):
        """Should refuse extension rules colliding with declared ones."""
        class Target:
            pass

        with pytest.raises(FieldDefinitionError):
            FieldDefinition(
                "items",
                rules={"minimum_count": is_even},
                extensions=[has_many(Target, minimum=1)],
            )

    def test_non_extension_rejected(self):
        """Should refuse extension entries that are not FieldExtension instances."""
        with pytest.raises(FieldDefinitionError):
            FieldDefinition("n", extensions=[object()])

    def test_extension_rules_follow_declared_rules(self):
        """Should append extension rules after declared rules."""
        class Target:
            pass

        definition = FieldDefinition(
            "items", rules={"declared": required()}, extensions=[has_many(Target, minimum=2)]
        )

        assert list(definition.all_rules) == ["declared", "minimum_count"]
        assert list(definition.rules) == ["declared"]

    def test_make_default_copies(self):
        """Should return an independent copy of a mutable default."""
        definition = FieldDefinition("tags", default=["a"])

        first = definition.make_default()
        first.append("b")

        assert definition.make_default() == ["a"]

    def test_hashable_by_identity(self):
        """Should hash by identity so definitions can key sets and dicts."""
        first = FieldDefinition("n", rules={"even": is_even})
        second = FieldDefinition("n", rules={"even": is_even})

        assert len({first, second, first}) == 2
        assert first != second


class TestFieldValidate:
    """Test rule evaluation and cache replacement."""

    def test_initial_state(self):
        """Should start unvalidated with an empty error state."""
        field = Field(FieldDefinition("n", rules={"even": is_even}), 3)

        assert field.error_state == {}
        assert field.is_valid is True
        assert field.state == FieldState.UNVALIDATED

    def test_failing_rules_recorded(self):
        """Should record every failing rule with its message."""
        field = Field(FieldDefinition("n", rules={"even": is_even, "positive": is_positive}), -3)
        field.validate()

        assert field.error_state == {"even": "Must be even", "positive": "Must be positive"}
        assert field.is_valid is False
        assert field.state == FieldState.VALIDATED

    def test_full_replace_not_merge(self):
        """Should drop failures of rules that now pass."""
        field = Field(FieldDefinition("n", rules={"even": is_even, "positive": is_positive}), -3)
        field.validate()

        field.value = 3
        field.validate()

        assert field.error_state == {"even": "Must be even"}

    def test_only_true_passes(self):
        """Should treat any non-True result as a failure message."""
        definition = FieldDefinition(
            "n",
            rules={
                "returns_false": lambda v: False,
                "returns_none": lambda v: None,
                "returns_one": lambda v: 1,
                "returns_dict": lambda v: {"code": "bad"},
            },
        )
        field = Field(definition, "x")
        field.validate()

        assert field.error_state == {
            "returns_false": False,
            "returns_none": None,
            "returns_one": 1,
            "returns_dict": {"code": "bad"},
        }

    def test_no_rules_always_valid(self):
        """Should always validate to no failures without rules."""
        field = Field(FieldDefinition("n"), object())
        field.validate()

        assert field.error_state == {}

    def test_assignment_keeps_cache(self):
        """Should leave the error state untouched on assignment."""
        field = Field(FieldDefinition("n", rules={"even": is_even}), 3)
        field.validate()

        field.value = 4

        assert field.value == 4
        assert field.error_state == {"even": "Must be even"}
        assert field.state == FieldState.STALE

    def test_assignment_before_validation_stays_unvalidated(self):
        """Should stay unvalidated when assigned before any validation."""
        field = Field(FieldDefinition("n"), 1)
        field.value = 2

        assert field.state == FieldState.UNVALIDATED

    def test_idempotent(self):
        """Should produce the same error state on repeated validation."""
        field = Field(FieldDefinition("n", rules={"even": is_even}), 3)
        field.validate()
        first = field.error_state
        field.validate()

        assert field.error_state == first
        assert field.validation_count == 2

    def test_error_state_is_a_copy(self):
        """Should not expose the cache for mutation."""
        field = Field(FieldDefinition("n", rules={"even": is_even}), 3)
        field.validate()

        field.error_state["even"] = "changed"

        assert field.error_state == {"even": "Must be even"}

    def test_rules_property(self):
        """Should expose all rules run by validate."""
        field = Field(FieldDefinition("n", rules={"even": is_even}), 3)

        assert field.rules == {"even": is_even}
        assert field.name == "n"

    def test_extension_fold_runs_after_rules(self):
        """Should let extensions add entries after the rule pass."""
        seen = []

        class Recorder(FieldExtension):
            def fold(self, field_name, value, failures):
                seen.append(dict(failures))
                failures["recorded"] = field_name

        field = Field(FieldDefinition("n", rules={"even": is_even}, extensions=[Recorder()]), 3)
        field.validate()

        assert seen == [{"even": "Must be even"}]
        assert field.error_state == {"even": "Must be even", "recorded": "n"}

    def test_no_error_copy_without_emitter(self, monkeypatch):
        """Should not copy the error state when nobody listens for events."""
        import fieldcheck.field as field_module

        copies = []
        original = field_module.copy.deepcopy

        def counting_deepcopy(value, *args, **kwargs):
            copies.append(value)
            return original(value, *args, **kwargs)

        field = Field(FieldDefinition("n", rules={"even": is_even}), 3)
        monkeypatch.setattr(field_module.copy, "deepcopy", counting_deepcopy)
        field.validate()

        assert copies == []
        assert field.is_valid is False


class TestRuleExecutionError:
    """Test propagation of exceptions raised by rules."""

    def test_raising_rule_propagates(self):
        """Should raise RuleExecutionError chained to the original error."""
        def broken(value):
            raise KeyError("boom")

        field = Field(FieldDefinition("n", rules={"broken": broken}), 1)

        with pytest.raises(RuleExecutionError) as exc_info:
            field.validate()

        error = exc_info.value
        assert error.field == "n"
        assert error.rule == "broken"
        assert isinstance(error.original, KeyError)
        assert error.__cause__ is error.original
        assert "Rule 'broken' on field 'n' raised KeyError" in str(error)

    def test_previous_cache_kept(self):
        """Should keep the previous error state when a rule raises."""
        field = Field(FieldDefinition("n", rules={"positive": is_positive}), -1)
        field.validate()

        field.value = "not a number"
        with pytest.raises(RuleExecutionError):
            field.validate()

        assert field.error_state == {"positive": "Must be positive"}
        assert field.validation_count == 1
        assert field.state == FieldState.STALE
