"""Unit tests for validator rules.

Tests cover:
- evaluate_rule pass/fail results and RuleExecutionError wrapping
- rule_name derivation
- Canned rules: required, min_length, max_length, matches, one_of,
  is_date, conforms_to
"""

import re
from datetime import date, datetime

import jsonschema
import pytest

from fieldcheck.errors import RuleExecutionError
from fieldcheck.rules import (
    conforms_to,
    evaluate_rule,
    is_date,
    matches,
    max_length,
    min_length,
    one_of,
    passed,
    required,
    rule_name,
)


class TestEvaluateRule:
    """Test the rule evaluation contract."""

    def test_pass_returns_true(self):
        """Should return True for a passing rule."""
        assert evaluate_rule("f", "r", lambda v: True, 1) is True

    def test_failure_returns_message_verbatim(self):
        """Should return the rule's message unchanged."""
        message = {"code": "too_small"}
        assert evaluate_rule("f", "r", lambda v: message, 1) is message

    def test_raising_rule_wrapped(self):
        """Should wrap rule exceptions in RuleExecutionError."""
        def broken(value):
            raise ValueError("bad rule")

        with pytest.raises(RuleExecutionError) as exc_info:
            evaluate_rule("name", "broken", broken, "x")

        assert exc_info.value.field == "name"
        assert exc_info.value.rule == "broken"
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.parametrize("result,expected", [(True, True), (1, False), ("ok", False), (None, False)])
    def test_passed(self, result, expected):
        """Should count only the identity True as a pass."""
        assert passed(result) is expected


class TestRuleName:
    """Test rule name derivation."""

    def test_function_name(self):
        """Should use the function's name."""
        def is_long_enough(value):
            return True

        assert rule_name(is_long_enough) == "is_long_enough"

    def test_lambda_rejected(self):
        """Should refuse lambdas."""
        with pytest.raises(ValueError):
            rule_name(lambda v: True)

    def test_canned_rules_are_named(self):
        """Should name canned rules after their factory."""
        assert rule_name(min_length(1)) == "min_length"
        assert rule_name(conforms_to({"type": "string"})) == "conforms_to"


class TestRequired:
    """Test the required rule."""

    @pytest.mark.parametrize("value", [None, "", "   ", [], {}, set()])
    def test_empty_values_fail(self, value):
        """Should fail on missing or empty values."""
        assert required()(value) == "This field is required"

    @pytest.mark.parametrize("value", ["a", [1], {"a": 1}, 0, False])
    def test_present_values_pass(self, value):
        """Should pass on present values, including falsy scalars."""
        assert required()(value) is True

    def test_custom_message(self):
        """Should use the supplied message."""
        assert required("Missing")(None) == "Missing"


class TestLengthRules:
    """Test min_length and max_length."""

    def test_min_length(self):
        """Should enforce a lower bound on length."""
        rule = min_length(3)

        assert rule("abc") is True
        assert rule([1, 2, 3, 4]) is True
        assert rule("ab") == "Must have a length of at least 3"

    def test_max_length(self):
        """Should enforce an upper bound on length."""
        rule = max_length(2, "Too long")

        assert rule("ab") is True
        assert rule([1, 2, 3]) == "Too long"

    def test_none_passes(self):
        """Should leave None to the required rule."""
        assert min_length(1)(None) is True
        assert max_length(1)(None) is True


class TestMatches:
    """Test the matches rule."""

    def test_full_match_required(self):
        """Should require the whole string to match."""
        rule = matches(r"[a-z]+")

        assert rule("abc") is True
        assert rule("abc1") == "Must match pattern: [a-z]+"

    def test_compiled_pattern(self):
        """Should accept a precompiled pattern."""
        rule = matches(re.compile(r"\d{3}"), "Three digits")

        assert rule("123") is True
        assert rule("12") == "Three digits"

    def test_non_string_fails(self):
        """Should fail on non-string values."""
        assert matches(r"\d+")(123) == "Must match pattern: \\d+"


class TestOneOf:
    """Test the one_of rule."""

    def test_membership(self):
        """Should accept only listed choices."""
        rule = one_of(["draft", "published"])

        assert rule("draft") is True
        assert rule("archived") == "Must be one of: 'draft', 'published'"

    def test_none_passes(self):
        """Should pass on None."""
        assert one_of([1, 2])(None) is True


class TestIsDate:
    """Test the is_date rule."""

    @pytest.mark.parametrize("value", ["2024-02-29", "March 3, 2021", "2021-03-03T10:00:00Z"])
    def test_parsable_strings_pass(self, value):
        """Should accept strings python-dateutil can parse."""
        assert is_date()(value) is True

    @pytest.mark.parametrize("value", [date(2024, 1, 1), datetime(2024, 1, 1, 12, 0)])
    def test_date_objects_pass(self, value):
        """Should accept date and datetime instances."""
        assert is_date()(value) is True

    @pytest.mark.parametrize("value", ["not a date", "", "2024-02-30", 20240101])
    def test_invalid_values_fail(self, value):
        """Should fail on unparsable strings and non-string values."""
        assert is_date("Bad date")(value) == "Bad date"


class TestConformsTo:
    """Test the conforms_to JSON Schema rule."""

    SCHEMA = {
        "type": "object",
        "properties": {"street": {"type": "string"}, "zip": {"type": "string", "pattern": "^[0-9]{5}$"}},
        "required": ["street"],
    }

    def test_conforming_value_passes(self):
        """Should pass a value matching the schema."""
        assert conforms_to(self.SCHEMA)({"street": "Main St", "zip": "12345"}) is True

    def test_jsonschema_message_used(self):
        """Should return the most relevant jsonschema error message."""
        result = conforms_to(self.SCHEMA)({"zip": "12345"})

        assert result == "'street' is a required property"

    def test_custom_message(self):
        """Should prefer the supplied message."""
        assert conforms_to(self.SCHEMA, "Invalid address")({"street": 5}) == "Invalid address"

    def test_invalid_schema_rejected(self):
        """Should check the schema when the rule is built."""
        with pytest.raises(jsonschema.SchemaError):
            conforms_to({"type": "not-a-type"})
