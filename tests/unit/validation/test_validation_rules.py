"""Tests for field-level validation rules."""

import pytest

from minival import (
    AllowedValues,
    EmailAddress,
    MaxLength,
    MinLength,
    Predicate,
    Range,
    RegularExpression,
    Required,
    StringLength,
    ValidationContext,
    ValidationResult,
)


@pytest.fixture
def context():
    """Context for a member called 'code' on a plain object."""
    return ValidationContext(instance=object(), member_name="code")


class TestRequired:
    """Test Required rule."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing(self, context, value):
        assert Required().is_valid(value, context) is False

    @pytest.mark.parametrize("value", ["x", 0, False, [], {}])
    def test_present(self, context, value):
        assert Required().is_valid(value, context) is True

    def test_allow_empty_strings(self, context):
        assert Required(allow_empty_strings=True).is_valid("", context) is True

    def test_is_required_flag(self):
        assert Required.is_required is True
        assert MinLength.is_required is False

    def test_message(self, context):
        result = Required().get_result(None, context)

        assert result == ValidationResult("The code field is required.", ("code",))


class TestLengthRules:
    """Test MinLength, MaxLength and StringLength."""

    def test_min_length(self, context):
        rule = MinLength(3)

        assert rule.is_valid("abc", context) is True
        assert rule.is_valid("ab", context) is False
        assert rule.is_valid([1, 2, 3], context) is True

    def test_max_length(self, context):
        rule = MaxLength(2)

        assert rule.is_valid("ab", context) is True
        assert rule.is_valid((1, 2, 3), context) is False

    def test_non_sized_value_raises(self, context):
        with pytest.raises(TypeError):
            MinLength(1).is_valid(42, context)

    def test_negative_length_rejected(self):
        with pytest.raises(ValueError):
            MaxLength(-1)

    def test_min_length_message(self, context):
        result = MinLength(5).get_result("abc", context)

        assert result.error_message == (
            "The field code must be a string or array type with a minimum length of '5'."
        )

    def test_string_length_bounds(self, context):
        rule = StringLength(5, minimum=2)

        assert rule.is_valid("ab", context) is True
        assert rule.is_valid("a", context) is False
        assert rule.is_valid("abcdef", context) is False

    def test_string_length_messages(self, context):
        assert StringLength(5).format_message("code") == (
            "The field code must be a string with a maximum length of 5."
        )
        assert "minimum length of 2" in StringLength(5, minimum=2).format_message("code")

    def test_string_length_invalid_bounds(self):
        with pytest.raises(ValueError):
            StringLength(1, minimum=2)


class TestRange:
    """Test Range rule."""

    @pytest.mark.parametrize("value,expected", [(10, True), (100, True), (9, False), (101, False)])
    def test_inclusive_bounds(self, context, value, expected):
        assert Range(10, 100).is_valid(value, context) is expected

    def test_message(self):
        assert Range(1, 99).format_message("quantity") == "The field quantity must be between 1 and 99."


class TestRegularExpression:
    """Test RegularExpression rule."""

    def test_full_match_required(self, context):
        rule = RegularExpression(r"\d+")

        assert rule.is_valid("123", context) is True
        assert rule.is_valid("123a", context) is False

    def test_empty_string_is_valid(self, context):
        assert RegularExpression(r"\d+").is_valid("", context) is True


class TestOtherRules:
    """Test EmailAddress, AllowedValues and Predicate."""

    @pytest.mark.parametrize("value,expected", [
        ("a@b.c", True),
        ("@b.c", False),
        ("a@", False),
        ("a@b@c", False),
        (42, False),
    ])
    def test_email_address(self, context, value, expected):
        assert EmailAddress().is_valid(value, context) is expected

    def test_allowed_values(self, context):
        rule = AllowedValues("red", "green")

        assert rule.is_valid("red", context) is True
        assert rule.is_valid("blue", context) is False
        assert rule.format_message("colour") == "The colour field must be one of: 'red', 'green'."

    def test_predicate(self, context):
        def is_even(value):
            return value % 2 == 0

        rule = Predicate(is_even)

        assert rule.name == "is_even"
        assert rule.is_valid(4, context) is True
        assert rule.is_valid(3, context) is False


class TestCommonBehaviour:
    """Behaviour shared by all rules."""

    @pytest.mark.parametrize("rule", [
        MinLength(1),
        MaxLength(1),
        StringLength(1),
        Range(1, 2),
        RegularExpression("x"),
        EmailAddress(),
        AllowedValues("a"),
        Predicate(bool),
    ])
    def test_none_is_valid_for_non_required_rules(self, context, rule):
        assert rule.is_valid(None, context) is True

    def test_custom_message(self, context):
        rule = Range(1, 2, error_message="{name} out of range ({minimum}-{maximum})")

        assert rule.get_result(5, context).error_message == "code out of range (1-2)"

    def test_display_name_in_message(self):
        context = ValidationContext(instance=object(), member_name="code", display_name="Product code")

        result = Required().get_result(None, context)

        assert result.error_message == "The Product code field is required."
        assert result.member_names == ("code",)

    def test_valid_value_gives_no_result(self, context):
        assert Range(1, 2).get_result(1, context) is None

    def test_context_display_name_defaults(self):
        assert ValidationContext(instance=object(), member_name="code").display_name == "code"
        assert ValidationContext(instance=object()).display_name == "object"

    def test_result_member_names_become_tuple(self):
        assert ValidationResult("bad", ["a", "b"]).member_names == ("a", "b")
