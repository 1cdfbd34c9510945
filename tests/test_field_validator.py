"""
Tests for FormLogic Field Validator

Tests cover:
- Required handling and the empty-value short circuit
- Every built-in rule and its message
- File size and type checks
- Custom and registered validators
- Form-level validation skipping hidden fields
"""
import pytest

from formlogic.engine.field_validator import (
    DEFAULT_MAX_FILE_SIZE,
    VALIDATION_ERROR_MESSAGE,
    has_validator,
    register_custom_validator,
    register_validator,
    supported_rules,
    unregister_custom_validator,
    unregister_validator,
    validate_field,
    validate_fields,
    validate_form,
)
from formlogic.models import EQ, ActiveFieldState, FieldType

from tests.conftest import make_field


# =============================================================================
# Required Tests
# =============================================================================

class TestRequired:

    @pytest.mark.parametrize("value", [None, "", "   ", []])
    def test_required_empty_yields_single_message(self, value):
        field = make_field("name", label="Full name", required=True, rules={"minLength": 3})
        assert validate_field(value, field) == ["Full name is required"]

    @pytest.mark.parametrize("value", [None, "", []])
    def test_optional_empty_runs_no_rules(self, value):
        field = make_field("name", rules={"minLength": 3, "pattern": "^x"})
        assert validate_field(value, field) == []

    def test_zero_and_false_are_values(self):
        assert validate_field(0, make_field("n", type=FieldType.NUMBER, required=True)) == []
        assert validate_field(False, make_field("c", type=FieldType.CHECKBOX, required=True)) == []

    def test_required_rule_tag(self):
        field = make_field("email", type=FieldType.EMAIL, rules=["required", "email"])
        assert field.required is True
        assert validate_field("", field) == ["email is required"]


# =============================================================================
# Rule Tests
# =============================================================================

class TestRules:

    @pytest.mark.parametrize("rules,value,expected", [
        ({"minLength": 3}, "ab", ["Name must be at least 3 characters long"]),
        ({"minLength": 3}, "abc", []),
        ({"maxLength": 5}, "abcdef", ["Name must be no more than 5 characters long"]),
        ({"pattern": "^[A-Z]"}, "abc", ["Name format is invalid"]),
        ({"pattern": "^[A-Z]"}, "Abc", []),
        ({"email": True}, "not-an-email", ["Name must be a valid email address"]),
        ({"email": True}, "a@b.co", []),
        ({"url": True}, "example.com", ["Name must be a valid URL"]),
        ({"url": True}, "https://example.com", []),
        ({"phone": True}, "+1 (555) 123-4567", []),
        ({"phone": True}, "0123", ["Name must be a valid phone number"]),
    ])
    def test_text_rules(self, rules, value, expected):
        assert validate_field(value, make_field("name", label="Name", rules=rules)) == expected

    @pytest.mark.parametrize("rules,value,expected", [
        ({"min": 0, "max": 17}, 18, ["Age must be no more than 17"]),
        ({"min": 0, "max": 17}, -1, ["Age must be at least 0"]),
        ({"min": 0, "max": 17}, "7", []),
        ({"minValue": 1.5}, 1, ["Age must be at least 1.5"]),
        ({"min": 0}, "abc", []),
    ])
    def test_number_rules(self, rules, value, expected):
        field = make_field("age", type=FieldType.NUMBER, label="Age", rules=rules)
        assert validate_field(value, field) == expected

    def test_all_messages_kept_in_declaration_order(self):
        field = make_field("code", label="Code", rules={"pattern": "^[0-9]+$", "minLength": 4})
        assert validate_field("ab", field) == [
            "Code format is invalid",
            "Code must be at least 4 characters long",
        ]

    def test_pattern_message(self):
        field = make_field(
            "employeeId", rules={"pattern": r"^EMP-\d{4}$"},
            pattern_message="Employee ID must look like EMP-1234",
        )
        assert validate_field("E1", field) == ["Employee ID must look like EMP-1234"]

    def test_invalid_pattern_rule_is_skipped(self):
        assert validate_field("x", make_field("a", rules={"pattern": "["})) == []

    def test_list_style_rule_reads_parameter_from_properties(self):
        field = make_field("name", label="Name", rules=["minLength"], properties={"minLength": 4})
        assert validate_field("abc", field) == ["Name must be at least 4 characters long"]

    def test_selection_limits(self):
        field = make_field(
            "skills", type=FieldType.CHECKBOX_GROUP,
            rules={"minSelections": 1, "maxSelections": 2},
        )
        assert validate_field(["a", "b", "c"], field) == ["Please select no more than 2 option(s)"]
        assert validate_field(["a"], field) == []


# =============================================================================
# File Tests
# =============================================================================

class TestFileRules:

    def test_default_size_limit(self):
        field = make_field("resume", type=FieldType.FILE)
        too_big = {"name": "cv.pdf", "size": DEFAULT_MAX_FILE_SIZE + 1, "type": "application/pdf"}
        assert validate_field(too_big, field) == ["File size must be less than 10MB"]

    def test_declared_max_size(self):
        field = make_field("resume", type=FieldType.FILE, max_size=5 * 1024 * 1024)
        assert validate_field({"name": "cv.pdf", "size": 6 * 1024 * 1024}, field) == [
            "File size must be less than 5MB"
        ]

    def test_accept_by_extension_and_mime(self):
        field = make_field("photo", type=FieldType.FILE, accept=".pdf,image/*")
        assert validate_field({"name": "cv.PDF", "size": 10, "type": ""}, field) == []
        assert validate_field({"name": "me.png", "size": 10, "type": "image/png"}, field) == []
        assert validate_field({"name": "run.exe", "size": 10, "type": "application/x-msdownload"}, field) == [
            "File type not allowed. Accepted types: .pdf,image/*"
        ]

    def test_file_objects(self):
        class Upload:
            name = "notes.txt"
            size = 1
            type = "text/plain"

        field = make_field("doc", type=FieldType.FILE, accept=".pdf")
        assert validate_field([Upload()], field) == ["File type not allowed. Accepted types: .pdf"]


# =============================================================================
# Registry Tests
# =============================================================================

class TestRegistry:

    def test_named_custom_validator(self):
        register_custom_validator(
            "postcode",
            lambda value, field_def: None if value.startswith("M") else f"{field_def.label} is not local",
        )
        try:
            field = make_field("postcode", label="Postcode", rules={"custom": "postcode"})
            assert validate_field("K1A", field) == ["Postcode is not local"]
            assert validate_field("M5V", field) == []
        finally:
            unregister_custom_validator("postcode")

    def test_callable_custom_rule(self):
        field = make_field("x", rules={"custom": lambda value, field_def: "nope"})
        assert validate_field("a", field) == ["nope"]

    def test_unknown_custom_validator_is_ignored(self):
        assert validate_field("a", make_field("x", rules={"custom": "missing"})) == []

    def test_register_rule(self):
        register_validator(
            "even",
            lambda value, param, field_def, data: None if int(value) % 2 == 0 else "Must be even",
        )
        try:
            assert has_validator("even")
            field = make_field("n", type=FieldType.NUMBER, rules={"even": True})
            assert validate_field(3, field) == ["Must be even"]
        finally:
            unregister_validator("even")
        assert not has_validator("even")

    def test_required_cannot_be_replaced(self):
        with pytest.raises(ValueError):
            register_validator("required", lambda *args: None)

    def test_failing_checker_reports_generic_message(self):
        def explode(value, param, field_def, data):
            raise RuntimeError("boom")

        register_validator("explode", explode)
        try:
            assert validate_field("a", make_field("x", rules={"explode": True})) == [VALIDATION_ERROR_MESSAGE]
        finally:
            unregister_validator("explode")

    def test_unknown_rule_is_ignored(self):
        assert validate_field("a", make_field("x", rules={"nonsense": 1})) == []

    def test_supported_rules(self):
        assert "email" in supported_rules(FieldType.EMAIL)
        assert "minSelections" not in supported_rules(FieldType.TEXT)
        assert "fileType" in supported_rules("file")


# =============================================================================
# Form Validation Tests
# =============================================================================

class TestValidateForm:

    def test_hidden_fields_are_skipped(self, children_fields):
        fields = children_fields + [
            make_field("secret", required=True, visibility=EQ("hasChildren", "never")),
        ]
        result = validate_form({"hasChildren": False}, fields)
        assert result.is_valid is True
        assert result.errors == {}

    def test_conditionally_required(self, children_fields):
        result = validate_form({"hasChildren": True}, children_fields)
        assert result.is_valid is False
        assert result.errors == {"age": ["Age is required"]}

    def test_uses_supplied_active_state(self, children_fields):
        active = {
            "hasChildren": ActiveFieldState(),
            "age": ActiveFieldState(visible=False, required=True),
        }
        assert validate_form({"hasChildren": True}, children_fields, active).is_valid is True

    def test_modifications_apply_to_rules(self):
        fields = [
            make_field("country"),
            make_field(
                "postcode", label="Postcode",
                modifications=[(EQ("country", "US"), {"validation": {"pattern": r"^\d{5}$"}})],
            ),
        ]
        assert validate_form({"country": "US", "postcode": "AB1"}, fields).errors == {
            "postcode": ["Postcode format is invalid"]
        }
        assert validate_form({"country": "CA", "postcode": "AB1"}, fields).is_valid

    def test_validate_fields_subset(self, children_fields):
        active = {
            "hasChildren": ActiveFieldState(),
            "age": ActiveFieldState(visible=True, required=True),
        }
        data = {"hasChildren": True, "age": 30}
        assert validate_fields(["age", "ghost"], data, children_fields, active) == {
            "age": ["Age must be no more than 17"]
        }


# =============================================================================
# Scenario Tests
# =============================================================================

class TestScenarios:

    def test_empty_optional_value_short_circuits_checkers(self):
        """Test no checker runs for an empty, non-required value."""
        calls = []

        def spy(value, param, field_def, data):
            calls.append(value)
            return "always fails"

        register_validator("spy", spy)
        try:
            field = make_field("x", rules={"spy": True})
            assert validate_field("", field) == []
            assert calls == []
            assert validate_field("a", field) == ["always fails"]
        finally:
            unregister_validator("spy")

    def test_email_rules(self):
        field = make_field("email", type=FieldType.EMAIL, label="Email", rules=["required", "email"])
        assert validate_field("not-an-email", field) == ["Email must be a valid email address"]
        assert validate_field("", field) == ["Email is required"]
