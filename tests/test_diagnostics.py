"""
Tests for FormLogic Configuration Diagnostics

Tests cover:
- Cycle reporting
- Unknown field references from fields and sections
- Unknown operators and malformed patterns
- Rule support per field type
"""
from formlogic.engine import collect_diagnostics
from formlogic.engine.diagnostics import check_condition, check_rules
from formlogic.exceptions import (
    CircularDependencyError,
    InvalidPatternError,
    UnknownFieldReferenceError,
    UnknownOperatorError,
    UnsupportedRuleError,
)
from formlogic.models import AND, EQ, LEAF, MATCHES, FieldType

from tests.conftest import make_condition, make_field, make_section


class TestCollectDiagnostics:

    def test_clean_form(self, children_fields):
        assert collect_diagnostics(children_fields) == []

    def test_cycle_comes_first(self):
        fields = [
            make_field("A", visibility=EQ("B", 1)),
            make_field("B", visibility=EQ("A", 1), rules={"slider": 3}),
        ]
        problems = collect_diagnostics(fields)
        assert isinstance(problems[0], CircularDependencyError)
        assert isinstance(problems[1], UnsupportedRuleError)

    def test_unknown_reference(self):
        problems = collect_diagnostics([make_field("a", required_when=EQ("ghost", 1))])
        assert len(problems) == 1
        assert isinstance(problems[0], UnknownFieldReferenceError)
        assert problems[0].details == {"owner": "a", "reference": "ghost"}

    def test_section_problems(self):
        sections = [make_section("s", ["a", "ghost"], visibility=EQ("phantom", True))]
        problems = collect_diagnostics([make_field("a")], sections)
        assert [p.details["reference"] for p in problems] == ["phantom", "ghost"]

    def test_duplicates_collapse(self):
        condition = EQ("ghost", 1)
        fields = [make_field("a", visibility=condition, required_when=condition)]
        assert len(collect_diagnostics(fields)) == 1


class TestCheckCondition:

    def test_unknown_operators(self):
        condition = AND(LEAF("a", "sounds_like", "x"), make_condition(conditions=[], logical_operator="XOR"))
        problems = check_condition(condition, "b", {"a"})
        assert [type(p) for p in problems] == [UnknownOperatorError, UnknownOperatorError]

    def test_invalid_pattern(self):
        problems = check_condition(MATCHES("a", "(unclosed"), "b", {"a"})
        assert len(problems) == 1
        assert isinstance(problems[0], InvalidPatternError)
        assert problems[0].field_name == "b"


class TestCheckRules:

    def test_supported_rules_are_clean(self):
        field = make_field("e", type=FieldType.EMAIL, rules={"email": True, "minLength": 3})
        assert check_rules(field) == []

    def test_rule_not_supported_by_type(self):
        problems = check_rules(make_field("n", type=FieldType.NUMBER, rules={"email": True}))
        assert len(problems) == 1
        assert problems[0].details == {"rule": "email", "type": "number"}

    def test_rule_without_checker(self):
        problems = check_rules(make_field("t", rules={"telepathy": True}))
        assert problems[0].details == {"rule": "telepathy"}

    def test_bad_pattern_rule(self):
        problems = check_rules(make_field("t", rules={"pattern": "[a-"}))
        assert [type(p) for p in problems] == [InvalidPatternError]
