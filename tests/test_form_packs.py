"""
Tests for FormLogic Form Pack Loading

Tests cover:
- Loading the bundled packs from YAML
- Loading from YAML and JSON strings
- Schema validation failures (unknown keys, malformed conditions)
- Reference integrity (titles, duplicates, sections)
- Schema version checks
- Directory loading and the form cache
"""
import json

import pytest
from pydantic import ValidationError

from formlogic.canon import content_hash
from formlogic.engine import collect_diagnostics, recompute_active_state
from formlogic.exceptions import (
    FormNotFoundError,
    FormPackLoadError,
    FormPackValidationError,
    FormPackVersionMismatch,
)
from formlogic.models import CompositeCondition, FieldType, LeafCondition, LogicalOperator
from formlogic.packs import (
    FormPackLoader,
    check_schema_version,
    load_form_pack,
    load_form_pack_from_string,
    validate_form_pack,
    validate_reference_integrity,
)

from tests.conftest import PACKS_DIR, make_field, make_form, make_section


MINIMAL_PACK = """
schema_version: "1.0.0"
id: minimal
title: Minimal
fields:
  - name: a
    type: text
"""


@pytest.fixture
def loader():
    return FormPackLoader()


def pack(**overrides):
    data = {
        "schema_version": "1.0.0",
        "id": "sample",
        "title": "Sample",
        "fields": [{"name": "a", "type": "text"}],
    }
    data.update(overrides)
    return data


# =============================================================================
# Bundled Pack Tests
# =============================================================================

class TestBundledPacks:

    def test_family_intake(self, loader, family_pack_path):
        form = loader.load(family_pack_path)

        assert form.id == "family_intake"
        assert form.title == "Family Intake"
        assert form.version == "1.2"
        assert form.field_names == [
            "fullName", "email", "contactPreference", "phone",
            "hasChildren", "age", "childcare", "notes",
        ]
        assert [s.id for s in form.sections] == ["contact", "children"]
        assert form.content_hash is not None and len(form.content_hash) == 64

    def test_family_intake_conditions(self, loader, family_pack_path):
        form = loader.load(family_pack_path)

        age = form.get_field("age")
        assert age.type == FieldType.NUMBER
        assert age.rules == {"min": 0, "max": 17}
        assert isinstance(age.conditions.visibility, LeafCondition)
        assert age.conditions.visibility.value is True

        childcare = form.get_field("childcare")
        visibility = childcare.conditions.visibility
        assert isinstance(visibility, CompositeCondition)
        assert visibility.logical_operator == LogicalOperator.AND
        assert len(visibility.conditions) == 2
        assert childcare.conditions.modifications[0].changes["label"] == "Pre-school childcare"

        contact = form.get_field("contactPreference")
        assert contact.options[0] == {"value": "email", "label": "Email"}

    def test_job_application(self, loader, job_pack_path):
        form = loader.load(job_pack_path)

        employee_id = form.get_field("employeeId")
        assert employee_id.rules == {"pattern": "^EMP-[0-9]{4}$"}
        assert employee_id.pattern_message == "Employee ID must look like EMP-1234"

        resume = form.get_field("resume")
        assert resume.accept == ".pdf,.doc,.docx"
        assert resume.max_size == 5242880

        portfolio = form.get_field("portfolioUrl")
        assert portfolio.conditions.visibility.logical_operator == LogicalOperator.OR

    @pytest.mark.parametrize("file_name", ["family_intake.yaml", "job_application.yaml"])
    def test_bundled_packs_have_no_diagnostics(self, loader, file_name):
        form = loader.load(PACKS_DIR / file_name)
        assert collect_diagnostics(form.fields, form.sections) == []

    def test_content_hash_matches_source(self, loader):
        form = loader.load_string(MINIMAL_PACK)
        assert form.content_hash == content_hash({
            "schema_version": "1.0.0",
            "id": "minimal",
            "title": "Minimal",
            "fields": [{"name": "a", "type": "text"}],
        })


# =============================================================================
# String Loading Tests
# =============================================================================

class TestLoadString:

    def test_yaml_string(self, loader):
        form = loader.load_string(MINIMAL_PACK)
        assert form.id == "minimal"
        assert loader.get_form("minimal") is form

    def test_json_string(self, loader):
        form = loader.load_string(json.dumps(pack()), format="json")
        assert form.fields[0].name == "a"
        assert form.fields[0].label == "a"

    def test_convenience_function(self):
        assert load_form_pack_from_string(MINIMAL_PACK).id == "minimal"

    def test_unparseable_yaml(self, loader):
        with pytest.raises(FormPackLoadError):
            loader.load_string("fields: [unclosed")

    def test_top_level_must_be_mapping(self, loader):
        with pytest.raises(FormPackLoadError):
            loader.load_string("- just\n- a list\n")

    def test_rules_alias(self, loader):
        form = loader.load_string(json.dumps(pack(fields=[
            {"name": "a", "type": "text", "rules": {"minLength": 2}},
        ])), format="json")
        assert form.fields[0].rules == {"minLength": 2}


# =============================================================================
# Schema Validation Tests
# =============================================================================

class TestSchemaValidation:

    def test_unknown_top_level_key(self, loader):
        with pytest.raises(FormPackValidationError) as exc_info:
            loader.load_string(json.dumps(pack(colour="blue")), format="json")
        assert exc_info.value.details["errors"][0]["loc"] == ("colour",)

    def test_unknown_field_type(self, loader):
        with pytest.raises(FormPackValidationError):
            loader.load_string(json.dumps(pack(fields=[{"name": "a", "type": "slider"}])), format="json")

    def test_leaf_without_operator(self, loader):
        fields = [
            {"name": "a"},
            {"name": "b", "conditions": {"visibility": {"field": "a"}}},
        ]
        with pytest.raises(FormPackValidationError):
            loader.load_string(json.dumps(pack(fields=fields)), format="json")

    def test_composite_with_leaf_keys(self):
        data = pack(fields=[
            {"name": "a"},
            {"name": "b", "conditions": {"visibility": {
                "field": "a", "operator": "equals", "value": 1,
                "conditions": [{"field": "a", "operator": "is_empty"}],
            }}},
        ])
        with pytest.raises(ValidationError):
            validate_form_pack(data)

    def test_pattern_condition_needs_string(self, loader):
        fields = [
            {"name": "a"},
            {"name": "b", "conditions": {"visibility": {"field": "a", "operator": "matches_pattern", "value": 5}}},
        ]
        with pytest.raises(FormPackValidationError):
            loader.load_string(json.dumps(pack(fields=fields)), format="json")

    def test_unknown_operator_loads_and_degrades(self, loader):
        fields = [
            {"name": "a"},
            {"name": "b", "conditions": {"visibility": {"field": "a", "operator": "equalz", "value": "x"}}},
        ]
        form = loader.load_string(json.dumps(pack(fields=fields)), format="json")
        assert form.fields[1].conditions.visibility.operator == "equalz"

        problems = []
        state = recompute_active_state(form.fields, {"a": "x"}, diagnostics=problems)
        assert state["b"].visible is False
        assert [p.code for p in problems] == ["FL_CONFIG_UNKNOWN_OPERATOR"]

        diagnostics = collect_diagnostics(form.fields, form.sections)
        assert [d.code for d in diagnostics] == ["FL_CONFIG_UNKNOWN_OPERATOR"]
        assert "'equalz'" in diagnostics[0].message

    def test_lowercase_logical_operator_accepted(self, loader):
        fields = [
            {"name": "a"},
            {"name": "b", "conditions": {"visibility": {
                "logicalOperator": "or",
                "conditions": [{"field": "a", "operator": "is_empty"}],
            }}},
        ]
        form = loader.load_string(json.dumps(pack(fields=fields)), format="json")
        assert form.fields[1].conditions.visibility.logical_operator == LogicalOperator.OR


# =============================================================================
# Reference Integrity Tests
# =============================================================================

class TestReferenceIntegrity:

    def test_blank_title(self, loader):
        with pytest.raises(FormPackValidationError) as exc_info:
            loader.load_string(json.dumps(pack(title="  ")), format="json")
        assert "Form title is required" in exc_info.value.details["errors"]

    def test_duplicate_field_names(self):
        form = make_form([make_field("a"), make_field("b"), make_field("a")])
        with pytest.raises(ValueError, match="Duplicate field names: a"):
            validate_reference_integrity(form)

    def test_no_fields(self):
        with pytest.raises(ValueError, match="at least one field"):
            validate_reference_integrity(make_form([]))

    def test_section_with_unknown_field(self):
        form = make_form([make_field("a")], sections=[make_section("s", ["a", "ghost"])])
        with pytest.raises(ValueError, match="Section 's' references non-existent field 'ghost'"):
            validate_reference_integrity(form)

    def test_duplicate_section(self):
        form = make_form([make_field("a")], sections=[make_section("s", ["a"]), make_section("s", [])])
        with pytest.raises(ValueError, match="Duplicate section ID: 's'"):
            validate_reference_integrity(form)

    def test_unknown_condition_reference_is_not_fatal(self, loader):
        fields = [{"name": "a", "conditions": {"visibility": {"field": "ghost", "operator": "is_empty"}}}]
        form = loader.load_string(json.dumps(pack(fields=fields)), format="json")
        problems = collect_diagnostics(form.fields)
        assert [p.code for p in problems] == ["FL_CONFIG_UNKNOWN_FIELD_REFERENCE"]


# =============================================================================
# Schema Version Tests
# =============================================================================

class TestSchemaVersion:

    @pytest.mark.parametrize("version,compatible", [
        ("1.0.0", True),
        ("1.4.2", True),
        ("2.0.0", False),
        ("0.9", False),
    ])
    def test_check_schema_version(self, version, compatible):
        assert check_schema_version({"schema_version": version}) is compatible

    def test_missing_version_is_current(self):
        assert check_schema_version({}) is True

    def test_strict_loader_rejects_major_mismatch(self, loader):
        with pytest.raises(FormPackVersionMismatch) as exc_info:
            loader.load_string(json.dumps(pack(schema_version="2.0.0")), format="json")
        assert exc_info.value.details["pack_version"] == "2.0.0"

    def test_lenient_loader_accepts_mismatch(self):
        loader = FormPackLoader(strict_version=False)
        assert loader.load_string(json.dumps(pack(schema_version="2.0.0")), format="json").id == "sample"


# =============================================================================
# File and Directory Tests
# =============================================================================

class TestFilesAndDirectories:

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(FormPackLoadError) as exc_info:
            loader.load(tmp_path / "missing.yaml")
        assert exc_info.value.code == "FL_PACK_LOAD_ERROR"

    def test_json_file(self, tmp_path):
        path = tmp_path / "sample.json"
        path.write_text(json.dumps(pack()), encoding="utf-8")
        assert load_form_pack(path).id == "sample"

    def test_load_directory_skips_broken_packs(self, loader, tmp_path, caplog):
        (tmp_path / "a_good.yaml").write_text(MINIMAL_PACK, encoding="utf-8")
        (tmp_path / "b_broken.yaml").write_text("id: broken\nfields: 3\n", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("not a pack", encoding="utf-8")

        loaded = loader.load_directory(tmp_path)

        assert [f.id for f in loaded] == ["minimal"]
        assert loader.list_forms() == ["minimal"]
        assert "Skipping form pack" in caplog.text

    def test_load_missing_directory(self, loader, tmp_path):
        assert loader.load_directory(tmp_path / "nowhere") == []

    def test_bundled_directory(self, loader):
        loaded = loader.load_directory(PACKS_DIR)
        assert sorted(f.id for f in loaded) == ["family_intake", "job_application"]

    def test_require_form(self, loader):
        loader.load_string(MINIMAL_PACK)
        assert loader.require_form("minimal").id == "minimal"
        with pytest.raises(FormNotFoundError) as exc_info:
            loader.require_form("other")
        assert exc_info.value.details["available"] == ["minimal"]
