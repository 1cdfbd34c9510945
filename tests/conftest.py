"""
Pytest configuration and fixtures for FormLogic tests.

Provides helper factories and common fixtures matching actual model definitions.
"""
import logging
from pathlib import Path

import pytest

from formlogic.config import Settings, reset_settings_cache
from formlogic.models import (
    Condition,
    CompositeCondition,
    FieldConditions,
    FieldDefinition,
    FieldType,
    FormDefinition,
    LeafCondition,
    Modification,
    RunMode,
    SectionDefinition,
)

PACKS_DIR = Path(__file__).parent.parent / "packs"


# =============================================================================
# Factory Helpers
# =============================================================================

def make_condition(
    field: str = None,
    operator: str = "equals",
    value=None,
    conditions: list = None,
    logical_operator: str = "AND",
) -> Condition:
    """Create a leaf condition, or a composite when `conditions` is given."""
    if conditions is not None:
        return CompositeCondition(conditions=list(conditions), logical_operator=logical_operator)
    return LeafCondition(field=field, operator=operator, value=value)


def make_field(
    name: str,
    type: FieldType = FieldType.TEXT,
    label: str = None,
    required: bool = False,
    rules=None,
    visibility: Condition = None,
    required_when: Condition = None,
    modifications: list = None,
    **kwargs,
) -> FieldDefinition:
    """Create a FieldDefinition with its conditional slots flattened."""
    return FieldDefinition(
        name=name,
        type=type,
        label=label or name,
        required=required,
        rules=rules or {},
        conditions=FieldConditions(
            visibility=visibility,
            required=required_when,
            modifications=[
                m if isinstance(m, Modification) else Modification(condition=m[0], changes=m[1])
                for m in (modifications or [])
            ],
        ),
        **kwargs,
    )


def make_section(
    id: str,
    fields: list,
    visibility: Condition = None,
    title: str = None,
) -> SectionDefinition:
    return SectionDefinition(id=id, title=title or id.title(), fields=list(fields), visibility=visibility)


def make_form(
    fields: list,
    id: str = "test_form",
    title: str = "Test Form",
    sections: list = None,
) -> FormDefinition:
    """Create a FormDefinition with required fields."""
    return FormDefinition(id=id, title=title, fields=list(fields), sections=list(sections or []))


def make_settings(**overrides) -> Settings:
    """Settings with test defaults (production mode unless overridden)."""
    values = {"mode": RunMode.PROD, "strict_invariants": False}
    values.update(overrides)
    return Settings(**values)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; tests must not leak environments."""
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture(autouse=True)
def _reset_formlogic_logging():
    """Drop handlers installed by configure_logging() during a test."""
    logger = logging.getLogger("formlogic")
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if getattr(handler, "_formlogic_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def strict_settings():
    return make_settings(mode=RunMode.DEV, strict_invariants=True)


@pytest.fixture
def children_fields():
    """hasChildren checkbox controlling a conditionally required age field."""
    return [
        make_field("hasChildren", type=FieldType.CHECKBOX, label="Has children"),
        make_field(
            "age",
            type=FieldType.NUMBER,
            label="Age",
            rules={"min": 0, "max": 17},
            visibility=make_condition("hasChildren", "equals", True),
            required_when=make_condition("hasChildren", "equals", True),
        ),
    ]


@pytest.fixture
def email_field():
    return make_field("email", type=FieldType.EMAIL, label="Email", required=True, rules=["email"])


@pytest.fixture
def family_pack_path():
    return PACKS_DIR / "family_intake.yaml"


@pytest.fixture
def job_pack_path():
    return PACKS_DIR / "job_application.yaml"
