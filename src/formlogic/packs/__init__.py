"""
FormLogic Form Packs

Schema validation and loading for form packs.

Form packs are YAML or JSON files that define one form: its fields,
their conditional visibility / required / modification logic, their
validation rules, and optional sections.

Usage:
    from formlogic.packs import load_form_pack, FormPackLoader

    # Load a single form pack
    form = load_form_pack("packs/family_intake.yaml")

    # Use a loader for multiple packs (caches forms by ID)
    loader = FormPackLoader()
    loader.load_directory("packs")
    form = loader.get_form("family_intake")
"""
from __future__ import annotations

from .loader import (
    FormPackLoader,
    load_form_pack,
    load_form_pack_from_string,
    validate_reference_integrity,
)
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    FieldConditionsSchema,
    FieldSchema,
    FormPackSchema,
    ModificationSchema,
    OptionSchema,
    SectionSchema,
    check_schema_version,
    validate_form_pack,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "FormPackLoader",
    "load_form_pack",
    "load_form_pack_from_string",
    # Validation
    "validate_form_pack",
    "validate_reference_integrity",
    "check_schema_version",
    # Schemas (for advanced usage)
    "FormPackSchema",
    "FieldSchema",
    "FieldConditionsSchema",
    "ConditionSchema",
    "ModificationSchema",
    "OptionSchema",
    "SectionSchema",
]
