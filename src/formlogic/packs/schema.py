"""
FormLogic Form Pack Schemas

Pydantic models for validating form pack YAML/JSON files.

These schemas define the structure of form definitions that can be loaded
at runtime. They map to the domain models in formlogic.models.

Wire keys follow the authoring tools' camelCase (`logicalOperator`,
`maxSize`, `patternMessage`, `helpText`); snake_case is accepted too.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders should check version compatibility
"""
from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Enums as Literals (for YAML validation)
# =============================================================================

FieldTypeValue = Literal[
    "text", "textarea", "number", "email", "url", "phone",
    "select", "radio", "checkbox", "checkbox_group", "date", "file", "custom",
]

LogicalOperatorValue = Literal["AND", "OR"]


# =============================================================================
# Condition Schemas
# =============================================================================

class ConditionSchema(BaseModel):
    """
    Schema for a condition.

    A composite uses `conditions` (and optionally `logicalOperator`).
    A leaf uses `field`, `operator` and `value`.
    """
    # Leaf comparison
    field: Optional[str] = Field(None, description="Field whose value is compared")
    # Unknown operators load and are reported by collect_diagnostics()
    operator: Optional[str] = Field(None, description="Comparison operator")
    value: Any = Field(None, description="Literal to compare against")

    # Composite
    logical_operator: Optional[LogicalOperatorValue] = Field(
        None, alias="logicalOperator", description="AND (default) or OR"
    )
    conditions: Optional[list["ConditionSchema"]] = Field(
        None, description="Sub-conditions of a composite"
    )

    description: Optional[str] = Field(None, description="Human-readable description")

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }

    @field_validator("logical_operator", mode="before")
    @classmethod
    def upper_logical_operator(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_structure(self) -> "ConditionSchema":
        """Validate condition structure: composite or leaf, never both."""
        if self.conditions is not None:
            if self.field is not None or self.operator is not None:
                raise ValueError("A composite condition cannot also define 'field' or 'operator'")
            return self

        if not self.field:
            raise ValueError("A leaf condition requires 'field'")
        if self.operator is None:
            raise ValueError(f"Condition on '{self.field}' requires 'operator'")
        if self.logical_operator is not None:
            raise ValueError("'logicalOperator' is only valid with 'conditions'")
        if self.operator == "matches_pattern" and not isinstance(self.value, str):
            raise ValueError(f"Pattern condition on '{self.field}' requires a string value")
        return self

    @property
    def is_composite(self) -> bool:
        return self.conditions is not None


class ModificationSchema(BaseModel):
    """Schema for a condition-guarded field override."""
    condition: ConditionSchema = Field(..., description="When the override applies")
    changes: dict[str, Any] = Field(default_factory=dict, description="Attribute overrides")

    model_config = {"extra": "forbid"}


class FieldConditionsSchema(BaseModel):
    """Schema for the conditional slots of a field."""
    visibility: Optional[ConditionSchema] = None
    required: Optional[ConditionSchema] = None
    modifications: list[ModificationSchema] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


# =============================================================================
# Field Schemas
# =============================================================================

class OptionSchema(BaseModel):
    """Schema for a choice option."""
    value: Any = Field(..., description="Submitted value")
    label: Optional[str] = Field(None, description="Displayed label")


class FieldSchema(BaseModel):
    """Schema for one form field."""
    name: str = Field(..., min_length=1, description="Unique field identifier")
    type: FieldTypeValue = Field("text", description="Field type")
    label: Optional[str] = Field(None, description="Label used in messages (default: name)")
    required: bool = Field(False, description="Static required default")
    rules: Union[dict[str, Any], list[str]] = Field(
        default_factory=dict,
        alias="validation",
        description="Validation rules: mapping rule -> parameter, or list of rule tags",
    )
    conditions: Optional[FieldConditionsSchema] = None
    options: list[Union[OptionSchema, str, int, float, bool]] = Field(default_factory=list)
    accept: Optional[str] = Field(None, description="Accepted file types, comma separated")
    max_size: Optional[int] = Field(None, alias="maxSize", ge=0, description="Max file size in bytes")
    pattern_message: Optional[str] = Field(None, alias="patternMessage")
    help_text: Optional[str] = Field(None, alias="helpText")
    placeholder: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict, description="Free-form extras")

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }


# =============================================================================
# Section Schemas
# =============================================================================

class SectionConditionsSchema(BaseModel):
    visibility: Optional[ConditionSchema] = None

    model_config = {"extra": "forbid"}


class SectionSchema(BaseModel):
    """Schema for a group of fields shown or hidden together."""
    id: str = Field(..., min_length=1)
    title: str = Field("", description="Section title")
    description: Optional[str] = None
    fields: list[str] = Field(default_factory=list, description="Names of grouped fields")
    conditions: Optional[SectionConditionsSchema] = None

    model_config = {"extra": "forbid"}


# =============================================================================
# Form Pack Schema (Top-Level)
# =============================================================================

class FormPackSchema(BaseModel):
    """
    Top-level schema for a form pack YAML/JSON file.

    A form pack defines one form: its fields, their conditional logic and
    validation rules, and optional sections.
    """
    # Metadata
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    id: str = Field(..., min_length=1, description="Unique form identifier")
    title: str = Field("", description="Human-readable title")
    version: str = Field("1.0", description="Form version string")
    description: Optional[str] = None

    fields: list[FieldSchema] = Field(default_factory=list, description="Form fields in order")
    sections: list[SectionSchema] = Field(default_factory=list, description="Optional sections")

    model_config = {
        "extra": "forbid",  # Reject unknown fields
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_form_pack(data: dict[str, Any]) -> FormPackSchema:
    """
    Validate a form pack dictionary against the schema.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return FormPackSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """
    Check if a form pack's schema version is compatible.

    Only the major version has to match.
    """
    pack_version = str(data.get("schema_version", SCHEMA_VERSION))
    pack_major = pack_version.split(".")[0]
    current_major = SCHEMA_VERSION.split(".")[0]
    return pack_major == current_major
