"""Response schemas for the API."""

from pydantic import BaseModel
from typing import Any, Optional


class FormSummary(BaseModel):
    """Form pack listing entry."""
    id: str
    title: str
    version: str
    field_count: int
    section_count: int
    content_hash: Optional[str] = None


class FieldDetail(BaseModel):
    """A field definition as authored."""
    name: str
    type: str
    label: str
    required: bool
    rules: dict[str, Any]
    options: list[Any]
    visibility: Optional[dict[str, Any]] = None
    required_when: Optional[dict[str, Any]] = None
    modification_count: int = 0
    depends_on: list[str]


class SectionDetail(BaseModel):
    id: str
    title: str
    fields: list[str]
    visibility: Optional[dict[str, Any]] = None


class FormDetail(BaseModel):
    """Full form definition with its dependency graph."""
    id: str
    title: str
    version: str
    description: Optional[str] = None
    content_hash: Optional[str] = None
    fields: list[FieldDetail]
    sections: list[SectionDetail]


class Diagnostic(BaseModel):
    """A configuration problem (never fatal)."""
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[dict[str, Any]] = None


class DiagnosticsResponse(BaseModel):
    form_id: str
    ok: bool
    diagnostics: list[Diagnostic]


class FieldState(BaseModel):
    """Conditional state of one field."""
    visible: bool
    required: bool
    modifications: dict[str, Any]


class StateResponse(BaseModel):
    """Active state of every field for a snapshot."""
    form_id: str
    active_state: dict[str, FieldState]
    visible_fields: list[str]
    required_fields: list[str]
    state_hash: str
    diagnostics: list[Diagnostic]


class ValidateResponse(BaseModel):
    """Submit-style validation of every visible field."""
    form_id: str
    is_valid: bool
    errors: dict[str, list[str]]
    state_hash: str


class FieldValidateResponse(BaseModel):
    form_id: str
    field_name: str
    visible: bool
    required: bool
    errors: list[str]
    is_valid: bool


class ChangeResponse(BaseModel):
    """Outcome of one value change and its cascade."""
    form_id: str
    field_id: str
    snapshot_patch: dict[str, Any]
    cleared_field_ids: list[str]
    revalidate_field_ids: list[str]
    affected_field_ids: list[str]
    revalidation_errors: dict[str, list[str]]
    active_state: dict[str, FieldState]
    state_hash: str
    diagnostics: list[Diagnostic]
