"""
FormLogic Runtime State

Derived and session state of a rendered form.

Key components:
- ActiveFieldState: computed {visible, required, modifications} per field
- ValidationState: immutable record of errors and touched fields
- Validation actions and reduce_validation(): pure state transitions
- Result records returned by the validator, orchestrator and cascade

ValidationState is never mutated. Every change goes through
reduce_validation(state, action), which returns a new record, so the
orchestrator's history is a plain sequence of values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from ..exceptions import FormLogicError


# =============================================================================
# Active Field State
# =============================================================================

@dataclass(frozen=True)
class ActiveFieldState:
    """
    Computed conditional state of one field for one data snapshot.

    Attributes:
        visible: Whether the field is part of the active form
        required: Static required OR the required condition
        modifications: Merged overrides of all modifications that hold
    """
    visible: bool = True
    required: bool = False
    modifications: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "required": self.required,
            "modifications": dict(self.modifications),
        }


ActiveState = Mapping[str, ActiveFieldState]


def visible_names(active_state: ActiveState) -> list[str]:
    """Names of visible fields, in the mapping's (declaration) order."""
    return [name for name, state in active_state.items() if state.visible]


# =============================================================================
# Validation State and Reducer
# =============================================================================

@dataclass(frozen=True)
class ValidationState:
    """
    Errors and touched flags of a form.

    `field_errors` maps a field name to its ordered messages. Fields with no
    errors have no entry. Validity is derived against a visible-field set,
    so errors of hidden fields never count.
    """
    field_errors: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    touched_fields: frozenset[str] = frozenset()

    def errors_for(self, visible: Iterable[str]) -> dict[str, list[str]]:
        """Errors restricted to the given visible fields."""
        visible_set = set(visible)
        return {
            name: list(messages)
            for name, messages in self.field_errors.items()
            if name in visible_set and messages
        }

    def is_valid_for(self, visible: Iterable[str]) -> bool:
        return not self.errors_for(visible)

    def is_touched(self, name: str) -> bool:
        return name in self.touched_fields


@dataclass(frozen=True)
class TouchFields:
    """Mark fields as touched."""
    names: tuple[str, ...]


@dataclass(frozen=True)
class SetFieldErrors:
    """Replace a field's error list (an empty list removes the entry)."""
    name: str
    errors: tuple[str, ...]


@dataclass(frozen=True)
class ClearField:
    """Reset a field to untouched with no errors."""
    name: str


@dataclass(frozen=True)
class ClearAll:
    """Reset every field."""


ValidationAction = Union[TouchFields, SetFieldErrors, ClearField, ClearAll]


def reduce_validation(state: ValidationState, action: ValidationAction) -> ValidationState:
    """
    Apply one action to a validation state.

    Args:
        state: Current state (not modified)
        action: Tagged transition

    Returns:
        The next ValidationState
    """
    if isinstance(action, TouchFields):
        return ValidationState(
            field_errors=state.field_errors,
            touched_fields=state.touched_fields | frozenset(action.names),
        )

    if isinstance(action, SetFieldErrors):
        errors = dict(state.field_errors)
        if action.errors:
            errors[action.name] = tuple(action.errors)
        else:
            errors.pop(action.name, None)
        return ValidationState(field_errors=errors, touched_fields=state.touched_fields)

    if isinstance(action, ClearField):
        errors = dict(state.field_errors)
        errors.pop(action.name, None)
        return ValidationState(
            field_errors=errors,
            touched_fields=state.touched_fields - {action.name},
        )

    if isinstance(action, ClearAll):
        return ValidationState()

    raise TypeError(f"Unknown validation action: {type(action).__name__}")


# =============================================================================
# Result Records
# =============================================================================

@dataclass(frozen=True)
class FieldValidationStatus:
    """Validation view of a single field."""
    name: str
    errors: tuple[str, ...] = ()
    touched: bool = False
    visible: bool = True

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def show_errors(self) -> bool:
        return self.touched and self.has_errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "errors": list(self.errors),
            "touched": self.touched,
            "visible": self.visible,
            "is_valid": self.is_valid,
        }


@dataclass
class FormValidationResult:
    """
    Whole-form validation outcome.

    Attributes:
        is_valid: True iff no visible field has errors
        errors: Field name -> ordered messages, failing fields only
    """
    is_valid: bool
    errors: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"is_valid": self.is_valid, "errors": dict(self.errors)}


@dataclass
class CascadeResult:
    """
    Outcome of one value change.

    The caller applies `snapshot_patch` to its data: every cleared field
    maps to None there. The core never writes to the caller's snapshot.

    Attributes:
        field_id: Field whose value changed
        snapshot_patch: Values the caller should write back
        cleared_field_ids: Fields hidden by this change, in hide order
        revalidate_field_ids: Touched fields whose required flag flipped
        affected_field_ids: Direct dependents of the changed field
        active_state: Active state after the change settled
        diagnostics: Configuration problems seen while cascading
    """
    field_id: str
    snapshot_patch: dict[str, Any] = field(default_factory=dict)
    cleared_field_ids: list[str] = field(default_factory=list)
    revalidate_field_ids: list[str] = field(default_factory=list)
    affected_field_ids: list[str] = field(default_factory=list)
    active_state: dict[str, ActiveFieldState] = field(default_factory=dict)
    diagnostics: list[FormLogicError] = field(default_factory=list)

    @property
    def clear_instructions(self) -> list[str]:
        return list(self.cleared_field_ids)

    def to_dict(self, state_hash: Optional[str] = None) -> dict[str, Any]:
        result: dict[str, Any] = {
            "field_id": self.field_id,
            "snapshot_patch": dict(self.snapshot_patch),
            "cleared_field_ids": list(self.cleared_field_ids),
            "revalidate_field_ids": list(self.revalidate_field_ids),
            "affected_field_ids": list(self.affected_field_ids),
            "active_state": {
                name: state.to_dict() for name, state in self.active_state.items()
            },
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
        if state_hash is not None:
            result["state_hash"] = state_hash
        return result
