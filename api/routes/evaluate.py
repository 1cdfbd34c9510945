"""Form evaluation endpoints.

Every request carries its own data snapshot; the service keeps no
per-user state between requests.
"""

import logging
import time

from fastapi import APIRouter, HTTPException

from api.routes.forms import get_form
from api.schemas.requests import ChangeRequest, SnapshotRequest
from api.schemas.responses import (
    ChangeResponse, Diagnostic, FieldState, FieldValidateResponse, StateResponse,
    ValidateResponse,
)
from formlogic.canon import state_hash, state_hash_short
from formlogic.config import get_settings
from formlogic.engine import (
    CascadingUpdateController,
    recompute_active_state,
    validate_field,
    validate_form,
)
from formlogic.engine.field_validator import validate_fields
from formlogic.exceptions import FormLogicError
from formlogic.models import ActiveFieldState, FormDefinition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["Evaluation"])


def _states(active_state: dict[str, ActiveFieldState]) -> dict[str, FieldState]:
    return {name: FieldState(**s.to_dict()) for name, s in active_state.items()}


def _diagnostics(problems: list[FormLogicError]) -> list[Diagnostic]:
    return [Diagnostic(**p.to_dict()) for p in problems]


def _require_field(form: FormDefinition, name: str) -> None:
    if form.get_field(name) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Field '{name}' not found in form '{form.id}'",
        )


@router.post("/{form_id}/state", response_model=StateResponse)
async def compute_state(form_id: str, request: SnapshotRequest):
    """Compute visibility, required flags and modifications of every field."""
    form = get_form(form_id)
    started = time.perf_counter()

    problems: list[FormLogicError] = []
    active_state = recompute_active_state(
        form.fields, request.data, diagnostics=problems, sections=form.sections,
    )
    fingerprint = state_hash(active_state)

    logger.info(
        "Computed state for %s", form.id,
        extra={
            "form_id": form.id,
            "state_hash_short": state_hash_short(active_state),
            "duration_ms": round((time.perf_counter() - started) * 1000, 3),
        },
    )

    return StateResponse(
        form_id=form.id,
        active_state=_states(active_state),
        visible_fields=[n for n, s in active_state.items() if s.visible],
        required_fields=[n for n, s in active_state.items() if s.visible and s.required],
        state_hash=fingerprint,
        diagnostics=_diagnostics(problems),
    )


@router.post("/{form_id}/validate", response_model=ValidateResponse)
async def validate_submission(form_id: str, request: SnapshotRequest):
    """Validate every visible field, as on submit."""
    form = get_form(form_id)

    active_state = recompute_active_state(form.fields, request.data, sections=form.sections)
    result = validate_form(request.data, form.fields, active_state)

    return ValidateResponse(
        form_id=form.id,
        is_valid=result.is_valid,
        errors=result.errors,
        state_hash=state_hash(active_state),
    )


@router.post("/{form_id}/fields/{field_name}/validate", response_model=FieldValidateResponse)
async def validate_single_field(form_id: str, field_name: str, request: SnapshotRequest):
    """Validate one field under the conditional state of the snapshot."""
    form = get_form(form_id)
    _require_field(form, field_name)

    active_state = recompute_active_state(form.fields, request.data, sections=form.sections)
    state = active_state[field_name]

    errors: list[str] = []
    if state.visible:
        effective = form.get_field(field_name).effective(state)
        errors = validate_field(request.data.get(field_name), effective, request.data)

    return FieldValidateResponse(
        form_id=form.id,
        field_name=field_name,
        visible=state.visible,
        required=state.required,
        errors=errors,
        is_valid=not errors,
    )


@router.post("/{form_id}/changes", response_model=ChangeResponse)
async def apply_change(form_id: str, request: ChangeRequest):
    """
    Apply one value change and return its cascade.

    Fields hidden by the change are cleared in `snapshot_patch`; touched
    fields whose required flag flipped are revalidated.
    """
    form = get_form(form_id)
    _require_field(form, request.field_id)

    controller = CascadingUpdateController(
        form.fields, sections=form.sections, settings=get_settings(),
    )
    result = controller.on_value_change(
        request.field_id, request.value, request.data, touched=request.touched,
    )

    patched = {**request.data, **result.snapshot_patch}
    revalidation = validate_fields(
        result.revalidate_field_ids, patched, form.fields, result.active_state,
    )
    fingerprint = state_hash(result.active_state)

    if result.cleared_field_ids:
        logger.info(
            "Change of %s cleared %d fields", request.field_id, len(result.cleared_field_ids),
            extra={"form_id": form.id, "field_name": request.field_id},
        )

    return ChangeResponse(
        form_id=form.id,
        field_id=result.field_id,
        snapshot_patch=result.snapshot_patch,
        cleared_field_ids=result.cleared_field_ids,
        revalidate_field_ids=result.revalidate_field_ids,
        affected_field_ids=result.affected_field_ids,
        revalidation_errors=revalidation,
        active_state=_states(result.active_state),
        state_hash=fingerprint,
        diagnostics=_diagnostics(result.diagnostics),
    )
