"""Form pack endpoints."""

from fastapi import APIRouter, HTTPException

from api.schemas.responses import (
    Diagnostic, DiagnosticsResponse, FieldDetail, FormDetail, FormSummary, SectionDetail,
)
from formlogic.engine import collect_diagnostics, extract_dependencies
from formlogic.exceptions import FormNotFoundError
from formlogic.models import FieldDefinition, FormDefinition, condition_to_dict
from formlogic.packs import FormPackLoader

router = APIRouter(prefix="/forms", tags=["Forms"])

# Shared loader instance (set by main.py)
loader: FormPackLoader = None


def set_loader(l: FormPackLoader):
    global loader
    loader = l


def get_form(form_id: str) -> FormDefinition:
    """Look up a loaded form, translating a miss into a 404."""
    try:
        return loader.require_form(form_id)
    except FormNotFoundError as e:
        raise HTTPException(
            status_code=404,
            detail=f"Form '{form_id}' not found. Available: {e.details.get('available', [])}",
        )


def _field_detail(f: FieldDefinition) -> FieldDetail:
    conditions = f.conditions
    depends_on: set[str] = set()
    depends_on |= extract_dependencies(conditions.visibility)
    depends_on |= extract_dependencies(conditions.required)
    for m in conditions.modifications:
        depends_on |= extract_dependencies(m.condition)

    return FieldDetail(
        name=f.name,
        type=f.type.value,
        label=f.label,
        required=f.required,
        rules=f.rules,
        options=f.options,
        visibility=condition_to_dict(conditions.visibility) if conditions.visibility else None,
        required_when=condition_to_dict(conditions.required) if conditions.required else None,
        modification_count=len(conditions.modifications),
        depends_on=sorted(depends_on),
    )


@router.get("", response_model=list[FormSummary])
async def list_forms():
    """List all loaded form packs."""
    forms = [loader.get_form(form_id) for form_id in loader.list_forms()]
    return [
        FormSummary(
            id=f.id,
            title=f.title,
            version=f.version,
            field_count=len(f.fields),
            section_count=len(f.sections),
            content_hash=f.content_hash,
        )
        for f in forms
    ]


@router.get("/{form_id}", response_model=FormDetail)
async def get_form_detail(form_id: str):
    """Get the full definition of a form, with each field's dependencies."""
    form = get_form(form_id)

    return FormDetail(
        id=form.id,
        title=form.title,
        version=form.version,
        description=form.description,
        content_hash=form.content_hash,
        fields=[_field_detail(f) for f in form.fields],
        sections=[
            SectionDetail(
                id=s.id,
                title=s.title,
                fields=s.fields,
                visibility=condition_to_dict(s.visibility) if s.visibility else None,
            )
            for s in form.sections
        ],
    )


@router.get("/{form_id}/diagnostics", response_model=DiagnosticsResponse)
async def get_form_diagnostics(form_id: str):
    """
    Report configuration problems of a form.

    Cycles, references to unknown fields, unknown operators, invalid
    patterns and unsupported rules. None of these stop the form from
    being evaluated.
    """
    form = get_form(form_id)
    problems = collect_diagnostics(form.fields, form.sections)
    return DiagnosticsResponse(
        form_id=form.id,
        ok=not problems,
        diagnostics=[Diagnostic(**p.to_dict()) for p in problems],
    )
