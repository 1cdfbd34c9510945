"""
FormLogic Form Session

One rendered form: its data snapshot, conditional state and validation.

FormSession wires a ConditionalRuleProcessor, a ValidationOrchestrator and
a CascadingUpdateController around a snapshot it owns, so a host only has
to forward user events:

    session = FormSession(form)
    session.on_value_change("hasChildren", True)
    session.touch_field("age")
    result = session.validate_for_submit()
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

from ..config import Settings, resolve_settings
from ..exceptions import FormLogicError
from ..models import (
    ActiveFieldState,
    CascadeResult,
    FieldDefinition,
    FieldValidationStatus,
    FormDefinition,
    FormValidationResult,
    SectionDefinition,
)
from .cascade import CascadingUpdateController
from .debounce import ManualScheduler, Scheduler
from .orchestrator import ValidationOptions, ValidationOrchestrator
from .rule_processor import ConditionalRuleProcessor


class FormSession:
    """Stateful facade over the conditional logic and validation engine."""

    def __init__(
        self,
        form: Union[FormDefinition, Sequence[FieldDefinition]],
        data: Optional[Mapping[str, Any]] = None,
        options: Optional[ValidationOptions] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
        sections: Optional[Sequence[SectionDefinition]] = None,
    ) -> None:
        if isinstance(form, FormDefinition):
            self.form: Optional[FormDefinition] = form
            fields = form.fields
            sections = sections if sections is not None else form.sections
        else:
            self.form = None
            fields = list(form)

        self.settings = resolve_settings(settings)
        self.scheduler = scheduler or ManualScheduler()
        self.data: dict[str, Any] = dict(data or {})

        self.processor = ConditionalRuleProcessor(fields, sections)
        self.orchestrator = ValidationOrchestrator(
            fields,
            snapshot=lambda: self.data,
            options=options,
            scheduler=self.scheduler,
            settings=self.settings,
            processor=self.processor,
        )
        self.controller = CascadingUpdateController(
            fields,
            orchestrator=self.orchestrator,
            settings=self.settings,
            processor=self.processor,
        )
        self.controller.initialize(self.data)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_value_change(self, field_id: str, value: Any) -> CascadeResult:
        """Apply a value change and everything it cascades into."""
        result = self.controller.on_value_change(field_id, value, self.data)
        self.data.update(result.snapshot_patch)
        return result

    def touch_field(self, name: str) -> None:
        self.orchestrator.touch_field(name)

    def touch_fields(self, names: Sequence[str]) -> None:
        self.orchestrator.touch_fields(names)

    def validate_field(self, name: str) -> list[str]:
        return self.orchestrator.validate_field_now(name)

    def validate_for_submit(self) -> FormValidationResult:
        return self.orchestrator.validate_for_submit()

    def clear_validation(self) -> None:
        self.orchestrator.clear_validation()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def active_state(self) -> dict[str, ActiveFieldState]:
        return self.orchestrator.active_state

    @property
    def visible_fields(self) -> list[FieldDefinition]:
        return self.processor.visible_fields(self.active_state)

    @property
    def required_fields(self) -> list[FieldDefinition]:
        return self.processor.required_fields(self.active_state)

    def effective_field(self, name: str) -> Optional[FieldDefinition]:
        return self.processor.effective_field(name, self.active_state)

    @property
    def errors(self) -> dict[str, list[str]]:
        return self.orchestrator.field_errors

    @property
    def visible_errors(self) -> dict[str, list[str]]:
        return self.orchestrator.visible_errors()

    @property
    def is_valid(self) -> bool:
        return self.orchestrator.is_valid

    def get_field_validation(self, name: str) -> FieldValidationStatus:
        return self.orchestrator.get_field_validation(name)

    @property
    def diagnostics(self) -> list[FormLogicError]:
        return self.processor.diagnostics
