"""
FormLogic Validation Orchestrator

Stateful coordinator of field and form validation for one session.

Per-field state machine: untouched -> touched(valid) <-> touched(invalid).

Key features:
- Touch tracking; errors are shown for touched fields only unless
  show_errors_immediately is set
- Debounced re-validation on value change, per field or per form
- Synchronous validate-now and validate-for-submit; submit cancels every
  pending debounced validation
- Hidden fields never contribute errors or affect validity
- Validation state is an immutable ValidationState advanced by
  reduce_validation(); the orchestrator only holds the latest value

The data snapshot is owned by the caller. The orchestrator reads it
through a zero-argument callable and never writes to it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..config import Settings, resolve_settings
from ..exceptions import UnknownFieldError
from ..models import (
    ActiveFieldState,
    ClearAll,
    ClearField,
    DebounceScope,
    FieldDefinition,
    FieldValidationStatus,
    FormValidationResult,
    SectionDefinition,
    SetFieldErrors,
    TouchFields,
    ValidationAction,
    ValidationState,
    reduce_validation,
    visible_names,
)
from ..models.state import ActiveState
from .debounce import Debouncer, ManualScheduler, Scheduler
from .field_validator import validate_field, validate_form
from .rule_processor import ConditionalRuleProcessor

logger = logging.getLogger(__name__)

FORM_DEBOUNCE_KEY = "__form__"

Snapshot = Callable[[], Mapping[str, Any]]


@dataclass
class ValidationOptions:
    """
    Validation behaviour of a session.

    Attributes:
        validate_on_change: Re-validate touched fields when their value changes
        validate_on_blur: Validate a field when it is touched
        debounce_ms: Per-field debounce delay (None = settings default)
        debounce_scope: One pending validation per field, or one per form
        form_debounce_ms: Delay for form-scope debounce (None = settings)
        show_errors_immediately: Expose errors of untouched fields too
    """
    validate_on_change: bool = True
    validate_on_blur: bool = True
    debounce_ms: Optional[int] = None
    debounce_scope: DebounceScope = DebounceScope.FIELD
    form_debounce_ms: Optional[int] = None
    show_errors_immediately: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.debounce_scope, DebounceScope):
            self.debounce_scope = DebounceScope(self.debounce_scope)


class ValidationOrchestrator:
    """
    Coordinates touch tracking, debouncing and validation.

    Usage:
        data = {"email": ""}
        orchestrator = ValidationOrchestrator(fields, snapshot=lambda: data)

        orchestrator.touch_field("email")
        data["email"] = "a@b.co"
        orchestrator.update_value("email", "a@b.co")

        result = orchestrator.validate_for_submit()

    Without an explicit scheduler a ManualScheduler is used; async hosts
    pass an AsyncioScheduler.
    """

    def __init__(
        self,
        fields: Sequence[FieldDefinition],
        snapshot: Snapshot,
        options: Optional[ValidationOptions] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
        sections: Optional[Sequence[SectionDefinition]] = None,
        processor: Optional[ConditionalRuleProcessor] = None,
    ) -> None:
        self.fields: list[FieldDefinition] = list(fields)
        self.snapshot = snapshot
        self.options = options or ValidationOptions()
        self.settings = resolve_settings(settings)
        self.scheduler = scheduler or ManualScheduler()
        self.processor = processor or ConditionalRuleProcessor(self.fields, sections)

        self._by_name = {f.name: f for f in self.fields}
        self._debouncer = Debouncer(self.scheduler, self._field_delay())
        self._state = ValidationState()
        self._active_state: dict[str, ActiveFieldState] = self.processor.recompute(self.snapshot())

    # =========================================================================
    # State
    # =========================================================================

    @property
    def validation_state(self) -> ValidationState:
        return self._state

    @property
    def active_state(self) -> dict[str, ActiveFieldState]:
        return dict(self._active_state)

    @property
    def visible_field_names(self) -> list[str]:
        return visible_names(self._active_state)

    @property
    def field_errors(self) -> dict[str, list[str]]:
        """Errors of visible fields."""
        return self._state.errors_for(self.visible_field_names)

    @property
    def is_valid(self) -> bool:
        return self._state.is_valid_for(self.visible_field_names)

    @property
    def touched_fields(self) -> frozenset[str]:
        return self._state.touched_fields

    def is_pending(self, name: str) -> bool:
        if self.options.debounce_scope == DebounceScope.FORM:
            return self._debouncer.is_pending(FORM_DEBOUNCE_KEY)
        return self._debouncer.is_pending(name)

    def get_field_validation(self, name: str) -> FieldValidationStatus:
        """Validation view of one field; hidden fields report no errors."""
        self._check_field(name)
        visible = self._is_visible(name)
        errors = self._state.field_errors.get(name, ()) if visible else ()
        return FieldValidationStatus(
            name=name,
            errors=tuple(errors),
            touched=self._state.is_touched(name),
            visible=visible,
        )

    def visible_errors(self) -> dict[str, list[str]]:
        """Errors a renderer should display right now."""
        errors = self.field_errors
        if self.options.show_errors_immediately:
            return errors
        return {
            name: messages
            for name, messages in errors.items()
            if self._state.is_touched(name)
        }

    # =========================================================================
    # Transitions
    # =========================================================================

    def touch_field(self, name: str) -> None:
        """Mark a field touched; validates it when validate_on_blur is set."""
        if not self._check_field(name):
            return
        self._dispatch(TouchFields((name,)))
        if self.options.validate_on_blur:
            self._validate_now(name)

    def touch_fields(self, names: Iterable[str]) -> None:
        known = tuple(n for n in names if self._check_field(n))
        if not known:
            return
        self._dispatch(TouchFields(known))
        if self.options.validate_on_blur:
            for name in known:
                self._validate_now(name)

    def update_value(self, name: str, value: Any) -> None:
        """
        Note a value change.

        Schedules a debounced re-validation when the field is touched and
        validate_on_change is set; otherwise validation waits for touch or
        submit.
        """
        if not self._check_field(name):
            return
        if not self.options.validate_on_change:
            return

        if self.options.debounce_scope == DebounceScope.FORM:
            if not self._state.touched_fields:
                return
            # Only the changed field is compared: the same change may clear
            # hidden fields after this call.
            self._debouncer.schedule(
                FORM_DEBOUNCE_KEY,
                value=value,
                callback=lambda _latest: self._validate_touched(),
                current_value=lambda: self.snapshot().get(name),
                delay_ms=self._form_delay(),
            )
            return

        if not self._state.is_touched(name):
            return
        self._debouncer.schedule(
            name,
            value=value,
            callback=lambda latest: self._validate_value(name, latest),
            current_value=lambda: self.snapshot().get(name),
        )

    def validate_field_now(
        self,
        name: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> list[str]:
        """
        Validate one field synchronously, cancelling its pending validation.

        Args:
            name: Field to validate (it becomes touched)
            data: Snapshot to read from instead of the caller's snapshot

        Returns:
            The field's messages (empty for hidden fields)
        """
        if not self._check_field(name):
            return []
        self._dispatch(TouchFields((name,)))
        return self._validate_now(name, data)

    def validate_for_submit(self) -> FormValidationResult:
        """
        Validate every visible field, ignoring debounce.

        Pending debounced validations are cancelled, active state is
        recomputed from the current snapshot, and every visible field is
        touched.
        """
        cancelled = self._debouncer.cancel_all()
        if cancelled:
            logger.debug("Submit cancelled %d pending validation(s)", cancelled)

        data = self.snapshot()
        self._active_state = self.processor.recompute(data, previous=self._active_state)
        visible = self.visible_field_names
        self._dispatch(TouchFields(tuple(visible)))

        result = validate_form(data, self.fields, active_state=self._active_state)
        for name in visible:
            self._dispatch(SetFieldErrors(name, tuple(result.errors.get(name, ()))))
        return result

    def clear_field_validation(self, name: str) -> None:
        """Reset a field to untouched with no errors."""
        if not self._check_field(name):
            return
        self._debouncer.cancel(name)
        self._dispatch(ClearField(name))

    def clear_validation(self) -> None:
        self._debouncer.cancel_all()
        self._dispatch(ClearAll())

    def set_active_state(self, active_state: ActiveState) -> None:
        """
        Adopt active state computed by the cascade controller.

        Pending validations of fields that are now hidden are cancelled.
        """
        self._active_state = dict(active_state)
        for name, state in self._active_state.items():
            if not state.visible:
                self._debouncer.cancel(name)

    def flush_pending(self) -> int:
        """Run every pending debounced validation now (synchronous hosts)."""
        flushed = 0
        for key in list(self._debouncer.pending_keys):
            if self._debouncer.flush(key):
                flushed += 1
        return flushed

    # =========================================================================
    # Internals
    # =========================================================================

    def _dispatch(self, action: ValidationAction) -> None:
        self._state = reduce_validation(self._state, action)

    def _field_delay(self) -> int:
        if self.options.debounce_ms is not None:
            return self.options.debounce_ms
        return self.settings.debounce_ms

    def _form_delay(self) -> int:
        if self.options.form_debounce_ms is not None:
            return self.options.form_debounce_ms
        return self.settings.form_debounce_ms

    def _is_visible(self, name: str) -> bool:
        state = self._active_state.get(name)
        return state is None or state.visible

    def _check_field(self, name: str) -> bool:
        """Enforce that a name belongs to the field list."""
        if name in self._by_name:
            return True
        error = UnknownFieldError(
            message=f"Field {name!r} is not part of this form",
            details={"known_fields": sorted(self._by_name)},
            field_name=name,
        )
        if self.settings.strict_invariants:
            raise error
        logger.warning("Ignoring operation on unknown field: %s", error)
        return False

    def _validate_now(self, name: str, data: Optional[Mapping[str, Any]] = None) -> list[str]:
        self._debouncer.cancel(name)
        snapshot = data if data is not None else self.snapshot()
        return self._validate_value(name, snapshot.get(name), snapshot)

    def _validate_value(
        self,
        name: str,
        value: Any,
        data: Optional[Mapping[str, Any]] = None,
    ) -> list[str]:
        if not self._is_visible(name):
            self._dispatch(SetFieldErrors(name, ()))
            return []
        snapshot = data if data is not None else self.snapshot()
        effective = self._by_name[name].effective(self._active_state.get(name))
        errors = validate_field(value, effective, snapshot)
        self._dispatch(SetFieldErrors(name, tuple(errors)))
        return errors

    def _validate_touched(self) -> None:
        data = self.snapshot()
        for name in self.visible_field_names:
            if self._state.is_touched(name):
                self._validate_value(name, data.get(name), data)
