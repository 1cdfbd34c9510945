"""
FormLogic Cascading Update Controller

Propagates one value change through conditional logic.

Steps for on_value_change(field_id, new_value, data):
1. Work on a copy of the caller's data with the new value applied
2. Recompute active state over the full field set
3. Clear every field whose visibility flipped from true to false (None in
   the returned patch) and reset its validation. Clearing can hide more
   fields, so recomputation repeats until nothing new is hidden; the
   number of passes is bounded
4. Re-validate touched fields whose required flag flipped
5. Hand the new active state and the changed value to the orchestrator

The caller applies CascadeResult.snapshot_patch to its own data.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..config import Settings, resolve_settings
from ..exceptions import CascadeLimitError, FormLogicError, UnknownFieldError
from ..models import (
    ActiveFieldState,
    CascadeResult,
    FieldDefinition,
    SectionDefinition,
)
from .orchestrator import ValidationOrchestrator
from .rule_processor import ConditionalRuleProcessor

logger = logging.getLogger(__name__)


class CascadingUpdateController:
    """
    Turns a value change into clear / re-validate instructions.

    Usage:
        controller = CascadingUpdateController(fields)
        controller.initialize(data)

        result = controller.on_value_change("hasChildren", False, data)
        data.update(result.snapshot_patch)
    """

    def __init__(
        self,
        fields: Sequence[FieldDefinition],
        orchestrator: Optional[ValidationOrchestrator] = None,
        sections: Optional[Sequence[SectionDefinition]] = None,
        settings: Optional[Settings] = None,
        processor: Optional[ConditionalRuleProcessor] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.settings = resolve_settings(settings)
        if processor is None:
            processor = orchestrator.processor if orchestrator else ConditionalRuleProcessor(fields, sections)
        self.processor = processor
        self._active_state: Optional[dict[str, ActiveFieldState]] = None

    @property
    def active_state(self) -> Optional[dict[str, ActiveFieldState]]:
        return dict(self._active_state) if self._active_state is not None else None

    @property
    def pass_limit(self) -> int:
        return self.settings.max_cascade_passes or len(self.processor.fields)

    def initialize(self, data: Mapping[str, Any]) -> dict[str, ActiveFieldState]:
        """Compute the starting active state for a snapshot."""
        self._active_state = self.processor.recompute(data, previous=self._active_state)
        if self.orchestrator is not None:
            self.orchestrator.set_active_state(self._active_state)
        return dict(self._active_state)

    def on_value_change(
        self,
        field_id: str,
        new_value: Any,
        data: Mapping[str, Any],
        touched: Optional[Iterable[str]] = None,
    ) -> CascadeResult:
        """
        Propagate a value change.

        Args:
            field_id: Field whose value changed
            new_value: The new value
            data: Caller's snapshot before the change; never modified
            touched: Touched fields, when no orchestrator tracks them

        Returns:
            CascadeResult with the patch and follow-up instructions
        """
        if not self.processor.has_field(field_id):
            error = UnknownFieldError(
                message=f"Field {field_id!r} is not part of this form",
                field_name=field_id,
            )
            if self.settings.strict_invariants:
                raise error
            logger.warning("Ignoring change of unknown field: %s", error)
            return CascadeResult(field_id=field_id, active_state=dict(self._active_state or {}))

        before = self._active_state
        if before is None:
            before = self.processor.recompute(data)

        working = dict(data)
        working[field_id] = new_value
        patch: dict[str, Any] = {field_id: new_value}
        diagnostics: list[FormLogicError] = []

        current = self.processor.recompute(working, previous=before)
        cleared: list[str] = []
        cleared_set: set[str] = set()
        passes = 0

        while True:
            newly_hidden = [
                name for name in self.processor.field_names
                if name not in cleared_set
                and _was_visible(before, name)
                and not current[name].visible
            ]
            if not newly_hidden:
                break
            if passes >= self.pass_limit:
                diagnostics.append(CascadeLimitError(
                    message=(
                        f"Cascade from {field_id!r} did not settle "
                        f"within {self.pass_limit} passes"
                    ),
                    details={"pending": newly_hidden, "cleared": list(cleared)},
                    field_name=field_id,
                ))
                break
            passes += 1
            for name in newly_hidden:
                cleared.append(name)
                cleared_set.add(name)
                patch[name] = None
                working[name] = None
            current = self.processor.recompute(working, previous=current)

        touched_set = self._touched(touched)
        revalidate = [
            name for name in self.processor.field_names
            if name in touched_set
            and name not in cleared_set
            and current[name].visible
            and name in before
            and before[name].required != current[name].required
        ]

        diagnostics = self.processor.diagnostics + diagnostics
        for diagnostic in diagnostics:
            if isinstance(diagnostic, CascadeLimitError):
                logger.warning("Configuration problem: %s", diagnostic)

        if cleared:
            logger.debug("Change of %s cleared %s", field_id, cleared)

        self._active_state = current
        if self.orchestrator is not None:
            self.orchestrator.set_active_state(current)
            for name in cleared:
                self.orchestrator.clear_field_validation(name)
            for name in revalidate:
                self.orchestrator.validate_field_now(name, data=working)
            if field_id not in cleared_set:
                self.orchestrator.update_value(field_id, new_value)

        return CascadeResult(
            field_id=field_id,
            snapshot_patch=patch,
            cleared_field_ids=cleared,
            revalidate_field_ids=revalidate,
            affected_field_ids=self.processor.graph.dependents_of(field_id),
            active_state=dict(current),
            diagnostics=diagnostics,
        )

    def _touched(self, touched: Optional[Iterable[str]]) -> set[str]:
        if touched is not None:
            return set(touched)
        if self.orchestrator is not None:
            return set(self.orchestrator.touched_fields)
        return set()


def _was_visible(state: Mapping[str, ActiveFieldState], name: str) -> bool:
    previous = state.get(name)
    return previous is None or previous.visible
