"""
FormLogic Conditional Rule Processor

Computes the active state of every field from a data snapshot.

For each field:
- visible: True without a visibility condition, else its evaluation
- required: static required OR the required condition (conditions can
  only add requirement, never remove it)
- modifications: left-to-right merge of the changes of every modification
  whose condition holds

Recomputation is a pure function of (fields, data, previous). Fields on a
circular dependency keep their previous {visible, required} when a
previous state is supplied, and the cycle is reported as a diagnostic.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..exceptions import CircularDependencyError, FormLogicError
from ..models import (
    ActiveFieldState,
    ActiveState,
    FieldDefinition,
    SectionDefinition,
)
from .condition_evaluator import ConditionEvaluator
from .dependency_graph import (
    DependencyGraph,
    build_graph,
    cycle_members,
    detect_cycles,
    format_cycle,
)

logger = logging.getLogger(__name__)


def cycle_diagnostics(cycles: Sequence[Sequence[str]]) -> list[FormLogicError]:
    """One CircularDependencyError per detected cycle."""
    return [
        CircularDependencyError(
            message=f"Circular dependency detected: {format_cycle(path)}",
            details={"cycle": list(path)},
            field_name=path[0],
        )
        for path in cycles
    ]


def dedupe_diagnostics(diagnostics: Sequence[FormLogicError]) -> list[FormLogicError]:
    """Drop repeated diagnostics, keeping first-seen order."""
    seen: set[tuple[str, str, Optional[str]]] = set()
    result: list[FormLogicError] = []
    for diagnostic in diagnostics:
        if diagnostic.key not in seen:
            seen.add(diagnostic.key)
            result.append(diagnostic)
    return result


# =============================================================================
# Section Visibility
# =============================================================================

def recompute_section_visibility(
    sections: Sequence[SectionDefinition],
    data: Mapping[str, Any],
    diagnostics: Optional[list[FormLogicError]] = None,
) -> dict[str, bool]:
    """
    Visibility of each section for a data snapshot.

    A section without a visibility condition is always visible.
    """
    evaluator = ConditionEvaluator()
    result: dict[str, bool] = {}
    for section in sections:
        if section.visibility is None:
            result[section.id] = True
        else:
            result[section.id] = evaluator.evaluate(section.visibility, data)
    if diagnostics is not None:
        diagnostics.extend(evaluator.diagnostics)
    return result


def _hidden_by_sections(
    sections: Sequence[SectionDefinition],
    section_visibility: Mapping[str, bool],
) -> set[str]:
    hidden: set[str] = set()
    for section in sections:
        if not section_visibility.get(section.id, True):
            hidden.update(section.fields)
    return hidden


# =============================================================================
# Recomputation
# =============================================================================

def _compute_active_state(
    fields: Sequence[FieldDefinition],
    data: Mapping[str, Any],
    previous: Optional[ActiveState],
    frozen_fields: frozenset[str],
    sections: Sequence[SectionDefinition],
    evaluator: ConditionEvaluator,
) -> dict[str, ActiveFieldState]:
    """Shared recomputation loop; diagnostics accumulate on the evaluator."""
    hidden_sections: set[str] = set()
    if sections:
        section_visibility = recompute_section_visibility(
            sections, data, diagnostics=evaluator.diagnostics,
        )
        hidden_sections = _hidden_by_sections(sections, section_visibility)

    result: dict[str, ActiveFieldState] = {}
    for field_def in fields:
        name = field_def.name
        conditions = field_def.conditions

        last_good = previous.get(name) if previous is not None else None
        if name in frozen_fields and last_good is not None:
            visible = last_good.visible
            required = last_good.required
        else:
            visible = True
            if conditions.visibility is not None:
                visible = evaluator.evaluate(conditions.visibility, data)

            required = field_def.required
            if conditions.required is not None:
                required = field_def.required or evaluator.evaluate(conditions.required, data)

        if name in hidden_sections:
            visible = False

        modifications: dict[str, Any] = {}
        for modification in conditions.modifications:
            if evaluator.evaluate(modification.condition, data):
                modifications.update(modification.changes)

        logger.debug(
            "Field %s: visible=%s, required=%s, modifications=%s",
            name, visible, required, sorted(modifications),
        )
        result[name] = ActiveFieldState(
            visible=visible,
            required=required,
            modifications=modifications,
        )

    return result


def recompute_active_state(
    fields: Sequence[FieldDefinition],
    data: Mapping[str, Any],
    previous: Optional[ActiveState] = None,
    diagnostics: Optional[list[FormLogicError]] = None,
    sections: Optional[Sequence[SectionDefinition]] = None,
) -> dict[str, ActiveFieldState]:
    """
    Compute the active state of every field.

    Pure: the same fields, data and previous state always produce the same
    result. Never raises for data-driven input.

    Args:
        fields: Field definitions in declaration order
        data: Current data snapshot; never modified
        previous: Last computed state, used for fields on a cycle
        diagnostics: Optional list that receives configuration problems
        sections: Optional sections whose visibility hides their fields

    Returns:
        Field name -> ActiveFieldState, in declaration order
    """
    cycles = detect_cycles(fields)
    evaluator = ConditionEvaluator()
    result = _compute_active_state(
        fields, data, previous, cycle_members(cycles), sections or (), evaluator,
    )
    if diagnostics is not None:
        diagnostics.extend(
            dedupe_diagnostics(cycle_diagnostics(cycles) + evaluator.diagnostics)
        )
    return result


# =============================================================================
# Conditional Rule Processor
# =============================================================================

class ConditionalRuleProcessor:
    """
    Session-scoped rule processor for one field list.

    Builds the dependency graph and detects cycles once, then recomputes
    active state on demand. New configuration diagnostics are logged at
    WARNING the first time they are seen.

    Usage:
        processor = ConditionalRuleProcessor(fields)
        state = processor.recompute(data)
        shown = processor.visible_fields(state)
    """

    def __init__(
        self,
        fields: Sequence[FieldDefinition],
        sections: Optional[Sequence[SectionDefinition]] = None,
        debug: bool = False,
    ) -> None:
        self.fields: list[FieldDefinition] = list(fields)
        self.sections: list[SectionDefinition] = list(sections or [])
        self.debug = debug
        self._by_name = {f.name: f for f in self.fields}

        self.graph: DependencyGraph = build_graph(self.fields)
        self.cycles: list[list[str]] = detect_cycles(self.graph)
        self._cycle_members = cycle_members(self.cycles)

        self._diagnostics: list[FormLogicError] = cycle_diagnostics(self.cycles)
        self._reported: set[tuple[str, str, Optional[str]]] = set()
        self._report(self._diagnostics)

    @property
    def diagnostics(self) -> list[FormLogicError]:
        """Cycles plus problems seen during the last recomputation."""
        return list(self._diagnostics)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def has_field(self, name: str) -> bool:
        return name in self._by_name

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        return self._by_name.get(name)

    def recompute(
        self,
        data: Mapping[str, Any],
        previous: Optional[ActiveState] = None,
    ) -> dict[str, ActiveFieldState]:
        """Compute active state for a snapshot (see recompute_active_state)."""
        evaluator = ConditionEvaluator(debug=self.debug)
        result = _compute_active_state(
            self.fields, data, previous, self._cycle_members, self.sections, evaluator,
        )
        self._diagnostics = dedupe_diagnostics(
            cycle_diagnostics(self.cycles) + evaluator.diagnostics
        )
        self._report(self._diagnostics)
        return result

    def visible_fields(self, state: ActiveState) -> list[FieldDefinition]:
        return [f for f in self.fields if self._state_of(f.name, state).visible]

    def required_fields(self, state: ActiveState) -> list[FieldDefinition]:
        return [f for f in self.fields if self._state_of(f.name, state).required]

    def effective_field(self, name: str, state: ActiveState) -> Optional[FieldDefinition]:
        """Definition of one field with its active overrides applied."""
        field_def = self._by_name.get(name)
        if field_def is None:
            return None
        return field_def.effective(state.get(name))

    def effective_fields(self, state: ActiveState) -> list[FieldDefinition]:
        return [f.effective(state.get(f.name)) for f in self.fields]

    def _state_of(self, name: str, state: ActiveState) -> ActiveFieldState:
        return state.get(name) or ActiveFieldState(required=self._by_name[name].required)

    def _report(self, diagnostics: Sequence[FormLogicError]) -> None:
        for diagnostic in diagnostics:
            if diagnostic.key in self._reported:
                continue
            self._reported.add(diagnostic.key)
            logger.warning("Configuration problem: %s", diagnostic)
