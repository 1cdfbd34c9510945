"""
FormLogic Configuration Diagnostics

Static checks of a field list for the authoring surface. Nothing here
raises: every problem is returned as a ConfigurationError instance.

Checks:
- circular dependencies between field conditions
- conditions referencing fields that are not part of the form
- unknown leaf or logical operators
- malformed regular expressions in matches_pattern conditions and
  pattern rules
- rules the field type does not support, or that have no checker
"""
from __future__ import annotations

import re
from typing import Iterator, Optional, Sequence

from ..exceptions import (
    FormLogicError,
    InvalidPatternError,
    UnknownFieldReferenceError,
    UnknownOperatorError,
    UnsupportedRuleError,
)
from ..models import (
    CompositeCondition,
    Condition,
    ConditionOperator,
    FieldDefinition,
    LogicalOperator,
    RuleType,
    SectionDefinition,
)
from .condition_evaluator import compile_pattern, text_form
from .dependency_graph import build_graph, detect_cycles, extract_dependencies, field_conditions
from .field_validator import has_validator, supported_rules
from .rule_processor import cycle_diagnostics, dedupe_diagnostics

_LEAF_OPERATORS = frozenset(op.value for op in ConditionOperator)
_LOGICAL_OPERATORS = frozenset(op.value for op in LogicalOperator)


def _walk(condition: Optional[Condition]) -> Iterator[Condition]:
    if condition is None:
        return
    yield condition
    if isinstance(condition, CompositeCondition):
        for child in condition.conditions:
            yield from _walk(child)


def check_condition(
    condition: Condition,
    owner: str,
    known_fields: set[str],
) -> list[FormLogicError]:
    """Problems inside one condition tree owned by a field or section."""
    problems: list[FormLogicError] = []

    missing = sorted(extract_dependencies(condition) - known_fields)
    for name in missing:
        problems.append(UnknownFieldReferenceError(
            message=f"{owner} references unknown field {name!r}",
            details={"owner": owner, "reference": name},
            field_name=owner,
        ))

    for node in _walk(condition):
        if isinstance(node, CompositeCondition):
            logical = node.logical_operator
            logical = logical.value if isinstance(logical, LogicalOperator) else str(logical)
            if logical.upper() not in _LOGICAL_OPERATORS:
                problems.append(UnknownOperatorError(
                    message=f"{owner} uses unknown logical operator {logical!r}",
                    details={"owner": owner, "logical_operator": logical},
                    field_name=owner,
                ))
            continue

        operator = node.operator.value if isinstance(node.operator, ConditionOperator) else node.operator
        if operator not in _LEAF_OPERATORS:
            problems.append(UnknownOperatorError(
                message=f"{owner} uses unknown operator {operator!r}",
                details={"owner": owner, "operator": operator},
                field_name=owner,
            ))
        elif operator == ConditionOperator.MATCHES_PATTERN.value:
            try:
                compile_pattern(text_form(node.value))
            except re.error as exc:
                problems.append(InvalidPatternError(
                    message=f"{owner} has an invalid pattern {node.value!r}: {exc}",
                    details={"owner": owner, "pattern": text_form(node.value)},
                    field_name=owner,
                ))

    return problems


def check_rules(field_def: FieldDefinition) -> list[FormLogicError]:
    """Rule problems of one field."""
    problems: list[FormLogicError] = []
    allowed = supported_rules(field_def.type)

    for tag, param in field_def.rules.items():
        if tag == RuleType.REQUIRED.value:
            continue
        if not has_validator(tag):
            problems.append(UnsupportedRuleError(
                message=f"Rule {tag!r} on {field_def.name} has no registered checker",
                details={"rule": tag},
                field_name=field_def.name,
            ))
        elif tag not in allowed:
            problems.append(UnsupportedRuleError(
                message=f"Rule {tag!r} is not supported by {field_def.type.value} fields",
                details={"rule": tag, "type": field_def.type.value},
                field_name=field_def.name,
            ))

        if tag == RuleType.PATTERN.value and isinstance(param, str):
            try:
                compile_pattern(param)
            except re.error as exc:
                problems.append(InvalidPatternError(
                    message=f"Pattern rule on {field_def.name} is invalid: {exc}",
                    details={"pattern": param},
                    field_name=field_def.name,
                ))

    return problems


def collect_diagnostics(
    fields: Sequence[FieldDefinition],
    sections: Optional[Sequence[SectionDefinition]] = None,
) -> list[FormLogicError]:
    """
    Every configuration problem of a form, without raising.

    Args:
        fields: Field definitions in declaration order
        sections: Optional sections (their conditions are checked too)

    Returns:
        De-duplicated problems: cycles first, then per field in
        declaration order, then sections
    """
    known = {f.name for f in fields}
    problems: list[FormLogicError] = list(cycle_diagnostics(detect_cycles(build_graph(fields))))

    for field_def in fields:
        for condition in field_conditions(field_def):
            problems.extend(check_condition(condition, field_def.name, known))
        problems.extend(check_rules(field_def))

    for section in sections or ():
        if section.visibility is not None:
            problems.extend(check_condition(section.visibility, f"section {section.id}", known))
        for name in section.fields:
            if name not in known:
                problems.append(UnknownFieldReferenceError(
                    message=f"Section {section.id} lists unknown field {name!r}",
                    details={"section": section.id, "reference": name},
                ))

    return dedupe_diagnostics(problems)