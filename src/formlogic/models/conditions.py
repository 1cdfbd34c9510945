"""
FormLogic Composable Conditions

Boolean expressions over form data that drive conditional logic.

Key components:
- LeafCondition: compares one field's value with a literal
- CompositeCondition: AND/OR combination of sub-conditions
- condition_from_dict / condition_to_dict: wire-shape conversion
- Helper functions: AND(), OR(), LEAF(), EQ(), ... for building trees

Wire shape (camelCase, as produced by form-authoring tools):

    {"field": "hasChildren", "operator": "equals", "value": true}

    {"logicalOperator": "OR", "conditions": [<condition>, <condition>]}

Operators are kept as plain strings on the model. An operator the
evaluator does not know is a configuration problem, not a construction
error: it evaluates to False and is reported as a diagnostic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from ..exceptions import ConfigurationError
from .enums import ConditionOperator, LogicalOperator


# =============================================================================
# Leaf Condition
# =============================================================================

@dataclass
class LeafCondition:
    """
    A single comparison between one field's value and a literal.

    Attributes:
        field: Name of the field whose value is read from the data snapshot
        operator: One of ConditionOperator values
        value: Literal to compare against (a list for in_list/not_in_list,
            a regular expression for matches_pattern)
    """
    field: str
    operator: str
    value: Any = None

    @property
    def is_composite(self) -> bool:
        return False


# =============================================================================
# Composite Condition
# =============================================================================

@dataclass
class CompositeCondition:
    """
    Logical combination of sub-conditions.

    An AND composite with no children is vacuously true; an OR composite
    with no children is vacuously false.
    """
    conditions: list[Condition] = field(default_factory=list)
    logical_operator: str = LogicalOperator.AND.value

    @property
    def is_composite(self) -> bool:
        return True


Condition = Union[LeafCondition, CompositeCondition]


# =============================================================================
# Wire Conversion
# =============================================================================

def condition_from_dict(data: Union[Mapping[str, Any], Condition, None]) -> Optional[Condition]:
    """
    Build a condition tree from its wire shape.

    A mapping with a ``conditions`` list is a composite; anything else is a
    leaf. Already-built conditions pass through unchanged.

    Raises:
        ConfigurationError: If ``data`` is not a mapping or a condition
    """
    if data is None:
        return None
    if isinstance(data, (LeafCondition, CompositeCondition)):
        return data
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            message=f"Condition must be a mapping, got {type(data).__name__}",
            details={"condition": repr(data)},
        )

    if isinstance(data.get("conditions"), (list, tuple)):
        logical = data.get("logicalOperator", data.get("logical_operator")) or "AND"
        if isinstance(logical, LogicalOperator):
            logical = logical.value
        return CompositeCondition(
            conditions=[condition_from_dict(c) for c in data["conditions"]],
            logical_operator=str(logical).upper(),
        )

    operator = data.get("operator") or ""
    if isinstance(operator, ConditionOperator):
        operator = operator.value
    return LeafCondition(
        field=str(data.get("field") or ""),
        operator=str(operator),
        value=data.get("value"),
    )


def condition_to_dict(condition: Condition) -> dict[str, Any]:
    """Serialize a condition tree back to its wire shape."""
    if isinstance(condition, CompositeCondition):
        return {
            "logicalOperator": condition.logical_operator,
            "conditions": [condition_to_dict(c) for c in condition.conditions],
        }
    return {
        "field": condition.field,
        "operator": condition.operator,
        "value": condition.value,
    }


# =============================================================================
# Helper Functions for Building Conditions
# =============================================================================

def AND(*conditions: Condition) -> CompositeCondition:
    """
    Create an AND composite.

    Example:
        condition = AND(
            EQ("hasChildren", True),
            GT("childCount", 2),
        )
    """
    return CompositeCondition(
        conditions=list(conditions),
        logical_operator=LogicalOperator.AND.value,
    )


def OR(*conditions: Condition) -> CompositeCondition:
    """Create an OR composite."""
    return CompositeCondition(
        conditions=list(conditions),
        logical_operator=LogicalOperator.OR.value,
    )


def LEAF(field: str, operator: Union[ConditionOperator, str], value: Any = None) -> LeafCondition:
    """Create a leaf condition with any operator."""
    op = operator.value if isinstance(operator, ConditionOperator) else operator
    return LeafCondition(field=field, operator=op, value=value)


def EQ(field: str, value: Any) -> LeafCondition:
    """field == value (strict)"""
    return LEAF(field, ConditionOperator.EQUALS, value)


def NE(field: str, value: Any) -> LeafCondition:
    """field != value (strict)"""
    return LEAF(field, ConditionOperator.NOT_EQUALS, value)


def GT(field: str, value: Any) -> LeafCondition:
    return LEAF(field, ConditionOperator.GREATER_THAN, value)


def GTE(field: str, value: Any) -> LeafCondition:
    return LEAF(field, ConditionOperator.GREATER_THAN_OR_EQUAL, value)


def LT(field: str, value: Any) -> LeafCondition:
    return LEAF(field, ConditionOperator.LESS_THAN, value)


def LTE(field: str, value: Any) -> LeafCondition:
    return LEAF(field, ConditionOperator.LESS_THAN_OR_EQUAL, value)


def CONTAINS(field: str, value: Any) -> LeafCondition:
    """List membership, or case-insensitive substring for scalars."""
    return LEAF(field, ConditionOperator.CONTAINS, value)


def IS_EMPTY(field: str) -> LeafCondition:
    return LEAF(field, ConditionOperator.IS_EMPTY)


def IS_NOT_EMPTY(field: str) -> LeafCondition:
    return LEAF(field, ConditionOperator.IS_NOT_EMPTY)


def IN_LIST(field: str, values: list[Any]) -> LeafCondition:
    return LEAF(field, ConditionOperator.IN_LIST, list(values))


def NOT_IN_LIST(field: str, values: list[Any]) -> LeafCondition:
    return LEAF(field, ConditionOperator.NOT_IN_LIST, list(values))


def MATCHES(field: str, pattern: str) -> LeafCondition:
    return LEAF(field, ConditionOperator.MATCHES_PATTERN, pattern)
