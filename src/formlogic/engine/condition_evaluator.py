"""
FormLogic Condition Evaluator

Evaluates composable conditions against a form's data snapshot.

Key features:
- Two-valued logic: every condition is either true or false
- Never raises for data-driven input; unknown operators, malformed
  patterns and failed numeric coercion evaluate to False
- Configuration problems are collected as diagnostics, not raised
- Compiled regular expressions are cached across evaluations
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import Any, Mapping, Optional

from ..exceptions import (
    ConfigurationError,
    FormLogicError,
    InvalidPatternError,
    UnknownOperatorError,
)
from ..models import (
    CompositeCondition,
    Condition,
    ConditionOperator,
    LeafCondition,
    LogicalOperator,
    condition_from_dict,
)

logger = logging.getLogger(__name__)


_NUMERIC_OPERATORS = {
    ConditionOperator.GREATER_THAN.value,
    ConditionOperator.LESS_THAN.value,
    ConditionOperator.GREATER_THAN_OR_EQUAL.value,
    ConditionOperator.LESS_THAN_OR_EQUAL.value,
}


# =============================================================================
# Value Helpers
# =============================================================================

def text_form(value: Any) -> str:
    """
    String representation used by substring, prefix and pattern tests.

    None becomes "", booleans become "true"/"false" and integral floats
    drop their fractional part, so 3.0 reads as "3".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(text_form(v) for v in value)
    return str(value)


def is_empty(value: Any) -> bool:
    """
    True for None, an empty collection, or a whitespace-only string.

    Zero and False are values, not emptiness.
    """
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    if isinstance(value, str):
        return value.strip() == ""
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def strict_equals(actual: Any, expected: Any) -> bool:
    """
    Strict equality on raw values.

    Booleans only equal booleans, strings only equal strings, numbers
    compare by value across int/float, and lists compare element-wise.
    """
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if _is_number(actual) or _is_number(expected):
        return _is_number(actual) and _is_number(expected) and actual == expected
    if isinstance(actual, (list, tuple)) and isinstance(expected, (list, tuple)):
        return len(actual) == len(expected) and all(
            strict_equals(a, e) for a, e in zip(actual, expected)
        )
    if isinstance(actual, Mapping) and isinstance(expected, Mapping):
        return actual.keys() == expected.keys() and all(
            strict_equals(actual[k], expected[k]) for k in actual
        )
    if type(actual) is not type(expected):
        return False
    return actual == expected


def coerce_numeric(value: Any) -> Optional[float]:
    """Coerce a value to a number, or None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if _is_number(value):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a regular expression once per distinct pattern."""
    return re.compile(pattern)


# =============================================================================
# Comparison Operators
# =============================================================================

def compare_values(
    actual: Any,
    operator: str,
    expected: Any,
    diagnostics: Optional[list[FormLogicError]] = None,
    field_name: Optional[str] = None,
) -> bool:
    """
    Compare a field value with a literal using a leaf operator.

    Args:
        actual: The field's value from the data snapshot
        operator: Operator tag (ConditionOperator value)
        expected: The literal from the condition
        diagnostics: Optional list that receives configuration problems
        field_name: Field the leaf reads, attached to diagnostics

    Returns:
        Result of the comparison; False for anything not evaluable
    """
    op = operator.value if isinstance(operator, ConditionOperator) else operator

    if op == ConditionOperator.EQUALS.value:
        return strict_equals(actual, expected)

    if op == ConditionOperator.NOT_EQUALS.value:
        return not strict_equals(actual, expected)

    if op in (ConditionOperator.CONTAINS.value, ConditionOperator.NOT_CONTAINS.value):
        if isinstance(actual, (list, tuple, set, frozenset)):
            found = any(strict_equals(item, expected) for item in actual)
        else:
            found = text_form(expected).lower() in text_form(actual).lower()
        return found if op == ConditionOperator.CONTAINS.value else not found

    if op == ConditionOperator.IS_EMPTY.value:
        return is_empty(actual)

    if op == ConditionOperator.IS_NOT_EMPTY.value:
        return not is_empty(actual)

    if op in _NUMERIC_OPERATORS:
        left = coerce_numeric(actual)
        right = coerce_numeric(expected)
        if left is None or right is None:
            return False
        if op == ConditionOperator.GREATER_THAN.value:
            return left > right
        if op == ConditionOperator.LESS_THAN.value:
            return left < right
        if op == ConditionOperator.GREATER_THAN_OR_EQUAL.value:
            return left >= right
        return left <= right

    if op == ConditionOperator.STARTS_WITH.value:
        return text_form(actual).lower().startswith(text_form(expected).lower())

    if op == ConditionOperator.ENDS_WITH.value:
        return text_form(actual).lower().endswith(text_form(expected).lower())

    if op in (ConditionOperator.IN_LIST.value, ConditionOperator.NOT_IN_LIST.value):
        if not isinstance(expected, (list, tuple)):
            return False
        member = any(strict_equals(actual, candidate) for candidate in expected)
        return member if op == ConditionOperator.IN_LIST.value else not member

    if op == ConditionOperator.MATCHES_PATTERN.value:
        try:
            pattern = compile_pattern(text_form(expected))
        except re.error as exc:
            if diagnostics is not None:
                diagnostics.append(InvalidPatternError(
                    message=f"Invalid pattern {expected!r}: {exc}",
                    details={"pattern": text_form(expected)},
                    field_name=field_name,
                ))
            return False
        return pattern.search(text_form(actual)) is not None

    if diagnostics is not None:
        diagnostics.append(UnknownOperatorError(
            message=f"Unknown operator: {op!r}",
            details={"operator": op},
            field_name=field_name,
        ))
    return False


# =============================================================================
# Condition Evaluator
# =============================================================================

@dataclass
class ConditionEvaluator:
    """
    Evaluates composable conditions against a data snapshot.

    Supports:
    - Logical combinators (AND, OR) over nested conditions
    - All leaf operators of ConditionOperator
    - Diagnostic collection for misconfigured conditions
    - An optional evaluation trace for debugging

    Usage:
        evaluator = ConditionEvaluator()
        visible = evaluator.evaluate(EQ("hasChildren", True), data)

        for problem in evaluator.diagnostics:
            print(problem)
    """

    # Track evaluation for debugging
    debug: bool = False
    diagnostics: list[FormLogicError] = field(default_factory=list)
    _evaluation_log: list[str] = field(default_factory=list)

    def evaluate(
        self,
        condition: Optional[Condition],
        data: Mapping[str, Any],
    ) -> bool:
        """
        Evaluate a condition against a data snapshot.

        Args:
            condition: Condition tree (or its wire-shape mapping)
            data: Field name -> value mapping; never modified

        Returns:
            True if the condition holds
        """
        self._evaluation_log.clear()
        if isinstance(condition, Mapping):
            try:
                condition = condition_from_dict(condition)
            except ConfigurationError as exc:
                self.diagnostics.append(exc)
                return False
        if condition is None:
            return False
        return self._evaluate_condition(condition, data)

    @property
    def evaluation_log(self) -> list[str]:
        return list(self._evaluation_log)

    def reset(self) -> None:
        self.diagnostics.clear()
        self._evaluation_log.clear()

    def _evaluate_condition(self, condition: Condition, data: Mapping[str, Any]) -> bool:
        """Recursively evaluate a condition."""
        if isinstance(condition, CompositeCondition):
            return self._evaluate_composite(condition, data)
        return self._evaluate_leaf(condition, data)

    def _evaluate_composite(self, condition: CompositeCondition, data: Mapping[str, Any]) -> bool:
        """
        Evaluate an AND/OR composite in declaration order.

        Empty AND is True, empty OR is False.
        """
        op = condition.logical_operator
        op = (op.value if isinstance(op, LogicalOperator) else str(op)).upper()

        if op == LogicalOperator.AND.value:
            return all(self._evaluate_condition(c, data) for c in condition.conditions)
        if op == LogicalOperator.OR.value:
            return any(self._evaluate_condition(c, data) for c in condition.conditions)

        self.diagnostics.append(UnknownOperatorError(
            message=f"Unknown logical operator: {condition.logical_operator!r}",
            details={"logical_operator": condition.logical_operator},
        ))
        return False

    def _evaluate_leaf(self, condition: LeafCondition, data: Mapping[str, Any]) -> bool:
        """Evaluate a leaf comparison."""
        if not condition.field:
            self.diagnostics.append(ConfigurationError(
                message="Condition does not name a field",
                details={"operator": condition.operator},
            ))
            return False

        actual = data.get(condition.field)
        result = compare_values(
            actual,
            condition.operator,
            condition.value,
            diagnostics=self.diagnostics,
            field_name=condition.field,
        )

        if self.debug:
            explanation = (
                f"{condition.field} {condition.operator} {condition.value!r}: "
                f"{'PASSED' if result else 'FAILED'} (actual: {actual!r})"
            )
            self._evaluation_log.append(explanation)
            logger.debug(explanation)

        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate_condition(
    condition: Optional[Condition],
    data: Mapping[str, Any],
    diagnostics: Optional[list[FormLogicError]] = None,
) -> bool:
    """
    Evaluate a condition against a data snapshot.

    Convenience function that creates an evaluator. Diagnostics, if a list
    is supplied, are appended to it.
    """
    evaluator = ConditionEvaluator()
    result = evaluator.evaluate(condition, data)
    if diagnostics is not None:
        diagnostics.extend(evaluator.diagnostics)
    return result
