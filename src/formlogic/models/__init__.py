"""
FormLogic Models

All domain models for conditional form logic and validation.

Exports all models organized by category for convenient imports:

    from formlogic.models import (
        # Enums
        FieldType, ConditionOperator, RuleType,
        # Conditions
        LeafCondition, CompositeCondition, AND, OR, EQ,
        # Fields
        FieldDefinition, FieldConditions, Modification, FormDefinition,
        # State
        ActiveFieldState, ValidationState, FormValidationResult,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    ConditionOperator,
    DebounceScope,
    FieldType,
    LogicalOperator,
    RuleType,
    RunMode,
)

# =============================================================================
# Conditions
# =============================================================================
from .conditions import (
    # Core types
    Condition,
    CompositeCondition,
    LeafCondition,
    condition_from_dict,
    condition_to_dict,
    # Helper functions
    AND,
    OR,
    LEAF,
    # Convenience leaves
    EQ,
    NE,
    GT,
    GTE,
    LT,
    LTE,
    CONTAINS,
    IS_EMPTY,
    IS_NOT_EMPTY,
    IN_LIST,
    NOT_IN_LIST,
    MATCHES,
)

# =============================================================================
# Fields
# =============================================================================
from .fields import (
    FieldConditions,
    FieldDefinition,
    FormDefinition,
    Modification,
    SectionDefinition,
    normalize_rules,
)

# =============================================================================
# State
# =============================================================================
from .state import (
    ActiveFieldState,
    ActiveState,
    CascadeResult,
    ClearAll,
    ClearField,
    FieldValidationStatus,
    FormValidationResult,
    SetFieldErrors,
    TouchFields,
    ValidationAction,
    ValidationState,
    reduce_validation,
    visible_names,
)

# =============================================================================
# Public API
# =============================================================================
__all__ = [
    # Enums
    "ConditionOperator",
    "DebounceScope",
    "FieldType",
    "LogicalOperator",
    "RuleType",
    "RunMode",
    # Conditions
    "Condition",
    "CompositeCondition",
    "LeafCondition",
    "condition_from_dict",
    "condition_to_dict",
    "AND",
    "OR",
    "LEAF",
    "EQ",
    "NE",
    "GT",
    "GTE",
    "LT",
    "LTE",
    "CONTAINS",
    "IS_EMPTY",
    "IS_NOT_EMPTY",
    "IN_LIST",
    "NOT_IN_LIST",
    "MATCHES",
    # Fields
    "FieldConditions",
    "FieldDefinition",
    "FormDefinition",
    "Modification",
    "SectionDefinition",
    "normalize_rules",
    # State
    "ActiveFieldState",
    "ActiveState",
    "CascadeResult",
    "ClearAll",
    "ClearField",
    "FieldValidationStatus",
    "FormValidationResult",
    "SetFieldErrors",
    "TouchFields",
    "ValidationAction",
    "ValidationState",
    "reduce_validation",
    "visible_names",
]
