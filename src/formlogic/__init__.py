"""
FormLogic - Conditional Form Logic and Validation Engine

FormLogic decides, for a declared set of form fields and a snapshot of
their current values, which fields are visible, which are required, what
partial overrides apply, and which validation errors to show.

Key Features:
- Composable AND/OR conditions with fifteen comparison operators
- Conditional visibility, required-ness and field modifications
- Static dependency graph with cycle detection (never hangs)
- Rule-based field validation with a pluggable validator registry
- Touch-aware, debounced validation orchestration
- Cascading updates: hidden fields are cleared, touched fields revalidated
- YAML/JSON form packs, a FastAPI service and a command-line checker

Quick Start:
    from formlogic import FormSession, load_form_pack

    form = load_form_pack("packs/family_intake.yaml")
    session = FormSession(form)

    session.on_value_change("hasChildren", True)
    session.touch_field("age")
    result = session.validate_for_submit()

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"
__author__ = "FormLogic Team"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    # Enums
    ConditionOperator,
    DebounceScope,
    FieldType,
    LogicalOperator,
    RuleType,
    # Conditions
    Condition,
    CompositeCondition,
    LeafCondition,
    condition_from_dict,
    condition_to_dict,
    AND,
    OR,
    LEAF,
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
    # Fields
    FieldConditions,
    FieldDefinition,
    FormDefinition,
    Modification,
    SectionDefinition,
    # State
    ActiveFieldState,
    CascadeResult,
    FieldValidationStatus,
    FormValidationResult,
    ValidationState,
)

# =============================================================================
# Engine
# =============================================================================
from .engine import (
    AsyncioScheduler,
    CascadingUpdateController,
    ConditionEvaluator,
    ConditionalRuleProcessor,
    Debouncer,
    FormSession,
    ManualScheduler,
    ValidationOptions,
    ValidationOrchestrator,
    build_graph,
    collect_diagnostics,
    detect_cycles,
    evaluate_condition,
    recompute_active_state,
    register_custom_validator,
    register_validator,
    validate_field,
    validate_form,
)

# =============================================================================
# Packs, Config, Exceptions
# =============================================================================
from .packs import FormPackLoader, load_form_pack, load_form_pack_from_string
from .config import Settings, get_settings
from .canon import state_hash
from .exceptions import (
    ConfigurationError,
    FormLogicError,
    FormNotFoundError,
    FormPackError,
    FormPackLoadError,
    FormPackValidationError,
    FormPackVersionMismatch,
    InvariantViolation,
    UnknownFieldError,
)

__all__ = [
    "__version__",
    # Enums
    "ConditionOperator",
    "DebounceScope",
    "FieldType",
    "LogicalOperator",
    "RuleType",
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
    # State
    "ActiveFieldState",
    "CascadeResult",
    "FieldValidationStatus",
    "FormValidationResult",
    "ValidationState",
    # Engine
    "AsyncioScheduler",
    "CascadingUpdateController",
    "ConditionEvaluator",
    "ConditionalRuleProcessor",
    "Debouncer",
    "FormSession",
    "ManualScheduler",
    "ValidationOptions",
    "ValidationOrchestrator",
    "build_graph",
    "collect_diagnostics",
    "detect_cycles",
    "evaluate_condition",
    "recompute_active_state",
    "register_custom_validator",
    "register_validator",
    "validate_field",
    "validate_form",
    # Packs
    "FormPackLoader",
    "load_form_pack",
    "load_form_pack_from_string",
    # Config
    "Settings",
    "get_settings",
    "state_hash",
    # Exceptions
    "ConfigurationError",
    "FormLogicError",
    "FormNotFoundError",
    "FormPackError",
    "FormPackLoadError",
    "FormPackValidationError",
    "FormPackVersionMismatch",
    "InvariantViolation",
    "UnknownFieldError",
]
