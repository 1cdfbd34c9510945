"""
FormLogic Engine

Core services for conditional form logic and validation.

Services:
- ConditionEvaluator: Evaluate composable conditions
- DependencyGraph / detect_cycles: Static dependency analysis
- ConditionalRuleProcessor: Compute visible/required/modifications
- validate_field / validate_form: Rule-based field validation
- Debouncer: Keyed, stale-guarded deferral
- ValidationOrchestrator: Touch-aware, debounced validation state
- CascadingUpdateController: Value-change propagation
- FormSession: All of the above behind one facade

Usage:
    from formlogic.engine import (
        FormSession,
        recompute_active_state,
        validate_form,
    )
"""
from __future__ import annotations

from .condition_evaluator import (
    ConditionEvaluator,
    compare_values,
    evaluate_condition,
    is_empty,
    strict_equals,
    text_form,
)
from .dependency_graph import (
    DependencyGraph,
    build_graph,
    cycle_members,
    detect_cycles,
    extract_dependencies,
    field_conditions,
)
from .rule_processor import (
    ConditionalRuleProcessor,
    recompute_active_state,
    recompute_section_visibility,
)
from .field_validator import (
    DEFAULT_RULES_BY_TYPE,
    register_custom_validator,
    register_validator,
    supported_rules,
    unregister_custom_validator,
    unregister_validator,
    validate_field,
    validate_form,
)
from .debounce import (
    AsyncioScheduler,
    Debouncer,
    ManualScheduler,
    Scheduler,
)
from .orchestrator import (
    ValidationOptions,
    ValidationOrchestrator,
)
from .cascade import CascadingUpdateController
from .session import FormSession
from .diagnostics import collect_diagnostics

__all__ = [
    # Condition Evaluator
    "ConditionEvaluator",
    "compare_values",
    "evaluate_condition",
    "is_empty",
    "strict_equals",
    "text_form",
    # Dependency Graph
    "DependencyGraph",
    "build_graph",
    "cycle_members",
    "detect_cycles",
    "extract_dependencies",
    "field_conditions",
    # Rule Processor
    "ConditionalRuleProcessor",
    "recompute_active_state",
    "recompute_section_visibility",
    # Field Validator
    "DEFAULT_RULES_BY_TYPE",
    "register_custom_validator",
    "register_validator",
    "supported_rules",
    "unregister_custom_validator",
    "unregister_validator",
    "validate_field",
    "validate_form",
    # Debounce
    "AsyncioScheduler",
    "Debouncer",
    "ManualScheduler",
    "Scheduler",
    # Orchestration
    "ValidationOptions",
    "ValidationOrchestrator",
    "CascadingUpdateController",
    "FormSession",
    # Diagnostics
    "collect_diagnostics",
]
