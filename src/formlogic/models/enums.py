"""
FormLogic Enumerations

Enumeration types used throughout FormLogic.

All enums inherit from (str, Enum) so values compare equal to their wire
strings and serialize to JSON without adapters.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Field Types
# =============================================================================

class FieldType(str, Enum):
    """Closed set of field types a form can contain."""
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    CHECKBOX_GROUP = "checkbox_group"
    DATE = "date"
    FILE = "file"
    CUSTOM = "custom"


# =============================================================================
# Condition Operators
# =============================================================================

class ConditionOperator(str, Enum):
    """Comparison operators available to leaf conditions."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN_LIST = "in_list"
    NOT_IN_LIST = "not_in_list"
    MATCHES_PATTERN = "matches_pattern"


class LogicalOperator(str, Enum):
    """Combinators for composite conditions."""
    AND = "AND"
    OR = "OR"


# =============================================================================
# Validation Rules
# =============================================================================

class RuleType(str, Enum):
    """Validation rule tags with a registered checker."""
    REQUIRED = "required"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    MIN = "min"
    MAX = "max"
    MIN_VALUE = "minValue"    # alias of min
    MAX_VALUE = "maxValue"    # alias of max
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    MIN_SELECTIONS = "minSelections"
    MAX_SELECTIONS = "maxSelections"
    FILE_SIZE = "fileSize"
    FILE_TYPE = "fileType"
    CUSTOM = "custom"


class DebounceScope(str, Enum):
    """Granularity of debounced re-validation."""
    FIELD = "field"    # one pending validation per field
    FORM = "form"      # one pending validation for the whole form


class RunMode(str, Enum):
    """Deployment mode; controls how invariant violations are handled."""
    DEV = "dev"
    PROD = "prod"
