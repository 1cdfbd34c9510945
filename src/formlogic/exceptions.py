"""
FormLogic Exception Hierarchy

Domain-specific exceptions for conditional form logic and validation.
All exceptions carry error codes for tracking and logging.

Exception codes follow the pattern: FL_<CATEGORY>_<SPECIFIC>

Three families:
- ConfigurationError: problems in a form definition (cycles, bad regex,
  unknown operators). The evaluation path never raises these; it collects
  them as diagnostics for the authoring surface.
- FormPackError: a form pack could not be loaded or failed validation.
  Raised at load time.
- InvariantViolation: programmer misuse of the runtime API. Raised only
  when strict invariants are enabled (development).

User-facing validation failures are not exceptions: they are ordered lists
of messages returned by the field validator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class FormLogicError(Exception):
    """
    Base exception for all FormLogic errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (FL_*)
        details: Additional context about the error
        field_name: Associated form field if applicable
    """
    message: str
    code: str = "FL_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    field_name: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.field_name:
            parts.append(f"(field: {self.field_name})")
        return " ".join(parts)

    @property
    def key(self) -> tuple[str, str, Optional[str]]:
        """Identity used to de-duplicate repeated diagnostics."""
        return (self.code, self.message, self.field_name)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.field_name:
            result["field"] = self.field_name
        return result


# =============================================================================
# Configuration Errors (diagnostics, never fatal)
# =============================================================================

@dataclass
class ConfigurationError(FormLogicError):
    """A form definition is misconfigured."""
    code: str = "FL_CONFIG_ERROR"


@dataclass
class CircularDependencyError(ConfigurationError):
    """Field conditions depend on each other in a cycle."""
    code: str = "FL_CONFIG_CIRCULAR_DEPENDENCY"


@dataclass
class InvalidPatternError(ConfigurationError):
    """A regular expression in a condition or rule does not compile."""
    code: str = "FL_CONFIG_INVALID_PATTERN"


@dataclass
class UnknownOperatorError(ConfigurationError):
    """A condition uses an operator the evaluator does not know."""
    code: str = "FL_CONFIG_UNKNOWN_OPERATOR"


@dataclass
class UnknownFieldReferenceError(ConfigurationError):
    """A condition references a field that is not part of the form."""
    code: str = "FL_CONFIG_UNKNOWN_FIELD_REFERENCE"


@dataclass
class UnsupportedRuleError(ConfigurationError):
    """A field declares a validation rule its type does not support."""
    code: str = "FL_CONFIG_UNSUPPORTED_RULE"


@dataclass
class CascadeLimitError(ConfigurationError):
    """Cascading value clears did not settle within the pass limit."""
    code: str = "FL_CONFIG_CASCADE_LIMIT"


# =============================================================================
# Form Pack Errors
# =============================================================================

@dataclass
class FormPackError(FormLogicError):
    """Base class for form pack loading failures."""
    code: str = "FL_PACK_ERROR"


@dataclass
class FormPackLoadError(FormPackError):
    """Failed to read a form pack file."""
    code: str = "FL_PACK_LOAD_ERROR"


@dataclass
class FormPackValidationError(FormPackError):
    """Form pack schema or reference validation failed."""
    code: str = "FL_PACK_VALIDATION_ERROR"


@dataclass
class FormPackVersionMismatch(FormPackError):
    """Form pack schema version is incompatible."""
    code: str = "FL_PACK_VERSION_MISMATCH"


@dataclass
class FormNotFoundError(FormPackError):
    """Requested form is not loaded."""
    code: str = "FL_FORM_NOT_FOUND"


# =============================================================================
# Invariant Violations (programmer errors)
# =============================================================================

@dataclass
class InvariantViolation(FormLogicError):
    """The runtime API was used in a way that can never be correct."""
    code: str = "FL_INVARIANT_VIOLATION"


@dataclass
class UnknownFieldError(InvariantViolation):
    """An operation named a field absent from the field-definition list."""
    code: str = "FL_INVARIANT_UNKNOWN_FIELD"
