"""
FormLogic Field Validator

Validates a single value against its (effective) field definition.

Algorithm, in strict order:
1. Required and empty: exactly one "<label> is required" message, stop.
2. Empty and not required: no messages, no checker runs.
3. Every rule with a registered checker runs in declaration order and
   every message is kept. A rule whose data does not apply (minSelections
   on a string, min on a non-number) is skipped.

File fields implicitly carry the fileSize rule, and fileType when the
field declares `accept`.

Checkers are plain functions registered by rule tag:

    def check(value, param, field_def, data) -> Optional[str]

Custom validators are looked up by name for `custom` rules:

    register_custom_validator("postcode", lambda value, field_def: ...)
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..models import (
    FieldDefinition,
    FieldType,
    FormValidationResult,
    RuleType,
    SectionDefinition,
)
from ..models.state import ActiveState
from .condition_evaluator import coerce_numeric, compile_pattern, is_empty, text_form
from .rule_processor import recompute_active_state

logger = logging.getLogger(__name__)


Checker = Callable[[Any, Any, FieldDefinition, Mapping[str, Any]], Optional[str]]
CustomValidator = Callable[[Any, FieldDefinition], Optional[str]]

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
VALIDATION_ERROR_MESSAGE = "Validation error occurred"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_RE = re.compile(r"^https?://.+\..+")
PHONE_RE = re.compile(r"^[\+]?[1-9][\d]{0,15}$")
PHONE_STRIP_RE = re.compile(r"[\s\-\(\)]")


# =============================================================================
# Parameter Helpers
# =============================================================================

def _param(param: Any, field_def: FieldDefinition, *fallback_keys: str) -> Any:
    """
    Resolve a rule parameter.

    List-style rules carry True instead of a parameter; the value is then
    looked up in the field's properties.
    """
    if param is not None and not isinstance(param, bool):
        return param
    for key in fallback_keys:
        if field_def.properties.get(key) is not None:
            return field_def.properties[key]
    return None


def _as_files(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _file_attr(file: Any, key: str, default: Any = None) -> Any:
    if isinstance(file, Mapping):
        return file.get(key, default)
    return getattr(file, key, default)


# =============================================================================
# Checkers
# =============================================================================

def check_min_length(value, param, field_def, data):
    limit = coerce_numeric(_param(param, field_def, "minLength"))
    if limit is None or not isinstance(value, str):
        return None
    if len(value) < limit:
        return f"{field_def.label} must be at least {text_form(limit)} characters long"
    return None


def check_max_length(value, param, field_def, data):
    limit = coerce_numeric(_param(param, field_def, "maxLength"))
    if limit is None or not isinstance(value, str):
        return None
    if len(value) > limit:
        return f"{field_def.label} must be no more than {text_form(limit)} characters long"
    return None


def check_min(value, param, field_def, data):
    limit = coerce_numeric(_param(param, field_def, "min", "minValue"))
    number = coerce_numeric(value)
    if limit is None or number is None:
        return None
    if number < limit:
        return f"{field_def.label} must be at least {text_form(limit)}"
    return None


def check_max(value, param, field_def, data):
    limit = coerce_numeric(_param(param, field_def, "max", "maxValue"))
    number = coerce_numeric(value)
    if limit is None or number is None:
        return None
    if number > limit:
        return f"{field_def.label} must be no more than {text_form(limit)}"
    return None


def check_email(value, param, field_def, data):
    if isinstance(value, str) and not EMAIL_RE.match(value):
        return f"{field_def.label} must be a valid email address"
    return None


def check_url(value, param, field_def, data):
    if isinstance(value, str) and not URL_RE.match(value):
        return f"{field_def.label} must be a valid URL"
    return None


def check_phone(value, param, field_def, data):
    if not isinstance(value, str):
        return None
    if not PHONE_RE.match(PHONE_STRIP_RE.sub("", value)):
        return f"{field_def.label} must be a valid phone number"
    return None


def check_pattern(value, param, field_def, data):
    pattern = _param(param, field_def, "pattern")
    if not pattern or not isinstance(value, str):
        return None
    try:
        regex = compile_pattern(str(pattern))
    except re.error as exc:
        logger.warning(
            "Skipping invalid pattern rule on field %s: %r (%s)",
            field_def.name, pattern, exc,
        )
        return None
    if regex.search(value) is None:
        return field_def.pattern_message or f"{field_def.label} format is invalid"
    return None


def check_min_selections(value, param, field_def, data):
    limit = coerce_numeric(_param(param, field_def, "minSelections"))
    if limit is None or not isinstance(value, (list, tuple)):
        return None
    if len(value) < limit:
        return f"Please select at least {text_form(limit)} option(s)"
    return None


def check_max_selections(value, param, field_def, data):
    limit = coerce_numeric(_param(param, field_def, "maxSelections"))
    if limit is None or not isinstance(value, (list, tuple)):
        return None
    if len(value) > limit:
        return f"Please select no more than {text_form(limit)} option(s)"
    return None


def check_file_size(value, param, field_def, data):
    max_size = coerce_numeric(_param(param, field_def, "maxSize"))
    if max_size is None:
        max_size = field_def.max_size or DEFAULT_MAX_FILE_SIZE
    for file in _as_files(value):
        size = coerce_numeric(_file_attr(file, "size"))
        if size is not None and size > max_size:
            megabytes = int(max_size / 1048576 + 0.5)
            return f"File size must be less than {megabytes}MB"
    return None


def _accepts(accept: str, file: Any) -> bool:
    mime = str(_file_attr(file, "type", "") or "").lower()
    name = str(_file_attr(file, "name", "") or "").lower()
    for entry in accept.split(","):
        entry = entry.strip().lower()
        if not entry:
            continue
        if "*" in entry:
            if mime.startswith(entry.split("/")[0]):
                return True
        elif mime == entry or name.endswith(entry):
            return True
    return False


def check_file_type(value, param, field_def, data):
    accept = param if isinstance(param, str) else field_def.accept
    if not accept:
        return None
    for file in _as_files(value):
        if not _accepts(accept, file):
            return f"File type not allowed. Accepted types: {accept}"
    return None


def check_custom(value, param, field_def, data):
    validator = param
    if isinstance(param, str):
        validator = _CUSTOM_VALIDATORS.get(param)
        if validator is None:
            logger.warning(
                "Unknown custom validator %r on field %s", param, field_def.name,
            )
            return None
    if not callable(validator):
        return None
    return validator(value, field_def)


# =============================================================================
# Registry
# =============================================================================

_VALIDATORS: dict[str, Checker] = {
    RuleType.MIN_LENGTH.value: check_min_length,
    RuleType.MAX_LENGTH.value: check_max_length,
    RuleType.PATTERN.value: check_pattern,
    RuleType.MIN.value: check_min,
    RuleType.MIN_VALUE.value: check_min,
    RuleType.MAX.value: check_max,
    RuleType.MAX_VALUE.value: check_max,
    RuleType.EMAIL.value: check_email,
    RuleType.URL.value: check_url,
    RuleType.PHONE.value: check_phone,
    RuleType.MIN_SELECTIONS.value: check_min_selections,
    RuleType.MAX_SELECTIONS.value: check_max_selections,
    RuleType.FILE_SIZE.value: check_file_size,
    RuleType.FILE_TYPE.value: check_file_type,
    RuleType.CUSTOM.value: check_custom,
}

_CUSTOM_VALIDATORS: dict[str, CustomValidator] = {}


_TEXT_RULES = frozenset({
    RuleType.REQUIRED.value,
    RuleType.MIN_LENGTH.value,
    RuleType.MAX_LENGTH.value,
    RuleType.PATTERN.value,
    RuleType.CUSTOM.value,
})
_NUMBER_RULES = frozenset({
    RuleType.REQUIRED.value,
    RuleType.MIN.value,
    RuleType.MAX.value,
    RuleType.MIN_VALUE.value,
    RuleType.MAX_VALUE.value,
    RuleType.CUSTOM.value,
})
_CHOICE_RULES = frozenset({RuleType.REQUIRED.value, RuleType.CUSTOM.value})
_MULTI_CHOICE_RULES = _CHOICE_RULES | {
    RuleType.MIN_SELECTIONS.value,
    RuleType.MAX_SELECTIONS.value,
}

# Rule tags each field type supports. Rules outside this set still run if a
# checker is registered; they are reported by collect_diagnostics().
DEFAULT_RULES_BY_TYPE: dict[FieldType, frozenset[str]] = {
    FieldType.TEXT: _TEXT_RULES,
    FieldType.TEXTAREA: _TEXT_RULES,
    FieldType.EMAIL: _TEXT_RULES | {RuleType.EMAIL.value},
    FieldType.URL: _TEXT_RULES | {RuleType.URL.value},
    FieldType.PHONE: _TEXT_RULES | {RuleType.PHONE.value},
    FieldType.NUMBER: _NUMBER_RULES,
    FieldType.SELECT: _MULTI_CHOICE_RULES,
    FieldType.RADIO: _CHOICE_RULES,
    FieldType.CHECKBOX: _MULTI_CHOICE_RULES,
    FieldType.CHECKBOX_GROUP: _MULTI_CHOICE_RULES,
    FieldType.DATE: _CHOICE_RULES,
    FieldType.FILE: frozenset({
        RuleType.REQUIRED.value,
        RuleType.FILE_SIZE.value,
        RuleType.FILE_TYPE.value,
        RuleType.CUSTOM.value,
    }),
    FieldType.CUSTOM: frozenset(r.value for r in RuleType),
}


def supported_rules(field_type: FieldType) -> frozenset[str]:
    """Rule tags a field type supports."""
    return DEFAULT_RULES_BY_TYPE.get(FieldType(field_type), frozenset())


def register_validator(tag: str, checker: Checker) -> None:
    """Register (or replace) the checker for a rule tag."""
    if tag == RuleType.REQUIRED.value:
        raise ValueError("The required rule is built in and cannot be replaced")
    _VALIDATORS[tag] = checker


def unregister_validator(tag: str) -> None:
    _VALIDATORS.pop(tag, None)


def register_custom_validator(name: str, validator: CustomValidator) -> None:
    """Register a named validator usable as {"custom": name}."""
    _CUSTOM_VALIDATORS[name] = validator


def unregister_custom_validator(name: str) -> None:
    _CUSTOM_VALIDATORS.pop(name, None)


def has_validator(tag: str) -> bool:
    return tag in _VALIDATORS


# =============================================================================
# Validation
# =============================================================================

def _rules_to_run(field_def: FieldDefinition) -> list[tuple[str, Any]]:
    """Declared rules in order, plus the implicit file rules."""
    rules = [
        (tag, param)
        for tag, param in field_def.rules.items()
        if tag != RuleType.REQUIRED.value
    ]
    if field_def.type == FieldType.FILE:
        declared = set(field_def.rules)
        if RuleType.FILE_SIZE.value not in declared:
            rules.append((RuleType.FILE_SIZE.value, None))
        if field_def.accept and RuleType.FILE_TYPE.value not in declared:
            rules.append((RuleType.FILE_TYPE.value, None))
    return rules


def validate_field(
    value: Any,
    field_def: FieldDefinition,
    data: Optional[Mapping[str, Any]] = None,
) -> list[str]:
    """
    Validate one value.

    Args:
        value: The field's current value
        field_def: Effective definition (required already resolved)
        data: Full data snapshot, passed to checkers

    Returns:
        Ordered error messages; empty when the value is valid
    """
    if is_empty(value):
        if field_def.required:
            return [f"{field_def.label} is required"]
        return []

    snapshot = data if data is not None else {}
    errors: list[str] = []
    for tag, param in _rules_to_run(field_def):
        checker = _VALIDATORS.get(tag)
        if checker is None:
            continue
        try:
            message = checker(value, param, field_def, snapshot)
        except Exception:
            logger.exception("Validator %r failed on field %s", tag, field_def.name)
            message = VALIDATION_ERROR_MESSAGE
        if message:
            errors.append(message)
    return errors


def validate_form(
    data: Mapping[str, Any],
    fields: Sequence[FieldDefinition],
    active_state: Optional[ActiveState] = None,
    sections: Optional[Sequence[SectionDefinition]] = None,
) -> FormValidationResult:
    """
    Validate every visible field of a form.

    Hidden fields are skipped entirely, including statically required ones.

    Args:
        data: Current data snapshot
        fields: Field definitions in declaration order
        active_state: Precomputed active state; recomputed when omitted
        sections: Sections used when active state is recomputed

    Returns:
        FormValidationResult with entries only for failing fields
    """
    if active_state is None:
        active_state = recompute_active_state(fields, data, sections=sections)

    errors: dict[str, list[str]] = {}
    for field_def in fields:
        state = active_state.get(field_def.name)
        if state is not None and not state.visible:
            continue
        effective = field_def.effective(state)
        messages = validate_field(data.get(field_def.name), effective, data)
        if messages:
            errors[field_def.name] = messages

    return FormValidationResult(is_valid=not errors, errors=errors)


def validate_fields(
    names: Iterable[str],
    data: Mapping[str, Any],
    fields: Sequence[FieldDefinition],
    active_state: ActiveState,
) -> dict[str, list[str]]:
    """Validate a subset of fields; hidden or unknown names are skipped."""
    by_name = {f.name: f for f in fields}
    result: dict[str, list[str]] = {}
    for name in names:
        field_def = by_name.get(name)
        state = active_state.get(name)
        if field_def is None or (state is not None and not state.visible):
            continue
        result[name] = validate_field(data.get(name), field_def.effective(state), data)
    return result
