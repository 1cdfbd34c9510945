"""
FormLogic Form Pack Loader

Loads and validates form packs from YAML or JSON files.

Converts Pydantic schema models to FormLogic domain models, then checks
form-level integrity (title, field list, unique names, section members).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..canon import content_hash
from ..exceptions import (
    FormNotFoundError,
    FormPackLoadError,
    FormPackValidationError,
    FormPackVersionMismatch,
)
from ..models import (
    CompositeCondition,
    Condition,
    FieldConditions,
    FieldDefinition,
    FieldType,
    FormDefinition,
    LeafCondition,
    Modification,
    SectionDefinition,
)
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    FieldSchema,
    FormPackSchema,
    OptionSchema,
    SectionSchema,
    check_schema_version,
    validate_form_pack,
)

logger = logging.getLogger(__name__)

PACK_SUFFIXES = frozenset({".yaml", ".yml", ".json"})


# =============================================================================
# Reference Integrity Validation
# =============================================================================

def validate_reference_integrity(form: FormDefinition, path: str = "") -> None:
    """
    Validate form-level consistency.

    Catches:
    - Blank form title
    - Forms without fields
    - Duplicate field names
    - Sections listing fields that do not exist
    - Duplicate section IDs

    Condition references to unknown fields are not errors here; they are
    reported by collect_diagnostics() and evaluate as empty values.
    Unknown operators likewise load, evaluate as False and are reported
    by collect_diagnostics().

    Raises:
        ValueError: If integrity errors are found
    """
    errors = []

    if not form.title or not form.title.strip():
        errors.append("Form title is required")

    if not form.fields:
        errors.append("Form must have at least one field")

    seen: set[str] = set()
    duplicates: list[str] = []
    for f in form.fields:
        if f.name in seen and f.name not in duplicates:
            duplicates.append(f.name)
        seen.add(f.name)
    if duplicates:
        errors.append(f"Duplicate field names: {', '.join(duplicates)}")

    seen_sections: set[str] = set()
    for section in form.sections:
        if section.id in seen_sections:
            errors.append(f"Duplicate section ID: '{section.id}'")
        seen_sections.add(section.id)
        for name in section.fields:
            if name not in seen:
                errors.append(f"Section '{section.id}' references non-existent field '{name}'")

    if errors:
        path_str = f" in {path}" if path else ""
        raise ValueError(
            f"Reference integrity errors{path_str}:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )


# =============================================================================
# Schema to Model Converters
# =============================================================================

def _convert_condition(schema: Optional[ConditionSchema]) -> Optional[Condition]:
    """Convert ConditionSchema to a leaf or composite condition."""
    if schema is None:
        return None
    if schema.is_composite:
        return CompositeCondition(
            conditions=[_convert_condition(c) for c in schema.conditions or []],
            logical_operator=schema.logical_operator or "AND",
        )
    return LeafCondition(
        field=schema.field or "",
        operator=schema.operator,
        value=schema.value,
    )


def _convert_option(option: Union[OptionSchema, str, int, float, bool]) -> Any:
    if isinstance(option, OptionSchema):
        return {"value": option.value, "label": option.label if option.label is not None else str(option.value)}
    return option


def _convert_field(schema: FieldSchema) -> FieldDefinition:
    """Convert FieldSchema to FieldDefinition model."""
    rules = schema.rules
    pattern_message = schema.pattern_message
    if isinstance(rules, dict) and "patternMessage" in rules:
        # patternMessage may be authored inside the rule block
        rules = dict(rules)
        pattern_message = pattern_message or rules.pop("patternMessage")

    conditions = FieldConditions()
    if schema.conditions is not None:
        conditions = FieldConditions(
            visibility=_convert_condition(schema.conditions.visibility),
            required=_convert_condition(schema.conditions.required),
            modifications=[
                Modification(condition=_convert_condition(m.condition), changes=dict(m.changes))
                for m in schema.conditions.modifications
            ],
        )

    return FieldDefinition(
        name=schema.name,
        type=FieldType(schema.type),
        label=schema.label or schema.name,
        required=schema.required,
        rules=rules,
        conditions=conditions,
        options=[_convert_option(o) for o in schema.options],
        accept=schema.accept,
        max_size=schema.max_size,
        pattern_message=pattern_message,
        help_text=schema.help_text,
        placeholder=schema.placeholder,
        properties=dict(schema.properties),
    )


def _convert_section(schema: SectionSchema) -> SectionDefinition:
    """Convert SectionSchema to SectionDefinition model."""
    return SectionDefinition(
        id=schema.id,
        title=schema.title,
        fields=list(schema.fields),
        visibility=_convert_condition(schema.conditions.visibility) if schema.conditions else None,
        description=schema.description,
    )


def _convert_form_pack(schema: FormPackSchema) -> FormDefinition:
    """Convert FormPackSchema to FormDefinition model."""
    return FormDefinition(
        id=schema.id,
        title=schema.title,
        version=schema.version,
        description=schema.description,
        fields=[_convert_field(f) for f in schema.fields],
        sections=[_convert_section(s) for s in schema.sections],
    )


# =============================================================================
# Form Pack Loader
# =============================================================================

class FormPackLoader:
    """
    Loads form packs from YAML or JSON files.

    Usage:
        loader = FormPackLoader()
        form = loader.load("path/to/form.yaml")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject packs with incompatible schema versions
        """
        self.strict_version = strict_version

        # Cache of loaded forms
        self._forms: dict[str, FormDefinition] = {}

    def load(self, path: Union[str, Path]) -> FormDefinition:
        """
        Load a form pack from a file.

        Args:
            path: Path to YAML or JSON file

        Returns:
            Loaded FormDefinition model

        Raises:
            FormPackLoadError: If file cannot be read
            FormPackValidationError: If validation fails
            FormPackVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise FormPackLoadError(
                message=f"Failed to load form pack: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        form = self._build(data, str(path))
        logger.info(
            "Loaded form pack %s (%d fields) from %s",
            form.id, len(form.fields), path,
            extra={"form_id": form.id},
        )
        return form

    def load_string(self, content: str, format: str = "yaml") -> FormDefinition:
        """Load a form pack from a YAML or JSON string and cache it."""
        try:
            if format.lower() == "json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (ValueError, yaml.YAMLError) as e:
            raise FormPackLoadError(
                message=f"Failed to parse form pack: {e}",
                details={"format": format, "error": str(e)},
            ) from e
        return self._build(data, "<string>")

    def load_directory(self, directory: Union[str, Path]) -> list[FormDefinition]:
        """
        Load every pack file in a directory, in file name order.

        Packs that fail to load are logged and skipped so one broken file
        does not take the others down.
        """
        directory = Path(directory)
        loaded = []
        if not directory.is_dir():
            logger.warning("Form pack directory %s does not exist", directory)
            return loaded

        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in PACK_SUFFIXES:
                continue
            try:
                loaded.append(self.load(path))
            except (FormPackLoadError, FormPackValidationError, FormPackVersionMismatch) as e:
                logger.error(
                    "Skipping form pack %s: %s", path, e.message,
                    extra={"error_code": e.code},
                )
        return loaded

    def _build(self, data: Any, path: str) -> FormDefinition:
        if not isinstance(data, dict):
            raise FormPackLoadError(
                message="Form pack must be a mapping at the top level",
                details={"path": path, "type": type(data).__name__},
            )

        # Check schema version
        if self.strict_version and not check_schema_version(data):
            pack_version = data.get("schema_version", "unknown")
            raise FormPackVersionMismatch(
                message=f"Schema version mismatch: pack has {pack_version}, expected {SCHEMA_VERSION}",
                details={
                    "pack_version": pack_version,
                    "expected_version": SCHEMA_VERSION,
                },
            )

        # Validate against schema
        try:
            schema = validate_form_pack(data)
        except ValidationError as e:
            raise FormPackValidationError(
                message=f"Form pack validation failed: {e.error_count()} errors",
                details={"errors": e.errors(include_url=False), "path": path},
            ) from e

        form = _convert_form_pack(schema)

        # Validate reference integrity
        try:
            validate_reference_integrity(form, path)
        except ValueError as e:
            raise FormPackValidationError(
                message="Reference integrity validation failed",
                details={"errors": str(e), "path": path},
            ) from e

        form.content_hash = content_hash(data)
        self._forms[form.id] = form
        return form

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in {".yaml", ".yml"}:
                return yaml.safe_load(f)
            elif path.suffix.lower() == ".json":
                return json.load(f)
            else:
                # Try YAML first, then JSON
                content = f.read()
                try:
                    return yaml.safe_load(content)
                except yaml.YAMLError:
                    return json.loads(content)

    def get_form(self, form_id: str) -> Optional[FormDefinition]:
        """Get a cached form by ID."""
        return self._forms.get(form_id)

    def require_form(self, form_id: str) -> FormDefinition:
        """Get a cached form by ID, raising FormNotFoundError if missing."""
        form = self._forms.get(form_id)
        if form is None:
            raise FormNotFoundError(
                message=f"Form not found: {form_id}",
                details={"form_id": form_id, "available": self.list_forms()},
            )
        return form

    def list_forms(self) -> list[str]:
        """List IDs of all loaded forms."""
        return list(self._forms.keys())


# =============================================================================
# Convenience Functions
# =============================================================================

def load_form_pack(path: Union[str, Path]) -> FormDefinition:
    """
    Load a form pack from a file.

    Convenience function that creates a temporary loader.
    """
    loader = FormPackLoader()
    return loader.load(path)


def load_form_pack_from_string(
    content: str,
    format: str = "yaml",
) -> FormDefinition:
    """
    Load a form pack from a string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"

    Returns:
        Loaded FormDefinition model
    """
    return FormPackLoader().load_string(content, format=format)
