"""
FormLogic Field Models

Static description of a form: its fields, their conditional logic,
and (optionally) the sections that group them.

Key components:
- FieldDefinition: one input of a form, with type, rules and conditions
- FieldConditions: visibility / required / modifications slots
- Modification: condition-guarded partial override of a field definition
- SectionDefinition: named group of fields with its own visibility
- FormDefinition: top-level container loaded from a form pack

Definitions are immutable for the duration of a session. Conditional
overrides are applied with FieldDefinition.effective(), which returns a
new definition and never mutates the original.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from .conditions import Condition
from .enums import FieldType, RuleType

if TYPE_CHECKING:
    from .state import ActiveFieldState


# Override keys accepted from modification `changes`, mapped to attributes.
# Wire keys are camelCase; snake_case is accepted as well.
_OVERRIDE_ATTRIBUTES: dict[str, str] = {
    "label": "label",
    "options": "options",
    "accept": "accept",
    "maxSize": "max_size",
    "max_size": "max_size",
    "patternMessage": "pattern_message",
    "pattern_message": "pattern_message",
    "helpText": "help_text",
    "help_text": "help_text",
    "placeholder": "placeholder",
}

# Keys whose override merges into the rule mapping instead of replacing it.
_RULE_KEYS = frozenset({"rules", "validation"})


def normalize_rules(rules: Union[Mapping[str, Any], Iterable[str], None]) -> dict[str, Any]:
    """
    Normalize a rule declaration to an ordered tag -> parameter mapping.

    A plain list of tags becomes {tag: True}. Declaration order is kept;
    validators run in this order.
    """
    if rules is None:
        return {}
    if isinstance(rules, Mapping):
        return dict(rules)
    if isinstance(rules, str):
        return {rules: True}
    return {tag: True for tag in rules}


# =============================================================================
# Conditional Slots
# =============================================================================

@dataclass
class Modification:
    """
    Partial field override applied while its condition holds.

    Attributes:
        condition: Guard evaluated against the data snapshot
        changes: Attribute overrides (e.g. {"label": "...", "options": [...]})
    """
    condition: Condition
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass
class FieldConditions:
    """
    The three independent conditional slots of a field.

    A missing visibility condition means always visible. A missing required
    condition means the static default applies unchanged.
    """
    visibility: Optional[Condition] = None
    required: Optional[Condition] = None
    modifications: list[Modification] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            self.visibility is None
            and self.required is None
            and not self.modifications
        )


# =============================================================================
# Field Definition
# =============================================================================

@dataclass
class FieldDefinition:
    """
    One input of a form.

    Attributes:
        name: Identifier, unique within a form
        type: Field type tag
        label: Human label used in validation messages
        required: Static required default (conditions can only add to it)
        rules: Ordered mapping of rule tag -> parameter
        conditions: Conditional visibility / required / modifications
        options: Choices for select, radio and checkbox groups
        accept: Comma-separated accepted file extensions or MIME types
        max_size: Maximum file size in bytes
        pattern_message: Message used when the pattern rule fails
        help_text: Passive description shown by renderers
        placeholder: Passive hint shown by renderers
        properties: Free-form extras not interpreted by the core
    """
    name: str
    type: FieldType = FieldType.TEXT
    label: str = ""
    required: bool = False
    rules: dict[str, Any] = field(default_factory=dict)
    conditions: FieldConditions = field(default_factory=FieldConditions)
    options: list[Any] = field(default_factory=list)
    accept: Optional[str] = None
    max_size: Optional[int] = None
    pattern_message: Optional[str] = None
    help_text: Optional[str] = None
    placeholder: Optional[str] = None
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.type, FieldType):
            self.type = FieldType(self.type)
        if not self.label:
            self.label = self.name
        self.rules = normalize_rules(self.rules)
        # A "required" rule tag is the list-style way of saying required=True
        if self.rules.get(RuleType.REQUIRED.value):
            self.required = True
        if self.conditions is None:
            self.conditions = FieldConditions()

    @property
    def has_conditions(self) -> bool:
        return not self.conditions.is_empty

    @property
    def option_values(self) -> list[Any]:
        """Option values, accepting both plain values and {value, label} dicts."""
        values = []
        for option in self.options:
            if isinstance(option, Mapping):
                values.append(option.get("value"))
            else:
                values.append(option)
        return values

    def effective(self, state: Optional[ActiveFieldState]) -> FieldDefinition:
        """
        Return the definition as it applies under an active state.

        The conditionally resolved required flag replaces the static one.
        Modification overrides replace known attributes, merge into rules,
        and land in properties otherwise. A "required" key in the overrides
        is ignored: required-ness is owned by the required condition.

        Args:
            state: Active state computed for this field, or None

        Returns:
            A new FieldDefinition; self is never modified
        """
        if state is None:
            return self

        updates: dict[str, Any] = {"required": state.required}
        if not state.modifications:
            return replace(self, **updates)

        rules = dict(self.rules)
        properties = dict(self.properties)
        for key, value in state.modifications.items():
            if key in _OVERRIDE_ATTRIBUTES:
                updates[_OVERRIDE_ATTRIBUTES[key]] = value
            elif key in _RULE_KEYS:
                rules.update(normalize_rules(value))
            elif key in ("required", "name", "type", "conditions"):
                continue
            else:
                properties[key] = value

        updates["rules"] = rules
        updates["properties"] = properties
        return replace(self, **updates)


# =============================================================================
# Sections and Forms
# =============================================================================

@dataclass
class SectionDefinition:
    """
    Named group of fields that can be shown or hidden as a unit.

    A field inside a hidden section is hidden regardless of its own
    visibility condition.
    """
    id: str
    title: str = ""
    fields: list[str] = field(default_factory=list)
    visibility: Optional[Condition] = None
    description: Optional[str] = None


@dataclass
class FormDefinition:
    """
    Top-level container for a form loaded from a form pack.

    Attributes:
        id: Form identifier used by the API
        title: Human title (must not be blank)
        version: Form version string
        fields: Ordered field definitions
        sections: Optional section grouping
        content_hash: SHA-256 of the source pack, set by the loader
    """
    id: str
    title: str
    version: str = "1.0"
    description: Optional[str] = None
    fields: list[FieldDefinition] = field(default_factory=list)
    sections: list[SectionDefinition] = field(default_factory=list)
    content_hash: Optional[str] = None

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]
