"""
FormLogic Dependency Graph

Static analysis of the field references made by conditional logic.

Key components:
- extract_dependencies(): field names read by a condition tree
- build_graph(): field -> referenced fields, with a reverse index
- detect_cycles(): circular dependencies as explicit paths

Cycle paths are reported as [n0, n1, ..., n0]. Fields are visited in
declaration order and neighbours in sorted order, so the same field list
always produces the same cycle list.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence, Union

from ..models import CompositeCondition, Condition, FieldDefinition, LeafCondition


# =============================================================================
# Extraction
# =============================================================================

def extract_dependencies(condition: Optional[Condition]) -> set[str]:
    """
    Collect every field referenced by a condition tree.

    Args:
        condition: Leaf or composite condition (None yields an empty set)

    Returns:
        Set of referenced field names
    """
    fields: set[str] = set()
    _collect_fields(condition, fields)
    return fields


def _collect_fields(condition: Optional[Condition], fields: set[str]) -> None:
    """Recursively collect field names from a condition."""
    if condition is None:
        return
    if isinstance(condition, CompositeCondition):
        for child in condition.conditions:
            _collect_fields(child, fields)
    elif isinstance(condition, LeafCondition) and condition.field:
        fields.add(condition.field)


def field_conditions(field_def: FieldDefinition) -> list[Condition]:
    """All conditions of a field: visibility, required, then modifications."""
    conditions = field_def.conditions
    result: list[Condition] = []
    if conditions.visibility is not None:
        result.append(conditions.visibility)
    if conditions.required is not None:
        result.append(conditions.required)
    for modification in conditions.modifications:
        if modification.condition is not None:
            result.append(modification.condition)
    return result


# =============================================================================
# Dependency Graph
# =============================================================================

@dataclass(frozen=True)
class DependencyGraph:
    """
    Field -> set of fields its conditions read from.

    Immutable for a session; rebuild with build_graph() when the field list
    changes. Edges may point at names that are not fields of the form; those
    are kept for diagnostics and ignored by traversal.
    """
    field_names: tuple[str, ...]
    edges: Mapping[str, frozenset[str]]
    _dependents: Mapping[str, tuple[str, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        dependents: dict[str, list[str]] = {}
        for name in self.field_names:
            for dep in sorted(self.edges.get(name, frozenset())):
                dependents.setdefault(dep, []).append(name)
        object.__setattr__(
            self,
            "_dependents",
            {dep: tuple(names) for dep, names in dependents.items()},
        )

    def dependencies_of(self, name: str) -> frozenset[str]:
        """Fields the given field's conditions read."""
        return self.edges.get(name, frozenset())

    def dependents_of(self, name: str) -> list[str]:
        """Fields whose conditions read the given field, in declaration order."""
        return list(self._dependents.get(name, ()))

    def unknown_references(self) -> dict[str, list[str]]:
        """Field -> referenced names that are not fields of the form."""
        known = set(self.field_names)
        result: dict[str, list[str]] = {}
        for name in self.field_names:
            missing = sorted(self.dependencies_of(name) - known)
            if missing:
                result[name] = missing
        return result

    def to_dict(self) -> dict[str, list[str]]:
        """Dependency map of fields that have dependencies."""
        return {
            name: sorted(self.edges[name])
            for name in self.field_names
            if self.edges.get(name)
        }


def build_graph(fields: Sequence[FieldDefinition]) -> DependencyGraph:
    """
    Build the dependency graph of a field list.

    Each field's edges are the union of the dependencies of its visibility
    condition, its required condition and every modification condition.
    """
    edges: dict[str, frozenset[str]] = {}
    for field_def in fields:
        deps: set[str] = set()
        for condition in field_conditions(field_def):
            deps |= extract_dependencies(condition)
        edges[field_def.name] = frozenset(deps)
    return DependencyGraph(
        field_names=tuple(f.name for f in fields),
        edges=edges,
    )


# =============================================================================
# Cycle Detection
# =============================================================================

def detect_cycles(
    source: Union[DependencyGraph, Sequence[FieldDefinition]],
) -> list[list[str]]:
    """
    Find circular dependencies with a depth-first search.

    A cycle is reported when the search reaches a field already on the
    recursion stack. Each field is expanded once, so A <-> B yields exactly
    one path, ["A", "B", "A"].

    Args:
        source: A DependencyGraph or a field list to build one from

    Returns:
        Cycle paths, each starting and ending with the same field
    """
    graph = source if isinstance(source, DependencyGraph) else build_graph(source)
    known = set(graph.field_names)

    cycles: list[list[str]] = []
    done: set[str] = set()
    stack: list[str] = []
    on_stack: set[str] = set()

    def visit(name: str) -> None:
        stack.append(name)
        on_stack.add(name)
        for dep in sorted(graph.dependencies_of(name)):
            if dep not in known:
                continue
            if dep in on_stack:
                start = stack.index(dep)
                cycles.append(stack[start:] + [dep])
            elif dep not in done:
                visit(dep)
        stack.pop()
        on_stack.discard(name)
        done.add(name)

    for name in graph.field_names:
        if name not in done:
            visit(name)

    return cycles


def cycle_members(cycles: Iterable[Sequence[str]]) -> frozenset[str]:
    """Every field that appears on a cycle path."""
    members: set[str] = set()
    for path in cycles:
        members.update(path)
    return frozenset(members)


def format_cycle(path: Sequence[str]) -> str:
    return " -> ".join(path)
