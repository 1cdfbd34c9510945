"""
Canonical JSON Serialization

Deterministic JSON for hashing form packs and active state.
- Sorted keys (lexicographic)
- No whitespace
- Dataclasses, enums and sets serialized in a fixed shape
- UTF-8 encoding

The same active state always produces the same state hash, which makes
the determinism of recomputation observable from outside (API clients
can compare hashes across requests).
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from .models import ActiveFieldState


def _default_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for non-standard types.

    Handles:
    - Decimal: string (preserves precision)
    - Enum: value
    - dataclass: dict
    - set/frozenset: sorted list
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, (set, frozenset)):
        # Sort for determinism
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        default=_default_serializer,
        ensure_ascii=False,
    )


def content_hash(obj: Any) -> str:
    """Hex-encoded SHA-256 of the canonical JSON representation."""
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()


def content_hash_short(obj: Any, length: int = 12) -> str:
    """Truncated content hash for display and log lines."""
    return content_hash(obj)[:length]


def state_hash(active_state: Mapping[str, ActiveFieldState]) -> str:
    """
    Fingerprint of an active-state mapping.

    Field order does not matter; visibility, required flags and merged
    modifications do.
    """
    return content_hash(_state_payload(active_state))


def state_hash_short(active_state: Mapping[str, ActiveFieldState], length: int = 12) -> str:
    """Truncated state fingerprint for log lines."""
    return content_hash_short(_state_payload(active_state), length=length)


def _state_payload(active_state: Mapping[str, ActiveFieldState]) -> dict[str, Any]:
    return {name: state.to_dict() for name, state in active_state.items()}
