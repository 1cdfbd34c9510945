"""Request schemas for the API."""

from pydantic import BaseModel, Field
from typing import Any


class SnapshotRequest(BaseModel):
    """A data snapshot of a form: field name -> current value."""
    data: dict[str, Any] = Field(default_factory=dict, description="Current field values")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"data": {"hasChildren": True, "age": 7}},
            ]
        }
    }


class ChangeRequest(BaseModel):
    """A single value change, applied to the snapshot taken before it."""
    field_id: str = Field(..., description="Field whose value changed")
    value: Any = Field(None, description="The new value")
    data: dict[str, Any] = Field(default_factory=dict, description="Snapshot before the change")
    touched: list[str] = Field(default_factory=list, description="Fields the user has interacted with")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "field_id": "hasChildren",
                    "value": False,
                    "data": {"hasChildren": True, "age": 7},
                    "touched": ["age"],
                }
            ]
        }
    }
