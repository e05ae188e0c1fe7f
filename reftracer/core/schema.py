"""Trace map files.

A trace map file is a JSON object whose keys are root names (globals or
module specifiers) and whose values are node specs:

    {
      "fs": {
        "properties": {
          "exists": {"call": "fs.exists is deprecated"},
          "promises": {"read": "use fs/promises"}
        }
      },
      "Buffer": {"construct": "new Buffer() is deprecated"}
    }

`read`, `call` and `construct` hold the payload reported with a match (any
JSON value except null); `esm` marks a module map that already has ES
module shape.
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from reftracer.core.models import TraceMap


class TraceMapError(ValueError):
    """Raised when a trace map file cannot be read or is invalid."""


class TraceMapSpec(BaseModel):
    """One node of a trace map file."""

    model_config = ConfigDict(extra="forbid")

    read: Any = Field(None, description="Payload reported when the path is read")
    call: Any = Field(None, description="Payload reported when the path is called")
    construct: Any = Field(None, description="Payload reported when the path is constructed with new")
    esm: bool = Field(False, description="The module map already has ES module shape")
    properties: Dict[str, "TraceMapSpec"] = Field(
        default_factory=dict, description="Child nodes by property name"
    )

    def to_trace_map(self) -> TraceMap:
        return TraceMap(
            children={name: child.to_trace_map() for name, child in self.properties.items()},
            on_read=self.read,
            on_call=self.call,
            on_construct=self.construct,
            is_esm=self.esm,
        )


TraceMapSpec.model_rebuild()

_ROOT_ADAPTER = TypeAdapter(Dict[str, TraceMapSpec])


def parse_trace_map(data: Any) -> TraceMap:
    """Validate decoded JSON and build a TraceMap from it.

    Args:
        data: The decoded JSON document

    Returns:
        Root TraceMap with one child per top-level key

    Raises:
        TraceMapError: If the document does not follow the schema
    """
    try:
        roots = _ROOT_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise TraceMapError(f"Invalid trace map: {e}") from e
    return TraceMap(children={name: spec.to_trace_map() for name, spec in roots.items()})


def load_trace_map(path: Union[str, Path]) -> TraceMap:
    """Load a trace map from a JSON file.

    Raises:
        TraceMapError: If the file is unreadable, not JSON, or invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TraceMapError(f"Cannot read trace map {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TraceMapError(f"Trace map {path} is not valid JSON: {e}") from e
    return parse_trace_map(data)
