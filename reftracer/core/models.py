"""Core data models for reftracer.

This module provides the trace map (the caller's description of which
property paths to look for) and the match records produced while tracing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


class ReferenceType(Enum):
    """How a traced path was used at a match site."""
    READ = "read"
    CALL = "call"
    CONSTRUCT = "construct"


class TraceMode(str, Enum):
    """How a CommonJS-shaped module map is exposed to `import` syntax."""
    LEGACY = "legacy"
    STRICT = "strict"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "TraceMode":
        """Parse a mode name, defaulting to STRICT when value is None.

        Raises:
            ValueError: If the value names no known mode
        """
        if value is None:
            return cls.STRICT
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().strip())
        except ValueError:
            raise ValueError(
                f"Unknown trace mode {value!r} (expected 'legacy' or 'strict')"
            ) from None


class _ModuleShape(Enum):
    ESM = "esm"


# Marker keys accepted by TraceMap.build(). They are enum members rather than
# strings so that they can never collide with a traced property name.
READ = ReferenceType.READ
CALL = ReferenceType.CALL
CONSTRUCT = ReferenceType.CONSTRUCT
ESM = _ModuleShape.ESM

_MARKER_FIELDS = {
    READ: "on_read",
    CALL: "on_call",
    CONSTRUCT: "on_construct",
}


@dataclass(eq=False)
class TraceMap:
    """One node of a trace map.

    `children` maps property names to the next node of the path. The
    `on_*` fields hold the caller's payload for a marker; None means the
    marker is absent. `is_esm` flags a module map that already has
    ES module shape (named exports as its children).
    """
    children: Dict[str, "TraceMap"] = field(default_factory=dict)
    on_read: Any = None
    on_call: Any = None
    on_construct: Any = None
    is_esm: bool = False

    def __contains__(self, key: str) -> bool:
        return key in self.children

    def __getitem__(self, key: str) -> "TraceMap":
        return self.children[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.children)

    def keys(self):
        return self.children.keys()

    def get(self, key: str) -> Optional["TraceMap"]:
        return self.children.get(key)

    def entry(self, kind: ReferenceType) -> Any:
        """Return the payload of the given marker, or None."""
        return getattr(self, _MARKER_FIELDS[kind])

    def as_default_export(self, legacy: bool) -> "TraceMap":
        """Wrap a CommonJS-shaped module map for `import` syntax.

        The map becomes the module's default export. In legacy mode its
        properties and markers are additionally exposed on the namespace,
        so that `import {foo}` matches as well as `x.foo` on a default import.
        """
        if not legacy:
            return TraceMap(children={"default": self})
        children = {"default": self}
        children.update(self.children)
        return TraceMap(
            children=children,
            on_read=self.on_read,
            on_call=self.on_call,
            on_construct=self.on_construct,
        )

    @classmethod
    def build(cls, spec: Any) -> "TraceMap":
        """Build a trace map from nested dicts.

        Keys are property names, except for the READ, CALL, CONSTRUCT and
        ESM markers exported by this module. A dict reused at several
        places of the input becomes a single shared node.

        Example:
            TraceMap.build({"Buffer": {CONSTRUCT: "deprecated", "from": {CALL: True}}})
        """
        if isinstance(spec, TraceMap):
            return spec
        return cls._build(spec, {})

    @classmethod
    def _build(cls, spec: Any, memo: Dict[int, "TraceMap"]) -> "TraceMap":
        if isinstance(spec, TraceMap):
            return spec
        if not isinstance(spec, dict):
            raise TypeError(
                f"Trace map nodes must be dicts, got {type(spec).__name__}"
            )
        if id(spec) in memo:
            return memo[id(spec)]

        node = cls()
        memo[id(spec)] = node
        for key, value in spec.items():
            if key is ESM:
                node.is_esm = True
            elif key in _MARKER_FIELDS:
                setattr(node, _MARKER_FIELDS[key], value)
            elif isinstance(key, str):
                node.children[key] = cls._build(value, memo)
            else:
                raise TypeError(f"Unsupported trace map key: {key!r}")
        return node


@dataclass(frozen=True)
class Match:
    """One place where a traced path is read, called or constructed."""
    node: Any
    path: Tuple[str, ...]
    type: ReferenceType
    entry: Any

    @property
    def line(self) -> int:
        """1-based line of the match site (0 if the node has no location)."""
        loc = getattr(self.node, "loc", None)
        return loc[0] if loc else 0

    @property
    def column(self) -> int:
        """0-based column of the match site."""
        loc = getattr(self.node, "loc", None)
        return loc[1] if loc else 0

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)

    def to_dict(self) -> dict:
        """Convert to dictionary (for JSON serialization)."""
        return {
            "path": list(self.path),
            "type": self.type.value,
            "entry": self.entry,
            "node_type": getattr(self.node, "type", None),
            "line": self.line,
            "column": self.column,
        }
