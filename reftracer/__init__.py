"""reftracer - trace uses of JavaScript APIs through aliases and imports.

Given a trace map describing property paths of interest, reftracer finds every
place a JavaScript program reads, calls or constructs one of those paths,
however the value was aliased, destructured, re-assigned or imported.
"""

__version__ = "0.1.0"

from reftracer.core.models import (
    CALL,
    CONSTRUCT,
    ESM,
    READ,
    Match,
    ReferenceType,
    TraceMap,
    TraceMode,
)
from reftracer.tracing.tracer import ReferenceTracer

__all__ = [
    "__version__",
    "CALL",
    "CONSTRUCT",
    "ESM",
    "READ",
    "Match",
    "ReferenceType",
    "TraceMap",
    "TraceMode",
    "ReferenceTracer",
]
