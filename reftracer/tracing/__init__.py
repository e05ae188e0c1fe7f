"""reftracer tracing - scope analysis and reference tracing.

This package provides:
- Lexical scope analysis of ESTree programs
- Variable lookup through the scope chain
- Constant folding of property keys and module names
- Tracing of global, CommonJS and ES module references
"""

from reftracer.tracing.scope import Definition, Reference, Scope, ScopeAnalyzer, Variable
from reftracer.tracing.resolver import find_variable, get_innermost_scope
from reftracer.tracing.static_values import StaticStringResolver
from reftracer.tracing.traversal import Traversal
from reftracer.tracing.tracer import DEFAULT_GLOBAL_OBJECT_NAMES, ReferenceTracer

__all__ = [
    "Definition",
    "Reference",
    "Scope",
    "ScopeAnalyzer",
    "Variable",
    "find_variable",
    "get_innermost_scope",
    "StaticStringResolver",
    "Traversal",
    "DEFAULT_GLOBAL_OBJECT_NAMES",
    "ReferenceTracer",
]
