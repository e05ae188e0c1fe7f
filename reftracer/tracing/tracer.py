"""Entry points for reference tracing.

`ReferenceTracer` finds where a trace map's paths are used, starting from
undeclared globals, CommonJS `require()` calls or ES module
import/export declarations. Every entry method is a generator, and each call
runs on a fresh `Traversal`, so one tracer can serve any number of
independent (or interleaved) iterations.

Example:
    tracer = ReferenceTracer(global_scope)
    trace_map = {"fs": {"exists": {CALL: "use fs.stat() instead"}}}
    for match in tracer.iterate_cjs_references(trace_map):
        print(match.line, match.dotted_path, match.entry)
"""

import dataclasses
import logging
from typing import Any, Iterable, Iterator, Optional, Sequence

from reftracer.core.models import (
    CALL,
    CONSTRUCT,
    ESM,
    READ,
    Match,
    TraceMap,
    TraceMode,
)
from reftracer.tracing.scope import Scope, Variable
from reftracer.tracing.static_values import StaticStringResolver
from reftracer.tracing.traversal import Traversal

logger = logging.getLogger(__name__)

DEFAULT_GLOBAL_OBJECT_NAMES = ("global", "self", "window")

# Top-level statements that can name a module
_MODULE_DECLARATION_TYPES = {
    "ImportDeclaration",
    "ExportAllDeclaration",
    "ExportDefaultDeclaration",
    "ExportNamedDeclaration",
}


class ReferenceTracer:
    """Traces the usage of global, CommonJS and ES module values.

    Args:
        global_scope: Global scope from `ScopeAnalyzer.analyze`
        mode: "strict" or "legacy", how a CommonJS-shaped module map is
            seen by `import` syntax
        global_object_names: Names of the global object (`window.foo`
            traces like `foo`)
        string_resolver: Folds computed keys and `require()` arguments
    """

    READ = READ
    CALL = CALL
    CONSTRUCT = CONSTRUCT
    ESM = ESM

    def __init__(
        self,
        global_scope: Scope,
        mode: Any = TraceMode.STRICT,
        global_object_names: Optional[Iterable[str]] = None,
        string_resolver: Optional[StaticStringResolver] = None,
    ):
        self.global_scope = global_scope
        self.mode = TraceMode.from_string(mode)
        if global_object_names is None:
            global_object_names = DEFAULT_GLOBAL_OBJECT_NAMES
        self.global_object_names = tuple(global_object_names)
        self.string_resolver = string_resolver or StaticStringResolver()

    def _traversal(self) -> Traversal:
        return Traversal(self.global_scope, self.string_resolver)

    def _undeclared_global(self, name: str) -> Optional[Variable]:
        """Return the global variable for name if this file never declares it."""
        variable = self.global_scope.variable_map.get(name)
        if variable is None or variable.defs:
            return None
        return variable

    def iterate_global_references(self, trace_map: Any) -> Iterator[Match]:
        """Iterate the references of global variables.

        Top-level keys of the trace map are global names. Accesses through
        the global object (`window.foo`) are traced after the direct ones.

        Args:
            trace_map: TraceMap or nested dict

        Yields:
            Match records in source order per root
        """
        trace_map = TraceMap.build(trace_map)
        traversal = self._traversal()

        for key in trace_map:
            variable = self._undeclared_global(key)
            if variable is None:
                continue
            logger.debug("Tracing global %r", key)
            yield from traversal.iterate_variable_references(
                variable, (key,), trace_map[key], True
            )

        for name in self.global_object_names:
            variable = self._undeclared_global(name)
            if variable is None:
                continue
            logger.debug("Tracing global object %r", name)
            yield from traversal.iterate_variable_references(variable, (), trace_map, False)

    def iterate_cjs_references(self, trace_map: Any) -> Iterator[Match]:
        """Iterate the references of CommonJS modules.

        Only calls of an undeclared `require` with a constant first argument
        are roots; a locally defined `require` disables this strategy.
        """
        trace_map = TraceMap.build(trace_map)
        variable = self._undeclared_global("require")
        if variable is None:
            logger.debug("No global require binding, skipping CommonJS references")
            return
        traversal = self._traversal()

        for reference in variable.references:
            require_node = reference.identifier
            call_node = require_node.parent
            if (
                not reference.is_read()
                or call_node is None
                or call_node.type != "CallExpression"
                or call_node.callee is not require_node
            ):
                continue

            arguments = call_node.arguments
            key = self.string_resolver.resolve(arguments[0] if arguments else None)
            if key is None or key not in trace_map:
                continue

            next_trace_map = trace_map[key]
            path = (key,)
            if next_trace_map.on_read is not None:
                yield Match(call_node, path, READ, next_trace_map.on_read)
            yield from traversal.iterate_property_references(call_node, path, next_trace_map)

    def iterate_esm_references(self, trace_map: Any) -> Iterator[Match]:
        """Iterate the references of ES modules.

        Only top-level import declarations and re-exports with a source are
        roots. A module map without the ESM marker is treated as a CommonJS
        module whose `module.exports` is the default export; see `TraceMode`.
        """
        trace_map = TraceMap.build(trace_map)
        traversal = self._traversal()
        program = self.global_scope.block

        for node in program.body:
            if node.type not in _MODULE_DECLARATION_TYPES or getattr(node, "source", None) is None:
                continue
            module_id = node.source.value
            if not isinstance(module_id, str) or module_id not in trace_map:
                continue

            logger.debug("Tracing module %r from %s", module_id, node.type)
            next_trace_map = trace_map[module_id]
            path = (module_id,)

            if next_trace_map.on_read is not None:
                yield Match(node, path, READ, next_trace_map.on_read)

            if node.type == "ExportAllDeclaration":
                for key in next_trace_map:
                    export_trace_map = next_trace_map[key]
                    if export_trace_map.on_read is not None:
                        yield Match(node, path + (key,), READ, export_trace_map.on_read)
                continue

            if next_trace_map.is_esm:
                for specifier in node.specifiers:
                    yield from traversal.iterate_import_references(specifier, path, next_trace_map)
                continue

            wrapped = next_trace_map.as_default_export(self.mode is TraceMode.LEGACY)
            for specifier in node.specifiers:
                matches = traversal.iterate_import_references(specifier, path, wrapped)
                yield from _except_default(matches)


def _except_default(matches: Iterable[Match]) -> Iterator[Match]:
    """Drop the synthetic "default" segment of a wrapped CommonJS map.

    A READ that is left with only the module name is the bare act of
    importing and is not reported.
    """
    for match in matches:
        path = _strip_default(match.path)
        if len(path) < 2 and match.type is READ:
            continue
        if path != match.path:
            match = dataclasses.replace(match, path=path)
        yield match


def _strip_default(path: Sequence[str]) -> tuple:
    return tuple(name for index, name in enumerate(path) if not (index == 1 and name == "default"))
