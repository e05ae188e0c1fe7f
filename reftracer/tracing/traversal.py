"""Reference propagation through a scope graph.

A `Traversal` follows a traced value from its root (a variable, a
`require()` call, an import specifier) to every place it is read, called or
constructed. Value-position methods (`iterate_variable_references`,
`iterate_property_references`) and binding-position methods
(`iterate_lhs_references`, `iterate_import_references`) call each other
recursively; all of them are generators of `Match` records.
"""

import re
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from reftracer.core.models import CALL, CONSTRUCT, READ, Match, TraceMap
from reftracer.parsers.nodes import Node
from reftracer.tracing.resolver import find_variable
from reftracer.tracing.scope import Scope, Variable
from reftracer.tracing.static_values import StaticStringResolver

# Parent kinds that end the upward climb from a traced node. Any other kind
# (conditional, logical, sequence, await, ...) passes the value through.
SENTINEL_TYPE = re.compile(
    r"^(?:.+?Statement|.+?Declaration"
    r"|(?:Array|ArrowFunction|Assignment|Call|Class|Function|Member|New|Object)Expression"
    r"|AssignmentPattern|Program|VariableDeclarator)$"
)

Path = Tuple[str, ...]


def module_export_name(node: Node) -> Optional[str]:
    """Name of an import/export specifier part (`foo` or `"foo"`)."""
    if node.type == "Identifier":
        return node.name
    if node.type == "Literal" and isinstance(node.value, str):
        return node.value
    return None


class Traversal:
    """State of one tracing run.

    Holds the stack of variables currently being propagated, which stops
    alias cycles such as `x = x`. Each entry-point call of the tracer uses
    its own Traversal, so runs never share that stack.
    """

    def __init__(self, global_scope: Scope, string_resolver: StaticStringResolver):
        self.global_scope = global_scope
        self.strings = string_resolver
        self.variable_stack: List[Variable] = []
        self._parent_handlers: Dict[str, Callable[..., Iterator[Match]]] = {
            "MemberExpression": self._on_member_expression,
            "CallExpression": self._on_call_expression,
            "NewExpression": self._on_new_expression,
            "AssignmentExpression": self._on_assignment_expression,
            "AssignmentPattern": self._on_assignment_pattern,
            "VariableDeclarator": self._on_variable_declarator,
        }
        self._pattern_handlers: Dict[str, Callable[..., Iterator[Match]]] = {
            "Identifier": self._unpack_identifier,
            "ObjectPattern": self._unpack_object_pattern,
            "AssignmentPattern": self._unpack_assignment_pattern,
        }

    def find_variable(self, identifier: Node) -> Optional[Variable]:
        return find_variable(self.global_scope, identifier)

    def _is_active(self, variable: Variable) -> bool:
        return any(active is variable for active in self.variable_stack)

    # ------------------------------------------------------------------
    # Value positions
    # ------------------------------------------------------------------

    def iterate_variable_references(
        self,
        variable: Variable,
        path: Path,
        trace_map: TraceMap,
        should_report: bool,
    ) -> Iterator[Match]:
        """Trace every read of a variable.

        Args:
            variable: The variable holding the traced value
            path: Property path of the value
            trace_map: Trace map node for that path
            should_report: Whether each read itself is a READ match
        """
        if self._is_active(variable):
            return
        self.variable_stack.append(variable)
        try:
            for reference in variable.references:
                if not reference.is_read():
                    continue
                node = reference.identifier

                if should_report and trace_map.on_read is not None:
                    yield Match(node, path, READ, trace_map.on_read)
                yield from self.iterate_property_references(node, path, trace_map)
        finally:
            self.variable_stack.pop()

    def iterate_property_references(
        self,
        root: Node,
        path: Path,
        trace_map: TraceMap,
    ) -> Iterator[Match]:
        """Trace how the value at root is used by its enclosing expression."""
        node = root
        while node.parent is not None and not SENTINEL_TYPE.match(node.parent.type):
            node = node.parent

        parent = node.parent
        if parent is None:
            return
        handler = self._parent_handlers.get(parent.type)
        if handler is None:
            return
        yield from handler(parent, node, path, trace_map)

    def _on_member_expression(self, parent: Node, node: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        if parent.object is not node:
            return
        key = self.strings.property_name(parent)
        if key is None or key not in trace_map:
            return

        path = path + (key,)
        next_trace_map = trace_map[key]
        if next_trace_map.on_read is not None:
            yield Match(parent, path, READ, next_trace_map.on_read)
        yield from self.iterate_property_references(parent, path, next_trace_map)

    def _on_call_expression(self, parent: Node, node: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        if parent.callee is node and trace_map.on_call is not None:
            yield Match(parent, path, CALL, trace_map.on_call)

    def _on_new_expression(self, parent: Node, node: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        if parent.callee is node and trace_map.on_construct is not None:
            yield Match(parent, path, CONSTRUCT, trace_map.on_construct)

    def _on_assignment_expression(self, parent: Node, node: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        if parent.right is node:
            yield from self.iterate_lhs_references(parent.left, path, trace_map)
            # `(a = traced).foo` still reads traced.foo
            yield from self.iterate_property_references(parent, path, trace_map)

    def _on_assignment_pattern(self, parent: Node, node: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        if parent.right is node:
            yield from self.iterate_lhs_references(parent.left, path, trace_map)

    def _on_variable_declarator(self, parent: Node, node: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        if parent.init is node:
            yield from self.iterate_lhs_references(parent.id, path, trace_map)

    # ------------------------------------------------------------------
    # Binding positions
    # ------------------------------------------------------------------

    def iterate_lhs_references(
        self,
        pattern: Optional[Node],
        path: Path,
        trace_map: TraceMap,
    ) -> Iterator[Match]:
        """Trace a value into the variables a binding pattern introduces.

        Array patterns, rest elements and member targets do not keep a
        stable key path and are not followed.
        """
        if pattern is None:
            return
        handler = self._pattern_handlers.get(pattern.type)
        if handler is None:
            return
        yield from handler(pattern, path, trace_map)

    def _unpack_identifier(self, pattern: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        variable = self.find_variable(pattern)
        if variable is not None:
            yield from self.iterate_variable_references(variable, path, trace_map, False)

    def _unpack_object_pattern(self, pattern: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        for prop in pattern.properties:
            key = self.strings.property_name(prop)
            if key is None or key not in trace_map:
                continue

            next_path = path + (key,)
            next_trace_map = trace_map[key]
            if next_trace_map.on_read is not None:
                yield Match(prop, next_path, READ, next_trace_map.on_read)
            yield from self.iterate_lhs_references(prop.value, next_path, next_trace_map)

    def _unpack_assignment_pattern(self, pattern: Node, path: Path, trace_map: TraceMap) -> Iterator[Match]:
        yield from self.iterate_lhs_references(pattern.left, path, trace_map)

    def iterate_import_references(
        self,
        specifier: Node,
        path: Path,
        trace_map: TraceMap,
    ) -> Iterator[Match]:
        """Trace a module's trace map through one import/export specifier."""
        kind = specifier.type

        if kind in ("ImportSpecifier", "ImportDefaultSpecifier"):
            if kind == "ImportDefaultSpecifier":
                key = "default"
            else:
                key = module_export_name(specifier.imported)
            if key is None or key not in trace_map:
                return

            path = path + (key,)
            next_trace_map = trace_map[key]
            if next_trace_map.on_read is not None:
                yield Match(specifier, path, READ, next_trace_map.on_read)
            variable = self.find_variable(specifier.local)
            if variable is not None:
                yield from self.iterate_variable_references(variable, path, next_trace_map, False)
            return

        if kind == "ImportNamespaceSpecifier":
            variable = self.find_variable(specifier.local)
            if variable is not None:
                yield from self.iterate_variable_references(variable, path, trace_map, False)
            return

        if kind == "ExportSpecifier":
            key = module_export_name(specifier.local)
            if key is None or key not in trace_map:
                return

            next_trace_map = trace_map[key]
            if next_trace_map.on_read is not None:
                yield Match(specifier, path + (key,), READ, next_trace_map.on_read)
