"""Lexical scope analysis for ESTree-shaped programs.

Builds the scope graph the reference tracer walks: nested scopes, the
variables each scope declares, and every read/write reference of those
variables. The model follows eslint-scope closely:

- `var` and function parameters live in the nearest function (or global /
  module) scope, `let`, `const`, `class` and function declarations in the
  enclosing block.
- References are resolved after the whole program has been visited, so
  hoisting needs no special casing.
- A name that resolves nowhere gets an implicit variable in the global scope
  with no definitions. "No definitions" is how callers tell an undeclared
  global (`window`, `require`) from a declared one.
"""

from contextlib import contextmanager, nullcontext
from typing import Callable, Dict, Iterator, List, Optional

from reftracer.parsers.nodes import Node

# Scopes that own `var` declarations
_VARIABLE_SCOPE_TYPES = {"global", "module", "function", "class-static-block"}


class Definition:
    """One declaration of a variable."""

    def __init__(self, type: str, name: Node, node: Node, parent: Optional[Node] = None):
        self.type = type  # 'Variable', 'FunctionName', 'ClassName', 'Parameter', ...
        self.name = name
        self.node = node
        self.parent = parent

    def __repr__(self) -> str:
        return f"<Definition {self.type} {self.name.name!r}>"


class Reference:
    """One occurrence of an identifier in a reading or writing position."""

    READ = 0x1
    WRITE = 0x2
    RW = READ | WRITE

    def __init__(
        self,
        identifier: Node,
        from_scope: "Scope",
        flag: int,
        write_expr: Optional[Node] = None,
        init: bool = False,
    ):
        self.identifier = identifier
        self.from_scope = from_scope
        self.flag = flag
        self.write_expr = write_expr
        self.init = init
        self.resolved: Optional["Variable"] = None

    def is_read(self) -> bool:
        return bool(self.flag & self.READ)

    def is_write(self) -> bool:
        return bool(self.flag & self.WRITE)

    def is_read_only(self) -> bool:
        return self.flag == self.READ

    def is_write_only(self) -> bool:
        return self.flag == self.WRITE

    def is_read_write(self) -> bool:
        return self.flag == self.RW

    def __repr__(self) -> str:
        kind = {self.READ: "read", self.WRITE: "write", self.RW: "rw"}[self.flag]
        return f"<Reference {kind} {self.identifier.name!r}>"


class Variable:
    """A named binding and everything that declares or references it."""

    def __init__(self, name: str, scope: "Scope"):
        self.name = name
        self.scope = scope
        self.identifiers: List[Node] = []
        self.references: List[Reference] = []
        self.defs: List[Definition] = []

    def __repr__(self) -> str:
        return f"<Variable {self.name!r} in {self.scope.type} scope>"


class Scope:
    """A lexical scope.

    Attributes:
        type: 'global', 'module', 'function', 'function-expression-name',
            'class', 'class-static-block', 'block', 'for', 'catch' or 'switch'
        block: The node this scope governs
        upper: The enclosing scope (None for the global scope)
        variable_map: Variables declared here, by name
    """

    def __init__(self, type: str, block: Node, upper: Optional["Scope"] = None):
        self.type = type
        self.block = block
        self.upper = upper
        self.child_scopes: List["Scope"] = []
        self.variables: List[Variable] = []
        self.variable_map: Dict[str, Variable] = {}
        self.references: List[Reference] = []
        self.through: List[Reference] = []
        if upper is not None:
            upper.child_scopes.append(self)

    @property
    def is_global(self) -> bool:
        return self.upper is None

    @property
    def variable_scope(self) -> "Scope":
        """The nearest scope that owns `var` declarations."""
        scope = self
        while scope.type not in _VARIABLE_SCOPE_TYPES:
            scope = scope.upper
        return scope

    def add_variable(self, name: str) -> Variable:
        variable = self.variable_map.get(name)
        if variable is None:
            variable = Variable(name, self)
            self.variable_map[name] = variable
            self.variables.append(variable)
        return variable

    def walk(self) -> Iterator["Scope"]:
        """Yield this scope and all nested scopes, depth-first."""
        yield self
        for child in self.child_scopes:
            yield from child.walk()

    def __repr__(self) -> str:
        return f"<Scope {self.type} @{self.block.range[0]}>"


class ScopeAnalyzer:
    """Builds a scope graph from a Program node.

    Usage:
        global_scope = ScopeAnalyzer().analyze(program)
    """

    def __init__(self):
        self._current: Optional[Scope] = None
        self._pending: List[Reference] = []

    def analyze(self, program: Node) -> Scope:
        """Analyze a program and return its global scope."""
        self._current = None
        self._pending = []

        global_scope = Scope("global", program)
        self._current = global_scope
        if getattr(program, "source_type", "script") == "module":
            self._current = Scope("module", program, global_scope)

        for statement in program.body:
            self._visit(statement)

        self._resolve(global_scope)
        self._current = None
        return global_scope

    # ------------------------------------------------------------------
    # Scope bookkeeping
    # ------------------------------------------------------------------

    @contextmanager
    def _scope(self, type: str, block: Node) -> Iterator[Scope]:
        scope = Scope(type, block, self._current)
        self._current = scope
        try:
            yield scope
        finally:
            self._current = scope.upper

    def _define(self, scope: Scope, identifier: Node, definition: Definition) -> None:
        variable = scope.add_variable(identifier.name)
        variable.identifiers.append(identifier)
        variable.defs.append(definition)

    def _reference(
        self,
        identifier: Node,
        flag: int,
        write_expr: Optional[Node] = None,
        init: bool = False,
    ) -> None:
        reference = Reference(identifier, self._current, flag, write_expr, init)
        self._current.references.append(reference)
        self._pending.append(reference)

    def _resolve(self, global_scope: Scope) -> None:
        for reference in self._pending:
            name = reference.identifier.name
            scope = reference.from_scope
            variable = None
            while scope is not None:
                variable = scope.variable_map.get(name)
                if variable is not None:
                    break
                scope = scope.upper
            if variable is None:
                variable = global_scope.add_variable(name)
                global_scope.through.append(reference)
            reference.resolved = variable
            variable.references.append(reference)
        self._pending = []

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def _visit_pattern(self, pattern: Optional[Node], callback: Callable[[Node], None]) -> None:
        """Call callback for each identifier bound by pattern.

        Default values, computed keys and member-expression targets are
        visited as ordinary expressions afterwards.
        """
        right_hand_nodes: List[Node] = []
        self._collect_pattern(pattern, callback, right_hand_nodes)
        for node in right_hand_nodes:
            self._visit(node)

    def _collect_pattern(self, pattern: Optional[Node], callback, right_hand_nodes: List[Node]) -> None:
        if pattern is None:
            return
        if pattern.type == "Identifier":
            callback(pattern)
        elif pattern.type == "ObjectPattern":
            for prop in pattern.properties:
                if prop.type == "Property":
                    if prop.computed:
                        right_hand_nodes.append(prop.key)
                    self._collect_pattern(prop.value, callback, right_hand_nodes)
                else:
                    self._collect_pattern(prop, callback, right_hand_nodes)
        elif pattern.type == "ArrayPattern":
            for element in pattern.elements:
                self._collect_pattern(element, callback, right_hand_nodes)
        elif pattern.type == "AssignmentPattern":
            self._collect_pattern(pattern.left, callback, right_hand_nodes)
            right_hand_nodes.append(pattern.right)
        elif pattern.type == "RestElement":
            self._collect_pattern(pattern.argument, callback, right_hand_nodes)
        else:
            right_hand_nodes.append(pattern)

    # ------------------------------------------------------------------
    # Visitor
    # ------------------------------------------------------------------

    def _visit(self, node: Optional[Node]) -> None:
        if node is None:
            return
        method = getattr(self, f"_visit_{node.type}", None)
        if method is None:
            self._visit_children(node)
        else:
            method(node)

    def _visit_children(self, node: Node) -> None:
        for child in node.iter_children():
            self._visit(child)

    def _visit_Identifier(self, node: Node) -> None:
        self._reference(node, Reference.READ)

    def _visit_BlockStatement(self, node: Node) -> None:
        with self._scope("block", node):
            for statement in node.body:
                self._visit(statement)

    def _visit_StaticBlock(self, node: Node) -> None:
        with self._scope("class-static-block", node):
            body = node.body
            for statement in (body.body if body is not None else []):
                self._visit(statement)

    def _visit_VariableDeclaration(self, node: Node, for_in: bool = False) -> None:
        scope = self._current.variable_scope if node.kind == "var" else self._current
        for declarator in node.declarations:
            if declarator is None:
                continue

            def bind(identifier, declarator=declarator):
                self._define(scope, identifier, Definition("Variable", identifier, declarator, node))
                if for_in or declarator.init is not None:
                    self._reference(identifier, Reference.WRITE, declarator.init, init=True)

            self._visit_pattern(declarator.id, bind)
            self._visit(declarator.init)

    def _visit_FunctionDeclaration(self, node: Node) -> None:
        if node.id is not None:
            self._define(self._current, node.id, Definition("FunctionName", node.id, node))
        self._visit_function(node)

    def _visit_FunctionExpression(self, node: Node) -> None:
        if node.id is None:
            self._visit_function(node)
            return
        with self._scope("function-expression-name", node) as scope:
            self._define(scope, node.id, Definition("FunctionName", node.id, node))
            self._visit_function(node)

    def _visit_ArrowFunctionExpression(self, node: Node) -> None:
        self._visit_function(node)

    def _visit_function(self, node: Node) -> None:
        with self._scope("function", node) as scope:
            if node.type != "ArrowFunctionExpression":
                scope.add_variable("arguments")

            for param in node.params:
                self._visit_pattern(
                    param,
                    lambda identifier: self._define(
                        scope, identifier, Definition("Parameter", identifier, node)
                    ),
                )

            body = node.body
            if body is not None and body.type == "BlockStatement":
                for statement in body.body:
                    self._visit(statement)
            else:
                self._visit(body)

    def _visit_ClassDeclaration(self, node: Node) -> None:
        if node.id is not None:
            self._define(self._current, node.id, Definition("ClassName", node.id, node))
        self._visit_class(node)

    def _visit_ClassExpression(self, node: Node) -> None:
        self._visit_class(node)

    def _visit_class(self, node: Node) -> None:
        self._visit(node.superClass)
        with self._scope("class", node) as scope:
            if node.id is not None:
                self._define(scope, node.id, Definition("ClassName", node.id, node))
            if node.body is not None:
                for member in node.body.body:
                    self._visit(member)

    def _visit_MethodDefinition(self, node: Node) -> None:
        if node.computed:
            self._visit(node.key)
        self._visit(node.value)

    def _visit_PropertyDefinition(self, node: Node) -> None:
        self._visit_MethodDefinition(node)

    def _visit_Property(self, node: Node) -> None:
        self._visit_MethodDefinition(node)

    def _visit_MemberExpression(self, node: Node) -> None:
        self._visit(node.object)
        if node.computed:
            self._visit(node.property)

    def _visit_AssignmentExpression(self, node: Node) -> None:
        if node.operator == "=":
            self._visit_pattern(
                node.left,
                lambda identifier: self._reference(identifier, Reference.WRITE, node.right),
            )
        elif node.left is not None and node.left.type == "Identifier":
            self._reference(node.left, Reference.RW, node.right)
        else:
            self._visit(node.left)
        self._visit(node.right)

    def _visit_UpdateExpression(self, node: Node) -> None:
        if node.argument is not None and node.argument.type == "Identifier":
            self._reference(node.argument, Reference.RW)
        else:
            self._visit(node.argument)

    def _visit_ForStatement(self, node: Node) -> None:
        init = node.init
        lexical = init is not None and init.type == "VariableDeclaration" and init.kind != "var"
        with self._scope("for", node) if lexical else nullcontext():
            self._visit(init)
            self._visit(node.test)
            self._visit(node.update)
            self._visit(node.body)

    def _visit_ForInStatement(self, node: Node) -> None:
        left = node.left
        is_declaration = left is not None and left.type == "VariableDeclaration"
        lexical = is_declaration and left.kind != "var"
        with self._scope("for", node) if lexical else nullcontext():
            if is_declaration:
                self._visit_VariableDeclaration(left, for_in=True)
            else:
                self._visit_pattern(
                    left, lambda identifier: self._reference(identifier, Reference.WRITE, node.right)
                )
            self._visit(node.right)
            self._visit(node.body)

    def _visit_ForOfStatement(self, node: Node) -> None:
        self._visit_ForInStatement(node)

    def _visit_CatchClause(self, node: Node) -> None:
        with self._scope("catch", node) as scope:
            self._visit_pattern(
                node.param,
                lambda identifier: self._define(
                    scope, identifier, Definition("CatchClause", identifier, node)
                ),
            )
            self._visit(node.body)

    def _visit_SwitchStatement(self, node: Node) -> None:
        self._visit(node.discriminant)
        with self._scope("switch", node):
            for case in node.cases:
                self._visit(case)

    def _visit_LabeledStatement(self, node: Node) -> None:
        self._visit(node.body)

    def _visit_BreakStatement(self, node: Node) -> None:
        pass

    def _visit_ContinueStatement(self, node: Node) -> None:
        pass

    def _visit_ImportDeclaration(self, node: Node) -> None:
        for specifier in node.specifiers:
            self._define(
                self._current,
                specifier.local,
                Definition("ImportBinding", specifier.local, specifier, node),
            )

    def _visit_ExportNamedDeclaration(self, node: Node) -> None:
        if node.source is not None:
            return
        if node.declaration is not None:
            self._visit(node.declaration)
            return
        for specifier in node.specifiers:
            if specifier.local.type == "Identifier":
                self._visit(specifier.local)

    def _visit_ExportDefaultDeclaration(self, node: Node) -> None:
        self._visit(node.declaration)

    def _visit_ExportAllDeclaration(self, node: Node) -> None:
        pass
