"""Variable resolution by lexical scope."""

from typing import Optional

from reftracer.parsers.nodes import Node
from reftracer.tracing.scope import Scope, Variable


def get_innermost_scope(initial_scope: Scope, node: Node) -> Scope:
    """Find the innermost scope below initial_scope that contains node.

    A scope contains a node when the node starts inside the half-open
    range of the scope's block.
    """
    location = node.range[0]
    scope = initial_scope
    found = True
    while found:
        found = False
        for child in scope.child_scopes:
            start, end = child.block.range
            if start <= location < end:
                scope = child
                found = True
                break
    return scope


def find_variable(initial_scope: Scope, identifier: Node) -> Optional[Variable]:
    """Find the variable an Identifier node refers to.

    Walks outward from the innermost scope containing the identifier and
    returns the first variable with the identifier's name, mirroring
    lexical shadowing. Returns None when no scope declares the name.
    """
    scope = get_innermost_scope(initial_scope, identifier)
    while scope is not None:
        variable = scope.variable_map.get(identifier.name)
        if variable is not None:
            return variable
        scope = scope.upper
    return None
