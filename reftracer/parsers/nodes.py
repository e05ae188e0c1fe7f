"""ESTree-shaped syntax nodes.

The tracer and the scope analyzer only look at `type`, `parent`, `range`
and the standard ESTree field names, so any tree exposing the same shape
can be traced.
"""

from typing import Any, Iterator, Optional, Tuple


class Node:
    """A syntax tree node.

    Fields are stored as plain attributes (`node.callee`, `node.body`, ...)
    and remembered in declaration order, which is also source order.
    """

    def __init__(
        self,
        type: str,
        range: Tuple[int, int] = (0, 0),
        loc: Tuple[int, int] = (0, 0),
        **fields: Any,
    ):
        self.type = type
        self.range = range
        self.loc = loc  # (1-based line, 0-based column)
        self.parent: Optional["Node"] = None
        self.fields = tuple(fields)
        for name, value in fields.items():
            setattr(self, name, value)

    def iter_children(self) -> Iterator["Node"]:
        """Yield direct child nodes in field order."""
        for name in self.fields:
            value = getattr(self, name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all its descendants, depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.iter_children())))

    def __repr__(self) -> str:
        name = getattr(self, "name", None)
        if self.type == "Identifier" and name is not None:
            return f"<Identifier {name!r} @{self.range[0]}>"
        return f"<{self.type} @{self.range[0]}:{self.range[1]}>"


def link_parents(root: Node) -> Node:
    """Set the `parent` link of every node below root."""
    for node in root.walk():
        for child in node.iter_children():
            child.parent = node
    return root
