"""Compile-time constant strings and property names.

Bracket-notation member keys (`obj["x"]`), computed destructuring keys
(`{["x"]: y}`) and `require("x")` arguments only take part in tracing when
they fold to a constant string. What folds is decided here:

- string, number, boolean, null, regex and bigint literals
- template literals whose substitutions all fold
- unary minus and plus on numbers
- `+` between two folding operands, when `fold_concatenation` is on

Identifiers never fold, even when bound to a constant.
"""

import math
from typing import Any, Optional

from reftracer.parsers.nodes import Node

_UNKNOWN = object()


def to_js_string(value: Any) -> str:
    """Convert a folded value to a string the way JavaScript's String() does."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


class StaticStringResolver:
    """Folds expression nodes into constant strings.

    Args:
        fold_concatenation: Whether `"a" + "b"` and templates with
            substitutions fold. Plain literals always fold.
    """

    def __init__(self, fold_concatenation: bool = True):
        self.fold_concatenation = fold_concatenation

    def resolve(self, node: Optional[Node]) -> Optional[str]:
        """Return the constant string value of node, or None."""
        if node is None:
            return None
        value = self._static_value(node)
        if value is _UNKNOWN:
            return None
        return to_js_string(value)

    def property_name(self, node: Node) -> Optional[str]:
        """Return the static property name of a member access or property.

        Works for MemberExpression, Property (object literals and object
        patterns), MethodDefinition and PropertyDefinition nodes. Private
        names and non-constant computed keys give None.
        """
        if node.type == "MemberExpression":
            if node.computed:
                return self.resolve(node.property)
            if node.property is None or node.property.type == "PrivateIdentifier":
                return None
            return node.property.name

        if node.type in ("Property", "MethodDefinition", "PropertyDefinition"):
            if node.computed:
                return self.resolve(node.key)
            key = node.key
            if key is None:
                return None
            if key.type == "Literal":
                return self.resolve(key)
            if key.type == "Identifier":
                return key.name
            return None

        return None

    def _static_value(self, node: Node) -> Any:
        if node.type == "Literal":
            regex = getattr(node, "regex", None)
            if regex is not None:
                return f"/{regex['pattern']}/{regex['flags']}"
            bigint = getattr(node, "bigint", None)
            if bigint is not None:
                return int(bigint)
            return node.value

        if node.type == "TemplateLiteral":
            if node.expressions and not self.fold_concatenation:
                return _UNKNOWN
            parts = [node.quasis[0].value]
            for expression, quasi in zip(node.expressions, node.quasis[1:]):
                value = self._static_value(expression)
                if value is _UNKNOWN:
                    return _UNKNOWN
                parts.append(to_js_string(value))
                parts.append(quasi.value)
            return "".join(parts)

        if node.type == "UnaryExpression" and node.operator in ("-", "+"):
            value = self._static_value(node.argument)
            if _is_number(value):
                return -value if node.operator == "-" else value
            return _UNKNOWN

        if node.type == "BinaryExpression" and node.operator == "+" and self.fold_concatenation:
            left = self._static_value(node.left)
            if left is _UNKNOWN:
                return _UNKNOWN
            right = self._static_value(node.right)
            if right is _UNKNOWN:
                return _UNKNOWN
            if isinstance(left, str) or isinstance(right, str):
                return to_js_string(left) + to_js_string(right)
            if _is_number(left) and _is_number(right):
                return left + right
            return _UNKNOWN

        return _UNKNOWN


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
