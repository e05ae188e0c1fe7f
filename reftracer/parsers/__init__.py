"""reftracer parsers - JavaScript source to ESTree-shaped syntax trees."""

from reftracer.parsers.base import BaseParser
from reftracer.parsers.nodes import Node, link_parents
from reftracer.parsers.treesitter_parser import JavaScriptParser

__all__ = [
    "BaseParser",
    "Node",
    "link_parents",
    "JavaScriptParser",
]
