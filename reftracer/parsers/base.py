"""Abstract base class for source parsers.

A parser turns source text into an ESTree-shaped `Program` node with
parent links, ready for scope analysis and tracing.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from reftracer.parsers.nodes import Node


class BaseParser(ABC):
    """Abstract base class for parsers.

    Subclasses implement `parse`, which must populate `program`.
    `get_line_content` lets callers show a match site in context.
    """

    def __init__(self):
        """Initialize the parser."""
        self._source: Optional[str] = None
        self._filepath: Optional[str] = None
        self._lines: List[str] = []
        self._parsed: bool = False
        self._program: Optional[Node] = None

    @property
    def source(self) -> Optional[str]:
        """Return the parsed source code."""
        return self._source

    @property
    def filepath(self) -> Optional[str]:
        """Return the file path being parsed."""
        return self._filepath

    @property
    def lines(self) -> List[str]:
        """Return source split into lines."""
        return self._lines

    @property
    def is_parsed(self) -> bool:
        """Check if the last source was parsed without syntax errors."""
        return self._parsed

    @property
    def program(self) -> Optional[Node]:
        """Return the Program node of the last parse, if any."""
        return self._program

    @abstractmethod
    def parse(self, source: str, filepath: str = "", source_type: Optional[str] = None) -> bool:
        """Parse source code.

        Args:
            source: The source code to parse
            filepath: Optional file path for context
            source_type: "module" or "script"; detected when None

        Returns:
            True if parsing succeeded without syntax errors, False otherwise
        """
        ...

    def get_line_content(self, line_number: int) -> Optional[str]:
        """Return the text of a 1-based line, or None if out of range."""
        if 1 <= line_number <= len(self._lines):
            return self._lines[line_number - 1]
        return None

    def reset(self):
        """Reset parser state."""
        self._source = None
        self._filepath = None
        self._lines = []
        self._parsed = False
        self._program = None
