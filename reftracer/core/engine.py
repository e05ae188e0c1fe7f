"""Tracing engine for reftracer.

Runs the whole pipeline for one JavaScript source: parse, analyze scopes,
then run the selected entry strategies of `ReferenceTracer` and collect
their matches.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from reftracer.config import get_fold_concatenation, get_global_object_names, get_mode
from reftracer.core.models import Match, TraceMap
from reftracer.parsers.treesitter_parser import JavaScriptParser
from reftracer.tracing.scope import Scope, ScopeAnalyzer
from reftracer.tracing.static_values import StaticStringResolver
from reftracer.tracing.tracer import ReferenceTracer

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Entry strategies, in the order they run."""
    GLOBAL = "global"
    CJS = "cjs"
    ESM = "esm"

    @classmethod
    def from_string(cls, value: str) -> "Strategy":
        """Parse a strategy name.

        Raises:
            ValueError: If the name is not a known strategy
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().strip())
        except ValueError:
            names = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown strategy {value!r} (expected one of {names})") from None


ALL_STRATEGIES: Tuple[Strategy, ...] = (Strategy.GLOBAL, Strategy.CJS, Strategy.ESM)

_STRATEGY_METHODS = {
    Strategy.GLOBAL: "iterate_global_references",
    Strategy.CJS: "iterate_cjs_references",
    Strategy.ESM: "iterate_esm_references",
}


@dataclass
class TraceResult:
    """Matches found in one source."""
    matches: List[Match] = field(default_factory=list)
    filepath: str = ""
    parsed_cleanly: bool = True
    parser: Optional[JavaScriptParser] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Convert to dictionary (for JSON serialization)."""
        return {
            "filepath": self.filepath,
            "parsed_cleanly": self.parsed_cleanly,
            "matches": [match.to_dict() for match in self.matches],
        }


def analyze_source(
    source: str,
    filepath: str = "",
    source_type: Optional[str] = None,
) -> Tuple[JavaScriptParser, Scope]:
    """Parse source and build its scope graph.

    Returns:
        Tuple of (parser holding the program, global scope)
    """
    parser = JavaScriptParser()
    if not parser.parse(source, filepath, source_type):
        logger.warning("Syntax errors in %s, tracing the recovered tree", filepath or "<source>")
    global_scope = ScopeAnalyzer().analyze(parser.program)
    return parser, global_scope


def trace_source(
    source: str,
    trace_map: Any,
    strategies: Iterable[Any] = ALL_STRATEGIES,
    mode: Any = None,
    global_object_names: Optional[Iterable[str]] = None,
    filepath: str = "",
    source_type: Optional[str] = None,
) -> TraceResult:
    """Find every use of the trace map's paths in a JavaScript source.

    Args:
        source: JavaScript source code
        trace_map: TraceMap or nested dict
        strategies: Strategy values or names; they always run in
            global, cjs, esm order
        mode: "strict" or "legacy"; defaults to the configured mode
        global_object_names: Defaults to the configured names
        filepath: Path reported with the result
        source_type: "module" or "script"; detected when None

    Returns:
        TraceResult with the matches in emission order
    """
    selected = {Strategy.from_string(s) for s in strategies}
    trace_map = TraceMap.build(trace_map)

    parser, global_scope = analyze_source(source, filepath, source_type)
    tracer = ReferenceTracer(
        global_scope,
        mode=mode if mode is not None else get_mode(),
        global_object_names=(
            global_object_names if global_object_names is not None else get_global_object_names()
        ),
        string_resolver=StaticStringResolver(fold_concatenation=get_fold_concatenation()),
    )

    matches: List[Match] = []
    for strategy in ALL_STRATEGIES:
        if strategy not in selected:
            continue
        found = list(getattr(tracer, _STRATEGY_METHODS[strategy])(trace_map))
        logger.debug("%s strategy: %d match(es) in %s", strategy.value, len(found), filepath or "<source>")
        matches.extend(found)

    return TraceResult(
        matches=matches,
        filepath=filepath,
        parsed_cleanly=parser.is_parsed,
        parser=parser,
    )
