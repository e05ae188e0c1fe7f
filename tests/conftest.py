"""Shared fixtures for reftracer tests."""

import pytest

from reftracer.config import reset_config
from reftracer.parsers.treesitter_parser import JavaScriptParser
from reftracer.tracing.scope import ScopeAnalyzer
from reftracer.tracing.tracer import ReferenceTracer


@pytest.fixture
def parse():
    """Parse JavaScript and return the Program node."""

    def _parse(source, source_type=None):
        parser = JavaScriptParser()
        parser.parse(source, "test.js", source_type)
        return parser.program

    return _parse


@pytest.fixture
def analyze(parse):
    """Parse JavaScript and return (program, global scope)."""

    def _analyze(source, source_type=None):
        program = parse(source, source_type)
        return program, ScopeAnalyzer().analyze(program)

    return _analyze


@pytest.fixture
def make_tracer(analyze):
    """Build a ReferenceTracer for a JavaScript source."""

    def _make_tracer(source, **options):
        _, global_scope = analyze(source, options.pop("source_type", None))
        return ReferenceTracer(global_scope, **options)

    return _make_tracer


@pytest.fixture
def clean_env(monkeypatch):
    """Clear reftracer environment settings and cached config."""
    for name in (
        "REFTRACER_MODE",
        "REFTRACER_GLOBAL_OBJECT_NAMES",
        "REFTRACER_FOLD_CONCATENATION",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield monkeypatch
    reset_config()


@pytest.fixture
def summarize():
    """Reduce matches to comparable (node type, dotted path, type, entry) tuples."""

    def _summarize(matches):
        return [(m.node.type, ".".join(m.path), m.type.value, m.entry) for m in matches]

    return _summarize
