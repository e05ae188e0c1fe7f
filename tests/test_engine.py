"""Tests for the tracing engine facade."""

import pytest

from reftracer.config import reset_config
from reftracer.core.engine import ALL_STRATEGIES, Strategy, TraceResult, analyze_source, trace_source
from reftracer.core.models import CALL, READ


SOURCE = """\
import {readFile} from 'fs';
const path = require('path');
readFile('a');
path.join('b');
window.alert('c');
"""

TRACE_MAP = {
    "fs": {"readFile": {CALL: "esm"}},
    "path": {"join": {CALL: "cjs"}},
    "alert": {CALL: "global"},
}


class TestStrategy:
    """Tests for strategy names."""

    def test_from_string(self):
        assert Strategy.from_string("CJS") is Strategy.CJS
        assert Strategy.from_string(Strategy.ESM) is Strategy.ESM

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            Strategy.from_string("amd")

    def test_order(self):
        assert ALL_STRATEGIES == (Strategy.GLOBAL, Strategy.CJS, Strategy.ESM)


class TestTraceSource:
    """Tests for trace_source."""

    def test_all_strategies_in_order(self, clean_env):
        result = trace_source(SOURCE, TRACE_MAP, mode="legacy", filepath="app.js")
        assert isinstance(result, TraceResult)
        assert result.parsed_cleanly
        assert [m.entry for m in result.matches] == ["global", "cjs", "esm"]

    def test_strategy_selection_keeps_order(self, clean_env):
        result = trace_source(SOURCE, TRACE_MAP, strategies=["esm", "global"], mode="legacy")
        assert [m.entry for m in result.matches] == ["global", "esm"]

    def test_mode_from_config(self, clean_env):
        clean_env.setenv("REFTRACER_MODE", "legacy")
        result = trace_source(SOURCE, TRACE_MAP, strategies=["esm"])
        assert [m.entry for m in result.matches] == ["esm"]

        clean_env.setenv("REFTRACER_MODE", "strict")
        reset_config()
        result = trace_source(SOURCE, TRACE_MAP, strategies=["esm"])
        assert result.matches == []

    def test_explicit_mode_overrides_config(self, clean_env):
        clean_env.setenv("REFTRACER_MODE", "legacy")
        result = trace_source(SOURCE, TRACE_MAP, strategies=["esm"], mode="strict")
        assert result.matches == []

    def test_global_object_names(self, clean_env):
        result = trace_source(SOURCE, TRACE_MAP, strategies=["global"], global_object_names=["top"])
        assert result.matches == []

    def test_syntax_errors_still_traced(self, clean_env):
        result = trace_source("window.alert(1);\nconst = ;", TRACE_MAP)
        assert not result.parsed_cleanly
        assert [m.entry for m in result.matches] == ["global"]

    def test_to_dict(self, clean_env):
        result = trace_source("alert(1);", {"alert": {CALL: "c", READ: "r"}}, filepath="a.js")
        data = result.to_dict()
        assert data["filepath"] == "a.js"
        assert data["parsed_cleanly"] is True
        assert [(m["type"], m["entry"], m["line"]) for m in data["matches"]] == [
            ("read", "r", 1),
            ("call", "c", 1),
        ]


class TestAnalyzeSource:
    """Tests for analyze_source."""

    def test_returns_parser_and_scope(self):
        parser, scope = analyze_source("var a = 1;", "a.js")
        assert parser.program.type == "Program"
        assert scope.block is parser.program
        assert "a" in scope.variable_map
