"""Tests for tracing ES module import/export references."""

import pytest

from reftracer.core.models import CALL, ESM, READ, TraceMode


@pytest.fixture
def legacy_tracer(make_tracer):
    def _make(source):
        return make_tracer(source, mode="legacy")

    return _make


class TestEsmModuleMaps:
    """Tests for module maps that already have ES module shape."""

    def test_named_import(self, make_tracer, summarize):
        tracer = make_tracer("import {foo, bar as baz} from 'm';\nfoo();\nbaz.x;")
        trace_map = {"m": {ESM: True, "foo": {CALL: 1}, "bar": {"x": {READ: 2}}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "m.foo", "call", 1),
            ("MemberExpression", "m.bar.x", "read", 2),
        ]

    def test_specifier_read(self, make_tracer, summarize):
        tracer = make_tracer("import {foo} from 'm';\nfoo;")
        trace_map = {"m": {ESM: True, "foo": {READ: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ImportSpecifier", "m.foo", "read", 1),
        ]

    def test_default_import(self, make_tracer, summarize):
        tracer = make_tracer("import m from 'm';\nm.a();")
        trace_map = {"m": {ESM: True, "default": {READ: 1, "a": {CALL: 2}}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ImportDefaultSpecifier", "m.default", "read", 1),
            ("CallExpression", "m.default.a", "call", 2),
        ]

    def test_namespace_import(self, make_tracer, summarize):
        tracer = make_tracer("import * as ns from 'm';\nns.foo();\nns.other();")
        trace_map = {"m": {ESM: True, "foo": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "m.foo", "call", 1),
        ]

    def test_string_import_name(self, make_tracer, summarize):
        tracer = make_tracer("import {'a-b' as ab} from 'm';\nab();")
        trace_map = {"m": {ESM: True, "a-b": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "m.a-b", "call", 1),
        ]

    def test_module_read_on_declaration(self, make_tracer, summarize):
        tracer = make_tracer("import 'm';\nimport {x} from 'other';")
        trace_map = {"m": {ESM: True, READ: "imported"}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ImportDeclaration", "m", "read", "imported"),
        ]

    def test_reexport_specifier(self, make_tracer, summarize):
        tracer = make_tracer("export {foo, bar as baz} from 'm';")
        trace_map = {"m": {ESM: True, "foo": {READ: 1}, "bar": {READ: 2, CALL: 3}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ExportSpecifier", "m.foo", "read", 1),
            ("ExportSpecifier", "m.bar", "read", 2),
        ]

    def test_export_all(self, make_tracer, summarize):
        tracer = make_tracer("export * from 'm';\nexport * as ns from 'm';")
        trace_map = {"m": {ESM: True, "a": {READ: 1}, "b": {CALL: 2}, "c": {READ: 3}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ExportAllDeclaration", "m.a", "read", 1),
            ("ExportAllDeclaration", "m.c", "read", 3),
            ("ExportAllDeclaration", "m.a", "read", 1),
            ("ExportAllDeclaration", "m.c", "read", 3),
        ]

    def test_local_exports_ignored(self, make_tracer):
        tracer = make_tracer("const m = 1;\nexport {m};\nexport default m;")
        trace_map = {"m": {ESM: True, READ: 1}}
        assert list(tracer.iterate_esm_references(trace_map)) == []

    def test_nested_imports_ignored(self, make_tracer):
        tracer = make_tracer("async function f() { const m = await import('m'); m.foo(); }")
        trace_map = {"m": {ESM: True, "foo": {CALL: 1}}}
        assert list(tracer.iterate_esm_references(trace_map)) == []

    def test_shadowed_import_binding(self, make_tracer):
        tracer = make_tracer("import {foo} from 'm';\nfunction f(foo) { foo(); }\nfoo();")
        trace_map = {"m": {ESM: True, "foo": {CALL: 1}}}
        assert [m.line for m in tracer.iterate_esm_references(trace_map)] == [3]


class TestCommonJsModuleMapsStrict:
    """Tests for CommonJS-shaped module maps in strict mode."""

    def test_default_import_reaches_module_exports(self, make_tracer, summarize):
        tracer = make_tracer("import fs from 'fs';\nfs.exists();")
        trace_map = {"fs": {"exists": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "fs.exists", "call", 1),
        ]

    def test_named_import_not_matched(self, make_tracer):
        tracer = make_tracer("import {exists} from 'fs';\nexists();")
        trace_map = {"fs": {"exists": {CALL: 1}}}
        assert list(tracer.iterate_esm_references(trace_map)) == []

    def test_bare_default_import_suppressed(self, make_tracer):
        tracer = make_tracer("import x from 'm';")
        trace_map = {"m": {"foo": {READ: 1}}}
        assert list(tracer.iterate_esm_references(trace_map)) == []

    def test_module_read_reported_once(self, make_tracer, summarize):
        tracer = make_tracer("import x from 'm';\nx();")
        trace_map = {"m": {READ: "r", CALL: "c"}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ImportDeclaration", "m", "read", "r"),
            ("CallExpression", "m", "call", "c"),
        ]

    def test_namespace_default_property(self, make_tracer, summarize):
        tracer = make_tracer("import * as fs from 'fs';\nfs.exists();\nfs.default.exists();")
        trace_map = {"fs": {"exists": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "fs.exists", "call", 1),
        ]

    def test_default_property_read(self, make_tracer, summarize):
        tracer = make_tracer("import fs from 'fs';\nfs.promises;")
        trace_map = {"fs": {"promises": {READ: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("MemberExpression", "fs.promises", "read", 1),
        ]


class TestCommonJsModuleMapsLegacy:
    """Tests for CommonJS-shaped module maps in legacy mode."""

    def test_named_import_matched(self, legacy_tracer, summarize):
        tracer = legacy_tracer("import {exists} from 'fs';\nexists();")
        trace_map = {"fs": {"exists": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "fs.exists", "call", 1),
        ]

    def test_default_import_still_matched(self, legacy_tracer, summarize):
        tracer = legacy_tracer("import fs from 'fs';\nfs.exists();")
        trace_map = {"fs": {"exists": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "fs.exists", "call", 1),
        ]

    def test_namespace_import_flattened(self, legacy_tracer, summarize):
        tracer = legacy_tracer("import * as fs from 'fs';\nfs.exists();\nfs.default.exists();")
        trace_map = {"fs": {"exists": {CALL: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("CallExpression", "fs.exists", "call", 1),
            ("CallExpression", "fs.exists", "call", 1),
        ]

    def test_bare_default_import_suppressed(self, legacy_tracer):
        tracer = legacy_tracer("import x from 'm';")
        trace_map = {"m": {"default": {READ: 1}, "foo": {READ: 2}}}
        assert list(tracer.iterate_esm_references(trace_map)) == []

    def test_commonjs_esm_equivalence(self, legacy_tracer):
        trace_map = {"m": {"foo": {READ: "E"}}}
        cjs = legacy_tracer("require('m').foo;")
        esm = legacy_tracer("import {foo} from 'm';\nfoo;")
        cjs_matches = list(cjs.iterate_cjs_references(trace_map))
        esm_matches = list(esm.iterate_esm_references(trace_map))
        assert [(m.path, m.type, m.entry) for m in cjs_matches] == [(("m", "foo"), READ, "E")]
        assert [(m.path, m.type, m.entry) for m in esm_matches] == [(("m", "foo"), READ, "E")]

    def test_reexport_matched(self, legacy_tracer, summarize):
        tracer = legacy_tracer("export {foo} from 'm';")
        trace_map = {"m": {"foo": {READ: 1}}}
        assert summarize(tracer.iterate_esm_references(trace_map)) == [
            ("ExportSpecifier", "m.foo", "read", 1),
        ]

    def test_mode_enum_accepted(self, make_tracer):
        tracer = make_tracer("import {foo} from 'm';\nfoo();", mode=TraceMode.LEGACY)
        trace_map = {"m": {"foo": {CALL: 1}}}
        assert len(list(tracer.iterate_esm_references(trace_map))) == 1
