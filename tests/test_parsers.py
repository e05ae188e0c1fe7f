"""Tests for the JavaScript parser and its ESTree output."""

import pytest

from reftracer.parsers.base import BaseParser
from reftracer.parsers.nodes import Node, link_parents
from reftracer.parsers.treesitter_parser import (
    JavaScriptParser,
    decode_escapes,
    parse_number,
)


def _first_expression(program):
    return program.body[0].expression


class TestNode:
    """Tests for the node model."""

    def test_children_in_field_order(self):
        left = Node("Identifier", name="a")
        right = Node("Identifier", name="b")
        node = Node("BinaryExpression", left=left, operator="+", right=right)
        assert list(node.iter_children()) == [left, right]

    def test_link_parents(self):
        inner = Node("Identifier", name="x")
        statement = Node("ExpressionStatement", expression=inner)
        program = link_parents(Node("Program", body=[statement]))
        assert inner.parent is statement
        assert statement.parent is program
        assert program.parent is None

    def test_walk_is_depth_first(self):
        a = Node("Identifier", name="a")
        b = Node("Identifier", name="b")
        call = Node("CallExpression", callee=a, arguments=[b])
        assert [n.type for n in call.walk()] == ["CallExpression", "Identifier", "Identifier"]


class TestHelpers:
    """Tests for literal decoding helpers."""

    @pytest.mark.parametrize("raw,expected", [
        ("a\\nb", "a\nb"),
        ("\\x41", "A"),
        ("\\u0041", "A"),
        ("\\u{1F600}", "\U0001F600"),
        ("\\'", "'"),
        ("line\\\ncontinued", "linecontinued"),
    ])
    def test_decode_escapes(self, raw, expected):
        assert decode_escapes(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("10", 10),
        ("1_000", 1000),
        ("0x1F", 31),
        ("0b101", 5),
        ("1.5", 1.5),
        ("1e3", 1000.0),
    ])
    def test_parse_number(self, raw, expected):
        assert parse_number(raw) == expected


class TestJavaScriptParser:
    """Tests for tree-sitter to ESTree conversion."""

    @pytest.fixture
    def parser(self):
        return JavaScriptParser()

    def test_is_base_parser(self, parser):
        assert isinstance(parser, BaseParser)

    def test_parse_clean_source(self, parser):
        assert parser.parse("const a = 1;\nfoo(a);\n", "app.js") is True
        assert parser.is_parsed
        assert parser.filepath == "app.js"
        assert parser.program.type == "Program"
        assert parser.get_line_content(2) == "foo(a);"
        assert parser.get_line_content(9) is None

    def test_syntax_error_still_builds_program(self, parser):
        assert parser.parse("const = ;") is False
        assert parser.program is not None
        assert parser.program.type == "Program"

    def test_source_type_detection(self, parser):
        parser.parse("import fs from 'fs';")
        assert parser.program.source_type == "module"
        parser.parse("require('fs');")
        assert parser.program.source_type == "script"
        parser.parse("require('fs');", source_type="module")
        assert parser.program.source_type == "module"

    def test_parent_links(self, parser):
        parser.parse("a.b.c();")
        call = _first_expression(parser.program)
        assert call.type == "CallExpression"
        member = call.callee
        assert member.parent is call
        assert member.object.parent is member
        assert call.parent.type == "ExpressionStatement"

    def test_parentheses_dropped(self, parser):
        parser.parse("(a).b;")
        member = _first_expression(parser.program)
        assert member.type == "MemberExpression"
        assert member.object.type == "Identifier"
        assert member.object.parent is member

    def test_member_expressions(self, parser):
        parser.parse("a.b; a['c']; a?.d;")
        dot, bracket, optional = [s.expression for s in parser.program.body]
        assert (dot.computed, dot.property.name) == (False, "b")
        assert (bracket.computed, bracket.property.value) == (True, "c")
        assert optional.optional is True

    def test_new_expression(self, parser):
        parser.parse("new Foo(1, 2); new Bar;")
        first, second = [s.expression for s in parser.program.body]
        assert first.type == "NewExpression"
        assert first.callee.name == "Foo"
        assert len(first.arguments) == 2
        assert second.arguments == []

    def test_variable_declaration(self, parser):
        parser.parse("let {a, b: [c]} = obj, d;")
        declaration = parser.program.body[0]
        assert declaration.type == "VariableDeclaration"
        assert declaration.kind == "let"
        first, second = declaration.declarations
        assert first.id.type == "ObjectPattern"
        assert first.id.properties[1].value.type == "ArrayPattern"
        assert first.init.name == "obj"
        assert second.init is None

    def test_object_pattern_default(self, parser):
        parser.parse("const {a = 1} = obj;")
        prop = parser.program.body[0].declarations[0].id.properties[0]
        assert prop.type == "Property"
        assert prop.key.name == "a"
        assert prop.value.type == "AssignmentPattern"
        assert prop.value.left.name == "a"
        assert prop.key is not prop.value.left

    def test_assignment_operators(self, parser):
        parser.parse("a = b; a += 1;")
        plain, compound = [s.expression for s in parser.program.body]
        assert plain.operator == "="
        assert compound.operator == "+="

    def test_functions_and_classes(self, parser):
        parser.parse(
            "function f(a, b = 1, ...c) {}\n"
            "const g = async () => x;\n"
            "class A extends B { static m() {} #p = 1; }\n"
        )
        function, arrow_decl, klass = parser.program.body
        assert function.type == "FunctionDeclaration"
        assert [p.type for p in function.params] == ["Identifier", "AssignmentPattern", "RestElement"]
        arrow = arrow_decl.declarations[0].init
        assert arrow.type == "ArrowFunctionExpression"
        assert arrow.expression is True
        assert arrow.is_async is True
        assert klass.superClass.name == "B"
        method, field = klass.body.body
        assert method.type == "MethodDefinition"
        assert method.static is True
        assert method.value.type == "FunctionExpression"
        assert field.type == "PropertyDefinition"
        assert field.key.type == "PrivateIdentifier"

    def test_imports(self, parser):
        parser.parse('import d, {a as b, "c d" as e} from "m";\nimport * as ns from "n";')
        first, second = parser.program.body
        assert first.type == "ImportDeclaration"
        assert first.source.value == "m"
        default, named, string_named = first.specifiers
        assert default.type == "ImportDefaultSpecifier"
        assert default.local.name == "d"
        assert (named.imported.name, named.local.name) == ("a", "b")
        assert string_named.imported.value == "c d"
        assert second.specifiers[0].type == "ImportNamespaceSpecifier"
        assert second.specifiers[0].local.name == "ns"

    def test_exports(self, parser):
        parser.parse(
            'export {a as b} from "m";\n'
            'export * from "n";\n'
            'export * as ns from "o";\n'
            "export default x;\n"
            "export const y = 1;\n"
        )
        named, star, star_as, default, declared = parser.program.body
        assert named.type == "ExportNamedDeclaration"
        assert named.source.value == "m"
        assert (named.specifiers[0].local.name, named.specifiers[0].exported.name) == ("a", "b")
        assert star.type == "ExportAllDeclaration"
        assert star.exported is None
        assert star_as.exported.name == "ns"
        assert default.type == "ExportDefaultDeclaration"
        assert default.declaration.name == "x"
        assert declared.source is None
        assert declared.declaration.type == "VariableDeclaration"

    def test_template_literal(self, parser):
        parser.parse("`a${b}c${d}`;")
        template = _first_expression(parser.program)
        assert template.type == "TemplateLiteral"
        assert [q.value for q in template.quasis] == ["a", "c", ""]
        assert [e.name for e in template.expressions] == ["b", "d"]

    def test_locations(self, parser):
        parser.parse("\n  foo();")
        call = _first_expression(parser.program)
        assert call.loc == (2, 2)

    def test_jsx_names_are_not_identifiers(self, parser):
        parser.parse("<Foo bar={baz} />;")
        names = [n.name for n in parser.program.walk() if n.type == "Identifier"]
        assert names == ["baz"]

    def test_reset(self, parser):
        parser.parse("a;")
        parser.reset()
        assert parser.program is None
        assert not parser.is_parsed
