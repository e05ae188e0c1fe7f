"""Tree-sitter based JavaScript parser.

Parses JavaScript with tree-sitter-javascript and converts the concrete
syntax tree into ESTree-shaped `Node` objects: the node kinds and field
names that scope analysis and reference tracing expect.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

import tree_sitter
import tree_sitter_javascript

from reftracer.parsers.base import BaseParser
from reftracer.parsers.nodes import Node, link_parents

logger = logging.getLogger(__name__)

_JS_LANGUAGE: Optional[Any] = None


def _get_language() -> Any:
    """Get the tree-sitter JavaScript language object, loading it once."""
    global _JS_LANGUAGE
    if _JS_LANGUAGE is None:
        _JS_LANGUAGE = tree_sitter.Language(tree_sitter_javascript.language())
    return _JS_LANGUAGE


# Concrete node kinds that carry no syntax of their own
_SKIPPED_TYPES = {"comment", "hash_bang_line", "html_comment"}

_IDENTIFIER_TYPES = {
    "identifier",
    "property_identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
    "statement_identifier",
    "undefined",
}

# JSX element and attribute names are not variable references
_JSX_NAME_PARENTS = {
    "jsx_opening_element",
    "jsx_closing_element",
    "jsx_self_closing_element",
    "jsx_attribute",
}
_JSX_NAME_TYPES = {
    "identifier",
    "property_identifier",
    "nested_identifier",
    "member_expression",
    "jsx_namespace_name",
}

_LOGICAL_OPERATORS = {"&&", "||", "??"}

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}
_ESCAPE_PATTERN = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)


def decode_escapes(text: str) -> str:
    """Decode JavaScript string escape sequences."""

    def replace(match: "re.Match[str]") -> str:
        seq = match.group(1)
        if seq.startswith("u{"):
            return chr(int(seq[2:-1], 16))
        if len(seq) == 5 and seq[0] == "u":
            return chr(int(seq[1:], 16))
        if len(seq) == 3 and seq[0] == "x":
            return chr(int(seq[1:], 16))
        if seq in _LINE_CONTINUATIONS:
            return ""
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE_PATTERN.sub(replace, text)


def parse_number(text: str) -> Any:
    """Parse a JavaScript numeric literal into an int or float."""
    raw = text.replace("_", "")
    lower = raw.lower()
    if lower.startswith(("0x", "0o", "0b")):
        return int(raw, 0)
    value = float(raw)
    if value.is_integer() and not any(c in lower for c in ".e"):
        return int(value)
    return value


def _camel_case(ts_type: str) -> str:
    return "".join(part.capitalize() for part in ts_type.split("_"))


class JavaScriptParser(BaseParser):
    """JavaScript parser producing ESTree-shaped nodes.

    Parenthesized expressions are dropped the way ESTree drops them.
    Kinds without a dedicated conversion become generic nodes whose type is
    the CamelCase concrete kind and whose `children` field lists the
    converted named children.
    """

    def __init__(self):
        """Initialize the parser."""
        super().__init__()
        self._parser: Optional[Any] = None
        self._source_bytes: bytes = b""
        self._handlers: Dict[str, Callable[[Any], Optional[Node]]] = {
            "program": self._convert_program,
            "expression_statement": self._convert_expression_statement,
            "empty_statement": self._convert_empty_statement,
            "debugger_statement": self._convert_debugger_statement,
            "statement_block": self._convert_block,
            "if_statement": self._convert_if,
            "for_statement": self._convert_for,
            "for_in_statement": self._convert_for_in,
            "while_statement": self._convert_while,
            "do_statement": self._convert_do_while,
            "try_statement": self._convert_try,
            "switch_statement": self._convert_switch,
            "return_statement": self._convert_return,
            "throw_statement": self._convert_throw,
            "labeled_statement": self._convert_labeled,
            "break_statement": self._convert_break,
            "continue_statement": self._convert_continue,
            "lexical_declaration": self._convert_variable_declaration,
            "variable_declaration": self._convert_variable_declaration,
            "variable_declarator": self._convert_variable_declarator,
            "function_declaration": self._convert_function_declaration,
            "generator_function_declaration": self._convert_function_declaration,
            "function_expression": self._convert_function_expression,
            "function": self._convert_function_expression,
            "generator_function": self._convert_function_expression,
            "arrow_function": self._convert_arrow_function,
            "class_declaration": self._convert_class_declaration,
            "class": self._convert_class_expression,
            "import_statement": self._convert_import,
            "export_statement": self._convert_export,
            "identifier": self._convert_identifier,
            "property_identifier": self._convert_identifier,
            "shorthand_property_identifier": self._convert_identifier,
            "shorthand_property_identifier_pattern": self._convert_identifier,
            "statement_identifier": self._convert_identifier,
            "undefined": self._convert_identifier,
            "private_property_identifier": self._convert_private_identifier,
            "this": self._convert_this,
            "super": self._convert_super,
            "string": self._convert_string,
            "number": self._convert_number,
            "true": self._convert_keyword_literal,
            "false": self._convert_keyword_literal,
            "null": self._convert_keyword_literal,
            "regex": self._convert_regex,
            "template_string": self._convert_template,
            "member_expression": self._convert_member,
            "subscript_expression": self._convert_subscript,
            "call_expression": self._convert_call,
            "new_expression": self._convert_new,
            "assignment_expression": self._convert_assignment,
            "augmented_assignment_expression": self._convert_augmented_assignment,
            "binary_expression": self._convert_binary,
            "unary_expression": self._convert_unary,
            "update_expression": self._convert_update,
            "ternary_expression": self._convert_ternary,
            "sequence_expression": self._convert_sequence,
            "await_expression": self._convert_await,
            "yield_expression": self._convert_yield,
            "spread_element": self._convert_spread,
            "array": self._convert_array,
            "object": self._convert_object,
            "object_pattern": self._convert_object_pattern,
            "array_pattern": self._convert_array_pattern,
            "assignment_pattern": self._convert_assignment_pattern,
            "rest_pattern": self._convert_rest,
        }

    def _init_parser(self):
        """Initialize the tree-sitter parser."""
        self._parser = tree_sitter.Parser(_get_language())

    def parse(self, source: str, filepath: str = "", source_type: Optional[str] = None) -> bool:
        """Parse JavaScript source code.

        Args:
            source: The source code to parse
            filepath: Optional file path for context
            source_type: "module" or "script"; detected from top-level
                import/export statements when None

        Returns:
            True if the source has no syntax errors. A Program node is
            built either way, from tree-sitter's error-recovered tree.
        """
        self.reset()
        self._source = source
        self._filepath = filepath
        self._lines = source.splitlines()

        if self._parser is None:
            self._init_parser()

        self._source_bytes = source.encode("utf-8")
        tree = self._parser.parse(self._source_bytes)
        root = tree.root_node

        program = self._convert_program(root, source_type)
        self._program = link_parents(program)
        self._parsed = not root.has_error
        if not self._parsed:
            logger.debug("Syntax errors while parsing %s", filepath or "<source>")
        return self._parsed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _text(self, ts) -> str:
        return self._source_bytes[ts.start_byte:ts.end_byte].decode("utf-8")

    def _node(self, type: str, ts, **fields: Any) -> Node:
        return Node(
            type,
            (ts.start_byte, ts.end_byte),
            (ts.start_point[0] + 1, ts.start_point[1]),
            **fields,
        )

    def _node_between(self, type: str, start_ts, end_ts, **fields: Any) -> Node:
        return Node(
            type,
            (start_ts.start_byte, end_ts.end_byte),
            (start_ts.start_point[0] + 1, start_ts.start_point[1]),
            **fields,
        )

    @staticmethod
    def _named(ts) -> List[Any]:
        return [c for c in ts.named_children if c.type not in _SKIPPED_TYPES]

    @staticmethod
    def _has_token(ts, token: str) -> bool:
        return any(c.type == token for c in ts.children)

    def _convert(self, ts) -> Optional[Node]:
        if ts is None or ts.type in _SKIPPED_TYPES:
            return None
        if ts.type == "parenthesized_expression":
            inner = self._named(ts)
            return self._convert(inner[0]) if inner else None
        handler = self._handlers.get(ts.type)
        if handler is not None:
            return handler(ts)
        return self._convert_generic(ts)

    def _field(self, ts, name: str) -> Optional[Node]:
        return self._convert(ts.child_by_field_name(name))

    def _convert_all(self, children) -> List[Node]:
        result = []
        for child in children:
            node = self._convert(child)
            if node is not None:
                result.append(node)
        return result

    def _convert_generic(self, ts) -> Node:
        children = []
        jsx_names = ts.type in _JSX_NAME_PARENTS
        for child in self._named(ts):
            if jsx_names and child.type in _JSX_NAME_TYPES:
                children.append(self._node("JSXIdentifier", child, name=self._text(child)))
            else:
                node = self._convert(child)
                if node is not None:
                    children.append(node)
        return self._node(_camel_case(ts.type), ts, children=children)

    def _identifier_from(self, ts) -> Node:
        """Build a fresh Identifier for ts (never shared between parents)."""
        return self._node("Identifier", ts, name=self._text(ts))

    # ------------------------------------------------------------------
    # Program and statements
    # ------------------------------------------------------------------

    def _convert_program(self, ts, source_type: Optional[str] = None) -> Node:
        children = self._named(ts)
        if source_type is None:
            is_module = any(
                c.type in ("import_statement", "export_statement") for c in children
            )
            source_type = "module" if is_module else "script"
        return Node(
            "Program",
            (0, len(self._source_bytes)),
            (1, 0),
            body=self._convert_all(children),
            source_type=source_type,
        )

    def _convert_expression_statement(self, ts) -> Node:
        inner = self._named(ts)
        return self._node(
            "ExpressionStatement", ts, expression=self._convert(inner[0]) if inner else None
        )

    def _convert_empty_statement(self, ts) -> Node:
        return self._node("EmptyStatement", ts)

    def _convert_debugger_statement(self, ts) -> Node:
        return self._node("DebuggerStatement", ts)

    def _convert_block(self, ts) -> Node:
        return self._node("BlockStatement", ts, body=self._convert_all(self._named(ts)))

    def _convert_if(self, ts) -> Node:
        alternate = None
        else_clause = ts.child_by_field_name("alternative")
        if else_clause is not None:
            inner = self._named(else_clause)
            alternate = self._convert(inner[0]) if inner else None
        return self._node(
            "IfStatement",
            ts,
            test=self._field(ts, "condition"),
            consequent=self._field(ts, "consequence"),
            alternate=alternate,
        )

    def _convert_for_part(self, ts) -> Optional[Node]:
        if ts is None or ts.type == "empty_statement":
            return None
        if ts.type == "expression_statement":
            inner = self._named(ts)
            return self._convert(inner[0]) if inner else None
        return self._convert(ts)

    def _convert_for(self, ts) -> Node:
        return self._node(
            "ForStatement",
            ts,
            init=self._convert_for_part(ts.child_by_field_name("initializer")),
            test=self._convert_for_part(ts.child_by_field_name("condition")),
            update=self._convert_for_part(ts.child_by_field_name("increment")),
            body=self._field(ts, "body"),
        )

    def _convert_for_in(self, ts) -> Node:
        operator = ts.child_by_field_name("operator")
        node_type = "ForOfStatement" if operator is not None and operator.type == "of" else "ForInStatement"
        kind = ts.child_by_field_name("kind")
        left_ts = ts.child_by_field_name("left")
        if kind is not None:
            declarator = self._node_between(
                "VariableDeclarator", left_ts, left_ts, id=self._convert(left_ts), init=None
            )
            left = self._node_between(
                "VariableDeclaration", kind, left_ts, kind=kind.type, declarations=[declarator]
            )
        else:
            left = self._convert(left_ts)
        return self._node(
            node_type,
            ts,
            left=left,
            right=self._field(ts, "right"),
            body=self._field(ts, "body"),
            is_await=self._has_token(ts, "await"),
        )

    def _convert_while(self, ts) -> Node:
        return self._node(
            "WhileStatement", ts, test=self._field(ts, "condition"), body=self._field(ts, "body")
        )

    def _convert_do_while(self, ts) -> Node:
        return self._node(
            "DoWhileStatement", ts, body=self._field(ts, "body"), test=self._field(ts, "condition")
        )

    def _convert_try(self, ts) -> Node:
        handler = None
        catch_ts = ts.child_by_field_name("handler")
        if catch_ts is not None:
            handler = self._node(
                "CatchClause",
                catch_ts,
                param=self._field(catch_ts, "parameter"),
                body=self._field(catch_ts, "body"),
            )
        finalizer = None
        finally_ts = ts.child_by_field_name("finalizer")
        if finally_ts is not None:
            finalizer = self._field(finally_ts, "body")
        return self._node(
            "TryStatement",
            ts,
            block=self._field(ts, "body"),
            handler=handler,
            finalizer=finalizer,
        )

    def _convert_switch(self, ts) -> Node:
        cases = []
        body = ts.child_by_field_name("body")
        if body is not None:
            for case_ts in self._named(body):
                cases.append(self._node(
                    "SwitchCase",
                    case_ts,
                    test=self._field(case_ts, "value"),
                    consequent=self._convert_all(case_ts.children_by_field_name("body")),
                ))
        return self._node(
            "SwitchStatement", ts, discriminant=self._field(ts, "value"), cases=cases
        )

    def _convert_with_argument(self, type: str, ts) -> Node:
        inner = self._named(ts)
        return self._node(type, ts, argument=self._convert(inner[0]) if inner else None)

    def _convert_return(self, ts) -> Node:
        return self._convert_with_argument("ReturnStatement", ts)

    def _convert_throw(self, ts) -> Node:
        return self._convert_with_argument("ThrowStatement", ts)

    def _convert_labeled(self, ts) -> Node:
        return self._node(
            "LabeledStatement", ts, label=self._field(ts, "label"), body=self._field(ts, "body")
        )

    def _convert_jump(self, type: str, ts) -> Node:
        label = ts.child_by_field_name("label")
        return self._node(type, ts, label=self._convert(label))

    def _convert_break(self, ts) -> Node:
        return self._convert_jump("BreakStatement", ts)

    def _convert_continue(self, ts) -> Node:
        return self._convert_jump("ContinueStatement", ts)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _convert_variable_declaration(self, ts) -> Node:
        if ts.type == "variable_declaration":
            kind = "var"
        else:
            kind_ts = ts.child_by_field_name("kind")
            kind = kind_ts.type if kind_ts is not None else "let"
        declarations = [
            self._convert(c) for c in self._named(ts) if c.type == "variable_declarator"
        ]
        return self._node("VariableDeclaration", ts, kind=kind, declarations=declarations)

    def _convert_variable_declarator(self, ts) -> Node:
        return self._node(
            "VariableDeclarator", ts, id=self._field(ts, "name"), init=self._field(ts, "value")
        )

    def _convert_params(self, ts) -> List[Node]:
        if ts is None:
            return []
        return self._convert_all(self._named(ts))

    def _convert_function(self, type: str, ts) -> Node:
        return self._node(
            type,
            ts,
            id=self._field(ts, "name"),
            params=self._convert_params(ts.child_by_field_name("parameters")),
            body=self._field(ts, "body"),
            generator=self._has_token(ts, "*"),
            is_async=self._has_token(ts, "async"),
        )

    def _convert_function_declaration(self, ts) -> Node:
        return self._convert_function("FunctionDeclaration", ts)

    def _convert_function_expression(self, ts) -> Node:
        return self._convert_function("FunctionExpression", ts)

    def _convert_arrow_function(self, ts) -> Node:
        single = ts.child_by_field_name("parameter")
        if single is not None:
            params = [self._convert(single)]
        else:
            params = self._convert_params(ts.child_by_field_name("parameters"))
        body_ts = ts.child_by_field_name("body")
        return self._node(
            "ArrowFunctionExpression",
            ts,
            params=params,
            body=self._convert(body_ts),
            expression=body_ts is not None and body_ts.type != "statement_block",
            is_async=self._has_token(ts, "async"),
        )

    def _convert_class(self, type: str, ts) -> Node:
        super_class = None
        for child in self._named(ts):
            if child.type == "class_heritage":
                inner = self._named(child)
                super_class = self._convert(inner[0]) if inner else None
        body_ts = ts.child_by_field_name("body")
        members = []
        if body_ts is not None:
            for member in self._named(body_ts):
                converted = self._convert_class_member(member)
                if converted is not None:
                    members.append(converted)
        body = self._node("ClassBody", body_ts, body=members) if body_ts is not None else None
        return self._node(
            type,
            ts,
            id=self._field(ts, "name"),
            superClass=super_class,
            body=body,
        )

    def _convert_class_declaration(self, ts) -> Node:
        return self._convert_class("ClassDeclaration", ts)

    def _convert_class_expression(self, ts) -> Node:
        return self._convert_class("ClassExpression", ts)

    def _convert_method_value(self, ts) -> Node:
        params_ts = ts.child_by_field_name("parameters")
        body_ts = ts.child_by_field_name("body")
        return self._node_between(
            "FunctionExpression",
            params_ts if params_ts is not None else ts,
            body_ts if body_ts is not None else ts,
            id=None,
            params=self._convert_params(params_ts),
            body=self._convert(body_ts),
            generator=self._has_token(ts, "*"),
            is_async=self._has_token(ts, "async"),
        )

    def _method_kind(self, ts, key: Node) -> str:
        if self._has_token(ts, "get"):
            return "get"
        if self._has_token(ts, "set"):
            return "set"
        if key.type == "Identifier" and key.name == "constructor":
            return "constructor"
        return "method"

    def _convert_class_member(self, ts) -> Optional[Node]:
        if ts.type == "method_definition":
            key, computed = self._convert_key(ts.child_by_field_name("name"))
            return self._node(
                "MethodDefinition",
                ts,
                key=key,
                computed=computed,
                value=self._convert_method_value(ts),
                kind=self._method_kind(ts, key),
                static=self._has_token(ts, "static"),
            )
        if ts.type == "field_definition":
            key, computed = self._convert_key(ts.child_by_field_name("property"))
            return self._node(
                "PropertyDefinition",
                ts,
                key=key,
                computed=computed,
                value=self._field(ts, "value"),
                static=self._has_token(ts, "static"),
            )
        if ts.type == "class_static_block":
            return self._node("StaticBlock", ts, body=self._field(ts, "body"))
        return self._convert(ts)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def _convert_module_name(self, ts) -> Node:
        if ts.type == "string":
            return self._convert_string(ts)
        return self._identifier_from(ts)

    def _convert_import(self, ts) -> Node:
        specifiers = []
        for clause in self._named(ts):
            if clause.type != "import_clause":
                continue
            for child in self._named(clause):
                if child.type == "identifier":
                    specifiers.append(self._node(
                        "ImportDefaultSpecifier", child, local=self._identifier_from(child)
                    ))
                elif child.type == "namespace_import":
                    local_ts = self._named(child)[-1]
                    specifiers.append(self._node(
                        "ImportNamespaceSpecifier", child, local=self._identifier_from(local_ts)
                    ))
                elif child.type == "named_imports":
                    for spec_ts in self._named(child):
                        if spec_ts.type != "import_specifier":
                            continue
                        name_ts = spec_ts.child_by_field_name("name")
                        alias_ts = spec_ts.child_by_field_name("alias")
                        specifiers.append(self._node(
                            "ImportSpecifier",
                            spec_ts,
                            imported=self._convert_module_name(name_ts),
                            local=self._identifier_from(alias_ts if alias_ts is not None else name_ts),
                        ))
        return self._node(
            "ImportDeclaration", ts, specifiers=specifiers, source=self._field(ts, "source")
        )

    def _convert_export(self, ts) -> Node:
        source = self._field(ts, "source")
        if self._has_token(ts, "default"):
            declaration_ts = ts.child_by_field_name("declaration")
            if declaration_ts is None:
                declaration_ts = ts.child_by_field_name("value")
            return self._node(
                "ExportDefaultDeclaration", ts, declaration=self._convert(declaration_ts)
            )

        declaration_ts = ts.child_by_field_name("declaration")
        if declaration_ts is not None:
            return self._node(
                "ExportNamedDeclaration",
                ts,
                declaration=self._convert(declaration_ts),
                specifiers=[],
                source=None,
            )

        for child in self._named(ts):
            if child.type == "namespace_export":
                exported_ts = self._named(child)[-1]
                return self._node(
                    "ExportAllDeclaration",
                    ts,
                    exported=self._convert_module_name(exported_ts),
                    source=source,
                )
            if child.type == "export_clause":
                specifiers = []
                for spec_ts in self._named(child):
                    if spec_ts.type != "export_specifier":
                        continue
                    name_ts = spec_ts.child_by_field_name("name")
                    alias_ts = spec_ts.child_by_field_name("alias")
                    specifiers.append(self._node(
                        "ExportSpecifier",
                        spec_ts,
                        local=self._convert_module_name(name_ts),
                        exported=self._convert_module_name(
                            alias_ts if alias_ts is not None else name_ts
                        ),
                    ))
                return self._node(
                    "ExportNamedDeclaration",
                    ts,
                    declaration=None,
                    specifiers=specifiers,
                    source=source,
                )

        # export * from "module"
        return self._node("ExportAllDeclaration", ts, exported=None, source=source)

    # ------------------------------------------------------------------
    # Identifiers and literals
    # ------------------------------------------------------------------

    def _convert_identifier(self, ts) -> Node:
        return self._identifier_from(ts)

    def _convert_private_identifier(self, ts) -> Node:
        return self._node("PrivateIdentifier", ts, name=self._text(ts).lstrip("#"))

    def _convert_this(self, ts) -> Node:
        return self._node("ThisExpression", ts)

    def _convert_super(self, ts) -> Node:
        return self._node("Super", ts)

    def _convert_string(self, ts) -> Node:
        raw = self._text(ts)
        return self._node("Literal", ts, value=decode_escapes(raw[1:-1]), raw=raw)

    def _convert_number(self, ts) -> Node:
        raw = self._text(ts)
        if raw.endswith("n"):
            digits = raw[:-1].replace("_", "")
            return self._node("Literal", ts, value=None, raw=raw, bigint=str(int(digits, 0)))
        return self._node("Literal", ts, value=parse_number(raw), raw=raw)

    def _convert_keyword_literal(self, ts) -> Node:
        values = {"true": True, "false": False, "null": None}
        return self._node("Literal", ts, value=values[ts.type], raw=ts.type)

    def _convert_regex(self, ts) -> Node:
        pattern = ts.child_by_field_name("pattern")
        flags = ts.child_by_field_name("flags")
        return self._node(
            "Literal",
            ts,
            value=None,
            raw=self._text(ts),
            regex={
                "pattern": self._text(pattern) if pattern is not None else "",
                "flags": self._text(flags) if flags is not None else "",
            },
        )

    def _convert_template(self, ts) -> Node:
        quasis = []
        expressions = []
        # Raw text between the backticks, split at each ${...}
        start = ts.start_byte + 1
        for child in ts.named_children:
            if child.type != "template_substitution":
                continue
            chunk = self._source_bytes[start:child.start_byte].decode("utf-8")
            quasis.append(decode_escapes(chunk))
            inner = self._named(child)
            if inner:
                expressions.append(self._convert(inner[0]))
            start = child.end_byte
        chunk = self._source_bytes[start:ts.end_byte - 1].decode("utf-8")
        quasis.append(decode_escapes(chunk))
        elements = [self._node("TemplateElement", ts, value=quasi) for quasi in quasis]
        return self._node("TemplateLiteral", ts, quasis=elements, expressions=expressions)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _convert_member(self, ts) -> Node:
        return self._node(
            "MemberExpression",
            ts,
            object=self._field(ts, "object"),
            property=self._field(ts, "property"),
            computed=False,
            optional=self._has_token(ts, "optional_chain"),
        )

    def _convert_subscript(self, ts) -> Node:
        return self._node(
            "MemberExpression",
            ts,
            object=self._field(ts, "object"),
            property=self._field(ts, "index"),
            computed=True,
            optional=self._has_token(ts, "optional_chain"),
        )

    def _convert_call(self, ts) -> Node:
        function_ts = ts.child_by_field_name("function")
        arguments_ts = ts.child_by_field_name("arguments")
        if function_ts is not None and function_ts.type == "import":
            args = self._convert_all(self._named(arguments_ts)) if arguments_ts is not None else []
            return self._node("ImportExpression", ts, source=args[0] if args else None)
        if arguments_ts is not None and arguments_ts.type == "template_string":
            return self._node(
                "TaggedTemplateExpression",
                ts,
                tag=self._convert(function_ts),
                quasi=self._convert(arguments_ts),
            )
        return self._node(
            "CallExpression",
            ts,
            callee=self._convert(function_ts),
            arguments=self._convert_all(self._named(arguments_ts)) if arguments_ts is not None else [],
            optional=self._has_token(ts, "optional_chain"),
        )

    def _convert_new(self, ts) -> Node:
        arguments_ts = ts.child_by_field_name("arguments")
        return self._node(
            "NewExpression",
            ts,
            callee=self._field(ts, "constructor"),
            arguments=self._convert_all(self._named(arguments_ts)) if arguments_ts is not None else [],
        )

    def _convert_assignment(self, ts) -> Node:
        return self._node(
            "AssignmentExpression",
            ts,
            operator="=",
            left=self._field(ts, "left"),
            right=self._field(ts, "right"),
        )

    def _convert_augmented_assignment(self, ts) -> Node:
        operator = ts.child_by_field_name("operator")
        return self._node(
            "AssignmentExpression",
            ts,
            operator=self._text(operator) if operator is not None else "=",
            left=self._field(ts, "left"),
            right=self._field(ts, "right"),
        )

    def _convert_binary(self, ts) -> Node:
        operator_ts = ts.child_by_field_name("operator")
        operator = self._text(operator_ts) if operator_ts is not None else ""
        node_type = "LogicalExpression" if operator in _LOGICAL_OPERATORS else "BinaryExpression"
        return self._node(
            node_type,
            ts,
            left=self._field(ts, "left"),
            operator=operator,
            right=self._field(ts, "right"),
        )

    def _convert_unary(self, ts) -> Node:
        operator_ts = ts.child_by_field_name("operator")
        return self._node(
            "UnaryExpression",
            ts,
            operator=self._text(operator_ts) if operator_ts is not None else "",
            argument=self._field(ts, "argument"),
        )

    def _convert_update(self, ts) -> Node:
        operator_ts = ts.child_by_field_name("operator")
        prefix = bool(ts.children) and ts.children[0].type in ("++", "--")
        return self._node(
            "UpdateExpression",
            ts,
            operator=self._text(operator_ts) if operator_ts is not None else "",
            prefix=prefix,
            argument=self._field(ts, "argument"),
        )

    def _convert_ternary(self, ts) -> Node:
        return self._node(
            "ConditionalExpression",
            ts,
            test=self._field(ts, "condition"),
            consequent=self._field(ts, "consequence"),
            alternate=self._field(ts, "alternative"),
        )

    def _flatten_sequence(self, ts) -> List[Any]:
        parts = []
        for child in self._named(ts):
            if child.type == "sequence_expression":
                parts.extend(self._flatten_sequence(child))
            else:
                parts.append(child)
        return parts

    def _convert_sequence(self, ts) -> Node:
        return self._node(
            "SequenceExpression", ts, expressions=self._convert_all(self._flatten_sequence(ts))
        )

    def _convert_await(self, ts) -> Node:
        return self._convert_with_argument("AwaitExpression", ts)

    def _convert_yield(self, ts) -> Node:
        inner = self._named(ts)
        return self._node(
            "YieldExpression",
            ts,
            argument=self._convert(inner[0]) if inner else None,
            delegate=self._has_token(ts, "*"),
        )

    def _convert_spread(self, ts) -> Node:
        return self._convert_with_argument("SpreadElement", ts)

    def _convert_array(self, ts) -> Node:
        return self._node("ArrayExpression", ts, elements=self._convert_all(self._named(ts)))

    def _convert_key(self, ts) -> Tuple[Optional[Node], bool]:
        """Convert a property key, returning (key, computed)."""
        if ts is None:
            return None, False
        if ts.type == "computed_property_name":
            inner = self._named(ts)
            return (self._convert(inner[0]) if inner else None), True
        if ts.type in _IDENTIFIER_TYPES:
            return self._identifier_from(ts), False
        return self._convert(ts), False

    def _convert_object(self, ts) -> Node:
        properties = []
        for child in self._named(ts):
            if child.type == "pair":
                key, computed = self._convert_key(child.child_by_field_name("key"))
                properties.append(self._node(
                    "Property",
                    child,
                    key=key,
                    value=self._field(child, "value"),
                    computed=computed,
                    shorthand=False,
                    method=False,
                    kind="init",
                ))
            elif child.type == "shorthand_property_identifier":
                properties.append(self._node(
                    "Property",
                    child,
                    key=self._identifier_from(child),
                    value=self._identifier_from(child),
                    computed=False,
                    shorthand=True,
                    method=False,
                    kind="init",
                ))
            elif child.type == "method_definition":
                key, computed = self._convert_key(child.child_by_field_name("name"))
                kind = self._method_kind(child, key)
                properties.append(self._node(
                    "Property",
                    child,
                    key=key,
                    value=self._convert_method_value(child),
                    computed=computed,
                    shorthand=False,
                    method=kind not in ("get", "set"),
                    kind=kind if kind in ("get", "set") else "init",
                ))
            else:
                node = self._convert(child)
                if node is not None:
                    properties.append(node)
        return self._node("ObjectExpression", ts, properties=properties)

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def _convert_object_pattern(self, ts) -> Node:
        properties = []
        for child in self._named(ts):
            if child.type == "pair_pattern":
                key, computed = self._convert_key(child.child_by_field_name("key"))
                properties.append(self._node(
                    "Property",
                    child,
                    key=key,
                    value=self._field(child, "value"),
                    computed=computed,
                    shorthand=False,
                    method=False,
                    kind="init",
                ))
            elif child.type == "shorthand_property_identifier_pattern":
                properties.append(self._node(
                    "Property",
                    child,
                    key=self._identifier_from(child),
                    value=self._identifier_from(child),
                    computed=False,
                    shorthand=True,
                    method=False,
                    kind="init",
                ))
            elif child.type == "object_assignment_pattern":
                left_ts = child.child_by_field_name("left")
                value = self._node(
                    "AssignmentPattern",
                    child,
                    left=self._convert(left_ts),
                    right=self._field(child, "right"),
                )
                if left_ts is not None and left_ts.type in _IDENTIFIER_TYPES:
                    key = self._identifier_from(left_ts)
                else:
                    key = None
                properties.append(self._node(
                    "Property",
                    child,
                    key=key,
                    value=value,
                    computed=False,
                    shorthand=True,
                    method=False,
                    kind="init",
                ))
            else:
                node = self._convert(child)
                if node is not None:
                    properties.append(node)
        return self._node("ObjectPattern", ts, properties=properties)

    def _convert_array_pattern(self, ts) -> Node:
        return self._node("ArrayPattern", ts, elements=self._convert_all(self._named(ts)))

    def _convert_assignment_pattern(self, ts) -> Node:
        return self._node(
            "AssignmentPattern", ts, left=self._field(ts, "left"), right=self._field(ts, "right")
        )

    def _convert_rest(self, ts) -> Node:
        return self._convert_with_argument("RestElement", ts)
