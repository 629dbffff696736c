"""
TypeScript Parser
=================

Parses TypeScript and TSX source text with tree-sitter and converts the
concrete syntax tree into ESTree-shaped ``dict`` nodes.

Module-level constructs get their ESTree names and fields (ImportDeclaration,
ExportNamedDeclaration, ImportExpression, TSImportType, ...). Any other named
grammar node becomes a generic node whose ``type`` is the PascalCase grammar
name and whose ``children`` list holds its converted named children.

``range`` values are byte offsets into the UTF-8 encoded source; ``loc``
lines are 1-based and columns are 0-based byte columns.

Usage:
    from ts_detective.parser import TypeScriptParser

    ast = TypeScriptParser().parse('import {a} from "m";')
    ast["body"][0]["source"]["value"]  # "m"
"""

from __future__ import annotations

import logging
import re
from typing import Any

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser

from .errors import TypeScriptSyntaxError

logger = logging.getLogger(__name__)

TYPESCRIPT_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

IDENTIFIER_NODES = {
    "identifier",
    "property_identifier",
    "private_property_identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
    "statement_identifier",
    "type_identifier",
}

# Ancestors that put an import("...") call in type position
TYPE_CONTEXT_NODES = {
    "type_query",
    "type_annotation",
    "type_arguments",
    "type_alias_declaration",
    "implements_clause",
    "extends_type_clause",
}

# Expressions whose second operand is a type: `x as T`, `x satisfies T`
TYPE_OPERAND_EXPRESSIONS = {"as_expression", "satisfies_expression"}

TYPE_DECLARATIONS = {
    "interface_declaration",
    "type_alias_declaration",
}

SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

LINE_TERMINATORS = ("\r\n", "\n", "\r", "\u2028", "\u2029")

# `export import x = require("m")`, which tree-sitter-typescript does not accept
EXPORT_IMPORT_REQUIRE = re.compile(
    rb"^[ \t]*(export[ \t]+)import[ \t]+(?:type[ \t]+)?[A-Za-z_$][\w$]*[ \t]*=[ \t]*require[ \t]*\(",
    re.MULTILINE,
)


def _pascal_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def _first_child_of_type(node: Node, *types: str) -> Node | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def _field_or_child(node: Node, field_name: str, *types: str) -> Node | None:
    child = node.child_by_field_name(field_name)
    if child is not None:
        return child
    return _first_child_of_type(node, *types)


def _modifier_kind(node: Node) -> str:
    """Return "type" or "typeof" when the node carries that keyword directly, else "value"."""
    for child in node.children:
        if not child.is_named and child.type in ("type", "typeof"):
            return child.type
    return "value"


def _in_type_context(node: Node) -> bool:
    child = node
    parent = node.parent
    while parent is not None:
        if parent.type in TYPE_CONTEXT_NODES:
            return True
        if parent.type in TYPE_OPERAND_EXPRESSIONS and parent.named_child_count > 1:
            # Only the operand after `as` / `satisfies` is a type
            expression = parent.named_children[0]
            if child.start_byte >= expression.end_byte:
                return True
        child = parent
        parent = parent.parent
    return False


def _decode_escape(sequence: str) -> str:
    """Decode a single JavaScript escape sequence such as \\n, \\x41 or \\u{1F600}."""
    body = sequence[1:]
    if body in SIMPLE_ESCAPES:
        return SIMPLE_ESCAPES[body]
    if body.startswith(LINE_TERMINATORS):
        return ""
    try:
        if body.startswith("u{") and body.endswith("}"):
            return chr(int(body[2:-1], 16))
        if body[:1] in ("u", "x") and len(body) > 1:
            return chr(int(body[1:], 16))
        if body.isdigit():
            return chr(int(body, 8))
    except ValueError:
        return body
    return body


def _number_value(raw: str) -> int | float | None:
    text = raw.replace("_", "").rstrip("n")
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


class _EstreeBuilder:
    """Converts one tree-sitter tree into ESTree-shaped dicts."""

    def __init__(
        self,
        source: bytes,
        loc: bool = True,
        ranges: bool = True,
        exported_imports: frozenset[int] = frozenset(),
    ):
        self.source = source
        self.loc = loc
        self.ranges = ranges
        self.exported_imports = exported_imports

    def build(self, node: Node) -> dict[str, Any]:
        converter = getattr(self, f"_convert_{node.type}", None)
        if converter is None:
            if node.type in IDENTIFIER_NODES:
                return self._identifier(node)
            return self._generic(node)
        return converter(node)

    # -- helpers ----------------------------------------------------------

    def _text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def _node(self, node_type: str, node: Node, **fields: Any) -> dict[str, Any]:
        result: dict[str, Any] = {"type": node_type}
        result.update(fields)
        if self.ranges:
            result["range"] = [node.start_byte, node.end_byte]
        if self.loc:
            start_row, start_column = node.start_point
            end_row, end_column = node.end_point
            result["loc"] = {
                "start": {"line": start_row + 1, "column": start_column},
                "end": {"line": end_row + 1, "column": end_column},
            }
        return result

    def _children(self, node: Node) -> list[dict[str, Any]]:
        return [self.build(child) for child in node.named_children if child.type != "comment"]

    def _generic(self, node: Node) -> dict[str, Any]:
        return self._node(_pascal_case(node.type), node, children=self._children(node))

    def _identifier(self, node: Node) -> dict[str, Any]:
        return self._node("Identifier", node, name=self._text(node))

    def _module_export_name(self, node: Node) -> dict[str, Any]:
        if node.type == "string":
            return self.build(node)
        return self._identifier(node)

    def _optional(self, node: Node | None) -> dict[str, Any] | None:
        return self.build(node) if node is not None else None

    # -- program ----------------------------------------------------------

    def _convert_program(self, node: Node) -> dict[str, Any]:
        return self._node("Program", node, sourceType="module", body=self._children(node))

    # -- imports ----------------------------------------------------------

    def _convert_import_statement(self, node: Node) -> dict[str, Any]:
        import_kind = _modifier_kind(node)

        require_clause = _first_child_of_type(node, "import_require_clause")
        if require_clause is not None:
            name = _first_child_of_type(require_clause, "identifier")
            expression = _field_or_child(require_clause, "source", "string")
            reference = self._node(
                "TSExternalModuleReference",
                require_clause,
                expression=self._optional(expression),
            )
            return self._node(
                "TSImportEqualsDeclaration",
                node,
                id=self._optional(name),
                moduleReference=reference,
                importKind=import_kind,
                isExport=node.start_byte in self.exported_imports,
            )

        specifiers: list[dict[str, Any]] = []
        clause = _first_child_of_type(node, "import_clause")
        if clause is not None:
            specifiers = self._import_specifiers(clause)

        source = _field_or_child(node, "source", "string")
        return self._node(
            "ImportDeclaration",
            node,
            specifiers=specifiers,
            source=self._optional(source),
            importKind=import_kind,
        )

    def _import_specifiers(self, clause: Node) -> list[dict[str, Any]]:
        specifiers = []
        for child in clause.named_children:
            if child.type == "identifier":
                specifiers.append(
                    self._node("ImportDefaultSpecifier", child, local=self._identifier(child))
                )
            elif child.type == "namespace_import":
                name = _first_child_of_type(child, "identifier")
                specifiers.append(
                    self._node("ImportNamespaceSpecifier", child, local=self._optional(name))
                )
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type == "import_specifier":
                        specifiers.append(self._import_specifier(spec))
        return specifiers

    def _import_specifier(self, spec: Node) -> dict[str, Any]:
        name = spec.child_by_field_name("name")
        alias = spec.child_by_field_name("alias")
        if name is None:
            name = spec.named_children[0]
        return self._node(
            "ImportSpecifier",
            spec,
            imported=self._module_export_name(name),
            local=self._identifier(alias if alias is not None else name),
            importKind=_modifier_kind(spec),
        )

    # -- exports ----------------------------------------------------------

    def _convert_export_statement(self, node: Node) -> dict[str, Any]:
        export_kind = _modifier_kind(node)
        source = self._optional(node.child_by_field_name("source"))
        tokens = {child.type for child in node.children if not child.is_named}

        namespace = _first_child_of_type(node, "namespace_export")
        if "*" in tokens or namespace is not None:
            exported = None
            if namespace is not None and namespace.named_children:
                exported = self._module_export_name(namespace.named_children[0])
            return self._node(
                "ExportAllDeclaration",
                node,
                exported=exported,
                source=source,
                exportKind=export_kind,
            )

        clause = _first_child_of_type(node, "export_clause")
        if clause is not None:
            specifiers = [
                self._export_specifier(spec)
                for spec in clause.named_children
                if spec.type == "export_specifier"
            ]
            return self._node(
                "ExportNamedDeclaration",
                node,
                declaration=None,
                specifiers=specifiers,
                source=source,
                exportKind=export_kind,
            )

        if "default" in tokens:
            target = node.child_by_field_name("declaration")
            if target is None:
                target = node.child_by_field_name("value")
            return self._node(
                "ExportDefaultDeclaration",
                node,
                declaration=self._optional(target),
                exportKind="value",
            )

        if "=" in tokens:
            expressions = [c for c in node.named_children if c.type != "comment"]
            return self._node(
                "TSExportAssignment",
                node,
                expression=self.build(expressions[-1]) if expressions else None,
            )

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            return self._node(
                "ExportNamedDeclaration",
                node,
                declaration=self.build(declaration),
                specifiers=[],
                source=None,
                exportKind="type" if declaration.type in TYPE_DECLARATIONS else "value",
            )

        return self._generic(node)

    def _export_specifier(self, spec: Node) -> dict[str, Any]:
        name = spec.child_by_field_name("name")
        alias = spec.child_by_field_name("alias")
        if name is None:
            name = spec.named_children[0]
        return self._node(
            "ExportSpecifier",
            spec,
            local=self._module_export_name(name),
            exported=self._module_export_name(alias if alias is not None else name),
            exportKind=_modifier_kind(spec),
        )

    # -- calls ------------------------------------------------------------

    def _convert_call_expression(self, node: Node) -> dict[str, Any]:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None or arguments.type != "arguments":
            return self._generic(node)

        args = self._children(arguments)
        if function.type == "import":
            if _in_type_context(node):
                argument = None
                if args:
                    argument = self._node("TSLiteralType", arguments, literal=args[0])
                return self._node("TSImportType", node, argument=argument, qualifier=None)
            return self._node(
                "ImportExpression",
                node,
                source=args[0] if args else None,
                options=args[1] if len(args) > 1 else None,
            )

        optional = _first_child_of_type(node, "?.", "optional_chain") is not None
        return self._node(
            "CallExpression",
            node,
            callee=self.build(function),
            arguments=args,
            optional=optional,
        )

    # -- literals ---------------------------------------------------------

    def _convert_string(self, node: Node) -> dict[str, Any]:
        pieces = []
        for child in node.named_children:
            if child.type == "escape_sequence":
                pieces.append(_decode_escape(self._text(child)))
            else:
                pieces.append(self._text(child))
        return self._node("Literal", node, value="".join(pieces), raw=self._text(node))

    def _convert_template_string(self, node: Node) -> dict[str, Any]:
        quasis: list[dict[str, Any]] = []
        expressions: list[dict[str, Any]] = []
        cooked: list[str] = []
        raw: list[str] = []

        def close_quasi(tail: bool) -> None:
            quasis.append(
                self._node(
                    "TemplateElement",
                    node,
                    value={"raw": "".join(raw), "cooked": "".join(cooked)},
                    tail=tail,
                )
            )
            cooked.clear()
            raw.clear()

        for child in node.named_children:
            if child.type == "template_substitution":
                close_quasi(tail=False)
                expressions.extend(self._children(child)[:1])
            elif child.type == "escape_sequence":
                text = self._text(child)
                raw.append(text)
                cooked.append(_decode_escape(text))
            else:
                text = self._text(child)
                raw.append(text)
                cooked.append(text)
        close_quasi(tail=True)

        return self._node("TemplateLiteral", node, quasis=quasis, expressions=expressions)

    def _convert_number(self, node: Node) -> dict[str, Any]:
        raw = self._text(node)
        return self._node("Literal", node, value=_number_value(raw), raw=raw)

    def _convert_true(self, node: Node) -> dict[str, Any]:
        return self._node("Literal", node, value=True, raw="true")

    def _convert_false(self, node: Node) -> dict[str, Any]:
        return self._node("Literal", node, value=False, raw="false")

    def _convert_null(self, node: Node) -> dict[str, Any]:
        return self._node("Literal", node, value=None, raw="null")

    def _convert_regex(self, node: Node) -> dict[str, Any]:
        pattern = node.child_by_field_name("pattern")
        flags = node.child_by_field_name("flags")
        return self._node(
            "Literal",
            node,
            value=None,
            raw=self._text(node),
            regex={
                "pattern": self._text(pattern) if pattern is not None else "",
                "flags": self._text(flags) if flags is not None else "",
            },
        )


class TypeScriptParser:
    """
    Parses TypeScript (or TSX, with jsx=True) into an ESTree-shaped dict tree.

    Raises TypeScriptSyntaxError when tree-sitter reports an error or missing
    node anywhere in the tree.
    """

    def __init__(self, jsx: bool = False, loc: bool = True, ranges: bool = True):
        self.jsx = jsx
        self.loc = loc
        self.ranges = ranges
        self.language = TSX_LANGUAGE if jsx else TYPESCRIPT_LANGUAGE
        self._parser = Parser(self.language)

    @property
    def grammar(self) -> str:
        return "tsx" if self.jsx else "typescript"

    def parse(self, src: str | bytes) -> dict[str, Any]:
        source = src.encode("utf-8") if isinstance(src, str) else src
        tree = self._parser.parse(source)
        root = tree.root_node
        logger.debug("Parsed %d bytes with the %s grammar", len(source), self.grammar)

        exported_imports: frozenset[int] = frozenset()
        if root.has_error:
            error = self._syntax_error(root, source)
            recovered = self._recover_export_imports(source)
            if recovered is None:
                raise error
            root, exported_imports = recovered

        builder = _EstreeBuilder(
            source,
            loc=self.loc,
            ranges=self.ranges,
            exported_imports=exported_imports,
        )
        return builder.build(root)

    def _recover_export_imports(self, source: bytes) -> tuple[Node, frozenset[int]] | None:
        """
        Reparse with each `export import x = require()` keyword blanked out.

        Offsets are unchanged, so the resulting tree still maps onto source.
        Returns None when there is nothing to blank or the source still fails.
        """
        matches = list(EXPORT_IMPORT_REQUIRE.finditer(source))
        if not matches:
            return None

        patched = bytearray(source)
        for match in matches:
            start, end = match.span(1)
            patched[start:end] = b" " * (end - start)

        root = self._parser.parse(bytes(patched)).root_node
        if root.has_error:
            return None

        logger.debug("Recovered %d export import declarations", len(matches))
        return root, frozenset(match.end(1) for match in matches)

    def _syntax_error(self, root: Node, source: bytes) -> TypeScriptSyntaxError:
        bad = self._first_error(root) or root
        row, column = bad.start_point
        lines = source.decode("utf-8", errors="replace").splitlines()
        line_text = lines[row] if row < len(lines) else ""

        if bad.is_missing:
            message = f"'{bad.type}' expected."
        else:
            snippet = source[bad.start_byte:bad.end_byte].decode("utf-8", errors="replace")
            snippet = snippet.strip().splitlines()[0] if snippet.strip() else ""
            message = f"Unexpected token {snippet!r}" if snippet else "Unexpected end of input"

        logger.debug("Syntax error at %d:%d: %s", row + 1, column + 1, message)
        return TypeScriptSyntaxError(message, lineno=row + 1, offset=column + 1, text=line_text)

    @staticmethod
    def _first_error(root: Node) -> Node | None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node
            if node.has_error:
                stack.extend(reversed(node.children))
        return None
