"""
TypeScript Dependency Detective
===============================

Extracts the module dependencies of a single TypeScript file: static
imports, re-exports, ``import x = require()`` references, dynamic
``import()`` calls, ``typeof import()`` type references and, optionally,
``require()`` calls.

Usage:
    from ts_detective import detective, detective_tsx

    detective('import {foo, bar} from "mylib";')
    # ['mylib']

    detective('import {foo, bar} from "mylib";', identifiers=True)
    # [Dependency(path='mylib', identifiers=['foo', 'bar'])]

    detective_tsx('import Foo from "Foo"; const el = <Foo />;')
    # ['Foo']
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .errors import InvalidArgumentError
from .models import (
    ALL_BINDINGS,
    DEFAULT_BINDING,
    Dependency,
    DetectiveOptions,
    FileContext,
)
from .walker import Walker, is_node

logger = logging.getLogger(__name__)

TYPE_ONLY_KINDS = ("type", "typeof")


def _string_value(node: Any) -> str | None:
    """Return the value of a string Literal node, else None."""
    if is_node(node) and node["type"] == "Literal" and isinstance(node.get("value"), str):
        return node["value"]
    return None


def _binding_name(node: Any) -> str | None:
    if not is_node(node):
        return None
    if node["type"] == "Identifier":
        return node.get("name")
    return _string_value(node)


def _is_type_only(specifier: dict[str, Any], kind_key: str) -> bool:
    return specifier.get(kind_key) in TYPE_ONLY_KINDS


def _import_binding(specifier: dict[str, Any]) -> str | None:
    if specifier["type"] == "ImportDefaultSpecifier":
        return DEFAULT_BINDING
    if specifier["type"] == "ImportNamespaceSpecifier":
        return ALL_BINDINGS
    return _binding_name(specifier.get("local"))


class DependencyCollector:
    """
    Node visitor that classifies import/export sites and accumulates records.

    One collector serves one extraction call.
    """

    def __init__(self, options: DetectiveOptions, dependencies: list | None = None):
        self.options = options
        self.dependencies: list[str | Dependency] = dependencies if dependencies is not None else []
        self._handlers = {
            "ImportDeclaration": self._visit_import_declaration,
            "ExportNamedDeclaration": self._visit_export_named_declaration,
            "ExportAllDeclaration": self._visit_export_all_declaration,
            "TSImportEqualsDeclaration": self._visit_import_equals_declaration,
            "ImportExpression": self._visit_import_expression,
            "TSImportType": self._visit_import_type,
            "CallExpression": self._visit_call_expression,
        }

    def visit(self, node: dict[str, Any]) -> None:
        handler = self._handlers.get(node.get("type"))
        if handler is not None:
            handler(node)

    def _add(self, path: str, identifiers: list[str]) -> None:
        if self.options.identifiers:
            self.dependencies.append(Dependency(path=path, identifiers=identifiers))
        else:
            self.dependencies.append(path)

    def _specifier_list(
        self, node: dict[str, Any], kind_key: str
    ) -> list[dict[str, Any]] | None:
        """
        Return the specifiers that count for a statement, or None when the
        statement is excluded because every specifier is type-only.
        """
        specifiers = [spec for spec in node.get("specifiers") or [] if is_node(spec)]
        if not self.options.skip_type_imports:
            return specifiers

        values = [spec for spec in specifiers if not _is_type_only(spec, kind_key)]
        if specifiers and not values:
            return None
        return values

    # -- static imports and exports ---------------------------------------

    def _visit_import_declaration(self, node: dict[str, Any]) -> None:
        path = _string_value(node.get("source"))
        if path is None:
            return
        if self.options.skip_type_imports and _is_type_only(node, "importKind"):
            return

        specifiers = self._specifier_list(node, "importKind")
        if specifiers is None:
            return

        names = [_import_binding(spec) for spec in specifiers]
        self._add(path, [name for name in names if name is not None])

    def _visit_export_named_declaration(self, node: dict[str, Any]) -> None:
        # No source means a local export, not a dependency
        path = _string_value(node.get("source"))
        if path is None:
            return
        if self.options.skip_type_imports and _is_type_only(node, "exportKind"):
            return

        specifiers = self._specifier_list(node, "exportKind")
        if specifiers is None:
            return

        names = [_binding_name(spec.get("local")) for spec in specifiers]
        self._add(path, [name for name in names if name is not None])

    def _visit_export_all_declaration(self, node: dict[str, Any]) -> None:
        path = _string_value(node.get("source"))
        if path is None:
            return
        if self.options.skip_type_imports and _is_type_only(node, "exportKind"):
            return
        self._add(path, [ALL_BINDINGS])

    def _visit_import_equals_declaration(self, node: dict[str, Any]) -> None:
        reference = node.get("moduleReference")
        if not is_node(reference) or reference["type"] != "TSExternalModuleReference":
            return
        path = _string_value(reference.get("expression"))
        if path is None:
            return
        if self.options.skip_type_imports and _is_type_only(node, "importKind"):
            return
        self._add(path, [ALL_BINDINGS])

    # -- dynamic and type-level imports -----------------------------------

    def _visit_import_expression(self, node: dict[str, Any]) -> None:
        if self.options.skip_async_imports:
            return
        path = _string_value(node.get("source"))
        if path is not None:
            self._add(path, [ALL_BINDINGS])

    def _visit_import_type(self, node: dict[str, Any]) -> None:
        if self.options.skip_type_imports:
            return
        argument = node.get("argument", node.get("parameter"))
        if is_node(argument) and argument["type"] == "TSLiteralType":
            argument = argument.get("literal")
        path = _string_value(argument)
        if path is not None:
            self._add(path, [ALL_BINDINGS])

    def _visit_call_expression(self, node: dict[str, Any]) -> None:
        if not self.options.mixed_imports:
            return
        callee = node.get("callee")
        if not is_node(callee) or callee["type"] != "Identifier" or callee.get("name") != "require":
            return
        arguments = node.get("arguments") or []
        path = _string_value(arguments[0]) if arguments else None
        if path is not None:
            self._add(path, [ALL_BINDINGS])


def resolve_options(
    options: DetectiveOptions | Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DetectiveOptions:
    """
    Combine an options object or mapping with keyword overrides.

    Raises:
        InvalidArgumentError: If options is neither a DetectiveOptions nor a mapping
        ValueError: On unknown option names or badly typed values
    """
    if options is None:
        resolved = DetectiveOptions()
    elif isinstance(options, DetectiveOptions):
        resolved = options
    elif isinstance(options, Mapping):
        resolved = DetectiveOptions.from_dict(options)
    else:
        raise InvalidArgumentError(
            f"options must be DetectiveOptions or a mapping, got {type(options).__name__}"
        )
    return resolved.merge(overrides or {})


def detective(
    src: str | dict[str, Any] | None = None,
    options: DetectiveOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> list[str | Dependency]:
    """
    Extract the dependencies of a TypeScript module.

    Args:
        src: Source text, or an ESTree-shaped tree of dict nodes
        options: DetectiveOptions or a mapping of option names
        **overrides: Individual options applied on top of options

    Returns:
        Module specifiers in document order, or Dependency records when the
        identifiers option is on.

    Raises:
        InvalidArgumentError: If src is missing
        TypeScriptSyntaxError: If src is source text that does not parse
    """
    if src is None:
        raise InvalidArgumentError()
    if not isinstance(src, (str, dict)):
        raise InvalidArgumentError(
            f"src must be source text or a syntax tree, got {type(src).__name__}"
        )

    resolved = resolve_options(options, overrides)
    dependencies: list[str | Dependency] = []

    if src == "":
        return dependencies

    parser_options = dict(resolved.parser_options)
    parser_options["jsx"] = resolved.jsx or bool(parser_options.get("jsx", False))
    walker = Walker(**parser_options)
    ast = walker.parse(src) if isinstance(src, str) else src

    if resolved.on_file is not None:
        resolved.on_file(FileContext(src=src, ast=ast, walker=walker, options=resolved))

    collector = DependencyCollector(resolved, dependencies)
    walker.traverse(ast, collector.visit)

    if resolved.on_after_file is not None:
        resolved.on_after_file(
            FileContext(
                src=src,
                ast=ast,
                walker=walker,
                options=resolved,
                dependencies=dependencies,
            )
        )

    logger.debug("Found %d dependencies", len(dependencies))
    return dependencies


def detective_tsx(
    src: str | dict[str, Any] | None = None,
    options: DetectiveOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> list[str | Dependency]:
    """Same as detective(), but always parses with the TSX grammar."""
    return detective(src, options, **{**overrides, "jsx": True})
