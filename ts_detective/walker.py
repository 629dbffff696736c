"""
Syntax Tree Walker
==================

Walks an ESTree-shaped tree of ``dict`` nodes and calls a visitor once per
node in document order. Source text is parsed first with the walker's parser.

Usage:
    from ts_detective.walker import Walker

    walker = Walker(jsx=True)
    walker.walk(source, lambda node: print(node["type"]))
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Protocol

from .parser import TypeScriptParser

Visitor = Callable[[dict[str, Any]], Any]

# Keys holding metadata rather than child nodes
SKIPPED_KEYS = frozenset({"parent", "loc", "range"})


class SourceParser(Protocol):
    def parse(self, src: str | bytes) -> dict[str, Any]: ...


def is_node(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def child_nodes(node: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield the direct child nodes of a node in field order."""
    for key, value in node.items():
        if key in SKIPPED_KEYS:
            continue
        if is_node(value):
            yield value
        elif isinstance(value, list):
            for item in value:
                if is_node(item):
                    yield item


class Walker:
    """
    Traverses syntax trees built by a pluggable parser.

    Args:
        parser: Any object with a parse(src) -> dict method. Defaults to a
            TypeScriptParser built from parser_options.
        **parser_options: Keyword arguments for the default parser
            (jsx, loc, ranges).
    """

    def __init__(self, parser: SourceParser | None = None, **parser_options: Any):
        self.parser_options = parser_options
        self.parser = parser if parser is not None else TypeScriptParser(**parser_options)
        self._should_stop = False

    def parse(self, src: str | bytes) -> dict[str, Any]:
        """Parse source text into a tree."""
        return self.parser.parse(src)

    def walk(self, src: str | bytes | dict[str, Any], callback: Visitor) -> dict[str, Any]:
        """
        Visit every node of src, parsing it first when it is source text.

        Returns:
            The tree that was walked.
        """
        ast = self.parse(src) if isinstance(src, (str, bytes)) else src
        self.traverse(ast, callback)
        return ast

    def traverse(self, node: dict[str, Any], callback: Visitor) -> None:
        """Visit node and all of its descendants, parents before children."""
        self._should_stop = False
        if not is_node(node):
            return

        stack = [node]
        while stack:
            current = stack.pop()
            callback(current)
            if self._should_stop:
                break
            stack.extend(reversed(list(child_nodes(current))))

    def stop_walking(self) -> None:
        """Halt the traversal in progress once the current callback returns."""
        self._should_stop = True
