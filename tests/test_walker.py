#!/usr/bin/env python3
"""
Tests for the Syntax Tree Walker
================================

Tests traversal order, early stopping, pre-built trees and pluggable parsers.
"""

import pytest
from ts_detective import TypeScriptParser, Walker
from ts_detective.walker import child_nodes


def _node(node_type, **fields):
    node = {"type": node_type}
    node.update(fields)
    return node


TREE = _node(
    "Program",
    body=[
        _node("A", children=[_node("A1"), _node("A2", children=[_node("A2a")])]),
        _node("B", left=_node("B1"), right=_node("B2")),
    ],
)


class StubParser:
    """Parser stand-in that returns a fixed tree."""

    def __init__(self, tree):
        self.tree = tree
        self.calls = []

    def parse(self, src):
        self.calls.append(src)
        return self.tree


class TestTraverse:
    """Tests for Walker.traverse."""

    def test_visits_in_document_order(self):
        """Parents come before children, siblings in field order."""
        visited = []

        Walker(parser=StubParser(TREE)).traverse(TREE, lambda node: visited.append(node["type"]))

        assert visited == ["Program", "A", "A1", "A2", "A2a", "B", "B1", "B2"]

    def test_visits_every_node_once(self):
        """Each node is visited exactly once."""
        visited = []

        Walker(parser=StubParser(TREE)).traverse(TREE, visited.append)

        assert len(visited) == 8
        assert len({id(node) for node in visited}) == 8

    def test_skips_metadata_keys(self):
        """loc, range and parent are never treated as children."""
        tree = _node(
            "Program",
            loc={"type": "NotANode"},
            range=[0, 1],
            parent=_node("Parent"),
            body=[_node("Child")],
        )

        assert [node["type"] for node in child_nodes(tree)] == ["Child"]

    def test_ignores_non_node_values(self):
        """Plain values and dicts without a type are skipped."""
        tree = _node("Program", value=4, meta={"name": "x"}, body=[1, "two", _node("Child")])
        visited = []

        Walker(parser=StubParser(tree)).traverse(tree, lambda node: visited.append(node["type"]))

        assert visited == ["Program", "Child"]

    def test_ignores_non_node_root(self):
        """A root without a type is not visited."""
        visited = []

        Walker(parser=StubParser(TREE)).traverse({"body": []}, visited.append)

        assert visited == []

    def test_stop_walking(self):
        """stop_walking ends the traversal after the current node."""
        walker = Walker(parser=StubParser(TREE))
        visited = []

        def visit(node):
            visited.append(node["type"])
            if node["type"] == "A2":
                walker.stop_walking()

        walker.traverse(TREE, visit)

        assert visited == ["Program", "A", "A1", "A2"]

    def test_walker_can_be_reused_after_stopping(self):
        """A new traversal starts fresh after stop_walking."""
        walker = Walker(parser=StubParser(TREE))
        walker.traverse(TREE, lambda node: walker.stop_walking())
        visited = []

        walker.traverse(TREE, visited.append)

        assert len(visited) == 8

    def test_handles_deep_trees(self):
        """Deeply nested trees do not hit the recursion limit."""
        tree = _node("Leaf")
        for _ in range(5000):
            tree = _node("Wrapper", inner=tree)
        visited = []

        Walker(parser=StubParser(tree)).traverse(tree, visited.append)

        assert len(visited) == 5001


class TestWalk:
    """Tests for Walker.walk and Walker.parse."""

    def test_walk_parses_source_text(self):
        """Source text goes through the parser."""
        parser = StubParser(TREE)
        visited = []

        ast = Walker(parser=parser).walk("source", visited.append)

        assert parser.calls == ["source"]
        assert ast is TREE
        assert len(visited) == 8

    def test_walk_accepts_a_tree(self):
        """A tree is walked without parsing."""
        parser = StubParser(TREE)

        ast = Walker(parser=parser).walk(TREE, lambda node: None)

        assert parser.calls == []
        assert ast is TREE

    def test_default_parser_is_typescript(self):
        """Without a parser the walker uses TypeScriptParser."""
        walker = Walker()

        assert isinstance(walker.parser, TypeScriptParser)
        assert walker.parser.jsx is False

    def test_parser_options_reach_default_parser(self):
        """Parser options configure the default parser."""
        walker = Walker(jsx=True, loc=False)

        assert walker.parser.jsx is True
        assert walker.parser_options == {"jsx": True, "loc": False}
        assert "loc" not in walker.parse("let a = 1;")

    def test_walks_real_source(self):
        """Parsed TypeScript is walked from the Program node down."""
        types = []

        Walker().walk('import a from "a";', lambda node: types.append(node["type"]))

        assert types[:2] == ["Program", "ImportDeclaration"]
        assert "ImportDefaultSpecifier" in types
        assert "Literal" in types

    def test_parse_errors_propagate(self):
        """The walker does not swallow parser errors."""
        with pytest.raises(SyntaxError):
            Walker().walk("const = ;", lambda node: None)
