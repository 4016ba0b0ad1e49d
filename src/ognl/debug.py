"""Token and AST dumps to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from ognl.ast import (
    UNARY_SYMBOLS,
    ArrayConstructorExpression,
    BinaryExpression,
    ConstructorExpression,
    DynamicSubscriptExpression,
    InstanceofExpression,
    Literal,
    MapExpression,
    MethodCallExpression,
    Node,
    PropertyExpression,
    SelectionExpression,
    StaticFieldExpression,
    StaticMethodExpression,
    UnaryExpression,
    VariableExpression,
)
from ognl.lexer import Lexer


def dump_tokens(source: str, *, file: TextIO = sys.stderr) -> None:
    """Print every token of *source*, EOF included, one per line."""
    for tok in Lexer(source):
        file.write(f"{tok}\n")


def dump_ast(node: Node, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable AST tree to *file*."""
    _dump_node(node, 0, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(root: Node, depth: int, f: TextIO) -> None:
    # explicit stack: long operator chains are deeper than the recursion limit
    stack = [(root, depth)]
    while stack:
        node, depth = stack.pop()
        detail = _detail(node)
        if detail:
            f.write(f"{_indent(depth)}{node.node_type} {detail}\n")
        else:
            f.write(f"{_indent(depth)}{node.node_type}\n")
        stack.extend((child, depth + 1) for child in reversed(node.children))


def _detail(node: Node) -> str:
    if isinstance(node, Literal):
        return f"{node.kind.name} {node}"
    if isinstance(node, (PropertyExpression, MethodCallExpression)):
        return node.name
    if isinstance(node, VariableExpression):
        return f"#{node.name}"
    if isinstance(node, BinaryExpression):
        return node.symbol
    if isinstance(node, UnaryExpression):
        return UNARY_SYMBOLS[node.operator]
    if isinstance(node, InstanceofExpression):
        return node.target_type
    if isinstance(node, StaticMethodExpression):
        return f"@{node.class_name}@{node.method}"
    if isinstance(node, StaticFieldExpression):
        return str(node)
    if isinstance(node, ConstructorExpression):
        return node.class_name
    if isinstance(node, ArrayConstructorExpression):
        return f"{node.class_name}[]"
    if isinstance(node, MapExpression):
        return node.class_name or ""
    if isinstance(node, SelectionExpression):
        return node.mode.value
    if isinstance(node, DynamicSubscriptExpression):
        return str(node)
    return ""
