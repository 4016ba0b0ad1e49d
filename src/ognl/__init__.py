"""OGNL expression lexer and parser."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ognl.ast import Expression
    from ognl.config import ParserOptions

__version__ = "0.1.0"


def parse_expression(
    source: str,
    filename: str = "<expression>",
    options: ParserOptions | None = None,
) -> Expression:
    """Parse OGNL source and return its AST, raising OgnlSyntaxError on any problem."""
    from ognl.parser import parse

    return parse(source, filename, options).raise_for_errors()
