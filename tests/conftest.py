"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from ognl.lexer import tokenize
from ognl.parser import ParseResult, parse
from ognl.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns the ParseResult."""

    def _parse(source: str, filename: str = "test.ognl") -> ParseResult:
        return parse(source, filename)

    return _parse


@pytest.fixture
def parse_ok(parse_source):
    """Return a helper that parses source and asserts it has no diagnostics."""

    def _parse(source: str):
        result = parse_source(source)
        assert result.errors == [], f"Unexpected errors for {source!r}: {result.errors}"
        return result.expression

    return _parse


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def find_tokens(tokens: list[Token], tt: TokenType) -> list[Token]:
    """Return all tokens of the given type."""
    return [t for t in tokens if t.type == tt]
