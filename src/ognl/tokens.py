"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class TokenType(Enum):
    # Structural
    ILLEGAL = auto()
    EOF = auto()
    WHITESPACE = auto()

    # Identifiers and literals
    IDENT = auto()  # foo, _bar
    INT_LITERAL = auto()  # 123, 0x1F, 077, 10L, 5H
    FLT_LITERAL = auto()  # 1.5, 1e10, .5, 2f, 3.0B
    CHAR_LITERAL = auto()  # 'a', '\n'
    STR_LITERAL = auto()  # "hello", 'hello'
    BACK_CHAR_LITERAL = auto()  # `a`

    # Punctuation
    ASSIGN = auto()  # =
    COMMA = auto()  # ,
    SEMICOLON = auto()  # ;
    QUESTION = auto()  # ?
    COLON = auto()  # :
    DOT = auto()  # .

    # Logical
    OR = auto()  # || or
    AND = auto()  # && and
    NOT = auto()  # ! not

    # Bitwise
    BIT_OR = auto()  # | bor
    XOR = auto()  # ^ xor
    BIT_AND = auto()  # & band
    BIT_NOT = auto()  # ~

    # Comparison
    EQ = auto()  # == eq
    NOT_EQ = auto()  # != neq
    LT = auto()  # < lt
    GT = auto()  # > gt
    LT_EQ = auto()  # <= lte
    GT_EQ = auto()  # >= gte
    IN = auto()  # in
    NOT_IN = auto()  # not in
    INSTANCEOF = auto()  # instanceof

    # Shifts
    SHL = auto()  # << shl
    SHR = auto()  # >> shr
    USHR = auto()  # >>> ushr

    # Arithmetic
    PLUS = auto()  # +
    MINUS = auto()  # -
    MULTIPLY = auto()  # *
    DIVIDE = auto()  # /
    MODULO = auto()  # %

    # Brackets
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LBRACK = auto()  # [
    RBRACK = auto()  # ]

    # Keyword values
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    NEW = auto()

    # Navigation
    THIS = auto()  # #this
    ROOT = auto()  # #root
    HASH = auto()  # #name, bare #
    AT = auto()  # @
    DOLLAR = auto()  # $
    DYNAMIC_SUBSCRIPT = auto()  # [^] [|] [$] [*]


class DynamicSubscript(Enum):
    """Positional bracket selectors that take no index expression."""

    FIRST = "^"
    MID = "|"
    LAST = "$"
    ALL = "*"

    @property
    def symbol(self) -> str:
        return self.value


KEYWORDS: dict[str, TokenType] = {
    "and": TokenType.AND,
    "or": TokenType.OR,
    "bor": TokenType.BIT_OR,
    "xor": TokenType.XOR,
    "band": TokenType.BIT_AND,
    "eq": TokenType.EQ,
    "neq": TokenType.NOT_EQ,
    "lt": TokenType.LT,
    "gt": TokenType.GT,
    "lte": TokenType.LT_EQ,
    "gte": TokenType.GT_EQ,
    "in": TokenType.IN,
    # "not in" is fused by the lexer
    "not": TokenType.NOT,
    "shl": TokenType.SHL,
    "shr": TokenType.SHR,
    "ushr": TokenType.USHR,
    "instanceof": TokenType.INSTANCEOF,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
    "new": TokenType.NEW,
}


def lookup_ident(word: str) -> TokenType:
    """Return the keyword category for *word*, or IDENT."""
    return KEYWORDS.get(word, TokenType.IDENT)


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token.

    ``value`` is the source lexeme, ``literal`` the decoded value of literal
    tokens (None for everything else).
    """

    type: TokenType
    value: str
    literal: Any = None
    line: int = 1
    column: int = 1
    position: int = 0

    @property
    def pos(self) -> Position:
        return Position(self.line, self.column, self.position)

    def __str__(self) -> str:
        return (
            f"Token{{Type: {self.type.name}, Value: {self.value}, "
            f"Line: {self.line}, Column: {self.column}}}"
        )


WHITESPACE_CHARS = frozenset(" \t\n\r")


def is_ident_start(ch: str) -> bool:
    """Return True if ch can begin an identifier."""
    return ch == "_" or ch.isalpha()


def is_ident_char(ch: str) -> bool:
    """Return True if ch can continue an identifier."""
    return ch == "_" or ch.isalpha() or is_digit(ch)


def is_digit(ch: str) -> bool:
    return ch != "" and ch in "0123456789"


def is_octal_digit(ch: str) -> bool:
    return ch != "" and ch in "01234567"


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch != "" and ch in "0123456789abcdefABCDEF"
