"""OGNL lexer: converts source text into a lazy token stream."""

from __future__ import annotations

import logging
import math
import struct
from collections.abc import Callable, Iterator
from decimal import Decimal
from typing import Any

from ognl.errors import LexError
from ognl.tokens import (
    WHITESPACE_CHARS,
    DynamicSubscript,
    Position,
    Token,
    TokenType,
    is_digit,
    is_hex_digit,
    is_ident_char,
    is_ident_start,
    is_octal_digit,
    lookup_ident,
)

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Significant digits of the largest int64 in each radix.
_INT64_DIGITS = {8: 21, 10: 19, 16: 16}

# Longest operators first so ">>>" wins over ">>" and ">".
_OPERATORS: tuple[tuple[str, TokenType], ...] = (
    (">>>", TokenType.USHR),
    (">>", TokenType.SHR),
    (">=", TokenType.GT_EQ),
    ("<<", TokenType.SHL),
    ("<=", TokenType.LT_EQ),
    ("==", TokenType.EQ),
    ("!=", TokenType.NOT_EQ),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
    ("=", TokenType.ASSIGN),
    (",", TokenType.COMMA),
    (";", TokenType.SEMICOLON),
    ("?", TokenType.QUESTION),
    (":", TokenType.COLON),
    (".", TokenType.DOT),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.MULTIPLY),
    ("/", TokenType.DIVIDE),
    ("%", TokenType.MODULO),
    ("^", TokenType.XOR),
    ("~", TokenType.BIT_NOT),
    ("!", TokenType.NOT),
    ("&", TokenType.BIT_AND),
    ("|", TokenType.BIT_OR),
    ("<", TokenType.LT),
    (">", TokenType.GT),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("{", TokenType.LBRACE),
    ("}", TokenType.RBRACE),
    ("]", TokenType.RBRACK),
    ("@", TokenType.AT),
    ("$", TokenType.DOLLAR),
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_FLOAT_SUFFIXES = "fFdDbB"
_INT_SUFFIXES = "lLhH"


class Lexer:
    """Tokenize OGNL source text one token at a time.

    The stream is finite and non-restartable; once the input is exhausted
    every further call to ``next_token`` returns an EOF token.
    """

    def __init__(self, source: str, filename: str = "<expression>") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._col = 1
        self._errors: list[LexError] = []

    @property
    def source(self) -> str:
        return self._source

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def errors(self) -> list[LexError]:
        """Lexical diagnostics recorded so far."""
        return self._errors

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including the first EOF."""
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == TokenType.EOF:
                return

    def next_token(self) -> Token:
        """Scan and return the next token."""
        self._skip_whitespace()
        start = self._current_pos()

        if self._at_end():
            return self._make(TokenType.EOF, "", start)

        ch = self._peek()

        if is_ident_start(ch):
            return self._lex_word(start)
        if is_digit(ch) or (ch == "." and is_digit(self._peek(1))):
            return self._lex_number(start)
        if ch == '"':
            return self._lex_string(start)
        if ch == "'":
            return self._lex_char(start)
        if ch == "`":
            return self._lex_back_char(start)
        if ch == "#":
            return self._lex_hash(start)
        if ch == "[":
            return self._lex_lbrack(start)

        for text, tt in _OPERATORS:
            if self._source.startswith(text, self._pos):
                for _ in text:
                    self._advance()
                return self._make(tt, text, start)

        self._advance()
        return self._illegal(f"unexpected character {ch!r}", start)

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _restore(self, pos: Position) -> None:
        self._pos = pos.offset
        self._line = pos.line
        self._col = pos.column

    def _lexeme(self, start: Position) -> str:
        return self._source[start.offset : self._pos]

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in WHITESPACE_CHARS:
            self._advance()

    def _make(self, tt: TokenType, value: str, start: Position, literal: Any = None) -> Token:
        return Token(tt, value, literal, start.line, start.column, start.offset)

    def _error(self, message: str, pos: Position) -> None:
        logger.debug("%s:%d:%d: %s", self._filename, pos.line, pos.column, message)
        self._errors.append(LexError(message, pos))

    def _illegal(self, message: str, start: Position) -> Token:
        self._error(message, start)
        return self._make(TokenType.ILLEGAL, self._lexeme(start), start)

    # ------------------------------------------------------------------
    # Identifiers and keywords
    # ------------------------------------------------------------------

    def _read_word(self) -> str:
        chars = []
        while not self._at_end() and is_ident_char(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _lex_word(self, start: Position) -> Token:
        word = self._read_word()
        tt = lookup_ident(word)
        if tt == TokenType.NOT and self._fuse_not_in():
            return self._make(TokenType.NOT_IN, "not in", start)
        return self._make(tt, word, start)

    def _fuse_not_in(self) -> bool:
        """Consume a following ``in`` word after ``not``; undo on mismatch."""
        saved = self._current_pos()
        self._skip_whitespace()
        if is_ident_start(self._peek()) and self._read_word() == "in":
            return True
        self._restore(saved)
        return False

    def _lex_hash(self, start: Position) -> Token:
        self._advance()  # consume #
        if not is_ident_start(self._peek()):
            return self._make(TokenType.HASH, "#", start)
        word = self._read_word()
        if word == "this":
            return self._make(TokenType.THIS, "#this", start)
        if word == "root":
            return self._make(TokenType.ROOT, "#root", start)
        return self._make(TokenType.HASH, word, start)

    def _lex_lbrack(self, start: Position) -> Token:
        inner = self._peek(1)
        if inner != "" and inner in "^|$*" and self._peek(2) == "]":
            for _ in range(3):
                self._advance()
            return self._make(
                TokenType.DYNAMIC_SUBSCRIPT,
                self._lexeme(start),
                start,
                DynamicSubscript(inner),
            )
        self._advance()
        return self._make(TokenType.LBRACK, "[", start)

    # ------------------------------------------------------------------
    # Numbers
    # ------------------------------------------------------------------

    def _read_digits(self, pred: Callable[[str], bool]) -> str:
        chars = []
        while not self._at_end() and pred(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _lex_number(self, start: Position) -> Token:
        """Scan a number; a float suffix makes FLT_LITERAL even without a dot (``2f``)."""
        if self._peek() == "0" and self._peek(1) in ("x", "X"):
            return self._lex_hex(start)

        int_part = self._read_digits(is_digit)
        is_float = False

        if self._peek() == ".":
            nxt = self._peek(1)
            # "5.toString" is a chain and "1..2" is not a float
            if (
                is_digit(nxt)
                or (nxt != "" and nxt in _FLOAT_SUFFIXES and not is_ident_char(self._peek(2)))
                or (not is_ident_start(nxt) and nxt != ".")
            ):
                is_float = True
                self._advance()
                self._read_digits(is_digit)

        if self._peek() in ("e", "E"):
            sign = self._peek(1)
            if is_digit(sign) or (sign in ("+", "-") and is_digit(self._peek(2))):
                is_float = True
                self._advance()
                if self._peek() in ("+", "-"):
                    self._advance()
                self._read_digits(is_digit)

        body = self._lexeme(start)
        suffix = ""
        if self._peek() != "" and self._peek() in _FLOAT_SUFFIXES + _INT_SUFFIXES:
            suffix = self._advance()

        if suffix and suffix in _INT_SUFFIXES and is_float:
            return self._illegal(f"integer suffix '{suffix}' on floating-point literal", start)

        if is_float or (suffix and suffix in _FLOAT_SUFFIXES):
            value = _float_value(body, suffix)
            if value is None:
                return self._illegal(
                    f"floating-point literal '{self._lexeme(start)}' out of range", start
                )
            return self._make(TokenType.FLT_LITERAL, self._lexeme(start), start, value)

        if len(int_part) > 1 and int_part.startswith("0"):
            if not all(is_octal_digit(c) for c in int_part):
                return self._illegal(f"invalid digit in octal literal '{int_part}'", start)
            return self._int_token(int_part, 8, suffix, start)

        return self._int_token(int_part, 10, suffix, start)

    def _lex_hex(self, start: Position) -> Token:
        self._advance()  # 0
        self._advance()  # x
        digits = self._read_digits(is_hex_digit)
        suffix = ""
        if self._peek() != "" and self._peek() in _INT_SUFFIXES:
            suffix = self._advance()
        if not digits:
            return self._illegal("hexadecimal literal has no digits", start)
        return self._int_token(digits, 16, suffix, start)

    def _int_token(self, digits: str, base: int, suffix: str, start: Position) -> Token:
        # h/H marks a BigInteger, which has no fixed width
        big = suffix in ("h", "H")
        if not big and len(digits.lstrip("0")) > _INT64_DIGITS[base]:
            return self._illegal(f"integer literal '{self._lexeme(start)}' out of range", start)
        value = _int_value(digits, base)
        if not big and not INT64_MIN <= value <= INT64_MAX:
            return self._illegal(f"integer literal '{self._lexeme(start)}' out of range", start)
        return self._make(TokenType.INT_LITERAL, self._lexeme(start), start, value)

    # ------------------------------------------------------------------
    # Strings and characters
    # ------------------------------------------------------------------

    def _read_quoted(self, quote: str, start: Position) -> tuple[str, bool]:
        """Decode a quoted body up to the closing *quote*.

        Returns the decoded text and whether it was well formed. The cursor
        ends after the closing quote, or at end of input.
        """
        self._advance()  # opening quote
        chars: list[str] = []
        ok = True
        while True:
            if self._at_end():
                kind = "string" if quote == '"' else "character"
                self._error(f"unterminated {kind} literal", start)
                return "".join(chars), False
            ch = self._peek()
            if ch == quote:
                self._advance()
                return "".join(chars), ok
            if ch == "\\":
                decoded = self._read_escape()
                if decoded is None:
                    ok = False
                else:
                    chars.append(decoded)
                continue
            chars.append(self._advance())

    def _read_escape(self) -> str | None:
        esc_start = self._current_pos()
        self._advance()  # backslash
        if self._at_end():
            # reported as unterminated by the caller
            return None
        ch = self._peek()

        if ch in _SIMPLE_ESCAPES:
            self._advance()
            return _SIMPLE_ESCAPES[ch]

        if is_octal_digit(ch):
            digits = self._advance()
            # at most three digits, and never above \377
            limit = 3 if ch in "0123" else 2
            while len(digits) < limit and is_octal_digit(self._peek()):
                digits += self._advance()
            return chr(int(digits, 8))

        if ch in ("u", "x"):
            self._advance()
            count = 4 if ch == "u" else 2
            digits = ""
            while len(digits) < count and is_hex_digit(self._peek()):
                digits += self._advance()
            if len(digits) < count:
                self._error(
                    f"incomplete escape '\\{ch}{digits}': expected {count} hex digits",
                    esc_start,
                )
                return None
            return chr(int(digits, 16))

        self._advance()
        self._error(f"invalid escape sequence '\\{ch}'", esc_start)
        return None

    def _lex_string(self, start: Position) -> Token:
        text, ok = self._read_quoted('"', start)
        lexeme = self._lexeme(start)
        if not ok:
            return self._make(TokenType.ILLEGAL, lexeme, start)
        return self._make(TokenType.STR_LITERAL, lexeme, start, text)

    def _lex_char(self, start: Position) -> Token:
        text, ok = self._read_quoted("'", start)
        lexeme = self._lexeme(start)
        if not ok:
            return self._make(TokenType.ILLEGAL, lexeme, start)
        # single-quoted text longer than one character is an OGNL string
        if len(text) == 1:
            return self._make(TokenType.CHAR_LITERAL, lexeme, start, ord(text))
        return self._make(TokenType.STR_LITERAL, lexeme, start, text)

    def _lex_back_char(self, start: Position) -> Token:
        self._advance()  # opening `
        if self._at_end():
            return self._illegal("unterminated back-quoted character", start)
        ch = self._advance()
        if self._peek() != "`":
            return self._illegal("back-quoted character must hold exactly one character", start)
        self._advance()
        return self._make(TokenType.BACK_CHAR_LITERAL, self._lexeme(start), start, ord(ch))


def _int_value(digits: str, base: int) -> int:
    if base == 10:
        # Decimal is not bound by the interpreter's int/str digit limit
        return int(Decimal(digits))
    return int(digits, base)


def _float_value(body: str, suffix: str) -> float | Decimal | None:
    """Value of a floating literal, or None if it overflows its width."""
    if suffix in ("b", "B"):
        return Decimal(body)
    value = float(body)
    if suffix in ("f", "F"):
        # round to single precision
        try:
            value = struct.unpack("f", struct.pack("f", value))[0]
        except OverflowError:
            return None
    if math.isinf(value):
        return None
    return value


def tokenize(source: str, filename: str = "<expression>") -> list[Token]:
    """Convenience function: tokenize source text and return the token list."""
    return list(Lexer(source, filename))
