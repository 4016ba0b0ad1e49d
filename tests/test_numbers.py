"""Test numeric literals: radix, floats, suffixes, range checks."""

import struct
from decimal import Decimal

import pytest

from ognl.lexer import Lexer
from ognl.tokens import TokenType

from .conftest import assert_types


def _single(source):
    lexer = Lexer(source)
    tok = lexer.next_token()
    assert lexer.next_token().type == TokenType.EOF, f"{source!r} produced extra tokens"
    return tok, lexer.errors


class TestIntegers:
    @pytest.mark.parametrize(
        ("source", "value"),
        [
            ("0", 0),
            ("123", 123),
            ("077", 63),
            ("0x1F", 31),
            ("0XfF", 255),
            ("10L", 10),
            ("10l", 10),
            ("5H", 5),
            ("0xFFL", 255),
        ],
    )
    def test_value(self, source, value):
        tok, errors = _single(source)
        assert tok.type == TokenType.INT_LITERAL
        assert tok.literal == value
        assert tok.value == source
        assert errors == []

    def test_int64_max(self):
        tok, _ = _single("9223372036854775807")
        assert tok.type == TokenType.INT_LITERAL

    def test_out_of_range(self):
        tok, errors = _single("9223372036854775808")
        assert tok.type == TokenType.ILLEGAL
        assert "out of range" in errors[0].message

    def test_big_integer_is_unbounded(self):
        tok, errors = _single("99999999999999999999H")
        assert tok.type == TokenType.INT_LITERAL
        assert tok.literal == 99999999999999999999
        assert errors == []

    def test_big_integer_past_str_digit_limit(self):
        tok, errors = _single("9" * 5000 + "H")
        assert tok.type == TokenType.INT_LITERAL
        assert tok.literal == 10**5000 - 1
        assert errors == []

    @pytest.mark.parametrize(
        "source",
        ["9" * 5000, "1" * 20, "0" + "7" * 22, "0x" + "F" * 17],
        ids=["decimal", "twenty-digits", "octal", "hex"],
    )
    def test_long_literal_is_out_of_range(self, source):
        tok, errors = _single(source)
        assert tok.type == TokenType.ILLEGAL
        assert "out of range" in errors[0].message

    def test_leading_zeros_do_not_count(self):
        tok, errors = _single("0" * 30 + "7")
        assert tok.literal == 7
        assert errors == []

    def test_bad_octal_digit(self):
        tok, errors = _single("08")
        assert tok.type == TokenType.ILLEGAL
        assert "octal" in errors[0].message

    def test_hex_without_digits(self):
        lexer = Lexer("0x")
        tok = lexer.next_token()
        assert tok.type == TokenType.ILLEGAL
        assert "no digits" in lexer.errors[0].message


class TestFloats:
    @pytest.mark.parametrize(
        ("source", "value"),
        [
            ("1.5", 1.5),
            (".5", 0.5),
            ("5.", 5.0),
            ("1e10", 1e10),
            ("2.5E+3", 2500.0),
            ("2d", 2.0),
            ("2D", 2.0),
            ("1.0d", 1.0),
        ],
    )
    def test_value(self, source, value):
        tok, errors = _single(source)
        assert tok.type == TokenType.FLT_LITERAL
        assert tok.literal == value
        assert errors == []

    def test_float_suffix_rounds_to_single_precision(self):
        tok, _ = _single("0.1f")
        assert tok.type == TokenType.FLT_LITERAL
        assert tok.literal == struct.unpack("f", struct.pack("f", 0.1))[0]
        assert tok.literal != 0.1

    def test_integer_with_float_suffix(self):
        tok, _ = _single("2f")
        assert tok.type == TokenType.FLT_LITERAL
        assert tok.literal == 2.0

    def test_big_decimal(self):
        tok, _ = _single("1.50B")
        assert tok.type == TokenType.FLT_LITERAL
        assert tok.literal == Decimal("1.50")
        assert isinstance(tok.literal, Decimal)

    def test_integer_suffix_on_float(self):
        tok, errors = _single("1.5L")
        assert tok.type == TokenType.ILLEGAL
        assert "suffix" in errors[0].message

    @pytest.mark.parametrize(
        "source", ["1e999", "1e300f", "9" * 400 + ".0"], ids=["double", "float", "long-mantissa"]
    )
    def test_overflow_is_out_of_range(self, source):
        tok, errors = _single(source)
        assert tok.type == TokenType.ILLEGAL
        assert errors[0].message == f"floating-point literal '{source}' out of range"

    def test_underflow_rounds_to_zero(self):
        tok, errors = _single("1e-400")
        assert tok.literal == 0.0
        assert errors == []

    def test_big_decimal_has_no_range(self):
        tok, _ = _single("1e999B")
        assert tok.literal == Decimal("1e999")


class TestNumberBoundaries:
    def test_method_on_integer(self, lex):
        tokens = lex("5.toString()")
        assert_types(
            tokens,
            [
                TokenType.INT_LITERAL,
                TokenType.DOT,
                TokenType.IDENT,
                TokenType.LPAREN,
                TokenType.RPAREN,
            ],
        )

    def test_property_starting_with_suffix_letter(self, lex):
        tokens = lex("1.foo")
        assert_types(tokens, [TokenType.INT_LITERAL, TokenType.DOT, TokenType.IDENT])
        assert tokens[2].value == "foo"

    def test_dangling_exponent(self, lex):
        tokens = lex("1e")
        assert_types(tokens, [TokenType.INT_LITERAL, TokenType.IDENT])

    def test_float_followed_by_operator(self, lex):
        tokens = lex("1.+2")
        assert_types(tokens, [TokenType.FLT_LITERAL, TokenType.PLUS, TokenType.INT_LITERAL])

    def test_negative_is_unary(self, lex):
        tokens = lex("-3")
        assert_types(tokens, [TokenType.MINUS, TokenType.INT_LITERAL])
