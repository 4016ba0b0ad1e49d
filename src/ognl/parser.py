"""OGNL parser: converts a token stream into an AST.

The driver keeps a two-token window (``current`` and ``peek``) over the
lexer. Productions start on their first token and leave ``current`` on the
token that follows them. A production that fails records a diagnostic and
returns None; parsing never raises for bad input.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ognl.ast import (
    ArrayConstructorExpression,
    AssignmentExpression,
    BinaryExpression,
    ChainExpression,
    ConditionalExpression,
    ConstructorExpression,
    ContextExpression,
    DynamicSubscriptExpression,
    EvalExpression,
    Expression,
    IndexExpression,
    InstanceofExpression,
    KeyValueExpression,
    LambdaExpression,
    ListExpression,
    Literal,
    LiteralKind,
    MapExpression,
    MethodCallExpression,
    ProjectionExpression,
    PropertyExpression,
    RootExpression,
    SelectionExpression,
    SelectMode,
    SequenceExpression,
    StaticFieldExpression,
    StaticMethodExpression,
    ThisExpression,
    UnaryExpression,
    VariableExpression,
)
from ognl.config import ParserOptions
from ognl.errors import Diagnostic, OgnlSyntaxError, ParseError
from ognl.lexer import Lexer
from ognl.tokens import Token, TokenType

logger = logging.getLogger(__name__)

# Operator precedence for the binary climb, higher binds tighter.
BINARY_PRECEDENCE: dict[TokenType, int] = {
    TokenType.OR: 1,
    TokenType.AND: 2,
    TokenType.BIT_OR: 3,
    TokenType.XOR: 4,
    TokenType.BIT_AND: 5,
    TokenType.EQ: 6,
    TokenType.NOT_EQ: 6,
    TokenType.LT: 7,
    TokenType.GT: 7,
    TokenType.LT_EQ: 7,
    TokenType.GT_EQ: 7,
    TokenType.IN: 7,
    TokenType.NOT_IN: 7,
    TokenType.SHL: 8,
    TokenType.SHR: 8,
    TokenType.USHR: 8,
    TokenType.PLUS: 9,
    TokenType.MINUS: 9,
    TokenType.MULTIPLY: 10,
    TokenType.DIVIDE: 10,
    TokenType.MODULO: 10,
}

INSTANCEOF_PRECEDENCE = 7

MATH_CLASS = "java.lang.Math"

_UNARY_OPERATORS = frozenset({TokenType.PLUS, TokenType.MINUS, TokenType.NOT, TokenType.BIT_NOT})

_NAVIGATION = frozenset(
    {TokenType.DOT, TokenType.LBRACK, TokenType.DYNAMIC_SUBSCRIPT, TokenType.LPAREN}
)

_SYNC_TOKENS = frozenset(
    {
        TokenType.COMMA,
        TokenType.RPAREN,
        TokenType.RBRACK,
        TokenType.RBRACE,
        TokenType.SEMICOLON,
        TokenType.EOF,
    }
)

_CLOSERS = {
    TokenType.RPAREN: "')'",
    TokenType.RBRACK: "']'",
    TokenType.RBRACE: "'}'",
}

_SELECT_MODES = {
    TokenType.QUESTION: SelectMode.ALL,
    TokenType.XOR: SelectMode.FIRST,
    TokenType.DOLLAR: SelectMode.LAST,
}

_INT_KINDS = {
    "l": LiteralKind.LONG,
    "L": LiteralKind.LONG,
    "h": LiteralKind.BIG_INTEGER,
    "H": LiteralKind.BIG_INTEGER,
}

_FLOAT_KINDS = {
    "f": LiteralKind.FLOAT,
    "F": LiteralKind.FLOAT,
    "b": LiteralKind.BIG_DECIMAL,
    "B": LiteralKind.BIG_DECIMAL,
}


class Parser:
    """Recursive descent parser for OGNL token streams."""

    def __init__(self, lexer: Lexer, options: ParserOptions | None = None) -> None:
        self._lexer = lexer
        self._options = options if options is not None else ParserOptions()
        self._diagnostics: list[ParseError] = []
        self._position = 0
        self._iterations = 0
        self._depth = 0
        self._aborted = False

        eof = Token(TokenType.EOF, "")
        self._current = eof
        self._peek = eof
        self.next_token()
        self.next_token()

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def errors(self) -> list[str]:
        """Syntax error messages in the order they were recorded."""
        return [d.message for d in self._diagnostics]

    @property
    def diagnostics(self) -> list[ParseError]:
        return self._diagnostics

    @property
    def current_token(self) -> Token:
        return self._current

    @property
    def peek_token(self) -> Token:
        return self._peek

    @property
    def position(self) -> int:
        return self._position

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def aborted(self) -> bool:
        return self._aborted

    # ------------------------------------------------------------------
    # Driver primitives
    # ------------------------------------------------------------------

    def next_token(self) -> None:
        """Shift the window one token forward."""
        if self._aborted:
            return
        self._current = self._peek
        self._peek = self._lexer.next_token()
        self._position += 1

    def current_token_is(self, tt: TokenType) -> bool:
        return self._current.type == tt

    def peek_token_is(self, tt: TokenType) -> bool:
        return self._peek.type == tt

    def expect_peek(self, tt: TokenType) -> bool:
        """Advance if the peek token has type *tt*, otherwise record an error."""
        if self.peek_token_is(tt):
            self.next_token()
            return True
        self.peek_error(tt)
        return False

    def peek_error(self, tt: TokenType) -> None:
        self._record(
            f"expected next token to be {tt.name}, got {self._peek.type.name} instead",
            self._peek,
        )

    def current_error(self, message: str) -> None:
        self._record(f"at token {self._current.type.name}: {message}", self._current)

    def check_iteration_limit(self) -> bool:
        """Count one driver step; False once the iteration limit is spent.

        Exceeding the limit is fatal: the window is pinned to EOF so every
        loop terminates, and no further diagnostics are recorded.
        """
        if self._aborted:
            return False
        self._iterations += 1
        limit = self._options.max_iterations
        if self._iterations <= limit:
            return True

        self.current_error(f"parse iteration limit exceeded ({limit}), possible infinite loop")
        logger.warning(
            "%s: parse aborted after %d iterations", self._lexer.filename, self._iterations - 1
        )
        self._aborted = True
        tok = self._current
        eof = Token(TokenType.EOF, "", None, tok.line, tok.column, tok.position)
        self._current = eof
        self._peek = eof
        return False

    def skip_whitespace(self) -> None:
        while self._current.type == TokenType.WHITESPACE and not self._aborted:
            self.next_token()

    def _record(self, message: str, tok: Token) -> None:
        if self._aborted:
            return
        logger.debug("%s:%d:%d: %s", self._lexer.filename, tok.line, tok.column, message)
        self._diagnostics.append(ParseError(message, tok.pos))

    def _synchronize(self) -> None:
        """Skip to the next token that can end a sub-expression."""
        while self._current.type not in _SYNC_TOKENS:
            if not self.check_iteration_limit():
                return
            self.next_token()

    def _nested(self, production: Callable[[], Expression | None]) -> Expression | None:
        """Run *production* one bracket level deeper."""
        if self._depth >= self._options.max_depth:
            self.current_error(f"expression nesting too deep ({self._options.max_depth})")
            return None
        self._depth += 1
        try:
            return production()
        finally:
            self._depth -= 1

    def _expect_closer(self, closer: TokenType, what: str) -> bool:
        """Consume *closer* from current, or record an error naming *what*."""
        if self.current_token_is(closer):
            self.next_token()
            return True
        self.current_error(f"expected {_CLOSERS[closer]} after {what}, got {self._current.type.name}")
        return False

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_top_level_expression(self) -> Expression | None:
        """Parse a whole expression and require EOF after it."""
        self.skip_whitespace()
        expr = self._parse_expression()
        if expr is not None and not self.current_token_is(TokenType.EOF):
            self.current_error(
                f"expected EOF at end of expression, got {self._current.type.name}"
            )
        return expr

    def _parse_expression(self) -> Expression | None:
        first = self._parse_element()
        if not self.current_token_is(TokenType.COMMA):
            return first

        elements = [first]
        while self.current_token_is(TokenType.COMMA):
            if not self.check_iteration_limit():
                return None
            self.next_token()
            elements.append(self._parse_element())

        if any(e is None for e in elements):
            return None
        return SequenceExpression(tuple(elements))

    def _parse_element(self) -> Expression | None:
        """One sequence element; on failure skip ahead so later elements still parse."""
        expr = self._parse_assignment()
        if expr is None:
            self._synchronize()
        return expr

    def _parse_assignment(self) -> Expression | None:
        targets: list[Expression] = []
        expr = self._parse_conditional()
        while expr is not None and self.current_token_is(TokenType.ASSIGN):
            if not self.check_iteration_limit():
                return None
            self.next_token()
            targets.append(expr)
            expr = self._parse_conditional()

        if expr is None:
            return None
        # right-associative: a = b = c is a = (b = c)
        for target in reversed(targets):
            expr = AssignmentExpression(target, expr)
        return expr

    def _parse_conditional(self) -> Expression | None:
        test = self._parse_binary(1)
        if test is None:
            return None

        branches: list[tuple[Expression, Expression]] = []
        while self.current_token_is(TokenType.QUESTION):
            if not self.check_iteration_limit():
                return None
            self.next_token()
            consequent = self._nested(self._parse_conditional)
            if consequent is None:
                return None
            if not self.current_token_is(TokenType.COLON):
                self.current_error(
                    f"expected ':' in conditional expression, got {self._current.type.name}"
                )
                return None
            self.next_token()
            branches.append((test, consequent))
            test = self._parse_binary(1)
            if test is None:
                return None

        expr = test
        for branch_test, consequent in reversed(branches):
            expr = ConditionalExpression(branch_test, consequent, expr)
        return expr

    def _parse_binary(self, min_prec: int) -> Expression | None:
        """Precedence climb over the binary operator levels."""
        left = self._parse_unary()
        if left is None:
            return None

        while True:
            tt = self._current.type
            if tt == TokenType.INSTANCEOF and INSTANCEOF_PRECEDENCE >= min_prec:
                if not self.check_iteration_limit():
                    return None
                self.next_token()
                class_name = self._parse_class_name()
                if class_name is None:
                    return None
                self.next_token()
                left = InstanceofExpression(left, class_name)
                continue

            prec = BINARY_PRECEDENCE.get(tt)
            if prec is None or prec < min_prec:
                return left
            if not self.check_iteration_limit():
                return None
            self.next_token()
            right = self._parse_binary(prec + 1)
            if right is None:
                return None
            left = BinaryExpression(tt, left, right)

    def _parse_unary(self) -> Expression | None:
        operators: list[TokenType] = []
        while self._current.type in _UNARY_OPERATORS:
            if not self.check_iteration_limit():
                return None
            # prefix + is a no-op
            if self._current.type != TokenType.PLUS:
                operators.append(self._current.type)
            self.next_token()

        operand = self._parse_chain()
        if operand is None:
            return None
        for op in reversed(operators):
            operand = UnaryExpression(op, operand)
        return operand

    # ------------------------------------------------------------------
    # Navigation chains
    # ------------------------------------------------------------------

    def _parse_chain(self) -> Expression | None:
        head = self._parse_primary()
        if head is None:
            return None

        links: list[Expression] = [head]
        while self._current.type in _NAVIGATION:
            if not self.check_iteration_limit():
                return None
            tt = self._current.type

            if tt == TokenType.DOT:
                link = self._parse_dot_link()
                if link is None:
                    return None
                links.append(link)
            elif tt == TokenType.LBRACK:
                index = self._parse_index()
                if index is None:
                    return None
                links.append(index)
            elif tt == TokenType.DYNAMIC_SUBSCRIPT:
                links.append(DynamicSubscriptExpression(self._current.literal))
                self.next_token()
            else:
                # (arg) evaluates everything to its left with the argument
                self.next_token()
                argument = self._nested(self._parse_assignment)
                if argument is None or not self._expect_closer(TokenType.RPAREN, "argument"):
                    return None
                links = [EvalExpression(_collapse(links), argument)]

        return _collapse(links)

    def _parse_dot_link(self) -> Expression | None:
        """Parse the link after a DOT in current."""
        nxt = self._peek.type

        if nxt == TokenType.IDENT:
            self.next_token()
            name = self._current.value
            self.next_token()
            if self.current_token_is(TokenType.LPAREN):
                args = self._parse_items(TokenType.RPAREN, self._parse_assignment, "arguments")
                if args is None:
                    return None
                return MethodCallExpression(name, args)
            return PropertyExpression(name)

        if nxt == TokenType.LPAREN:
            self.next_token()
            self.next_token()
            expr = self._nested(self._parse_expression)
            if expr is None or not self._expect_closer(TokenType.RPAREN, "expression"):
                return None
            return expr

        if nxt == TokenType.LBRACE:
            self.next_token()
            return self._parse_projection()

        if nxt == TokenType.AT:
            self.next_token()
            return self._parse_static_reference()

        self.current_error(
            f"expected property, method, '(', '{{' or '@' after '.', got {nxt.name}"
        )
        return None

    def _parse_index(self) -> IndexExpression | None:
        self.next_token()  # consume [
        index = self._nested(self._parse_expression)
        if index is None or not self._expect_closer(TokenType.RBRACK, "index expression"):
            return None
        return IndexExpression(index)

    def _parse_projection(self) -> Expression | None:
        """Projection {expr} or selection {? expr}; LBRACE in current."""
        self.next_token()
        mode = _SELECT_MODES.get(self._current.type)
        if mode is not None:
            self.next_token()

        expr = self._nested(self._parse_assignment)
        what = "projection" if mode is None else "selection"
        if expr is None or not self._expect_closer(TokenType.RBRACE, f"{what} expression"):
            return None
        if mode is None:
            return ProjectionExpression(expr)
        return SelectionExpression(expr, mode)

    # ------------------------------------------------------------------
    # Primary expressions
    # ------------------------------------------------------------------

    def _parse_primary(self) -> Expression | None:
        if not self.check_iteration_limit():
            return None
        tok = self._current
        tt = tok.type

        if tt == TokenType.IDENT:
            self.next_token()
            if self.current_token_is(TokenType.LPAREN):
                args = self._parse_items(TokenType.RPAREN, self._parse_assignment, "arguments")
                if args is None:
                    return None
                return MethodCallExpression(tok.value, args)
            return PropertyExpression(tok.value)

        if tt in (
            TokenType.INT_LITERAL,
            TokenType.FLT_LITERAL,
            TokenType.STR_LITERAL,
            TokenType.CHAR_LITERAL,
            TokenType.BACK_CHAR_LITERAL,
        ):
            self.next_token()
            return literal_from_token(tok)

        if tt == TokenType.TRUE or tt == TokenType.FALSE:
            self.next_token()
            return Literal(tt == TokenType.TRUE, LiteralKind.BOOLEAN)
        if tt == TokenType.NULL:
            self.next_token()
            return Literal(None, LiteralKind.NULL)
        if tt == TokenType.THIS:
            self.next_token()
            return ThisExpression()
        if tt == TokenType.ROOT:
            self.next_token()
            return RootExpression()
        if tt == TokenType.DOLLAR:
            self.next_token()
            return ContextExpression()
        if tt == TokenType.HASH:
            return self._parse_hash()

        if tt == TokenType.LPAREN:
            self.next_token()
            expr = self._nested(self._parse_expression)
            if expr is None or not self._expect_closer(TokenType.RPAREN, "expression"):
                return None
            return expr
        if tt == TokenType.LBRACK:
            return self._parse_index()
        if tt == TokenType.LBRACE:
            elements = self._parse_items(TokenType.RBRACE, self._parse_assignment, "list elements")
            if elements is None:
                return None
            return ListExpression(elements)

        if tt == TokenType.NEW:
            return self._parse_constructor()
        if tt == TokenType.AT:
            return self._parse_static_reference()
        if tt == TokenType.COLON:
            return self._parse_lambda()

        if tt == TokenType.ILLEGAL:
            self.current_error(f"illegal token {tok.value!r}")
        elif tt == TokenType.EOF:
            self.current_error("unexpected end of expression")
        else:
            self.current_error(f"unexpected token {tok.value!r}")
        return None

    def _parse_items(
        self,
        closer: TokenType,
        item: Callable[[], Expression | None],
        what: str,
    ) -> tuple[Expression, ...] | None:
        """Comma-separated items up to *closer*; the opening bracket is in current."""
        self.next_token()
        if self.current_token_is(closer):
            self.next_token()
            return ()

        items: list[Expression] = []
        ok = True
        while True:
            if not self.check_iteration_limit():
                return None
            node = self._nested(item)
            if node is None:
                ok = False
                self._synchronize()
            else:
                items.append(node)
            if not self.current_token_is(TokenType.COMMA):
                break
            self.next_token()

        if not ok:
            if self.current_token_is(closer):
                self.next_token()
            return None
        if not self._expect_closer(closer, what):
            return None
        return tuple(items)

    def _parse_hash(self) -> Expression | None:
        """#var, #{ map } or #@Class@{ map }; HASH in current."""
        tok = self._current
        if tok.value != "#":
            self.next_token()
            return VariableExpression(tok.value)

        if self.peek_token_is(TokenType.LBRACE):
            self.next_token()
            return self._parse_map(None)
        if self.peek_token_is(TokenType.AT):
            self.next_token()
            self.next_token()
            class_name = self._parse_class_name()
            if class_name is None or not self.expect_peek(TokenType.AT):
                return None
            if not self.expect_peek(TokenType.LBRACE):
                return None
            return self._parse_map(class_name)

        self.current_error("expected variable name, '{' or '@' after '#'")
        return None

    def _parse_map(self, class_name: str | None) -> MapExpression | None:
        entries = self._parse_items(TokenType.RBRACE, self._parse_key_value, "map entries")
        if entries is None:
            return None
        return MapExpression(entries, class_name)

    def _parse_key_value(self) -> KeyValueExpression | None:
        key = self._parse_assignment()
        if key is None:
            return None
        if not self.current_token_is(TokenType.COLON):
            return KeyValueExpression(key, None)
        self.next_token()
        value = self._parse_assignment()
        if value is None:
            return None
        return KeyValueExpression(key, value)

    def _parse_class_name(self) -> str | None:
        """Dotted class name starting at current; current ends on its last part.

        ``$`` separates nested classes: ``java.util.Map$Entry``.
        """
        if not self.current_token_is(TokenType.IDENT):
            self.current_error(f"expected class name, got {self._current.type.name}")
            return None
        parts = [self._current.value]
        while self._peek.type in (TokenType.DOT, TokenType.DOLLAR):
            if not self.check_iteration_limit():
                return None
            separator = self._peek.value
            self.next_token()
            if not self.expect_peek(TokenType.IDENT):
                return None
            parts.append(separator + self._current.value)
        return "".join(parts)

    def _parse_constructor(self) -> Expression | None:
        """new C(args), new T[size] or new T[] { elements }; NEW in current."""
        self.next_token()
        class_name = self._parse_class_name()
        if class_name is None:
            return None

        if self.peek_token_is(TokenType.LPAREN):
            self.next_token()
            args = self._parse_items(TokenType.RPAREN, self._parse_assignment, "arguments")
            if args is None:
                return None
            return ConstructorExpression(class_name, args)

        if self.peek_token_is(TokenType.LBRACK):
            self.next_token()
            self.next_token()
            if self.current_token_is(TokenType.RBRACK):
                if not self.expect_peek(TokenType.LBRACE):
                    return None
                elements = self._parse_items(
                    TokenType.RBRACE, self._parse_assignment, "array elements"
                )
                if elements is None:
                    return None
                return ArrayConstructorExpression(class_name, initializer=ListExpression(elements))

            size = self._nested(self._parse_assignment)
            if size is None or not self._expect_closer(TokenType.RBRACK, "array size"):
                return None
            return ArrayConstructorExpression(class_name, size=size)

        self.next_token()
        self.current_error("expected '(' or '[' after constructor class name")
        return None

    def _parse_static_reference(self) -> Expression | None:
        """@Class@field, @Class@method(args) or @@method(args); AT in current."""
        if self.peek_token_is(TokenType.AT):
            self.next_token()
            if not self.expect_peek(TokenType.IDENT):
                return None
            method = self._current.value
            self.next_token()
            if not self.current_token_is(TokenType.LPAREN):
                self.current_error("'@@' must be followed by a method call")
                return None
            args = self._parse_items(TokenType.RPAREN, self._parse_assignment, "arguments")
            if args is None:
                return None
            return StaticMethodExpression(MATH_CLASS, method, args)

        self.next_token()
        class_name = self._parse_class_name()
        if class_name is None or not self.expect_peek(TokenType.AT):
            return None
        if not self.expect_peek(TokenType.IDENT):
            return None
        member = self._current.value
        self.next_token()

        if self.current_token_is(TokenType.LPAREN):
            args = self._parse_items(TokenType.RPAREN, self._parse_assignment, "arguments")
            if args is None:
                return None
            return StaticMethodExpression(class_name, member, args)
        return StaticFieldExpression(class_name, member)

    def _parse_lambda(self) -> Expression | None:
        """:[ body ]; COLON in current."""
        if not self.expect_peek(TokenType.LBRACK):
            return None
        self.next_token()
        body = self._nested(self._parse_expression)
        if body is None or not self._expect_closer(TokenType.RBRACK, "lambda body"):
            return None
        return LambdaExpression(body)


def _collapse(links: list[Expression]) -> Expression:
    if len(links) == 1:
        return links[0]
    return ChainExpression(tuple(links))


def literal_from_token(tok: Token) -> Literal:
    """Build a Literal node from a literal token, keeping its numeric width."""
    tt = tok.type
    if tt == TokenType.INT_LITERAL:
        return Literal(tok.literal, _INT_KINDS.get(tok.value[-1], LiteralKind.INT))
    if tt == TokenType.FLT_LITERAL:
        return Literal(tok.literal, _FLOAT_KINDS.get(tok.value[-1], LiteralKind.DOUBLE))
    if tt == TokenType.STR_LITERAL:
        return Literal(tok.literal, LiteralKind.STRING)
    if tt == TokenType.CHAR_LITERAL:
        return Literal(tok.literal, LiteralKind.CHAR)
    if tt == TokenType.BACK_CHAR_LITERAL:
        return Literal(tok.literal, LiteralKind.BACK_CHAR)
    raise ValueError(f"not a literal token: {tok}")


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseResult:
    """The outcome of one parse: a possibly partial AST and its diagnostics."""

    source: str
    filename: str
    expression: Expression | None
    diagnostics: tuple[Diagnostic, ...]

    @property
    def errors(self) -> list[str]:
        return [d.message for d in self.diagnostics]

    @property
    def ok(self) -> bool:
        return not self.diagnostics and self.expression is not None

    def raise_for_errors(self) -> Expression:
        """Return the expression, or raise OgnlSyntaxError if parsing failed."""
        if not self.ok or self.expression is None:
            raise OgnlSyntaxError(self.diagnostics, self.source, self.filename)
        return self.expression


def parse(
    source: str,
    filename: str = "<expression>",
    options: ParserOptions | None = None,
) -> ParseResult:
    """Convenience function: parse source text, collecting every diagnostic."""
    lexer = Lexer(source, filename)
    parser = Parser(lexer, options)
    expression = parser.parse_top_level_expression()
    diagnostics = sorted([*lexer.errors, *parser.diagnostics], key=lambda d: d.position.offset)
    return ParseResult(source, filename, expression, tuple(diagnostics))
