"""AST node types for parsed OGNL expressions.

Every node renders its canonical source form through ``str()`` and reports
the OGNL node-kind name through ``node_type``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto

from ognl.tokens import DynamicSubscript, TokenType


class Node:
    """Base of every AST node."""

    __slots__ = ()

    @property
    def node_type(self) -> str:
        raise NotImplementedError

    @property
    def children(self) -> tuple[Node, ...]:
        return ()


class Expression(Node):
    """A node that produces a value."""

    __slots__ = ()


class Statement(Node):
    """A node executed for effect; disjoint from Expression."""

    __slots__ = ()


def _wrap(node: Node, *types: type) -> str:
    if isinstance(node, types):
        return f"({node})"
    return str(node)


def _wrap_operand(node: Node) -> str:
    """Render an operator operand, parenthesizing anything that binds looser."""
    return _wrap(
        node,
        BinaryExpression,
        InstanceofExpression,
        ConditionalExpression,
        AssignmentExpression,
        SequenceExpression,
    )


def _join(nodes: tuple[Expression, ...]) -> str:
    return ", ".join(_wrap(n, SequenceExpression) for n in nodes)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


BINARY_SYMBOLS: dict[TokenType, str] = {
    TokenType.OR: "||",
    TokenType.AND: "&&",
    TokenType.BIT_OR: "|",
    TokenType.XOR: "^",
    TokenType.BIT_AND: "&",
    TokenType.EQ: "==",
    TokenType.NOT_EQ: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LT_EQ: "<=",
    TokenType.GT_EQ: ">=",
    TokenType.IN: "in",
    TokenType.NOT_IN: "not in",
    TokenType.SHL: "<<",
    TokenType.SHR: ">>",
    TokenType.USHR: ">>>",
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.MULTIPLY: "*",
    TokenType.DIVIDE: "/",
    TokenType.MODULO: "%",
}

_BINARY_NODE_TYPES: dict[TokenType, str] = {
    TokenType.OR: "ASTOr",
    TokenType.AND: "ASTAnd",
    TokenType.BIT_OR: "ASTBitOr",
    TokenType.XOR: "ASTXor",
    TokenType.BIT_AND: "ASTBitAnd",
    TokenType.EQ: "ASTEq",
    TokenType.NOT_EQ: "ASTNotEq",
    TokenType.LT: "ASTLess",
    TokenType.GT: "ASTGreater",
    TokenType.LT_EQ: "ASTLessEq",
    TokenType.GT_EQ: "ASTGreaterEq",
    TokenType.IN: "ASTIn",
    TokenType.NOT_IN: "ASTNotIn",
    TokenType.SHL: "ASTShiftLeft",
    TokenType.SHR: "ASTShiftRight",
    TokenType.USHR: "ASTUnsignedShiftRight",
    TokenType.PLUS: "ASTAdd",
    TokenType.MINUS: "ASTSubtract",
    TokenType.MULTIPLY: "ASTMultiply",
    TokenType.DIVIDE: "ASTDivide",
    TokenType.MODULO: "ASTRemainder",
}

UNARY_SYMBOLS: dict[TokenType, str] = {
    TokenType.MINUS: "-",
    TokenType.NOT: "!",
    TokenType.BIT_NOT: "~",
}

_UNARY_NODE_TYPES: dict[TokenType, str] = {
    TokenType.MINUS: "ASTNegate",
    TokenType.NOT: "ASTNot",
    TokenType.BIT_NOT: "ASTBitNegate",
}


# ---------------------------------------------------------------------------
# Compound expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SequenceExpression(Expression):
    """Comma-separated expressions: a, b, c."""

    expressions: tuple[Expression, ...]

    @property
    def node_type(self) -> str:
        return "ASTSequence"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.expressions

    def __str__(self) -> str:
        return ", ".join(
            _wrap(e, BinaryExpression, ConditionalExpression, SequenceExpression)
            for e in self.expressions
        )


@dataclass(frozen=True, slots=True)
class AssignmentExpression(Expression):
    target: Expression
    value: Expression

    @property
    def node_type(self) -> str:
        return "ASTAssign"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.target, self.value)

    def __str__(self) -> str:
        parts = []
        node: Expression = self
        while isinstance(node, AssignmentExpression):
            parts.append(f"{_wrap_operand(node.target)} = ")
            node = node.value
        parts.append(_wrap(node, SequenceExpression))
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class ConditionalExpression(Expression):
    """Ternary test ? consequent : alternative."""

    test: Expression
    consequent: Expression
    alternative: Expression

    @property
    def node_type(self) -> str:
        return "ASTTest"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.test, self.consequent, self.alternative)

    def __str__(self) -> str:
        # walk the right-nested alternatives instead of recursing into them
        parts = []
        node: Expression = self
        while isinstance(node, ConditionalExpression):
            test = _wrap(node.test, ConditionalExpression, AssignmentExpression, SequenceExpression)
            consequent = _wrap(node.consequent, AssignmentExpression, SequenceExpression)
            parts.append(f"{test} ? {consequent} : ")
            node = node.alternative
        parts.append(_wrap(node, AssignmentExpression, SequenceExpression))
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class BinaryExpression(Expression):
    operator: TokenType
    left: Expression
    right: Expression

    @property
    def symbol(self) -> str:
        return BINARY_SYMBOLS[self.operator]

    @property
    def node_type(self) -> str:
        return _BINARY_NODE_TYPES[self.operator]

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.left, self.right)

    def __str__(self) -> str:
        # left-associative chains nest on the left; render that spine in a loop
        spine = []
        node: Expression = self
        while isinstance(node, BinaryExpression):
            spine.append(node)
            node = node.left
        text = _wrap_operand(node)
        for i, binary in enumerate(reversed(spine)):
            if i:
                text = f"({text})"
            text = f"{text} {binary.symbol} {_wrap_operand(binary.right)}"
        return text


@dataclass(frozen=True, slots=True)
class InstanceofExpression(Expression):
    operand: Expression
    target_type: str

    @property
    def node_type(self) -> str:
        return "ASTInstanceof"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"{_wrap_operand(self.operand)} instanceof {self.target_type}"


@dataclass(frozen=True, slots=True)
class UnaryExpression(Expression):
    operator: TokenType
    operand: Expression

    @property
    def node_type(self) -> str:
        return _UNARY_NODE_TYPES[self.operator]

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        symbols = []
        node: Expression = self
        while isinstance(node, UnaryExpression):
            symbols.append(UNARY_SYMBOLS[node.operator])
            node = node.operand
        return "".join(symbols) + _wrap_operand(node)


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ChainExpression(Expression):
    """Navigation chain such as a.b(1)[0]; one child per link."""

    links: tuple[Expression, ...]

    @property
    def node_type(self) -> str:
        return "ASTChain"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.links

    def __str__(self) -> str:
        head = self.links[0]
        if isinstance(head, UnaryExpression):
            parts = [f"({head})"]
        else:
            parts = [_wrap_operand(head)]
        for link in self.links[1:]:
            if isinstance(link, (IndexExpression, DynamicSubscriptExpression)):
                parts.append(str(link))
            elif isinstance(link, _DOTTED_LINKS):
                parts.append(f".{link}")
            else:
                parts.append(f".({link})")
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class PropertyExpression(Expression):
    """Bare property name."""

    name: str

    @property
    def node_type(self) -> str:
        return "ASTProperty"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class IndexExpression(Expression):
    """Bracketed property access: [expr]."""

    index: Expression

    @property
    def node_type(self) -> str:
        return "ASTProperty"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.index,)

    def __str__(self) -> str:
        return f"[{self.index}]"


@dataclass(frozen=True, slots=True)
class DynamicSubscriptExpression(Expression):
    subscript: DynamicSubscript

    @property
    def node_type(self) -> str:
        return "ASTDynamicSubscript"

    def __str__(self) -> str:
        return f"[{self.subscript.symbol}]"


@dataclass(frozen=True, slots=True)
class MethodCallExpression(Expression):
    name: str
    arguments: tuple[Expression, ...]

    @property
    def node_type(self) -> str:
        return "ASTMethod"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.arguments

    def __str__(self) -> str:
        return f"{self.name}({_join(self.arguments)})"


@dataclass(frozen=True, slots=True)
class StaticMethodExpression(Expression):
    class_name: str
    method: str
    arguments: tuple[Expression, ...]

    @property
    def node_type(self) -> str:
        return "ASTStaticMethod"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.arguments

    def __str__(self) -> str:
        return f"@{self.class_name}@{self.method}({_join(self.arguments)})"


@dataclass(frozen=True, slots=True)
class StaticFieldExpression(Expression):
    class_name: str
    field: str

    @property
    def node_type(self) -> str:
        return "ASTStaticField"

    def __str__(self) -> str:
        return f"@{self.class_name}@{self.field}"


@dataclass(frozen=True, slots=True)
class ProjectionExpression(Expression):
    """Collection projection: {expr}."""

    expression: Expression

    @property
    def node_type(self) -> str:
        return "ASTProject"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.expression,)

    def __str__(self) -> str:
        return f"{{{_wrap(self.expression, SequenceExpression)}}}"


class SelectMode(Enum):
    ALL = "?"
    FIRST = "^"
    LAST = "$"


_SELECT_NODE_TYPES = {
    SelectMode.ALL: "ASTSelect",
    SelectMode.FIRST: "ASTSelectFirst",
    SelectMode.LAST: "ASTSelectLast",
}


@dataclass(frozen=True, slots=True)
class SelectionExpression(Expression):
    """Collection selection: {? expr}, {^ expr}, {$ expr}."""

    expression: Expression
    mode: SelectMode = SelectMode.ALL

    @property
    def node_type(self) -> str:
        return _SELECT_NODE_TYPES[self.mode]

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.expression,)

    def __str__(self) -> str:
        return f"{{{self.mode.value} {_wrap(self.expression, SequenceExpression)}}}"


@dataclass(frozen=True, slots=True)
class EvalExpression(Expression):
    """Evaluate target with an argument: (target)(argument)."""

    target: Expression
    argument: Expression

    @property
    def node_type(self) -> str:
        return "ASTEval"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.target, self.argument)

    def __str__(self) -> str:
        return f"({self.target})({self.argument})"


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConstructorExpression(Expression):
    class_name: str
    arguments: tuple[Expression, ...]

    @property
    def node_type(self) -> str:
        return "ASTCtor"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.arguments

    def __str__(self) -> str:
        return f"new {self.class_name}({_join(self.arguments)})"


@dataclass(frozen=True, slots=True)
class ArrayConstructorExpression(Expression):
    """new T[size] or new T[] { elements }; exactly one of the two is set."""

    class_name: str
    size: Expression | None = None
    initializer: ListExpression | None = None

    @property
    def node_type(self) -> str:
        return "ASTCtor"

    @property
    def children(self) -> tuple[Node, ...]:
        if self.size is not None:
            return (self.size,)
        if self.initializer is not None:
            return (self.initializer,)
        return ()

    def __str__(self) -> str:
        if self.size is not None:
            return f"new {self.class_name}[{self.size}]"
        elements = self.initializer.elements if self.initializer is not None else ()
        if not elements:
            return f"new {self.class_name}[]{{ }}"
        return f"new {self.class_name}[]{{ {_join(elements)} }}"


@dataclass(frozen=True, slots=True)
class ListExpression(Expression):
    elements: tuple[Expression, ...]

    @property
    def node_type(self) -> str:
        return "ASTList"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.elements

    def __str__(self) -> str:
        if not self.elements:
            return "{ }"
        return f"{{ {_join(self.elements)} }}"


@dataclass(frozen=True, slots=True)
class KeyValueExpression(Expression):
    key: Expression
    value: Expression | None

    @property
    def node_type(self) -> str:
        return "ASTKeyValue"

    @property
    def children(self) -> tuple[Node, ...]:
        if self.value is None:
            return (self.key,)
        return (self.key, self.value)

    def __str__(self) -> str:
        key = _wrap(self.key, ConditionalExpression, SequenceExpression)
        if self.value is None:
            return key
        return f"{key} : {_wrap(self.value, SequenceExpression)}"


@dataclass(frozen=True, slots=True)
class MapExpression(Expression):
    """#{ k : v } or #@java.util.TreeMap@{ k : v }."""

    entries: tuple[KeyValueExpression, ...]
    class_name: str | None = None

    @property
    def node_type(self) -> str:
        return "ASTMap"

    @property
    def children(self) -> tuple[Node, ...]:
        return self.entries

    def __str__(self) -> str:
        prefix = f"#@{self.class_name}@" if self.class_name else "#"
        if not self.entries:
            return f"{prefix}{{ }}"
        return f"{prefix}{{ {_join(self.entries)} }}"


@dataclass(frozen=True, slots=True)
class LambdaExpression(Expression):
    """:[body]; OGNL stores lambdas as constants."""

    body: Expression

    @property
    def node_type(self) -> str:
        return "ASTConst"

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.body,)

    def __str__(self) -> str:
        return f":[{self.body}]"


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


class LiteralKind(Enum):
    INT = auto()
    LONG = auto()
    BIG_INTEGER = auto()
    FLOAT = auto()
    DOUBLE = auto()
    BIG_DECIMAL = auto()
    CHAR = auto()
    BACK_CHAR = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()


_STRING_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
}


def quote_text(text: str, quote: str = '"') -> str:
    """Render text as an OGNL quoted literal."""
    out = [quote]
    for ch in text:
        if ch == quote:
            out.append("\\" + ch)
        elif ch in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    out.append(quote)
    return "".join(out)


@dataclass(frozen=True, slots=True)
class Literal(Expression):
    """Constant value; ``kind`` keeps the numeric width from the suffix."""

    value: int | float | Decimal | str | bool | None
    kind: LiteralKind

    @property
    def node_type(self) -> str:
        return "ASTConst"

    def __str__(self) -> str:
        kind = self.kind
        if kind == LiteralKind.NULL:
            return "null"
        if kind == LiteralKind.BOOLEAN:
            return "true" if self.value else "false"
        if kind == LiteralKind.STRING:
            return quote_text(str(self.value))
        if kind == LiteralKind.CHAR:
            return quote_text(chr(self.value), "'")
        if kind == LiteralKind.BACK_CHAR:
            return f"`{chr(self.value)}`"
        if kind == LiteralKind.LONG:
            return f"{self.value}L"
        if kind == LiteralKind.BIG_INTEGER:
            # Decimal prints any length; str(int) is capped by the interpreter
            return f"{Decimal(self.value)}H"
        if kind == LiteralKind.BIG_DECIMAL:
            return f"{self.value}B"
        if kind == LiteralKind.FLOAT:
            return f"{self.value!r}f"
        return repr(self.value) if kind == LiteralKind.DOUBLE else str(self.value)


@dataclass(frozen=True, slots=True)
class ContextExpression(Expression):
    """The bare ``$`` context reference."""

    @property
    def node_type(self) -> str:
        return "ASTConst"

    def __str__(self) -> str:
        return "$"


@dataclass(frozen=True, slots=True)
class ThisExpression(Expression):
    @property
    def node_type(self) -> str:
        return "ASTThisVarRef"

    def __str__(self) -> str:
        return "#this"


@dataclass(frozen=True, slots=True)
class RootExpression(Expression):
    @property
    def node_type(self) -> str:
        return "ASTRootVarRef"

    def __str__(self) -> str:
        return "#root"


@dataclass(frozen=True, slots=True)
class VariableExpression(Expression):
    name: str

    @property
    def node_type(self) -> str:
        return "ASTVarRef"

    def __str__(self) -> str:
        return f"#{self.name}"


# Links rendered as ".link" inside a chain; any other link renders as ".(expr)".
_DOTTED_LINKS = (
    PropertyExpression,
    MethodCallExpression,
    StaticMethodExpression,
    StaticFieldExpression,
    ProjectionExpression,
    SelectionExpression,
)
