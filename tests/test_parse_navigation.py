"""Test navigation chains, references, constructors, collections and lambdas."""

from ognl.ast import (
    ArrayConstructorExpression,
    ChainExpression,
    ConstructorExpression,
    ContextExpression,
    DynamicSubscriptExpression,
    EvalExpression,
    IndexExpression,
    KeyValueExpression,
    LambdaExpression,
    ListExpression,
    Literal,
    MapExpression,
    MethodCallExpression,
    ProjectionExpression,
    PropertyExpression,
    RootExpression,
    SelectionExpression,
    SelectMode,
    StaticFieldExpression,
    StaticMethodExpression,
    ThisExpression,
    VariableExpression,
)
from ognl.tokens import DynamicSubscript


class TestChains:
    def test_property(self, parse_ok):
        expr = parse_ok("name")
        assert expr == PropertyExpression("name")
        assert expr.node_type == "ASTProperty"

    def test_three_links(self, parse_ok):
        expr = parse_ok("a.b.c")
        assert isinstance(expr, ChainExpression)
        assert expr.node_type == "ASTChain"
        assert len(expr.children) == 3
        assert str(expr) == "a.b.c"

    def test_method_call(self, parse_ok):
        expr = parse_ok("foo(1, 2)")
        assert isinstance(expr, MethodCallExpression)
        assert expr.name == "foo"
        assert len(expr.arguments) == 2
        assert expr.node_type == "ASTMethod"

    def test_method_without_arguments(self, parse_ok):
        expr = parse_ok("a.size()")
        assert expr.links[1] == MethodCallExpression("size", ())
        assert str(expr) == "a.size()"

    def test_index(self, parse_ok):
        expr = parse_ok('a["b"][0]')
        assert isinstance(expr.links[1], IndexExpression)
        assert isinstance(expr.links[2], IndexExpression)
        assert str(expr) == 'a["b"][0]'

    def test_leading_index(self, parse_ok):
        expr = parse_ok('["key"]')
        assert isinstance(expr, IndexExpression)
        assert expr.node_type == "ASTProperty"

    def test_dynamic_subscript(self, parse_ok):
        expr = parse_ok("list[^]")
        link = expr.links[1]
        assert link == DynamicSubscriptExpression(DynamicSubscript.FIRST)
        assert link.node_type == "ASTDynamicSubscript"
        assert str(expr) == "list[^]"

    def test_subexpression_link(self, parse_ok):
        expr = parse_ok("a.(b + 1)")
        assert expr.links[1].node_type == "ASTAdd"
        assert str(expr) == "a.(b + 1)"

    def test_chain_on_grouped_head(self, parse_ok):
        assert str(parse_ok("(a + b).c")) == "(a + b).c"

    def test_chain_on_literal(self, parse_ok):
        expr = parse_ok('"abc".length()')
        assert isinstance(expr.links[0], Literal)


class TestReferences:
    def test_this(self, parse_ok):
        expr = parse_ok("#this.name")
        assert expr.links[0] == ThisExpression()
        assert expr.links[0].node_type == "ASTThisVarRef"
        assert str(expr) == "#this.name"

    def test_root(self, parse_ok):
        expr = parse_ok("#root")
        assert expr == RootExpression()
        assert expr.node_type == "ASTRootVarRef"

    def test_variable(self, parse_ok):
        expr = parse_ok("#foo")
        assert expr == VariableExpression("foo")
        assert expr.node_type == "ASTVarRef"
        assert str(expr) == "#foo"

    def test_context(self, parse_ok):
        assert parse_ok("$") == ContextExpression()


class TestStatics:
    def test_static_method(self, parse_ok):
        expr = parse_ok("@java.lang.Math@max(1, 2)")
        assert isinstance(expr, StaticMethodExpression)
        assert expr.class_name == "java.lang.Math"
        assert expr.method == "max"
        assert expr.node_type == "ASTStaticMethod"
        assert str(expr) == "@java.lang.Math@max(1, 2)"

    def test_math_shorthand(self, parse_ok):
        expr = parse_ok("@@min(1, 2)")
        assert expr == StaticMethodExpression(
            "java.lang.Math", "min", (parse_ok("1"), parse_ok("2"))
        )

    def test_static_field(self, parse_ok):
        expr = parse_ok("@java.lang.Integer@MAX_VALUE")
        assert expr == StaticFieldExpression("java.lang.Integer", "MAX_VALUE")
        assert expr.node_type == "ASTStaticField"

    def test_nested_class(self, parse_ok):
        expr = parse_ok("@java.util.Map$Entry@comparingByKey()")
        assert expr.class_name == "java.util.Map$Entry"

    def test_chain_after_static(self, parse_ok):
        expr = parse_ok("@Foo@bar.baz")
        assert isinstance(expr, ChainExpression)
        assert isinstance(expr.links[0], StaticFieldExpression)

    def test_static_link(self, parse_ok):
        expr = parse_ok("a.@Util@f(1)")
        assert isinstance(expr.links[1], StaticMethodExpression)
        assert str(expr) == "a.@Util@f(1)"


class TestConstructors:
    def test_constructor(self, parse_ok):
        expr = parse_ok("new java.util.ArrayList(10)")
        assert isinstance(expr, ConstructorExpression)
        assert expr.class_name == "java.util.ArrayList"
        assert expr.node_type == "ASTCtor"
        assert str(expr) == "new java.util.ArrayList(10)"

    def test_sized_array(self, parse_ok):
        expr = parse_ok("new int[5]")
        assert isinstance(expr, ArrayConstructorExpression)
        assert expr.size == parse_ok("5")
        assert expr.initializer is None
        assert str(expr) == "new int[5]"

    def test_initialized_array(self, parse_ok):
        expr = parse_ok("new String[] { 'a', 'b' }")
        assert isinstance(expr.initializer, ListExpression)
        assert len(expr.initializer.elements) == 2
        assert expr.size is None

    def test_empty_initializer(self, parse_ok):
        assert str(parse_ok("new int[] {}")) == "new int[]{ }"


class TestCollections:
    def test_list(self, parse_ok):
        expr = parse_ok("{1, 2, 3}")
        assert isinstance(expr, ListExpression)
        assert expr.node_type == "ASTList"
        assert str(expr) == "{ 1, 2, 3 }"

    def test_empty_list(self, parse_ok):
        assert parse_ok("{}") == ListExpression(())

    def test_map(self, parse_ok):
        expr = parse_ok('#{"a" : 1, "b" : 2}')
        assert isinstance(expr, MapExpression)
        assert expr.node_type == "ASTMap"
        assert all(isinstance(e, KeyValueExpression) for e in expr.entries)
        assert str(expr) == '#{ "a" : 1, "b" : 2 }'

    def test_key_without_value(self, parse_ok):
        expr = parse_ok('#{"a"}')
        assert expr.entries[0].value is None

    def test_typed_map(self, parse_ok):
        expr = parse_ok('#@java.util.LinkedHashMap@{"a" : 1}')
        assert expr.class_name == "java.util.LinkedHashMap"
        assert str(expr) == '#@java.util.LinkedHashMap@{ "a" : 1 }'

    def test_empty_map(self, parse_ok):
        assert str(parse_ok("#{}")) == "#{ }"


class TestProjectionSelection:
    def test_projection(self, parse_ok):
        expr = parse_ok("people.{name}")
        link = expr.links[1]
        assert isinstance(link, ProjectionExpression)
        assert link.node_type == "ASTProject"
        assert str(expr) == "people.{name}"

    def test_selection(self, parse_ok):
        expr = parse_ok("people.{? #this.age > 18}")
        link = expr.links[1]
        assert isinstance(link, SelectionExpression)
        assert link.mode == SelectMode.ALL
        assert link.node_type == "ASTSelect"
        assert str(expr) == "people.{? #this.age > 18}"

    def test_select_first_and_last(self, parse_ok):
        assert parse_ok("a.{^ b}").links[1].node_type == "ASTSelectFirst"
        assert parse_ok("a.{$ b}").links[1].node_type == "ASTSelectLast"


class TestLambdaAndEval:
    def test_lambda(self, parse_ok):
        expr = parse_ok(":[#this * 2]")
        assert isinstance(expr, LambdaExpression)
        assert expr.node_type == "ASTConst"
        assert str(expr) == ":[#this * 2]"

    def test_variable_eval(self, parse_ok):
        expr = parse_ok("#fact(3)")
        assert expr == EvalExpression(VariableExpression("fact"), parse_ok("3"))
        assert expr.node_type == "ASTEval"
        assert str(expr) == "(#fact)(3)"

    def test_lambda_eval(self, parse_ok):
        expr = parse_ok(":[#this + 1](41)")
        assert isinstance(expr, EvalExpression)
        assert isinstance(expr.target, LambdaExpression)

    def test_recursive_definition(self, parse_ok):
        expr = parse_ok("#fact = :[#this <= 1 ? 1 : #this * #fact(#this - 1)], #fact(30H)")
        assert expr.node_type == "ASTSequence"
        assign, call = expr.children
        assert assign.node_type == "ASTAssign"
        assert isinstance(assign.value, LambdaExpression)
        assert isinstance(call, EvalExpression)
