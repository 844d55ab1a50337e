"""Tests for converting rdflib SPARQL algebra into expression trees."""

import unittest

from rdflib import Literal, URIRef, XSD
from rdflib.plugins.sparql.parserutils import CompValue
from rdflib.term import Variable as RDFVariable

from sparqlexpr import evaluate
from sparqlexpr.algebra import from_algebra, parse_filter
from sparqlexpr.errors import UnsupportedExpressionType, UnsupportedOperator
from sparqlexpr.expression import ConstantTerm, Operation, Variable
from sparqlexpr.terms import FALSE, TRUE

INTEGER = f"^^<{XSD.integer}>"
THREE = ConstantTerm('"3"' + INTEGER)


class TestFromAlgebra(unittest.TestCase):
    def test_terms(self):
        self.assertEqual(from_algebra(RDFVariable("o")), Variable("?o"))
        self.assertEqual(
            from_algebra(URIRef("http://example.org/a")),
            ConstantTerm("http://example.org/a"),
        )
        self.assertEqual(
            from_algebra(Literal("chat", lang="fr")), ConstantTerm('"chat"@fr')
        )

    def test_relational(self):
        node = CompValue(
            "RelationalExpression", expr=RDFVariable("o"), op=">", other=Literal(3)
        )
        self.assertEqual(from_algebra(node), Operation(">", (Variable("?o"), THREE)))

    def test_relational_without_operator(self):
        node = CompValue("RelationalExpression", expr=RDFVariable("o"))
        self.assertEqual(from_algebra(node), Variable("?o"))

    def test_in(self):
        node = CompValue(
            "RelationalExpression",
            expr=RDFVariable("o"),
            op="NOT IN",
            other=[Literal(3), Literal("a")],
        )
        self.assertEqual(
            from_algebra(node),
            Operation("not in", (Variable("?o"), THREE, ConstantTerm('"a"'))),
        )

    def test_conditional_chain(self):
        node = CompValue(
            "ConditionalAndExpression",
            expr=RDFVariable("a"),
            other=[RDFVariable("b"), RDFVariable("c")],
        )
        expected = Operation(
            "&&",
            (Operation("&&", (Variable("?a"), Variable("?b"))), Variable("?c")),
        )
        self.assertEqual(from_algebra(node), expected)

    def test_additive_chain(self):
        node = CompValue(
            "AdditiveExpression",
            expr=Literal(1),
            op=["+", "-"],
            other=[Literal(2), Literal(3)],
        )
        result = from_algebra(node)
        self.assertEqual(result.operator, "-")
        self.assertEqual(result.args[0].operator, "+")
        self.assertEqual(evaluate(result), '"0"' + INTEGER)

    def test_unary(self):
        self.assertEqual(
            from_algebra(CompValue("UnaryNot", expr=RDFVariable("a"))),
            Operation("!", (Variable("?a"),)),
        )
        self.assertEqual(
            from_algebra(CompValue("UnaryPlus", expr=RDFVariable("a"))),
            Variable("?a"),
        )
        minus = from_algebra(CompValue("UnaryMinus", expr=Literal(3)))
        self.assertEqual(evaluate(minus), '"-3"' + INTEGER)

    def test_builtins(self):
        node = CompValue(
            "Builtin_STRSTARTS", arg1=RDFVariable("name"), arg2=Literal("A")
        )
        self.assertEqual(
            from_algebra(node),
            Operation("strstarts", (Variable("?name"), ConstantTerm('"A"'))),
        )
        node = CompValue("Builtin_isIRI", arg=RDFVariable("s"))
        self.assertEqual(from_algebra(node), Operation("isiri", (Variable("?s"),)))

    def test_variadic_builtin(self):
        node = CompValue("Builtin_CONCAT", arg=[Literal("a"), RDFVariable("x")])
        self.assertEqual(
            from_algebra(node),
            Operation("concat", (ConstantTerm('"a"'), Variable("?x"))),
        )

    def test_regex_parameters_in_order(self):
        node = CompValue(
            "Builtin_REGEX",
            text=RDFVariable("name"),
            pattern=Literal("^a"),
            flags=Literal("i"),
        )
        self.assertEqual(
            from_algebra(node),
            Operation(
                "regex",
                (Variable("?name"), ConstantTerm('"^a"'), ConstantTerm('"i"')),
            ),
        )

    def test_substr_without_length(self):
        node = CompValue("Builtin_SUBSTR", arg=Literal("abc"), start=Literal(2))
        self.assertEqual(evaluate(from_algebra(node)), '"bc"')

    def test_no_argument_builtin(self):
        self.assertEqual(from_algebra(CompValue("Builtin_RAND")), Operation("rand"))

    def test_function(self):
        node = CompValue("Function", iri=XSD.double, expr=[RDFVariable("x")])
        self.assertEqual(
            from_algebra(node), Operation(str(XSD.double), (Variable("?x"),))
        )

    def test_exists(self):
        node = CompValue("Builtin_EXISTS", graph=CompValue("BGP", triples=[]))
        with self.assertRaises(UnsupportedOperator):
            from_algebra(node)

    def test_unknown_node(self):
        with self.assertRaises(UnsupportedExpressionType):
            from_algebra(CompValue("Aggregate_Count"))
        with self.assertRaises(UnsupportedExpressionType):
            from_algebra(42)


class TestParseFilter(unittest.TestCase):
    def test_relational(self):
        expression = parse_filter("?age >= 18")
        self.assertEqual(evaluate(expression, {"?age": '"21"' + INTEGER}), TRUE)
        self.assertEqual(evaluate(expression, {"?age": '"12"' + INTEGER}), FALSE)

    def test_builtin_and_conjunction(self):
        expression = parse_filter('BOUND(?name) && STRSTARTS(?name, "Al")')
        self.assertEqual(evaluate(expression, {"?name": '"Alice"'}), TRUE)
        self.assertEqual(evaluate(expression, {"?name": '"Bob"'}), FALSE)


if __name__ == "__main__":
    unittest.main()
