"""Tests for the evaluator facade."""

import unittest

from sparqlexpr import (
    FALSE,
    TRUE,
    ArgumentCompatibilityViolation,
    ConstantTerm,
    Evaluator,
    InvalidArgument,
    Operation,
    UnsupportedOperator,
    Variable,
    evaluate,
    holds,
)

XSD = "http://www.w3.org/2001/XMLSchema#"
INTEGER = f"^^<{XSD}integer>"


class TestEvaluator(unittest.TestCase):
    def setUp(self):
        self.evaluator = Evaluator()

    def test_compile_once_evaluate_many(self):
        compiled = self.evaluator.compile(
            {"operator": ">=", "args": ["?age", '"18"' + INTEGER]}
        )
        rows = [{"?age": f'"{age}"' + INTEGER} for age in (12, 18, 40)]
        self.assertEqual([compiled(row) for row in rows], [FALSE, TRUE, TRUE])

    def test_one_shot_evaluate(self):
        expression = {"operator": "+", "args": ['"2"' + INTEGER, '"3"' + INTEGER]}
        self.assertEqual(self.evaluator.evaluate(expression), '"5"' + INTEGER)
        self.assertEqual(evaluate(expression), '"5"' + INTEGER)

    def test_dataclass_expressions(self):
        expression = Operation(
            "strstarts", (Variable("?name"), ConstantTerm('"Al"'))
        )
        self.assertEqual(
            self.evaluator.evaluate(expression, {"?name": '"Alice"'}), TRUE
        )

    def test_holds(self):
        expression = {"operator": "strlen", "args": ["?name"]}
        self.assertTrue(self.evaluator.holds(expression, {"?name": '"Al"'}))
        self.assertFalse(self.evaluator.holds(expression, {"?name": '""'}))

    def test_empty_filter_holds(self):
        self.assertTrue(self.evaluator.holds(None, {}))
        self.assertTrue(self.evaluator.holds("", {}))
        self.assertTrue(holds(self.evaluator.compile(None), {}))

    def test_default_registry(self):
        self.assertIn("bound", self.evaluator.registry)


class TestDocumentedProperties(unittest.TestCase):
    """Behaviour the surrounding query engine relies on."""

    def test_arithmetic_keeps_first_datatype(self):
        result = evaluate(
            {"operator": "+", "args": ['"2"' + INTEGER, '"3"' + INTEGER]}
        )
        self.assertEqual(result, '"5"' + INTEGER)

    def test_comparisons_return_sentinels(self):
        for operator in ("=", "!=", "<", "<=", ">", ">="):
            with self.subTest(operator=operator):
                result = evaluate(
                    {"operator": operator, "args": ['"3"' + INTEGER, '"4"' + INTEGER]}
                )
                self.assertIn(result, (TRUE, FALSE))
        self.assertEqual(
            evaluate({"operator": "<", "args": ['"3"' + INTEGER, '"4"' + INTEGER]}),
            TRUE,
        )

    def test_bound(self):
        expression = {"operator": "bound", "args": ["?x"]}
        self.assertEqual(evaluate(expression, {"?x": '"a"'}), TRUE)
        self.assertEqual(evaluate(expression, {}), FALSE)
        with self.assertRaises(InvalidArgument):
            evaluate({"operator": "bound", "args": ['"notAVar"']})

    def test_strstarts_compatibility(self):
        self.assertEqual(
            evaluate({"operator": "strstarts", "args": ['"hello"@en', '"he"@en']}),
            TRUE,
        )
        with self.assertRaises(ArgumentCompatibilityViolation):
            evaluate({"operator": "strstarts", "args": ['"hello"@en', '"he"@fr']})

    def test_concat_takes_kind_of_first_argument(self):
        self.assertEqual(
            evaluate({"operator": "concat", "args": ['"foo"', '"bar"']}), '"foobar"'
        )
        self.assertEqual(
            evaluate({"operator": "concat", "args": ['"foo"@en', '"bar"@en']}),
            '"foobar"@en',
        )

    def test_exists_is_unsupported(self):
        with self.assertRaises(UnsupportedOperator):
            evaluate({"operator": "exists", "args": ['"x"']})
        with self.assertRaises(UnsupportedOperator):
            evaluate({"operator": "not exists", "args": ['"x"']})


if __name__ == "__main__":
    unittest.main()
