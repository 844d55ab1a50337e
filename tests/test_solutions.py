"""Tests for evaluating expressions over polars solution frames."""

import unittest

import polars as pl
from polars.testing import assert_frame_equal

from sparqlexpr.errors import ArityMismatch, InvalidArgument, UnsupportedOperator
from sparqlexpr.solutions import extend_solutions, filter_solutions, solution_bindings

INTEGER = "^^<http://www.w3.org/2001/XMLSchema#integer>"


def op(operator, *args):
    return {"operator": operator, "args": list(args)}


class TestSolutions(unittest.TestCase):
    def setUp(self):
        self.df = pl.DataFrame(
            {
                "name": ['"Alice"', '"Bob"', '"Carol"'],
                "age": ['"34"' + INTEGER, '"12"' + INTEGER, None],
            }
        )

    def test_solution_bindings(self):
        rows = list(solution_bindings(self.df))
        self.assertEqual(rows[0], {"?name": '"Alice"', "?age": '"34"' + INTEGER})
        self.assertEqual(rows[2], {"?name": '"Carol"'})

    def test_filter(self):
        result = filter_solutions(self.df, op(">=", "?age", '"18"' + INTEGER))
        assert_frame_equal(result, self.df.head(1))

    def test_filter_rejects_unbound_solutions(self):
        result = filter_solutions(self.df, op("bound", "?age"))
        assert_frame_equal(result, self.df.head(2))

        result = filter_solutions(self.df, op("strstarts", "?name", '"C"'))
        assert_frame_equal(result, self.df.slice(2, 1))

    def test_empty_filter_keeps_everything(self):
        assert_frame_equal(filter_solutions(self.df, None), self.df)

    def test_expression_errors_propagate(self):
        with self.assertRaises(ArityMismatch):
            filter_solutions(self.df, op("+", "?age"))
        with self.assertRaises(UnsupportedOperator):
            filter_solutions(self.df, op("exists", "?age"))

    def test_lazy_frame(self):
        result = filter_solutions(self.df.lazy(), op("<", "?age", '"18"' + INTEGER))
        assert_frame_equal(result, self.df.slice(1, 1))

    def test_sigil_columns(self):
        df = pl.DataFrame({"?x": ['"1"' + INTEGER, '"0"' + INTEGER]})
        assert_frame_equal(filter_solutions(df, "?x"), df.head(1))

    def test_extend(self):
        result = extend_solutions(self.df, "upper", op("ucase", "?name"))
        self.assertEqual(result["upper"].to_list(), ['"ALICE"', '"BOB"', '"CAROL"'])

    def test_extend_leaves_failures_unbound(self):
        result = extend_solutions(
            self.df, "older", op("+", "?age", '"1"' + INTEGER)
        )
        self.assertEqual(
            result["older"].to_list(), ['"35"' + INTEGER, '"13"' + INTEGER, None]
        )

    def test_extend_rejects_bound_variable(self):
        with self.assertRaises(InvalidArgument):
            extend_solutions(self.df, "?name", op("ucase", "?name"))


if __name__ == "__main__":
    unittest.main()
