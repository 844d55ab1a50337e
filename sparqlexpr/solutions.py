"""Apply expressions to solution sequences held in polars DataFrames.

Each column is a variable (named with or without the ``?`` sigil) and each
row one solution; a null cell is an unbound variable. The expression is
compiled once and evaluated per row.
"""

import logging
from typing import Dict, Iterator, Optional, Union

import polars as pl

from sparqlexpr.errors import EVALUATION_ERRORS, InvalidArgument
from sparqlexpr.evaluator import Evaluator, holds
from sparqlexpr.expression import VARIABLE_SIGIL

logger = logging.getLogger(__name__)

Frame = Union[pl.DataFrame, pl.LazyFrame]


def _variable_name(column: str) -> str:
    return column if column.startswith(VARIABLE_SIGIL) else VARIABLE_SIGIL + column


def _collect(frame: Frame) -> pl.DataFrame:
    return frame.collect() if isinstance(frame, pl.LazyFrame) else frame


def solution_bindings(frame: Frame) -> Iterator[Dict[str, str]]:
    """Yield one bindings mapping per row, leaving out unbound variables."""
    for row in _collect(frame).iter_rows(named=True):
        yield {
            _variable_name(column): value
            for column, value in row.items()
            if value is not None
        }


def filter_solutions(
    frame: Frame, expression, evaluator: Optional[Evaluator] = None
) -> pl.DataFrame:
    """Keep the solutions for which ``expression`` is effectively true.

    A solution whose evaluation fails (unbound variable, invalid argument)
    is rejected, as SPARQL FILTER does. Errors in the expression itself
    (unknown operator, wrong arity) propagate.
    """
    frame = _collect(frame)
    compiled = (evaluator or Evaluator()).compile(expression)

    keep = []
    for index, bindings in enumerate(solution_bindings(frame)):
        try:
            keep.append(holds(compiled, bindings))
        except EVALUATION_ERRORS as e:
            logger.debug("Rejected solution %d: %s", index, e)
            keep.append(False)

    return frame.filter(pl.Series(keep, dtype=pl.Boolean))


def extend_solutions(
    frame: Frame, variable: str, expression, evaluator: Optional[Evaluator] = None
) -> pl.DataFrame:
    """Bind ``variable`` to the value of ``expression`` in every solution.

    A solution whose evaluation fails leaves the variable unbound.
    """
    frame = _collect(frame)
    target = _variable_name(variable)
    if target in {_variable_name(column) for column in frame.columns}:
        raise InvalidArgument("bind", f"variable {target} is already bound")

    compiled = (evaluator or Evaluator()).compile(expression)

    values = []
    for index, bindings in enumerate(solution_bindings(frame)):
        try:
            values.append(compiled(bindings))
        except EVALUATION_ERRORS as e:
            logger.debug("Left %s unbound in solution %d: %s", target, index, e)
            values.append(None)

    return frame.with_columns(pl.Series(variable, values, dtype=pl.String))
