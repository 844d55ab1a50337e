"""Convert rdflib SPARQL algebra expressions into expression trees.

rdflib parses SPARQL into ``CompValue`` nodes (``RelationalExpression``,
``Builtin_STRSTARTS``, ...). This module maps those nodes onto the
ConstantTerm/Variable/Operation model so filters parsed by rdflib can be
compiled and evaluated here.
"""

import logging
from collections.abc import Iterable
from functools import reduce
from typing import Callable, Dict, Optional

from rdflib import BNode, Literal, URIRef, XSD
from rdflib.plugins.sparql import algebra, parser
from rdflib.plugins.sparql.parserutils import CompValue
from rdflib.term import Variable as RDFVariable

from sparqlexpr.errors import UnsupportedExpressionType, UnsupportedOperator
from sparqlexpr.expression import (
    VARIABLE_SIGIL,
    ConstantTerm,
    Expression,
    Operation,
    Variable,
)
from sparqlexpr.terms import term_from_rdflib, typed_literal

logger = logging.getLogger(__name__)

_MINUS_ONE = ConstantTerm(typed_literal("-1", str(XSD.integer)))

# Parameter names of Builtin_* nodes, in call order
_BUILTIN_PARAMS = {
    "REGEX": ("text", "pattern", "flags"),
    "REPLACE": ("arg", "pattern", "replacement", "flags"),
    "SUBSTR": ("arg", "start", "length"),
}
_DEFAULT_PARAMS = ("arg", "arg1", "arg2", "arg3")

# Builtin names that differ from the registry key beyond case
_BUILTIN_NAMES = {"NOTEXISTS": "not exists"}


def _param(node: CompValue, key: str):
    return node[key] if key in node else None


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (CompValue, str)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


# =============================================================================
# Expression Conversion Registry
# =============================================================================

_CONVERTERS: Dict[str, Callable[[CompValue], Expression]] = {}


def converter(*names: str):
    """Decorator to register a converter for algebra nodes named ``names``."""

    def decorator(fn):
        for name in names:
            _CONVERTERS[name] = fn
        return fn

    return decorator


def from_algebra(node) -> Expression:
    """Convert an rdflib algebra expression into an expression tree."""
    if isinstance(node, RDFVariable):
        return Variable(VARIABLE_SIGIL + str(node))
    if isinstance(node, (URIRef, Literal, BNode)):
        return ConstantTerm(term_from_rdflib(node))
    if not isinstance(node, CompValue):
        raise UnsupportedExpressionType(node)

    if node.name.startswith("Builtin_"):
        return _convert_builtin(node)

    handler = _CONVERTERS.get(node.name)
    if handler is None:
        raise UnsupportedExpressionType(node)
    return handler(node)


def _chain(operators, first, others) -> Expression:
    """Fold ``first op1 other1 op2 other2 ...`` into left-nested operations."""
    pairs = zip(operators, (from_algebra(o) for o in others))
    return reduce(lambda left, pair: Operation(pair[0], (left, pair[1])), pairs, first)


@converter("RelationalExpression")
def _convert_relational(node: CompValue) -> Expression:
    left = from_algebra(node.expr)
    op, other = _param(node, "op"), _param(node, "other")
    if op is None or other is None:
        return left
    if op in ("IN", "NOT IN"):
        items = tuple(from_algebra(item) for item in _as_list(other))
        return Operation(op.lower(), (left,) + items)
    return Operation(str(op), (left, from_algebra(other)))


@converter("InExpression")
def _convert_in(node: CompValue) -> Expression:
    items = tuple(from_algebra(item) for item in _as_list(node.other))
    operator = "not in" if _param(node, "notin") else "in"
    return Operation(operator, (from_algebra(node.expr),) + items)


@converter("ConditionalAndExpression", "ConditionalOrExpression")
def _convert_conditional(node: CompValue) -> Expression:
    others = _as_list(_param(node, "other"))
    op = "&&" if node.name == "ConditionalAndExpression" else "||"
    return _chain([op] * len(others), from_algebra(node.expr), others)


@converter("AdditiveExpression", "MultiplicativeExpression")
def _convert_arithmetic(node: CompValue) -> Expression:
    others = _as_list(_param(node, "other"))
    operators = [str(op) for op in _as_list(_param(node, "op"))]
    return _chain(operators, from_algebra(node.expr), others)


@converter("UnaryNot")
def _convert_not(node: CompValue) -> Expression:
    return Operation("!", (from_algebra(node.expr),))


@converter("UnaryMinus")
def _convert_minus(node: CompValue) -> Expression:
    # Multiply so the operand keeps its datatype
    return Operation("*", (from_algebra(node.expr), _MINUS_ONE))


@converter("UnaryPlus")
def _convert_plus(node: CompValue) -> Expression:
    return from_algebra(node.expr)


@converter("Function")
def _convert_function(node: CompValue) -> Expression:
    args = tuple(from_algebra(arg) for arg in _as_list(_param(node, "expr")))
    return Operation(str(node.iri), args)


def _convert_builtin(node: CompValue) -> Expression:
    fname = node.name[8:].upper()
    operator = _BUILTIN_NAMES.get(fname, fname.lower())
    if fname in ("EXISTS", "NOTEXISTS"):
        raise UnsupportedOperator(operator, "graph patterns are not evaluated")

    args = []
    for key in _BUILTIN_PARAMS.get(fname, _DEFAULT_PARAMS):
        args.extend(_as_list(_param(node, key)))
    return Operation(operator, tuple(from_algebra(arg) for arg in args))


# =============================================================================
# Parsing
# =============================================================================


def _find_filter(node) -> Optional[CompValue]:
    """Depth-first search for the first Filter node of an algebra tree."""
    if not isinstance(node, CompValue):
        return None
    if node.name == "Filter":
        return node
    for value in node.values():
        for child in _as_list(value):
            found = _find_filter(child)
            if found is not None:
                return found
    return None


def parse_filter(text: str, prefixes: Optional[Dict[str, str]] = None) -> Expression:
    """Parse a SPARQL expression with rdflib and convert it.

    Args:
        text: the expression, e.g. ``?age >= 18 && STRSTARTS(?name, "A")``
        prefixes: prefix -> namespace IRI mappings usable in ``text``
    """
    prologue = "".join(
        f"PREFIX {prefix}: <{namespace}>\n"
        for prefix, namespace in (prefixes or {}).items()
    )
    query = f"{prologue}ASK {{ FILTER({text}) }}"
    query_algebra = algebra.translateQuery(parser.parseQuery(query)).algebra
    filter_node = _find_filter(query_algebra)
    if filter_node is None:
        raise UnsupportedExpressionType(text)
    logger.debug("Parsed filter %r", text)
    return from_algebra(filter_node.expr)
