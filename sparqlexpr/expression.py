"""Expression tree nodes.

Parsers hand over expression trees in a loose shape: a term string, a
variable name starting with ``?``, or an ``{"operator": ..., "args": [...]}``
operation. ``to_expression`` normalises such nodes into the immutable
dataclasses below.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Union

from sparqlexpr.errors import UnsupportedExpressionType

VARIABLE_SIGIL = "?"


@dataclass(frozen=True)
class ConstantTerm:
    """An IRI or literal in its final string encoding."""

    text: str


@dataclass(frozen=True)
class Variable:
    """A reference to a binding; the name includes the ``?`` sigil."""

    name: str


@dataclass(frozen=True)
class Operation:
    operator: str
    args: tuple = ()

    def __post_init__(self):
        # Accept lists from callers but keep the node hashable
        object.__setattr__(self, "args", tuple(self.args))


Expression = Union[ConstantTerm, Variable, Operation]


def to_expression(node) -> Expression:
    """Normalise an expression tree node into ConstantTerm/Variable/Operation."""
    if isinstance(node, (ConstantTerm, Variable, Operation)):
        return node

    if isinstance(node, str):
        if node.startswith(VARIABLE_SIGIL):
            return Variable(node)
        return ConstantTerm(node)

    if isinstance(node, Mapping):
        if "operator" not in node:
            raise UnsupportedExpressionType(node)
        operator, args = node["operator"], node.get("args", ())
    elif hasattr(node, "operator") and hasattr(node, "args"):
        operator, args = node.operator, node.args
    else:
        raise UnsupportedExpressionType(node)

    if not isinstance(operator, str):
        raise UnsupportedExpressionType(node)
    return Operation(operator, tuple(to_expression(arg) for arg in args or ()))
