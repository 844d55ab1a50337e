"""Evaluator facade: compile once, evaluate against many binding rows."""

from typing import Mapping, Optional

from sparqlexpr.compiler import CompiledEvaluator, compile_expression
from sparqlexpr.operators import DEFAULT_REGISTRY
from sparqlexpr.registry import OperatorRegistry
from sparqlexpr.terms import effective_boolean_value


class Evaluator:
    """Evaluate SPARQL expressions against variable bindings.

    The registry determines which operators are available; it defaults to
    the shared built-in catalogue. Use ``RegistryBuilder.extend`` to build
    one with extension functions.
    """

    def __init__(self, registry: Optional[OperatorRegistry] = None):
        self.registry = registry if registry is not None else DEFAULT_REGISTRY

    def compile(self, expression) -> CompiledEvaluator:
        """Compile an expression for repeated evaluation."""
        return compile_expression(expression, self.registry)

    def evaluate(self, expression, bindings: Optional[Mapping[str, str]] = None):
        """Compile and evaluate an expression in one step."""
        return self.compile(expression)(bindings)

    def holds(self, expression, bindings: Optional[Mapping[str, str]] = None) -> bool:
        """Effective boolean value of the expression, as a FILTER sees it.

        An empty expression is vacuously true.
        """
        return holds(self.compile(expression), bindings)


def holds(compiled: CompiledEvaluator, bindings: Optional[Mapping[str, str]]) -> bool:
    result = compiled(bindings)
    return True if result is None else effective_boolean_value(result)


_default = Evaluator()


def evaluate(expression, bindings: Optional[Mapping[str, str]] = None):
    """Compile and evaluate ``expression`` with the built-in operators."""
    return _default.evaluate(expression, bindings)
