"""Compile expression trees into reusable evaluation closures.

Operator lookup and arity checks happen once, at compile time, so that a
malformed expression fails before any bindings arrive. The produced
closures hold no state and can be called concurrently with different
bindings.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from sparqlexpr.errors import ArityMismatch, UnboundVariable
from sparqlexpr.expression import (
    ConstantTerm,
    Expression,
    Operation,
    Variable,
    to_expression,
)
from sparqlexpr.operators import DEFAULT_REGISTRY
from sparqlexpr.registry import Coercion, OperatorDescriptor, OperatorRegistry
from sparqlexpr.terms import (
    XSD_INTEGER,
    boolean_literal,
    effective_boolean_value,
    explicit_datatype,
    is_literal,
    numeric_literal,
    parse_number,
)

logger = logging.getLogger(__name__)

Bindings = Mapping[str, str]


class CompiledEvaluator:
    """A compiled expression: call it with bindings to get a term."""

    __slots__ = ("expression", "_fn")

    def __init__(self, expression: Optional[Expression], fn: Callable):
        self.expression = expression
        self._fn = fn

    def __call__(self, bindings: Optional[Bindings] = None) -> Optional[str]:
        return self._fn(bindings)

    def __repr__(self):
        return f"CompiledEvaluator({self.expression!r})"


@dataclass(frozen=True)
class Deferred:
    """An unevaluated argument handed to a raw-expression operator."""

    expression: Expression
    registry: OperatorRegistry

    def evaluate(self, bindings: Optional[Bindings]) -> Optional[str]:
        return _compile(self.expression, self.registry)(bindings)


def _is_empty(expression) -> bool:
    return expression is None or expression == ""


def _noop(bindings=None):
    return None


# =============================================================================
# Coercion
# =============================================================================


def _coerce_argument(kind: Coercion, term, operator: str = "number"):
    if kind is Coercion.NONE:
        return term
    if kind is Coercion.NUMERIC:
        return parse_number(term, operator)
    if kind is Coercion.BOOLEAN:
        return effective_boolean_value(term)
    raise ValueError(f"Unknown argument coercion: {kind!r}")


def _coerce_result(kind: Coercion, result, first_argument):
    if kind is Coercion.NONE:
        return result
    if kind is Coercion.NUMERIC:
        # Simplified typing: the first argument's datatype is reused
        datatype = None
        if is_literal(first_argument):
            datatype = explicit_datatype(first_argument)
        return numeric_literal(result, datatype or XSD_INTEGER)
    if kind is Coercion.BOOLEAN:
        return boolean_literal(result)
    raise ValueError(f"Unknown result coercion: {kind!r}")


# =============================================================================
# Compilation
# =============================================================================


def _resolve(operation: Operation, registry: OperatorRegistry) -> OperatorDescriptor:
    """Look up the operator and check the argument count against its arity."""
    descriptor = registry.lookup(operation.operator)
    if not descriptor.accepts(len(operation.args)):
        raise ArityMismatch(
            operation.operator, len(operation.args), descriptor.arity_text
        )
    return descriptor


def _check(expression: Expression, registry: OperatorRegistry):
    """Validate operators and arities of a subtree without compiling it."""
    if isinstance(expression, Operation):
        _resolve(expression, registry)
        for arg in expression.args:
            _check(to_expression(arg), registry)


def _compile_constant(expression: ConstantTerm) -> Callable:
    text = expression.text

    def constant(bindings=None):
        return text

    return constant


def _compile_variable(expression: Variable) -> Callable:
    name = expression.name

    def variable(bindings=None):
        value = bindings.get(name) if bindings else None
        if value is None:
            raise UnboundVariable(name)
        return value

    return variable


def _compile_raw_operation(
    descriptor: OperatorDescriptor, args: tuple, registry: OperatorRegistry
) -> Callable:
    for arg in args:
        _check(arg, registry)
    deferred = tuple(Deferred(arg, registry) for arg in args)
    implementation = descriptor.implementation

    def raw_operation(bindings=None):
        return implementation(bindings, *deferred)

    return raw_operation


def _compile_operation(
    descriptor: OperatorDescriptor, args: tuple, registry: OperatorRegistry
) -> Callable:
    children = tuple(_compile(arg, registry) for arg in args)
    implementation = descriptor.implementation
    name = descriptor.name
    argument_coercion = descriptor.argument_coercion
    result_coercion = descriptor.result_coercion

    def operation(bindings=None):
        originals = [child(bindings) for child in children]
        coerced = [_coerce_argument(argument_coercion, a, name) for a in originals]
        result = implementation(*coerced)
        return _coerce_result(
            result_coercion, result, originals[0] if originals else None
        )

    return operation


def _compile(expression, registry: OperatorRegistry) -> Callable:
    if _is_empty(expression):
        return _noop
    expression = to_expression(expression)

    if isinstance(expression, ConstantTerm):
        return _compile_constant(expression)
    if isinstance(expression, Variable):
        return _compile_variable(expression)

    descriptor = _resolve(expression, registry)
    args = tuple(to_expression(arg) for arg in expression.args)
    if not descriptor.implemented:
        # Stubs fail on every evaluation, before any argument is looked at
        for arg in args:
            _check(arg, registry)
        return descriptor.implementation
    if descriptor.raw_expression:
        return _compile_raw_operation(descriptor, args, registry)
    return _compile_operation(descriptor, args, registry)


def compile_expression(
    expression, registry: Optional[OperatorRegistry] = None
) -> CompiledEvaluator:
    """Compile an expression tree (or a raw parser node) into an evaluator.

    ``None`` or ``""`` compiles to a no-op evaluator returning None, which
    callers use for vacuously true filters.
    """
    if registry is None:
        registry = DEFAULT_REGISTRY
    if _is_empty(expression):
        return CompiledEvaluator(None, _noop)
    expression = to_expression(expression)
    fn = _compile(expression, registry)
    logger.debug("Compiled expression %r", expression)
    return CompiledEvaluator(expression, fn)
