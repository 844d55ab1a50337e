"""SPARQL FILTER/BIND expression evaluation over string-encoded RDF terms."""

from sparqlexpr.algebra import from_algebra, parse_filter
from sparqlexpr.compiler import CompiledEvaluator, compile_expression
from sparqlexpr.errors import (
    ArgumentCompatibilityViolation,
    ArityMismatch,
    ExpressionError,
    InvalidArgument,
    UnboundVariable,
    UnsupportedExpressionType,
    UnsupportedOperator,
)
from sparqlexpr.evaluator import Evaluator, evaluate, holds
from sparqlexpr.expression import ConstantTerm, Operation, Variable, to_expression
from sparqlexpr.operators import DEFAULT_REGISTRY
from sparqlexpr.registry import (
    Coercion,
    OperatorDescriptor,
    OperatorRegistry,
    RegistryBuilder,
)
from sparqlexpr.solutions import extend_solutions, filter_solutions
from sparqlexpr.terms import FALSE, TRUE

__all__ = [
    "ArgumentCompatibilityViolation",
    "ArityMismatch",
    "Coercion",
    "CompiledEvaluator",
    "ConstantTerm",
    "DEFAULT_REGISTRY",
    "Evaluator",
    "ExpressionError",
    "FALSE",
    "InvalidArgument",
    "Operation",
    "OperatorDescriptor",
    "OperatorRegistry",
    "RegistryBuilder",
    "TRUE",
    "UnboundVariable",
    "UnsupportedExpressionType",
    "UnsupportedOperator",
    "Variable",
    "compile_expression",
    "evaluate",
    "extend_solutions",
    "filter_solutions",
    "from_algebra",
    "holds",
    "parse_filter",
    "to_expression",
]
