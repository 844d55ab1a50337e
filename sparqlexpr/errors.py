"""Errors raised while compiling or evaluating SPARQL expressions."""


class ExpressionError(Exception):
    """Base class for all expression compilation and evaluation errors."""


class UnsupportedExpressionType(ExpressionError):
    """The node is neither a constant term, a variable nor an operation."""

    def __init__(self, node):
        self.node = node
        super().__init__(f"Unsupported expression type: {type(node).__name__}")


class UnboundVariable(ExpressionError):
    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(
            f"Cannot evaluate variable {variable} because it is not bound."
        )


class UnsupportedOperator(ExpressionError):
    """The operator is unknown, or declared but not implemented."""

    def __init__(self, operator: str, reason: str = "not supported"):
        self.operator = operator
        super().__init__(f"Unsupported operator: {operator.upper()} ({reason}).")


class ArityMismatch(ExpressionError):
    def __init__(self, operator: str, given: int, expected: str):
        self.operator = operator
        self.given = given
        self.expected = expected
        super().__init__(
            f"Invalid number of arguments for {operator.upper()}: {given} "
            f"(expected: {expected})."
        )


class ArgumentCompatibilityViolation(ExpressionError):
    """String function arguments carry incompatible language tags."""

    def __init__(self, operator: str, *args: str):
        self.operator = operator
        self.args_ = args
        super().__init__(
            f"{operator.upper()} requires compatible arguments, got: "
            + ", ".join(args)
        )


class InvalidArgument(ExpressionError):
    def __init__(self, operator: str, message: str):
        self.operator = operator
        super().__init__(f"{operator.upper()}: {message}")


# Errors that only mean "this solution has no value", as opposed to a
# malformed expression. COALESCE and the solution helpers absorb these.
EVALUATION_ERRORS = (UnboundVariable, InvalidArgument, ArgumentCompatibilityViolation)
