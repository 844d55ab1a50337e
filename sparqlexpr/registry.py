"""Operator registry: calling metadata for every operator the evaluator knows.

Design principles:
- Declarative registration (operators are registered with a decorator)
- One construction step (the builder freezes into an immutable registry)
- Closed coercion kinds (an Enum, matched exhaustively)
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Optional

from sparqlexpr.errors import UnsupportedOperator

logger = logging.getLogger(__name__)


class Coercion(Enum):
    """How operator arguments or results are converted."""

    NONE = "none"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class OperatorDescriptor:
    """Calling metadata for a single operator.

    ``max_arity`` is None for variadic operators. Raw-expression operators
    receive the bindings and the unevaluated argument expressions instead
    of evaluated terms.
    """

    name: str
    min_arity: int
    max_arity: Optional[int]
    argument_coercion: Coercion
    result_coercion: Coercion
    raw_expression: bool
    implementation: Callable
    implemented: bool = True

    def accepts(self, count: int) -> bool:
        if count < self.min_arity:
            return False
        return self.max_arity is None or count <= self.max_arity

    @property
    def arity_text(self) -> str:
        if self.max_arity is None:
            return f"at least {self.min_arity}"
        if self.min_arity == self.max_arity:
            return str(self.min_arity)
        return f"{self.min_arity} to {self.max_arity}"


def infer_arity(fn: Callable, raw: bool = False) -> tuple[int, Optional[int]]:
    """Infer (min, max) arity from a function's positional parameters.

    Raw-expression implementations take the bindings as their first
    parameter; it is not counted.
    """
    params = list(inspect.signature(fn).parameters.values())
    if raw:
        params = params[1:]
    minimum, maximum = 0, 0
    for param in params:
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return minimum, None
        if param.kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            continue
        maximum += 1
        if param.default is inspect.Parameter.empty:
            minimum += 1
    return minimum, maximum


class OperatorRegistry:
    """Immutable mapping from operator name to descriptor."""

    def __init__(self, descriptors: Dict[str, OperatorDescriptor]):
        self._descriptors = MappingProxyType(dict(descriptors))

    def __getitem__(self, name: str) -> OperatorDescriptor:
        return self._descriptors[name]

    def __contains__(self, name) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, name: str) -> Optional[OperatorDescriptor]:
        return self._descriptors.get(name)

    def lookup(self, name: str) -> OperatorDescriptor:
        """Return the descriptor for ``name`` or raise UnsupportedOperator."""
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise UnsupportedOperator(name, "unknown operator")
        return descriptor

    def descriptors(self):
        return self._descriptors.values()


# =============================================================================
# Registry Builder
# =============================================================================


class RegistryBuilder:
    """Collect operator descriptors, then freeze them with ``build()``."""

    def __init__(self):
        self._descriptors: Dict[str, OperatorDescriptor] = {}
        self._built = False

    @classmethod
    def extend(cls, registry: OperatorRegistry) -> "RegistryBuilder":
        """Start a new builder pre-filled with the descriptors of ``registry``."""
        builder = cls()
        for name in registry:
            builder._descriptors[name] = registry[name]
        return builder

    def _add(self, descriptor: OperatorDescriptor):
        if self._built:
            raise RuntimeError("Registry has already been built")
        self._descriptors[descriptor.name] = descriptor

    def operator(
        self,
        *names: str,
        argument: Coercion = Coercion.NONE,
        result: Coercion = Coercion.NONE,
        raw: bool = False,
    ):
        """Decorator to register an operator implementation under ``names``."""

        def decorator(fn):
            min_arity, max_arity = infer_arity(fn, raw)
            for name in names:
                self._add(
                    OperatorDescriptor(
                        name=name,
                        min_arity=min_arity,
                        max_arity=max_arity,
                        argument_coercion=argument,
                        result_coercion=result,
                        raw_expression=raw,
                        implementation=fn,
                    )
                )
            return fn

        return decorator

    def unsupported(self, *names: str, arity: int = 1, max_arity: int = -1):
        """Declare operators that exist in the language but are not implemented.

        ``max_arity`` defaults to ``arity``; pass None for variadic stubs.
        """
        upper = arity if max_arity == -1 else max_arity
        for name in names:

            def not_implemented(*args, _name=name):
                raise UnsupportedOperator(_name, "not yet supported")

            self._add(
                OperatorDescriptor(
                    name=name,
                    min_arity=arity,
                    max_arity=upper,
                    argument_coercion=Coercion.NONE,
                    result_coercion=Coercion.NONE,
                    raw_expression=False,
                    implementation=not_implemented,
                    implemented=False,
                )
            )

    def build(self) -> OperatorRegistry:
        self._built = True
        registry = OperatorRegistry(self._descriptors)
        logger.debug(
            "Built operator registry with %d operators (%d stubs)",
            len(registry),
            sum(1 for d in registry.descriptors() if not d.implemented),
        )
        return registry
