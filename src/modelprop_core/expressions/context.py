# src/modelprop_core/expressions/context.py
"""
Defines the `ExecutionContext`, the namespace in which model expressions are run.

The evaluator never interprets formulas itself. It hands substituted expressions
to an execution context, which resolves the remaining identifiers (functions,
constants, types, constructors) and runs them. Any exception raised here is
passed on untouched; it is the evaluator's job to attach the dotted path.
"""

import logging
from types import ModuleType
from typing import Any, Callable, Dict, Mapping, Optional

import numpy as np

from ..units import ureg, Quantity
from ..uncertainty import Particles
from .expression import Expression

logger = logging.getLogger(__name__)


class ExecutionContext:
    """
    An injected evaluation strategy backed by Python's `eval()` over a globals
    namespace. Subclasses may override `evaluate` and `resolve` to bridge to
    another interpreter or a compiled-expression cache.
    """
    DEFAULT_GLOBALS = {
        "ureg": ureg,
        "Quantity": Quantity,
        "np": np,
        "pi": np.pi,
        "Particles": Particles,
    }

    def __init__(self, namespace: Optional[Mapping[str, Any]] = None, *, include_defaults: bool = True):
        self._namespace: Dict[str, Any] = dict(self.DEFAULT_GLOBALS) if include_defaults else {}
        if namespace:
            self._namespace.update(namespace)
        logger.debug("ExecutionContext created with %d global names.", len(self._namespace))

    @classmethod
    def from_module(cls, module: ModuleType, *, include_defaults: bool = True) -> "ExecutionContext":
        """Uses the public names of `module` as the evaluation namespace."""
        names = {k: v for k, v in vars(module).items() if not k.startswith("__")}
        return cls(names, include_defaults=include_defaults)

    @property
    def namespace(self) -> Mapping[str, Any]:
        return self._namespace

    def register(self, name: str, obj: Any) -> None:
        """Makes `obj` visible to expressions under `name`."""
        if name in self._namespace:
            logger.warning(f"Overwriting execution context name '{name}'.")
        self._namespace[name] = obj

    def evaluate(self, value: Any) -> Any:
        """
        Runs an `Expression` and returns its result. Any other value is a literal
        and is returned as-is.
        """
        if not isinstance(value, Expression):
            return value
        code = value.compiled()
        if value.bindings:
            scope = dict(self._namespace)
            scope.update(value.bindings)
            return eval(code, scope)
        return eval(code, self._namespace)

    def resolve(self, reference: Any) -> Callable:
        """
        Resolves a constructor reference. A callable is returned unchanged; an
        `Expression` or a (dotted) name string is evaluated in this namespace.

        Raises:
            TypeError: If the reference does not resolve to a callable.
        """
        if isinstance(reference, str):
            reference = Expression.parse(reference)
        target = self.evaluate(reference)
        if not callable(target):
            raise TypeError(f"Constructor reference resolved to a non-callable object of type '{type(target).__name__}'.")
        return target
