# src/modelprop_core/instantiator.py

"""
Defines the driver of the propagate/evaluate/instantiate pass and its
user-facing facade.

Architectural Role:
`propagate_evaluate_and_instantiate` is the core entry point used by the
surrounding toolchain. It runs the `HierarchicalEvaluator` once over the model
tree, filling the caller's start vector, and then checks that every declared
state has been found. Its errors are the specific, inspectable exceptions of
`modelprop_core.evaluation`.

`ModelInstantiator` wraps that entry point for end users. It allocates the
start vector, applies an `InstantiationConfig`, and converts every diagnosable
error into a single `ModelInstantiationError` carrying an actionable report,
with the original exception available as `__cause__`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import numpy as np

from .config import InstantiationConfig
from .errors import DiagnosableError, ModelInstantiationError, format_diagnostic_report
from .expressions import ExecutionContext, empty_scope
from .evaluation import (
    EquationInfo,
    HierarchicalEvaluator,
    MissingStateError,
    StateVectorBinder,
    StateVectorSizeError,
)

logger = logging.getLogger(__name__)


def propagate_evaluate_and_instantiate(
    model: Mapping,
    equation_info: EquationInfo,
    x_start: np.ndarray,
    context: Optional[ExecutionContext] = None,
    *,
    log: bool = False,
    require_all_states: bool = True,
) -> Any:
    """
    Recursively traverses `model` and
    - propagates values through the scope chain,
    - evaluates expressions in `context`,
    - instantiates dependent objects,
    - stores the start values of states into `x_start` (length `equation_info.nx`).

    Returns:
        The evaluated model (an `EvaluatedModel`, or the object built by a root
        `_constructor`).

    Raises:
        ConflictError, EvaluationError, LengthMismatchError: The traversal was aborted.
        MissingStateError: The traversal finished but some states were never found.
        StateVectorSizeError: `x_start` does not have length `equation_info.nx`.
    """
    if len(x_start) != equation_info.nx:
        raise StateVectorSizeError(expected=equation_info.nx, actual=len(x_start))

    context = context if context is not None else ExecutionContext()
    binder = StateVectorBinder(equation_info, x_start)
    evaluator = HierarchicalEvaluator(context, binder, log=log)
    result = evaluator.evaluate(model, empty_scope(), "")

    missing = binder.missing()
    if missing:
        if require_all_states:
            raise MissingStateError(missing=tuple(missing))
        logger.warning(f"Missing start/init values for variables: {missing}")
    return result


@dataclass(frozen=True)
class InstantiationResult:
    """The outcome of a successful instantiation."""
    model: Any
    x_start: np.ndarray
    equation_info: EquationInfo


class ModelInstantiator:
    """
    Evaluates and instantiates model trees, reporting failures as
    `ModelInstantiationError`s.
    """
    def __init__(self, context: Optional[ExecutionContext] = None, config: Optional[InstantiationConfig] = None):
        self.context = context if context is not None else ExecutionContext()
        self.config = config if config is not None else InstantiationConfig()

    def instantiate(
        self,
        model: Mapping,
        equation_info: Optional[EquationInfo] = None,
        x_start: Optional[np.ndarray] = None,
    ) -> InstantiationResult:
        """
        The main entry point. Allocates `x_start` when it is not supplied and
        provides the top-level error handling for the whole pass.
        """
        equation_info = equation_info if equation_info is not None else EquationInfo()
        logger.info(f"--- Starting model instantiation ({len(equation_info)} declared states) ---")
        try:
            if x_start is None:
                x_start = equation_info.allocate(dtype=self.config.dtype)
            evaluated = propagate_evaluate_and_instantiate(
                model, equation_info, x_start, self.context,
                log=self.config.log,
                require_all_states=self.config.require_all_states,
            )
            logger.info("--- Model instantiation successful. ---")
            return InstantiationResult(model=evaluated, x_start=x_start, equation_info=equation_info)

        except DiagnosableError as e:
            raise ModelInstantiationError(e.get_diagnostic_report()) from e

        except Exception as e:
            report = format_diagnostic_report(
                error_type=f"An Unexpected Error Occurred ({type(e).__name__})",
                details=f"The model instantiator encountered an unexpected internal error: {str(e)}",
                suggestion="This may indicate a bug in ModelProp Core. Please review the traceback.",
                context={}
            )
            raise ModelInstantiationError(report) from e
