# src/modelprop_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("ModelProp Core package initialized.")

from .units import ureg, pint, Quantity, strip_units
from .uncertainty import Particles, has_particles
from .expressions import Expression, expr, substitute, ExecutionContext
from .evaluation import (
    StateInfo,
    EquationInfo,
    EvaluatedModel,
    HierarchicalEvaluator,
    find_by_identity,
    InstantiationError,
    ConflictError,
    EvaluationError,
    LengthMismatchError,
    MissingStateError,
    StateVectorSizeError,
)
from .config import InstantiationConfig, parse_instantiation_config, ConfigParsingError
from .instantiator import propagate_evaluate_and_instantiate, ModelInstantiator, InstantiationResult
from .loader import ModelFileLoader, LoadedModel
from .errors import ModelPropError, ModelInstantiationError

__all__ = [
    # Units & Uncertainty
    "ureg", "pint", "Quantity", "strip_units", "Particles", "has_particles",
    # Expressions
    "Expression", "expr", "substitute", "ExecutionContext",
    # State Table
    "StateInfo", "EquationInfo",
    # Evaluation
    "EvaluatedModel", "HierarchicalEvaluator", "find_by_identity",
    "propagate_evaluate_and_instantiate", "ModelInstantiator", "InstantiationResult",
    # Configuration & Loading
    "InstantiationConfig", "parse_instantiation_config", "ConfigParsingError",
    "ModelFileLoader", "LoadedModel",
    # Errors
    "InstantiationError", "ConflictError", "EvaluationError", "LengthMismatchError",
    "MissingStateError", "StateVectorSizeError",
    # Top-Level Errors (Actionable Diagnostics)
    "ModelPropError", "ModelInstantiationError",
]
