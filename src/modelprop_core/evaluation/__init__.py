# src/modelprop_core/evaluation/__init__.py
from .exceptions import (
    InstantiationError,
    ConflictError,
    EvaluationError,
    LengthMismatchError,
    MissingStateError,
    StateVectorSizeError,
)
from .node_kinds import NodeKind, ConstructorSpec, classify_node, classify_child, unwrap_constructor
from .state import StateInfo, EquationInfo, StateVectorBinder, effective_length
from .evaluator import HierarchicalEvaluator, EvaluatedModel, append_key
from .lookup import find_by_identity

__all__ = [
    # Exceptions
    "InstantiationError",
    "ConflictError",
    "EvaluationError",
    "LengthMismatchError",
    "MissingStateError",
    "StateVectorSizeError",
    # Node Classification
    "NodeKind",
    "ConstructorSpec",
    "classify_node",
    "classify_child",
    "unwrap_constructor",
    # State Table & Binder
    "StateInfo",
    "EquationInfo",
    "StateVectorBinder",
    "effective_length",
    # Evaluator
    "HierarchicalEvaluator",
    "EvaluatedModel",
    "append_key",
    # Identifier Lookup
    "find_by_identity",
]
