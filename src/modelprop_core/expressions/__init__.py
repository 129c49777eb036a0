# src/modelprop_core/expressions/__init__.py
from .expression import Expression, expr, is_expression_sequence
from .substitution import substitute, substitute_expression, empty_scope
from .context import ExecutionContext

__all__ = [
    # Expression Leaves
    "Expression",
    "expr",
    "is_expression_sequence",
    # Substitution Engine
    "substitute",
    "substitute_expression",
    "empty_scope",
    # Execution Context
    "ExecutionContext",
]
