# src/modelprop_core/expressions/substitution.py
"""
The expression substitution engine.

`substitute(value, scope, context)` rewrites expression leaves against a scope
chain without changing their shape:

- An identifier bound in the scope chain is replaced by the value of the
  innermost scope that binds it. Unbound identifiers are left untouched and are
  resolved later by the execution context (or fail there).
- A sequence of expressions is substituted elementwise and every element is
  evaluated immediately, so the result is a list of values, not of expressions.
- Any other value passes through unchanged.

Substitution is pure and total. It never mutates its input and never raises for
an unbound name.
"""

import ast
import logging
from collections import ChainMap
from typing import Any, Dict, Mapping, TYPE_CHECKING

from .expression import Expression, PLACEHOLDER_PREFIX, is_expression_sequence

if TYPE_CHECKING:
    from .context import ExecutionContext


logger = logging.getLogger(__name__)


class _ScopeSubstituter(ast.NodeTransformer):
    """
    Replaces every bound identifier with a unique placeholder name and records
    the resolved object under that placeholder.
    """
    def __init__(self, scope: Mapping[str, Any], existing_bindings: Mapping[str, Any]):
        self.scope = scope
        self.bindings: Dict[str, Any] = dict(existing_bindings)
        self._placeholder_counter = len(existing_bindings)

    def _get_placeholder(self) -> str:
        """Generates a unique, safe placeholder variable name."""
        while True:
            name = f"{PLACEHOLDER_PREFIX}{self._placeholder_counter}"
            self._placeholder_counter += 1
            if name not in self.bindings:
                return name

    def visit_Name(self, node: ast.Name) -> ast.AST:
        if not isinstance(node.ctx, ast.Load) or node.id.startswith(PLACEHOLDER_PREFIX):
            return node
        if node.id not in self.scope:
            return node
        placeholder = self._get_placeholder()
        self.bindings[placeholder] = self.scope[node.id]
        return ast.copy_location(ast.Name(id=placeholder, ctx=ast.Load()), node)


def substitute_expression(expression: Expression, scope: Mapping[str, Any]) -> Expression:
    """Substitutes a single expression; the result is a new `Expression`."""
    transformer = _ScopeSubstituter(scope, expression.bindings)
    new_tree = transformer.visit(expression.tree)
    return Expression(new_tree, transformer.bindings)


def substitute(value: Any, scope: Mapping[str, Any], context: "ExecutionContext") -> Any:
    """
    Rewrites `value` against `scope` (a `ChainMap` searched innermost-first).

    Args:
        value: A literal, an `Expression`, or a list/tuple containing expressions.
        scope: The scope chain visible at the leaf.
        context: Used only to evaluate the elements of an expression sequence.

    Returns:
        A substituted `Expression`, a list of evaluated values, or `value` itself.
    """
    if isinstance(value, Expression):
        return substitute_expression(value, scope)
    if is_expression_sequence(value):
        return [
            context.evaluate(substitute_expression(v, scope)) if isinstance(v, Expression) else v
            for v in value
        ]
    return value


def empty_scope() -> ChainMap:
    """The scope chain at the root of a traversal."""
    return ChainMap()
