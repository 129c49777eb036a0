# src/modelprop_core/evaluation/evaluator.py

"""
Defines the `HierarchicalEvaluator`, which turns a partially symbolic model tree
into a fully evaluated one.

**Traversal contract:**

The evaluator performs ONE depth-first, left-to-right, outer-to-inner pass over
the model tree. At every node it:

1.  **Classifies the node** (`node_kinds.classify_node`) as a constructor
    directive, a collapsible parameter value, or a plain sub-tree. A constructor
    directive that also carries `value`, `init` or `start` is rejected before
    anything in the node is evaluated.

2.  **Evaluates fields in key order** into an accumulator. The accumulator is
    appended to the scope chain (`ChainMap.new_child`) for every child, so later
    keys may reference earlier keys of the same node and of every enclosing
    node. Forward references are unresolved identifiers and fail.

3.  **Binds state start values.** Every plain leaf is offered to the
    `StateVectorBinder` with its dotted path.

4.  **Finalizes** by returning the accumulator as an `EvaluatedModel`, or by
    calling the node's constructor with the accumulator as keyword arguments.

Every failure aborts the whole traversal. Constructors that already ran are
not rolled back.
"""

import logging
from collections import ChainMap
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from ..expressions import ExecutionContext, Expression, substitute
from .exceptions import InstantiationError, EvaluationError
from .node_kinds import (
    NodeKind,
    VALUE_KEY,
    classify_node,
    classify_child,
    consumed_keys,
    unwrap_constructor,
)
from .state import StateVectorBinder

logger = logging.getLogger(__name__)


class EvaluatedModel(dict):
    """
    The evaluated form of a model tree node: an ordered mapping whose entries can
    also be read as attributes, so expressions may refer to `sub.field`.

    Fields take precedence over dict methods, so `sub.values` or `sub.items` name
    the model fields when the node defines them. Shadowed dict methods remain
    reachable as `dict.items(sub)`.
    """
    def __getattribute__(self, name: str) -> Any:
        if not name.startswith("__"):
            try:
                return dict.__getitem__(self, name)
            except KeyError:
                pass
        return super().__getattribute__(name)

    def __getattr__(self, name: str) -> Any:
        raise AttributeError(f"Evaluated model has no field '{name}'.")

    # Copy and pickle through the dict storage; an `items` field must not shadow it.
    def __reduce__(self):
        return (type(self), (dict.copy(self),))

    def __repr__(self):
        return f"EvaluatedModel({dict.__repr__(self)})"


def append_key(path: str, key: str) -> str:
    """Extends a dotted path by one key; the root path is the empty string."""
    return str(key) if path == "" else f"{path}.{key}"


def _describe(value: Any) -> str:
    if isinstance(value, Expression):
        return value.source
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_describe(v) for v in value) + "]"
    return repr(value)


class HierarchicalEvaluator:
    """
    Recursively propagates, evaluates and instantiates one model tree.
    An evaluator instance holds the shared state of a single traversal.
    """
    def __init__(self, context: ExecutionContext, binder: StateVectorBinder, *, log: bool = False):
        self.context = context
        self.binder = binder
        self._trace: Callable[..., None] = logger.info if log else logger.debug

    def evaluate(self, node: Mapping, scope: Optional[ChainMap] = None, path: str = "") -> Any:
        """
        Evaluates `node` at dotted `path` under `scope`.

        Returns:
            An `EvaluatedModel`, a constructed object, or (for a node holding `value`)
            the evaluated scalar.

        Raises:
            ConflictError, EvaluationError, LengthMismatchError
        """
        scope = ChainMap() if scope is None else scope
        self._trace("Instantiate objects of '%s'", path or "<root>")
        current: Dict[str, Any] = {}
        local_scope = scope.new_child(current)

        kind = classify_node(node, path)
        constructor = None
        use_path = False
        if kind is NodeKind.CONSTRUCTOR_DIRECTIVE:
            directive = unwrap_constructor(node, path)
            constructor = self._resolve_constructor(directive.reference, path)
            use_path = directive.use_path
        elif kind is NodeKind.PARAMETER_VALUE:
            return self._evaluate_leaf(node[VALUE_KEY], local_scope, path)

        skipped = consumed_keys(kind)
        for key in node:
            if key in skipped:
                continue
            value = node[key]
            key_path = append_key(path, key)
            child_kind = classify_child(value)

            if child_kind is NodeKind.PARAMETER_VALUE:
                # k = {class: Par, value: <expr>} collapses to k = <evaluated expr>.
                current[key] = self._evaluate_leaf(value[VALUE_KEY], local_scope, key_path)
                self._trace("    class & value: %s = %r", key_path, current[key])

            elif child_kind is NodeKind.SUB_TREE:
                current[key] = self.evaluate(value, local_scope, key_path)

            else:
                current[key] = self._evaluate_leaf(value, local_scope, key_path)
                self._trace("    %s = %r", key_path, current[key])
                if self.binder.bind(key_path, current[key]):
                    self._trace("        (%s is stored in x_start)", key_path)

        if constructor is None:
            return EvaluatedModel(current)
        return self._construct(constructor, current, use_path, path)

    def _evaluate_leaf(self, value: Any, scope: ChainMap, path: str) -> Any:
        """Substitutes `value` against `scope` and runs it in the execution context."""
        try:
            substituted = substitute(value, scope, self.context)
            return self.context.evaluate(substituted)
        except InstantiationError:
            raise
        except Exception as e:
            raise EvaluationError(path=path, expression=_describe(value),
                                  details=f"{type(e).__name__}: {e}") from e

    def _resolve_constructor(self, reference: Any, path: str) -> Callable:
        try:
            return self.context.resolve(reference)
        except Exception as e:
            raise EvaluationError(path=path, expression=_describe(reference),
                                  details=f"Constructor could not be resolved. {type(e).__name__}: {e}") from e

    def _construct(self, constructor: Callable, current: Dict[str, Any], use_path: bool, path: str) -> Any:
        kwargs = dict(current)
        if use_path:
            if "path" in kwargs:
                raise EvaluationError(path=path, expression=_describe(constructor),
                                      details="The node defines a field 'path', which clashes with '_path = true'.")
            kwargs = {"path": path, **kwargs}
        try:
            obj = constructor(**kwargs)
        except Exception as e:
            raise EvaluationError(
                path=path, expression=getattr(constructor, "__qualname__", repr(constructor)),
                details=f"Constructor call failed. {type(e).__name__}: {e}"
            ) from e
        self._trace("    +++ %s: type(obj) = %s", path or "<root>", type(obj).__name__)
        return obj
