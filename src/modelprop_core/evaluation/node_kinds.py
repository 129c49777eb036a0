# src/modelprop_core/evaluation/node_kinds.py
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from .exceptions import ConflictError, EvaluationError

logger = logging.getLogger(__name__)

# Reserved model tree keys.
CLASS_KEY = "class"
VALUE_KEY = "value"
CONSTRUCTOR_KEY = "_constructor"
PATH_KEY = "_path"
INIT_KEY = "init"
START_KEY = "start"
ID_KEY = "_id"

PARAMETER_CLASS = "Par"

_CONSTRUCTOR_CONFLICTS = (VALUE_KEY, INIT_KEY, START_KEY)


class NodeKind(Enum):
    PLAIN_FIELD = auto()
    PARAMETER_VALUE = auto()
    CONSTRUCTOR_DIRECTIVE = auto()
    SUB_TREE = auto()


@dataclass(frozen=True)
class ConstructorSpec:
    """The unwrapped `_constructor` directive of a node."""
    reference: Any
    use_path: bool


def is_model_node(value: Any) -> bool:
    return isinstance(value, Mapping)


def classify_node(node: Mapping, path: str) -> NodeKind:
    """
    Decides once how a node being evaluated is treated.

    Raises:
        ConflictError: If `_constructor` co-occurs with `value`, `init` or `start`.
    """
    if CONSTRUCTOR_KEY in node:
        conflicts = tuple(k for k in _CONSTRUCTOR_CONFLICTS if k in node)
        if conflicts:
            raise ConflictError(path=path, conflicting_keys=conflicts)
        return NodeKind.CONSTRUCTOR_DIRECTIVE
    if VALUE_KEY in node:
        return NodeKind.PARAMETER_VALUE
    return NodeKind.SUB_TREE


def classify_child(value: Any) -> NodeKind:
    """Decides how a field of a node is treated."""
    if not is_model_node(value):
        return NodeKind.PLAIN_FIELD
    if VALUE_KEY in value and CLASS_KEY in value and value[CLASS_KEY] == PARAMETER_CLASS:
        return NodeKind.PARAMETER_VALUE
    return NodeKind.SUB_TREE


def unwrap_constructor(node: Mapping, path: str) -> ConstructorSpec:
    """
    Extracts the constructor reference and the `_path` flag.

    The directive is either a direct reference (`_path` given as a sibling key) or
    a descriptor mapping such as `{class: Par, value: <ref>, _path: True}`. When a
    descriptor carries its own `_path`, that flag wins over a sibling `_path`.
    """
    directive = node[CONSTRUCTOR_KEY]
    use_path: Optional[Any] = None
    if is_model_node(directive):
        if VALUE_KEY not in directive:
            raise EvaluationError(path=path, expression=repr(dict(directive)),
                                  details="A constructor descriptor must carry a 'value' key naming the constructor.")
        reference = directive[VALUE_KEY]
        use_path = directive[PATH_KEY] if PATH_KEY in directive else None
    else:
        reference = directive
    if use_path is None:
        use_path = node[PATH_KEY] if PATH_KEY in node else False
    return ConstructorSpec(reference=reference, use_path=bool(use_path))


def consumed_keys(kind: NodeKind) -> frozenset:
    """Reserved keys that a node of `kind` consumes instead of emitting as fields."""
    if kind is NodeKind.CONSTRUCTOR_DIRECTIVE:
        return frozenset({CONSTRUCTOR_KEY, PATH_KEY, CLASS_KEY})
    return frozenset({CONSTRUCTOR_KEY, PATH_KEY})
