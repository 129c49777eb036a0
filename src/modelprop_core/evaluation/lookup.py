# src/modelprop_core/evaluation/lookup.py
import logging
from collections.abc import Mapping
from typing import Any, Optional

from .node_kinds import ID_KEY

logger = logging.getLogger(__name__)


def find_by_identity(node: Mapping, target_id: Any) -> Optional[Mapping]:
    """
    Searches `node` depth-first, pre-order, for a sub-tree with `_id == target_id`.

    Children are visited in key order and the first match is returned. Returns
    None if no node carries the id. Works on raw and on evaluated trees alike;
    nothing is evaluated or modified.
    """
    if ID_KEY in node and node[ID_KEY] == target_id:
        return node
    for key in node:
        value = node[key]
        if isinstance(value, Mapping):
            result = find_by_identity(value, target_id)
            if result is not None:
                return result
    return None
