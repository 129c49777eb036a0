# src/modelprop_core/loader/loaded_model.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from ..config import InstantiationConfig
from ..evaluation import EquationInfo


@dataclass(frozen=True)
class LoadedModel:
    """Everything read from one model file, ready to hand to the `ModelInstantiator`."""
    model: Dict[str, Any]
    equation_info: EquationInfo
    config: InstantiationConfig
    source_path: Path
