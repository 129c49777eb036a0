# src/modelprop_core/config.py
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import numpy as np

logger = logging.getLogger(__name__)

class ConfigParsingError(ValueError):
    """Custom exception for errors during instantiation configuration parsing."""
    pass


@dataclass(frozen=True)
class InstantiationConfig:
    """Settings for one propagate/evaluate/instantiate run."""
    float_dtype: str = "float64"
    log: bool = False
    require_all_states: bool = True

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.float_dtype)


_KNOWN_KEYS = {"float_dtype", "log", "require_all_states"}


def parse_instantiation_config(raw_config: Optional[Dict[str, Any]]) -> InstantiationConfig:
    """
    Parses a raw settings dictionary (e.g. the `settings` block of a model file)
    into an `InstantiationConfig`. Missing keys take their defaults.
    """
    if not raw_config:
        return InstantiationConfig()
    try:
        unknown = set(raw_config) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown setting(s): {sorted(unknown)}.")

        float_dtype = str(raw_config.get("float_dtype", "float64"))
        dtype = np.dtype(float_dtype)
        if dtype != np.dtype(object) and dtype.kind not in "fc":
            raise ValueError(f"float_dtype must be a floating, complex or object dtype, got '{float_dtype}'.")

        for flag in ("log", "require_all_states"):
            if flag in raw_config and not isinstance(raw_config[flag], bool):
                raise ValueError(f"Setting '{flag}' must be a boolean.")

        return InstantiationConfig(
            float_dtype=dtype.name,
            log=raw_config.get("log", False),
            require_all_states=raw_config.get("require_all_states", True),
        )
    except (TypeError, ValueError) as e:
        raise ConfigParsingError(f"Failed to parse instantiation settings: {e}") from e
