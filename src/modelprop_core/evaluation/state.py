# src/modelprop_core/evaluation/state.py
"""
State descriptor table and the state vector binder.

The equation-compilation stage decides, before any model value is evaluated,
which state variables exist, in which order, and how many scalar elements each
one occupies. This module only fills the pre-allocated start vector `x_start`;
it never resizes or reorders it.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import pint

from ..units import Quantity, strip_units
from ..uncertainty import Particles, has_particles
from .exceptions import EvaluationError, LengthMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateInfo:
    """One state variable: its dotted path, its 0-based offset in `x_start`, and its length."""
    name: str
    start_index: int
    length: int = 1
    unit: Optional[str] = None

    def __post_init__(self):
        if self.length < 1:
            raise ValueError(f"State '{self.name}' must have a positive length, got {self.length}.")
        if self.start_index < 0:
            raise ValueError(f"State '{self.name}' must have a non-negative start index, got {self.start_index}.")

    @property
    def end_index(self) -> int:
        """One past the last element occupied by this state."""
        return self.start_index + self.length


@dataclass(frozen=True)
class EquationInfo:
    """The ordered state descriptor table, plus a derived name -> index mapping."""
    x_info: Tuple[StateInfo, ...] = ()
    x_dict: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "x_info", tuple(self.x_info))
        x_dict: Dict[str, int] = {}
        expected_start = 0
        for i, info in enumerate(self.x_info):
            if info.name in x_dict:
                raise ValueError(f"Duplicate state name '{info.name}' in state table.")
            if info.start_index != expected_start:
                raise ValueError(
                    f"State '{info.name}' starts at index {info.start_index}, expected {expected_start}. "
                    f"States must occupy the state vector contiguously and in table order."
                )
            x_dict[info.name] = i
            expected_start = info.end_index
        object.__setattr__(self, "x_dict", x_dict)

    @classmethod
    def from_states(cls, states: Iterable[Union[Tuple[str, int], Tuple[str, int, str], str]]) -> "EquationInfo":
        """
        Builds a table from `(name, length)` pairs (or `(name, length, unit)`, or
        bare names of length 1), assigning contiguous offsets in order.
        """
        infos: List[StateInfo] = []
        start = 0
        for entry in states:
            if isinstance(entry, str):
                name, length, unit = entry, 1, None
            else:
                name, length, *rest = entry
                unit = rest[0] if rest else None
            infos.append(StateInfo(name=name, start_index=start, length=int(length), unit=unit))
            start += int(length)
        return cls(tuple(infos))

    @property
    def nx(self) -> int:
        """Total number of scalar elements of the state vector."""
        return self.x_info[-1].end_index if self.x_info else 0

    def allocate(self, dtype=float) -> np.ndarray:
        return np.zeros(self.nx, dtype=dtype)

    def __contains__(self, name: str) -> bool:
        return name in self.x_dict

    def __len__(self) -> int:
        return len(self.x_info)


def effective_length(value: Any) -> int:
    """
    The number of state elements `value` fills. A sample-based uncertain value
    (see `has_particles`, which includes sequences holding `Particles`) counts as
    ONE element regardless of its number of samples or entries.
    """
    if has_particles(value):
        return 1
    magnitude = strip_units(value)
    if isinstance(magnitude, (list, tuple)):
        return len(magnitude)
    return int(np.size(magnitude))


def _single_element(magnitude: Any) -> Any:
    """Unwraps a one-element sequence; anything else is returned unchanged."""
    if isinstance(magnitude, (list, tuple)) and len(magnitude) == 1:
        return magnitude[0]
    if isinstance(magnitude, np.ndarray) and magnitude.ndim > 0 and magnitude.size == 1:
        return magnitude.ravel()[0]
    return magnitude


class StateVectorBinder:
    """
    Writes evaluated leaf values into their pre-allocated slots of `x_start` and
    tracks which states have been found during one traversal.
    """
    def __init__(self, equation_info: EquationInfo, x_start: np.ndarray, x_found: Optional[np.ndarray] = None):
        self.equation_info = equation_info
        self.x_start = x_start
        self.x_found = np.zeros(len(equation_info), dtype=bool) if x_found is None else x_found

    def bind(self, path: str, value: Any) -> bool:
        """
        Stores `value` if `path` names a declared state. Returns True if a write happened.

        Raises:
            LengthMismatchError: If the value's length differs from the declared length.
            EvaluationError: If the value cannot be converted to the state unit or
                             to the state vector's element type.
        """
        index = self.equation_info.x_dict.get(path)
        if index is None:
            return False
        info = self.equation_info.x_info[index]

        actual = effective_length(value)
        if actual != info.length:
            raise LengthMismatchError(name=info.name, declared=info.length, actual=actual)

        magnitude = self._to_magnitude(value, info)
        if info.length == 1:
            self.x_start[info.start_index] = self._convert(_single_element(magnitude), info)
        else:
            elements = magnitude if isinstance(magnitude, (list, tuple)) else np.ravel(magnitude)
            for k in range(info.length):
                self.x_start[info.start_index + k] = self._convert(elements[k], info)

        self.x_found[index] = True
        logger.debug("State '%s' stored at x_start[%d:%d].", info.name, info.start_index, info.end_index)
        return True

    def missing(self) -> List[str]:
        """Names of all declared states that have not been found, in table order."""
        return [info.name for info, found in zip(self.equation_info.x_info, self.x_found) if not found]

    def _to_magnitude(self, value: Any, info: StateInfo) -> Any:
        """Converts to the declared unit (if any), then strips units."""
        if info.unit is None:
            return strip_units(value)
        try:
            if isinstance(value, Quantity):
                return value.to(info.unit).magnitude
            if isinstance(value, (list, tuple)):
                return [v.to(info.unit).magnitude if isinstance(v, Quantity) else v for v in value]
        except pint.PintError as e:
            raise EvaluationError(path=info.name, expression=repr(value),
                                  details=f"Start value cannot be converted to the state unit '{info.unit}': {e}") from e
        return value

    def _convert(self, element: Any, info: StateInfo) -> Any:
        """Converts one unit-free element to the working numeric element type (copying it)."""
        element = strip_units(element)
        if self.x_start.dtype == object:
            return copy.deepcopy(element)
        if isinstance(element, Particles):
            element = element.mean()
        if isinstance(element, (list, tuple)) or (isinstance(element, np.ndarray) and element.ndim > 0):
            raise EvaluationError(
                path=info.name, expression=type(element).__name__,
                details=(f"A sequence start value cannot be stored in one element of a "
                         f"'{self.x_start.dtype}' state vector. Use a dtype=object state vector "
                         f"to keep it as a single element.")
            )
        try:
            return self.x_start.dtype.type(element)
        except (TypeError, ValueError) as e:
            raise EvaluationError(
                path=info.name, expression=type(element).__name__,
                details=(f"Start value of type '{type(element).__name__}' cannot be converted "
                         f"to the state vector element type '{self.x_start.dtype}': {e}")
            ) from e
