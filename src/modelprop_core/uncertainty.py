# src/modelprop_core/uncertainty.py
"""
Sample-based uncertain values for Monte Carlo style model evaluation.

A `Particles` value carries N samples of one scalar quantity. Arithmetic is
delegated to NumPy sample by sample, so `2 * p + 1` and `np.sin(p)` produce new
`Particles`. Whatever the number of samples, a `Particles` value stands for ONE
scalar when it is written to a state vector.
"""

import logging
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)


class Particles(np.lib.mixins.NDArrayOperatorsMixin):
    """An uncertain scalar represented by a 1-D array of samples."""

    __array_priority__ = 20

    def __init__(self, samples):
        arr = np.asarray(samples, dtype=float)
        if arr.ndim != 1 or arr.size == 0:
            raise ValueError("Particles require a non-empty 1-D array of samples.")
        self.samples: np.ndarray = arr

    @classmethod
    def normal(cls, mean: float, std: float, n: int = 2000, seed=None) -> "Particles":
        """Draws `n` normally distributed samples."""
        rng = np.random.default_rng(seed)
        return cls(rng.normal(mean, std, n))

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        if method != "__call__" or "out" in kwargs:
            return NotImplemented
        args = [x.samples if isinstance(x, Particles) else x for x in inputs]
        result = getattr(ufunc, method)(*args, **kwargs)
        if isinstance(result, tuple):
            return tuple(Particles(r) for r in result)
        if isinstance(result, np.ndarray) and result.dtype == bool:
            return result
        return Particles(result)

    @property
    def nparticles(self) -> int:
        return self.samples.size

    def mean(self) -> float:
        return float(np.mean(self.samples))

    def std(self) -> float:
        return float(np.std(self.samples, ddof=1)) if self.samples.size > 1 else 0.0

    @property
    def nominal(self) -> float:
        return self.mean()

    def __float__(self):
        return self.mean()

    def __deepcopy__(self, memo):
        return Particles(self.samples.copy())

    def __repr__(self):
        return f"Particles({self.mean():.6g} ± {self.std():.3g}, n={self.nparticles})"


def has_particles(value: Any) -> bool:
    """
    True when `value` is sample-based: a `Particles`, a `pint.Quantity` whose
    magnitude is `Particles`, or a list/tuple/object array containing them.
    """
    if isinstance(value, Particles):
        return True
    magnitude = getattr(value, "magnitude", None)
    if magnitude is not None and magnitude is not value:
        return has_particles(magnitude)
    if isinstance(value, (list, tuple)):
        return any(isinstance(v, Particles) for v in value)
    if isinstance(value, np.ndarray) and value.dtype == object:
        return any(isinstance(v, Particles) for v in value.flat)
    return False
