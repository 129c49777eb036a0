# src/modelprop_core/units.py
import logging
from typing import Any

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.debug("Pint Unit Registry initialized.")


def strip_units(value: Any) -> Any:
    """
    Returns the magnitude of a `pint.Quantity`. Lists and tuples are stripped
    elementwise; every other value is returned unchanged.
    """
    if isinstance(value, Quantity):
        return value.magnitude
    if isinstance(value, (list, tuple)):
        return [strip_units(v) for v in value]
    return value
