"""Orderable spoke lengths.

- Steel: manufacturers stock even lengths only, so round up to the next even mm.
- Elastomer-cored: round to the nearest mm, then subtract 2 (puller convention).
"""

import math

from spokecalc.core.enums import SpokeVendorClass
from spokecalc.core.errors import MissingParameterError, UnrecognizedValueError

PULLER_OFFSET_MM = 2


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def round_for_ordering(length: float, vendor_class: SpokeVendorClass) -> int:
    """Map a final spoke length (mm) to the length to pick from stock.

    Examples:
        >>> round_for_ordering(290.2, SpokeVendorClass.STEEL)
        292
        >>> round_for_ordering(292.0, SpokeVendorClass.STEEL)
        292
        >>> round_for_ordering(293.5, SpokeVendorClass.ELASTOMER_CORED)
        292
    """
    if not math.isfinite(length):
        raise MissingParameterError(f"Spoke length is not a finite number (got {length}).")
    if vendor_class is SpokeVendorClass.ELASTOMER_CORED:
        return round_half_up(length) - PULLER_OFFSET_MM
    if vendor_class is SpokeVendorClass.STEEL:
        return math.ceil(length / 2) * 2
    raise UnrecognizedValueError(f"Unrecognized spoke vendor class: {vendor_class!r}")
