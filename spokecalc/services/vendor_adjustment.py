"""Vendor-specific post-processing of the geometric spoke length.

Steel spokes are ordered at their geometric length; their elastic stretch is
only reported. Elastomer-cored spokes need an empirical correction:

    final = metal + hub_constant + tension_compensation + short_spoke_adder

- hub_constant: end-fitting hardware length by hub interface
- tension_compensation: 0.000444·p² − 0.1231·p + 2.5, where p is the side's
  tension as a percentage of the tighter side
- short_spoke_adder: stepped allowance, larger for shorter spokes
"""

import logging

from pydantic import BaseModel

from spokecalc.core.enums import HubType, SpokeVendorClass
from spokecalc.core.errors import UnrecognizedValueError
from spokecalc.services.geometry import calculate_elongation

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

ELASTOMER_HUB_CONSTANTS_MM: dict[HubType, float] = {
    HubType.CLASSIC_FLANGE: 9.0,
    HubType.STRAIGHT_PULL: 7.5,
    HubType.HOOK_FLANGE: 2.0,
}

# (exclusive upper bound mm, adder mm), checked in order
SHORT_SPOKE_ADDERS_MM: list[tuple[float, float]] = [
    (200, 4.0),
    (220, 3.0),
    (240, 2.0),
    (260, 1.0),
]

TENSION_COEFFICIENTS = (0.000444, -0.1231, 2.5)  # a·p² + b·p + c


class AdjustedLength(BaseModel):
    metal: float
    final: float
    stretch: float | None = None
    hub_constant: float = 0.0
    tension_percent: float | None = None
    tension_compensation: float = 0.0
    short_spoke_adder: float = 0.0


# =============================================================================
# ELASTOMER-CORED CORRECTION TERMS
# =============================================================================


def hub_constant(hub_type: HubType) -> float:
    try:
        return ELASTOMER_HUB_CONSTANTS_MM[hub_type]
    except KeyError:
        raise UnrecognizedValueError(
            f"No elastomer-cored constant for hub type {hub_type!r}"
        ) from None


def tension_percentages(
    flange_left: float, flange_right: float, metal_left: float, metal_right: float
) -> tuple[float, float]:
    """Relative spoke tension of each side, tighter side = 100%.

    Tension on a dished wheel is inversely proportional to the bracing
    ratio offset/length, so the side with the smaller ratio is the tighter
    one. Degenerate ratios (zero offset or length) give 100% on both sides.
    """
    if metal_left <= 0 or metal_right <= 0:
        return 100.0, 100.0
    ratio_left = abs(flange_left) / metal_left
    ratio_right = abs(flange_right) / metal_right
    if ratio_left <= 0 or ratio_right <= 0:
        return 100.0, 100.0

    min_ratio = min(ratio_left, ratio_right)
    return (min_ratio / ratio_left) * 100, (min_ratio / ratio_right) * 100


def tension_compensation(percent: float) -> float:
    a, b, c = TENSION_COEFFICIENTS
    return a * percent**2 + b * percent + c


def short_spoke_adder(metal_length: float) -> float:
    for upper_bound, adder in SHORT_SPOKE_ADDERS_MM:
        if metal_length < upper_bound:
            return adder
    return 0.0


def elastomer_final_length(
    metal_length: float, hub_type: HubType, tension_percent: float
) -> AdjustedLength:
    constant = hub_constant(hub_type)
    compensation = tension_compensation(tension_percent)
    adder = short_spoke_adder(metal_length)
    return AdjustedLength(
        metal=metal_length,
        final=metal_length + constant + compensation + adder,
        hub_constant=constant,
        tension_percent=tension_percent,
        tension_compensation=compensation,
        short_spoke_adder=adder,
    )


# =============================================================================
# DISPATCH
# =============================================================================


def adjust_side_lengths(
    vendor_class: SpokeVendorClass,
    hub_type: HubType,
    metal_left: float,
    metal_right: float,
    flange_left: float,
    flange_right: float,
    tension_kgf: float = 0.0,
    cross_sectional_area: float | None = None,
) -> tuple[AdjustedLength, AdjustedLength]:
    """Apply the vendor's length model to both sides of a wheel.

    ``flange_left``/``flange_right`` are the effective (asymmetry-corrected)
    flange offsets the metal lengths were computed with.
    """
    if vendor_class is SpokeVendorClass.STEEL:
        return (
            AdjustedLength(
                metal=metal_left,
                final=metal_left,
                stretch=calculate_elongation(metal_left, tension_kgf, cross_sectional_area),
            ),
            AdjustedLength(
                metal=metal_right,
                final=metal_right,
                stretch=calculate_elongation(metal_right, tension_kgf, cross_sectional_area),
            ),
        )
    if vendor_class is SpokeVendorClass.ELASTOMER_CORED:
        pct_left, pct_right = tension_percentages(
            flange_left, flange_right, metal_left, metal_right
        )
        logger.debug(
            "Elastomer tension balance left=%.1f%% right=%.1f%%", pct_left, pct_right
        )
        return (
            elastomer_final_length(metal_left, hub_type, pct_left),
            elastomer_final_length(metal_right, hub_type, pct_right),
        )
    raise UnrecognizedValueError(f"Unrecognized spoke vendor class: {vendor_class!r}")
