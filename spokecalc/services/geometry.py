"""Spoke length geometry.

## Core Formulas

### Effective cross pattern
    Straight-pull spokes interleave at half-integer crossing angles relative
    to a classic flange, so any crossed pattern gains +0.5.

### Spoke angle (radians)
    angle = 2π × effective_cross / (spoke_count / 2)

### Length (3D law of cosines)
    length² = z² + r_hub² + r_rim² − 2 × r_hub × r_rim × cos(angle)

    r_hub = flange_diameter / 2, r_rim = final_erd / 2,
    z = flange offset (already corrected for rim asymmetry by the caller)

### Hub-type correction
    Classic flange:  length − spoke_hole_diameter / 2
    Straight pull:   length + sp_offset
    Hook flange:     length (optionally − spoke_hole_diameter / 2)

### Elastic elongation (steel)
    elongation = (T × L) / (E × A), T in N, E = 210 GPa
"""

import math
from typing import Optional

from pydantic import BaseModel, Field

from spokecalc.core.enums import HookFlangeCorrection, HubType
from spokecalc.core.errors import MissingParameterError, UnrecognizedValueError

# =============================================================================
# CONSTANTS
# =============================================================================

YOUNG_MODULUS_STEEL_GPA = 210
STANDARD_GRAVITY = 9.80665  # m/s², kgf -> N


class SpokeGeometryParams(BaseModel):
    """Inputs for one side of one wheel."""

    is_left: bool
    hub_type: HubType
    base_cross_pattern: int = Field(ge=0)
    spoke_count: int
    final_erd: float
    hub_flange_diameter: float
    flange_offset: float
    # Solver-side asymmetry; callers normally pre-adjust flange_offset and leave 0
    rim_spoke_hole_offset: float = 0.0
    sp_offset: float = 0.0
    hub_spoke_hole_diameter: Optional[float] = None


def effective_cross_pattern(hub_type: HubType, base_cross_pattern: int) -> float:
    if hub_type is HubType.STRAIGHT_PULL and base_cross_pattern > 0:
        return base_cross_pattern + 0.5
    return float(base_cross_pattern)


def spoke_angle(effective_cross: float, spoke_count: int) -> float:
    """Angle at the hub axis between a spoke's hub hole and its rim hole."""
    return (2 * math.pi * effective_cross) / (spoke_count / 2)


def _require_positive(name: str, value: float) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise MissingParameterError(f"{name} must be a positive number (got {value}).")


def geometric_length(params: SpokeGeometryParams) -> float:
    """Straight-line distance from hub flange hole to rim nipple seat (mm).

    Raises:
        MissingParameterError: a required dimension is not positive, or the
            dimensions are too large to give a finite length.
    """
    _require_positive("Spoke count", params.spoke_count)
    _require_positive("Final ERD", params.final_erd)
    _require_positive("Hub flange diameter", params.hub_flange_diameter)

    hub_radius = params.hub_flange_diameter / 2
    rim_radius = params.final_erd / 2

    cross = effective_cross_pattern(params.hub_type, params.base_cross_pattern)
    angle = spoke_angle(cross, params.spoke_count)

    asymmetry = -params.rim_spoke_hole_offset if params.is_left else params.rim_spoke_hole_offset
    z_offset = params.flange_offset + asymmetry

    try:
        length = math.sqrt(
            z_offset**2
            + hub_radius**2
            + rim_radius**2
            - 2 * hub_radius * rim_radius * math.cos(angle)
        )
    except (OverflowError, ValueError):
        length = math.nan
    if not math.isfinite(length):
        raise MissingParameterError(
            f"Spoke geometry out of range (ERD {params.final_erd}, "
            f"flange diameter {params.hub_flange_diameter}, offset {z_offset})."
        )
    return length


def _half_spoke_hole(params: SpokeGeometryParams) -> float:
    diameter = params.hub_spoke_hole_diameter
    if diameter is None or math.isnan(diameter):
        raise MissingParameterError(
            f"Missing Hub Spoke Hole Diameter for {params.hub_type.value} hub."
        )
    return diameter / 2


def calculate_spoke_length(
    params: SpokeGeometryParams,
    hook_flange_correction: HookFlangeCorrection = HookFlangeCorrection.NONE,
) -> float:
    """Calculate the metal spoke length for one side, in mm.

    Raises:
        MissingParameterError: a classic-flange hub (or a hook flange with
            spoke-hole correction enabled) has no spoke-hole diameter, or a
            required dimension is not positive.
    """
    length = geometric_length(params)

    if params.hub_type is HubType.CLASSIC_FLANGE:
        return length - _half_spoke_hole(params)
    if params.hub_type is HubType.STRAIGHT_PULL:
        return length + params.sp_offset
    if params.hub_type is HubType.HOOK_FLANGE:
        if hook_flange_correction is HookFlangeCorrection.SPOKE_HOLE:
            return length - _half_spoke_hole(params)
        return length
    raise UnrecognizedValueError(f"Unrecognized hub type: {params.hub_type!r}")


def calculate_elongation(
    spoke_length: float, tension_kgf: float, cross_sectional_area: float | None
) -> float:
    """Estimate elastic stretch of a steel spoke under tension.

    Args:
        spoke_length: Spoke length in mm
        tension_kgf: Target tension in kilograms-force
        cross_sectional_area: Spoke cross-section in mm²

    Returns:
        Elongation in mm (0 when the area is unknown)

    Example:
        >>> round(calculate_elongation(290, 120, 2.01), 3)
        0.809
    """
    if not cross_sectional_area:
        return 0.0
    tension_n = tension_kgf * STANDARD_GRAVITY
    modulus_pa = YOUNG_MODULUS_STEEL_GPA * 1e9
    elongation_m = (tension_n * (spoke_length / 1000)) / (
        modulus_pa * (cross_sectional_area / 1e6)
    )
    return elongation_m * 1000
