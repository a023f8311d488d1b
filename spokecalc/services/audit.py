"""Regression harness calculation.

Replays a flat measurement set (as exported from the official calculator)
through the same geometry, vendor and rounding code the order flow uses, so
results can be diffed case by case. The rear-wheel asymmetry convention is
assumed since that is where asymmetric rims matter most.
"""

import logging

from spokecalc.config import EngineConfig
from spokecalc.core.enums import SpokeVendorClass, WheelPosition
from spokecalc.core.errors import InfeasibleLacingError
from spokecalc.models.audit import AuditCalculatorRequest
from spokecalc.models.results import CrossPattern, SideLengths, WheelCalculationResult
from spokecalc.services.build_engine import side_length
from spokecalc.services.geometry import SpokeGeometryParams, calculate_spoke_length
from spokecalc.services.lacing import is_lacing_possible, lacing_angle
from spokecalc.services.vendor_adjustment import adjust_side_lengths

logger = logging.getLogger(__name__)


def run_audit_calculation(
    inputs: AuditCalculatorRequest, config: EngineConfig | None = None
) -> WheelCalculationResult:
    """Calculate both sides of a wheel from raw measurements.

    Raises:
        InfeasibleLacingError: either side's cross pattern interferes.
        MissingParameterError: classic flange without a spoke-hole diameter.
    """
    config = config or EngineConfig()

    effective_flange_l = inputs.flange_l - inputs.rim_asymmetry
    effective_flange_r = inputs.flange_r + inputs.rim_asymmetry

    vendor_class = SpokeVendorClass.from_vendor(inputs.spoke_vendor)
    final_erd = inputs.rim_erd + (2 * inputs.washer_thickness)
    if vendor_class is SpokeVendorClass.ELASTOMER_CORED:
        washer_policy = f"Mandatory ({inputs.spoke_vendor})"
    else:
        washer_policy = "Optional"

    for cross in (inputs.cross_l, inputs.cross_r):
        if not is_lacing_possible(inputs.spoke_count, cross):
            raise InfeasibleLacingError(
                f"Lacing pattern {inputs.cross_l}/{inputs.cross_r} is not geometrically "
                f"possible for {inputs.spoke_count}h.",
                spoke_count=inputs.spoke_count,
                cross=cross,
                angle=lacing_angle(inputs.spoke_count, cross),
            )

    common = {
        "hub_type": inputs.hub_type,
        "spoke_count": inputs.spoke_count,
        "final_erd": final_erd,
        "hub_spoke_hole_diameter": inputs.shd,
    }
    metal_l = calculate_spoke_length(
        SpokeGeometryParams(
            **common,
            is_left=True,
            base_cross_pattern=inputs.cross_l,
            hub_flange_diameter=inputs.pcd_l,
            flange_offset=effective_flange_l,
            sp_offset=inputs.spo_l,
        ),
        config.hook_flange_correction,
    )
    metal_r = calculate_spoke_length(
        SpokeGeometryParams(
            **common,
            is_left=False,
            base_cross_pattern=inputs.cross_r,
            hub_flange_diameter=inputs.pcd_r,
            flange_offset=effective_flange_r,
            sp_offset=inputs.spo_r,
        ),
        config.hook_flange_correction,
    )

    adjusted_l, adjusted_r = adjust_side_lengths(
        vendor_class,
        inputs.hub_type,
        metal_l,
        metal_r,
        effective_flange_l,
        effective_flange_r,
        tension_kgf=inputs.target_tension,
        cross_sectional_area=inputs.cross_section_area,
    )
    logger.debug(
        "Audit %s %dh: metal %.4f/%.4f final %.4f/%.4f",
        inputs.hub_type.value,
        inputs.spoke_count,
        metal_l,
        metal_r,
        adjusted_l.final,
        adjusted_r.final,
    )

    echo = inputs.model_dump(by_alias=True, mode="json")
    echo.update(
        {
            "effectiveFlangeL": effective_flange_l,
            "effectiveFlangeR": effective_flange_r,
            "finalErd": final_erd,
            "washerPolicy": washer_policy,
        }
    )
    return WheelCalculationResult(
        position=WheelPosition.REAR,
        calculation_successful=True,
        cross_pattern=CrossPattern(left=inputs.cross_l, right=inputs.cross_r),
        lengths=SideLengths(
            left=side_length(adjusted_l, vendor_class),
            right=side_length(adjusted_r, vendor_class),
        ),
        spoke_count=inputs.spoke_count,
        inputs=echo,
    )
