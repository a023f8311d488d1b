"""Wheel build orchestration.

Pulls component metadata, assembles per-side geometry, runs the geometry
solver, vendor adjustment and rounding, and aggregates front/rear results
into a BuildReport. Every position is one pass with a terminal outcome:
engine errors are turned into tagged failure results here and never escape
``build_report``.
"""

import logging
import math
import time
from typing import Any

from spokecalc.config import EngineConfig
from spokecalc.core.enums import (
    BUILD_LEVEL_ERROR_KINDS,
    HubType,
    LacingPolicy,
    Side,
    SpokeVendorClass,
    WasherPolicy,
    WheelPosition,
)
from spokecalc.core.errors import (
    MissingComponentError,
    MissingParameterError,
    SpokeCalcError,
    UnrecognizedValueError,
    UnsupportedConfigurationError,
)
from spokecalc.core.logging import log_build, log_calculation
from spokecalc.models.components import BuildRecipe, ComponentReference
from spokecalc.models.geometry import HubGeometry, RimGeometry, SpokeComponent
from spokecalc.models.results import (
    BuildReport,
    CrossPattern,
    SideLength,
    SideLengths,
    SpokeOrderLine,
    WheelCalculationResult,
)
from spokecalc.services.geometry import SpokeGeometryParams, calculate_spoke_length
from spokecalc.services.lacing import resolve_cross_pattern
from spokecalc.services.metadata import MetadataFetcher, MetadataMap, MetadataResolver
from spokecalc.services.rounding import round_for_ordering
from spokecalc.services.vendor_adjustment import AdjustedLength, adjust_side_lengths
from spokecalc.utils.converters import safe_int

logger = logging.getLogger(__name__)

# =============================================================================
# Metadata keys
# =============================================================================

RIM_ERD = "erd"
RIM_SPOKE_HOLE_OFFSET = "spoke_hole_offset"
RIM_WASHER_POLICY = "washer_policy"
RIM_WASHER_THICKNESS = "nipple_washer_thickness"
RIM_TARGET_TENSION = "target_tension_kgf"

HUB_TYPE = "hub_type"
HUB_FLANGE_DIAMETER_LEFT = "flange_diameter_left"
HUB_FLANGE_DIAMETER_RIGHT = "flange_diameter_right"
HUB_FLANGE_OFFSET_LEFT = "flange_offset_left"
HUB_FLANGE_OFFSET_RIGHT = "flange_offset_right"
HUB_SPOKE_HOLE_DIAMETER = "spoke_hole_diameter"
HUB_SP_OFFSET_LEFT = "sp_offset_left"
HUB_SP_OFFSET_RIGHT = "sp_offset_right"
HUB_LACING_POLICY = "lacing_policy"
HUB_MANUAL_CROSS = "manual_cross_value"

SPOKE_CROSS_SECTIONAL_AREA = "cross_sectional_area"

LENGTH_DECIMALS = 4


# =============================================================================
# Component resolution
# =============================================================================


def _label(component: ComponentReference) -> str:
    return component.title or component.variant_id


def _required_number(
    resolver: MetadataResolver, component: ComponentReference, key: str
) -> float:
    if not resolver.has(component, key):
        raise MissingParameterError(f"Missing '{key}' for {_label(component)}.")
    value = resolver.resolve_component(component, key, as_number=True, default=math.nan)
    if math.isnan(value):
        raise MissingParameterError(
            f"'{key}' for {_label(component)} is not a number "
            f"({resolver.resolve_component(component, key)!r})."
        )
    return value


def resolve_hub(resolver: MetadataResolver, hub: ComponentReference) -> HubGeometry:
    raw_type = resolver.resolve_component(hub, HUB_TYPE)
    if raw_type is None:
        raise MissingParameterError(f"Missing '{HUB_TYPE}' for {_label(hub)}.")
    hub_type = HubType.from_string(str(raw_type))
    if hub_type is None:
        raise UnrecognizedValueError(f"Unrecognized hub type {raw_type!r} for {_label(hub)}.")

    spoke_hole = resolver.resolve_component(
        hub, HUB_SPOKE_HOLE_DIAMETER, as_number=True, default=math.nan
    )
    return HubGeometry(
        hub_type=hub_type,
        flange_diameter_left=_required_number(resolver, hub, HUB_FLANGE_DIAMETER_LEFT),
        flange_diameter_right=_required_number(resolver, hub, HUB_FLANGE_DIAMETER_RIGHT),
        flange_offset_left=_required_number(resolver, hub, HUB_FLANGE_OFFSET_LEFT),
        flange_offset_right=_required_number(resolver, hub, HUB_FLANGE_OFFSET_RIGHT),
        spoke_hole_diameter=None if math.isnan(spoke_hole) else spoke_hole,
        sp_offset_left=resolver.resolve_component(hub, HUB_SP_OFFSET_LEFT, as_number=True),
        sp_offset_right=resolver.resolve_component(hub, HUB_SP_OFFSET_RIGHT, as_number=True),
        lacing_policy=LacingPolicy.from_string(resolver.resolve_component(hub, HUB_LACING_POLICY)),
        manual_cross_value=safe_int(
            resolver.resolve_component(hub, HUB_MANUAL_CROSS, as_number=True)
        ),
    )


def resolve_rim(resolver: MetadataResolver, rim: ComponentReference) -> RimGeometry:
    erd = _required_number(resolver, rim, RIM_ERD)
    if erd <= 0:
        raise MissingParameterError(f"ERD for {_label(rim)} must be positive (got {erd}).")
    return RimGeometry(
        erd=erd,
        spoke_hole_offset=resolver.resolve_component(rim, RIM_SPOKE_HOLE_OFFSET, as_number=True),
        washer_policy=WasherPolicy.from_string(resolver.resolve_component(rim, RIM_WASHER_POLICY)),
        nipple_washer_thickness=resolver.resolve_component(
            rim, RIM_WASHER_THICKNESS, as_number=True
        ),
        target_tension_kgf=resolver.resolve_component(rim, RIM_TARGET_TENSION, as_number=True),
    )


def resolve_spokes(resolver: MetadataResolver, spokes: ComponentReference) -> SpokeComponent:
    return SpokeComponent(
        vendor=spokes.vendor,
        vendor_class=SpokeVendorClass.from_vendor(spokes.vendor),
        cross_sectional_area=resolver.resolve_component(
            spokes, SPOKE_CROSS_SECTIONAL_AREA, as_number=True
        ),
        selected_color=spokes.color,
    )


# =============================================================================
# Per-position calculation
# =============================================================================


def effective_flange_offsets(
    position: WheelPosition, hub: HubGeometry, rim_asymmetry: float
) -> tuple[float, float]:
    """Flange offsets measured to the rim's actual spoke-hole plane.

    Asymmetric rear rims put their holes toward the non-drive (left) side and
    front rims toward the non-rotor (right) side, so the sign flips between
    positions.
    """
    if position is WheelPosition.REAR:
        return hub.flange_offset_left - rim_asymmetry, hub.flange_offset_right + rim_asymmetry
    return hub.flange_offset_left + rim_asymmetry, hub.flange_offset_right - rim_asymmetry


def side_length(adjusted: AdjustedLength, vendor_class: SpokeVendorClass) -> SideLength:
    return SideLength(
        geo=round(adjusted.metal, LENGTH_DECIMALS),
        final=round(adjusted.final, LENGTH_DECIMALS),
        stretch=None if adjusted.stretch is None else round(adjusted.stretch, LENGTH_DECIMALS),
        rounded=round_for_ordering(adjusted.final, vendor_class),
    )


def _calculate(
    position: WheelPosition,
    rim: ComponentReference,
    hub: ComponentReference,
    spokes: ComponentReference,
    spoke_count: int,
    resolver: MetadataResolver,
    config: EngineConfig,
) -> WheelCalculationResult:
    hub_geo = resolve_hub(resolver, hub)
    rim_geo = resolve_rim(resolver, rim)
    spoke = resolve_spokes(resolver, spokes)

    if (
        hub_geo.hub_type is HubType.HOOK_FLANGE
        and spoke.vendor_class in config.unsupported_hook_flange_vendors
    ):
        raise UnsupportedConfigurationError(
            f"{hub_geo.hub_type.value} hubs are not supported with "
            f"{spoke.vendor or spoke.vendor_class.value} spokes."
        )

    final_erd = rim_geo.final_erd
    lacing = resolve_cross_pattern(hub_geo, spoke_count, config)
    flange_left, flange_right = effective_flange_offsets(
        position, hub_geo, rim_geo.spoke_hole_offset
    )

    common: dict[str, Any] = {
        "hub_type": hub_geo.hub_type,
        "spoke_count": spoke_count,
        "final_erd": final_erd,
        "hub_spoke_hole_diameter": hub_geo.spoke_hole_diameter,
    }
    params_left = SpokeGeometryParams(
        **common,
        is_left=True,
        base_cross_pattern=lacing.cross_left,
        hub_flange_diameter=hub_geo.flange_diameter_left,
        flange_offset=flange_left,
        sp_offset=hub_geo.sp_offset_left,
    )
    params_right = SpokeGeometryParams(
        **common,
        is_left=False,
        base_cross_pattern=lacing.cross_right,
        hub_flange_diameter=hub_geo.flange_diameter_right,
        flange_offset=flange_right,
        sp_offset=hub_geo.sp_offset_right,
    )
    metal_left = calculate_spoke_length(params_left, config.hook_flange_correction)
    metal_right = calculate_spoke_length(params_right, config.hook_flange_correction)

    adjusted_left, adjusted_right = adjust_side_lengths(
        spoke.vendor_class,
        hub_geo.hub_type,
        metal_left,
        metal_right,
        flange_left,
        flange_right,
        tension_kgf=rim_geo.target_tension_kgf,
        cross_sectional_area=spoke.cross_sectional_area,
    )

    inputs = {
        "rim": _label(rim),
        "hub": _label(hub),
        "spokes": _label(spokes),
        "spokeVendor": spoke.vendor,
        "spokeVendorClass": spoke.vendor_class.value,
        "spokeColor": spoke.selected_color,
        "spokeCount": spoke_count,
        "hubType": hub_geo.hub_type.value,
        "lacingPolicy": hub_geo.lacing_policy.value,
        "rimErd": rim_geo.erd,
        "washerPolicy": rim_geo.washer_policy.value,
        "washerThickness": rim_geo.nipple_washer_thickness,
        "finalErd": final_erd,
        "rimAsymmetry": rim_geo.spoke_hole_offset,
        "flangeDiameterLeft": hub_geo.flange_diameter_left,
        "flangeDiameterRight": hub_geo.flange_diameter_right,
        "flangeOffsetLeft": hub_geo.flange_offset_left,
        "flangeOffsetRight": hub_geo.flange_offset_right,
        "effectiveFlangeLeft": flange_left,
        "effectiveFlangeRight": flange_right,
        "spokeHoleDiameter": hub_geo.spoke_hole_diameter,
        "spOffsetLeft": hub_geo.sp_offset_left,
        "spOffsetRight": hub_geo.sp_offset_right,
        "targetTensionKgf": rim_geo.target_tension_kgf,
        "crossSectionalArea": spoke.cross_sectional_area,
    }
    if spoke.vendor_class is SpokeVendorClass.ELASTOMER_CORED:
        inputs["tensionPercentLeft"] = adjusted_left.tension_percent
        inputs["tensionPercentRight"] = adjusted_right.tension_percent

    return WheelCalculationResult(
        position=position,
        calculation_successful=True,
        cross_pattern=CrossPattern(left=lacing.cross_left, right=lacing.cross_right),
        alert=lacing.alert,
        lengths=SideLengths(
            left=side_length(adjusted_left, spoke.vendor_class),
            right=side_length(adjusted_right, spoke.vendor_class),
        ),
        spoke_count=spoke_count,
        inputs=inputs,
    )


def _check_parts(
    position: WheelPosition,
    rim: ComponentReference | None,
    hub: ComponentReference | None,
    spokes: ComponentReference | None,
    spoke_count: int,
) -> None:
    parts = (("rim", rim), ("hub", hub), ("spokes", spokes))
    missing = [name for name, comp in parts if comp is None]
    if spoke_count <= 0:
        missing.append("spoke count")
    if missing:
        raise MissingComponentError(f"Missing {', '.join(missing)} for {position.value} wheel.")
    if spoke_count % 2:
        raise UnsupportedConfigurationError(
            f"Spoke count must be even (got {spoke_count}) for {position.value} wheel."
        )


def calculate_wheel(
    position: WheelPosition,
    recipe: BuildRecipe,
    resolver: MetadataResolver,
    config: EngineConfig | None = None,
) -> WheelCalculationResult:
    """Calculate spoke lengths for one wheel position.

    Never raises for engine errors: missing components, unsupported
    combinations, missing parameters and infeasible lacing all come back as
    a failed result tagged with an ErrorKind.
    """
    config = config or EngineConfig()
    start = time.time()

    rim, hub, spokes = recipe.components.for_position(position)
    spoke_count = recipe.specs.spoke_count(position)

    try:
        _check_parts(position, rim, hub, spokes, spoke_count)
        result = _calculate(position, rim, hub, spokes, spoke_count, resolver, config)
    except SpokeCalcError as e:
        logger.warning("%s wheel calculation failed (%s): %s", position.value, e.kind.value, e)
        result = WheelCalculationResult.failure(position, e.kind, e.message)

    log_calculation(
        position.value,
        result.calculation_successful,
        (time.time() - start) * 1000,
        error_kind=result.error_kind.value if result.error_kind else None,
    )
    return result


# =============================================================================
# Build report
# =============================================================================


def spoke_order_lines(
    result: WheelCalculationResult, spokes: ComponentReference | None
) -> list[SpokeOrderLine]:
    """Spokes to pick for a successful wheel: half the count per side."""
    if not result.calculation_successful or result.lengths is None or spokes is None:
        return []
    per_side = result.spoke_count // 2
    return [
        SpokeOrderLine(
            position=result.position,
            side=side,
            variant_id=spokes.variant_id,
            product_id=spokes.product_id,
            title=spokes.title,
            color=spokes.color,
            length_mm=length.rounded,
            quantity=per_side,
        )
        for side, length in ((Side.LEFT, result.lengths.left), (Side.RIGHT, result.lengths.right))
    ]


def build_report(
    recipe: BuildRecipe,
    metadata: MetadataMap | None = None,
    fetch: MetadataFetcher | None = None,
    config: EngineConfig | None = None,
) -> BuildReport:
    """Calculate every wheel position a build recipe asks for.

    A fresh MetadataResolver is created per call, so any metadata fetched
    through ``fetch`` is shared between the front and rear calculation of
    this build only.
    """
    config = config or EngineConfig()
    resolver = MetadataResolver(metadata, fetch=fetch, cache_size=config.metadata_cache_size)

    results: dict[WheelPosition, WheelCalculationResult] = {}
    errors: list[str] = []
    order_lines: list[SpokeOrderLine] = []

    for position in recipe.positions:
        result = calculate_wheel(position, recipe, resolver, config)
        results[position] = result
        if not result.calculation_successful and result.error_kind in BUILD_LEVEL_ERROR_KINDS:
            errors.append(f"{position.value.capitalize()} wheel: {result.error}")
        _, _, spokes = recipe.components.for_position(position)
        order_lines.extend(spoke_order_lines(result, spokes))

    log_build(recipe.build_type.value, [p.value for p in recipe.positions], len(errors))

    return BuildReport(
        front=results.get(WheelPosition.FRONT),
        rear=results.get(WheelPosition.REAR),
        errors=errors,
        spoke_order_lines=order_lines,
    )
