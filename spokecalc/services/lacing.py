"""Cross-pattern selection and lacing interference checks."""

import logging

from pydantic import BaseModel

from spokecalc.config import EngineConfig
from spokecalc.core.enums import LacingPolicy
from spokecalc.core.errors import InfeasibleLacingError, MissingParameterError
from spokecalc.models.geometry import HubGeometry

logger = logging.getLogger(__name__)

# Beyond this the spoke would have to pass the hub axle
MAX_LACING_ANGLE_DEG = 90.0


class LacingDecision(BaseModel):
    cross_left: int
    cross_right: int
    alert: str | None = None
    source: str = "default"  # "default", "fallback" or "manual"


def lacing_angle(spoke_count: int, cross_pattern: int) -> float:
    """Angle in degrees swept on one flange by ``cross_pattern`` crossings.

    Raises:
        MissingParameterError: spoke count is not positive.
    """
    if spoke_count <= 0:
        raise MissingParameterError(f"Spoke count must be positive (got {spoke_count}).")
    angle_between_holes = 360 / (spoke_count / 2)
    return cross_pattern * angle_between_holes


def is_lacing_possible(spoke_count: int, cross_pattern: int) -> bool:
    """True when the pattern can be laced without the spoke crossing the axle.

    Radial lacing (cross 0) is always possible; no pattern is possible for a
    non-positive spoke count.
    """
    if spoke_count <= 0:
        return False
    if cross_pattern == 0:
        return True
    return lacing_angle(spoke_count, cross_pattern) < MAX_LACING_ANGLE_DEG


def default_cross_pattern(spoke_count: int, threshold: int) -> int:
    return 3 if spoke_count >= threshold else 2


def resolve_cross_pattern(
    hub: HubGeometry, spoke_count: int, config: EngineConfig
) -> LacingDecision:
    """Choose the cross pattern for both sides of a wheel.

    A manual override on the hub is used as-is for both sides and must be
    buildable. Otherwise the spoke-count default is stepped down one cross at
    a time until it clears the interference check.

    Raises:
        MissingParameterError: spoke count is not positive.
        InfeasibleLacingError: the manual pattern (or every pattern down to
            radial) interferes.
    """
    if spoke_count <= 0:
        raise MissingParameterError(f"Spoke count must be positive (got {spoke_count}).")

    if hub.lacing_policy is LacingPolicy.MANUAL_OVERRIDE and hub.manual_cross_value > 0:
        cross = hub.manual_cross_value
        if not is_lacing_possible(spoke_count, cross):
            angle = lacing_angle(spoke_count, cross)
            raise InfeasibleLacingError(
                f"Manual lacing pattern {cross}-cross is not geometrically possible "
                f"for {spoke_count}h "
                f"(lacing angle {angle:.1f}° ≥ {MAX_LACING_ANGLE_DEG:.0f}°).",
                spoke_count=spoke_count,
                cross=cross,
                angle=angle,
            )
        return LacingDecision(
            cross_left=cross,
            cross_right=cross,
            alert=f"Manual lacing override: {cross}-cross used for both sides.",
            source="manual",
        )

    original = default_cross_pattern(spoke_count, config.default_cross_threshold)
    cross = original
    while cross >= 0 and not is_lacing_possible(spoke_count, cross):
        cross -= 1

    if cross < 0:
        # Unreachable for real spoke counts since radial always passes
        angle = lacing_angle(spoke_count, original)
        raise InfeasibleLacingError(
            f"No lacing pattern is possible for {spoke_count}h "
            f"({original}-cross angle {angle:.1f}°).",
            spoke_count=spoke_count,
            cross=original,
            angle=angle,
        )

    if cross == original:
        return LacingDecision(cross_left=cross, cross_right=cross)

    failed_angle = lacing_angle(spoke_count, original)
    alert = (
        f"Lacing fallback: {original}-cross is not possible for {spoke_count}h "
        f"(lacing angle {failed_angle:.1f}° ≥ {MAX_LACING_ANGLE_DEG:.0f}°); "
        f"using {cross}-cross."
    )
    logger.warning(alert)
    return LacingDecision(cross_left=cross, cross_right=cross, alert=alert, source="fallback")
