"""Exception types raised inside the calculation engine.

These never cross the engine's public boundary: the per-position calculation
catches them and turns them into a failed WheelCalculationResult.
"""

from spokecalc.core.enums import ErrorKind


class SpokeCalcError(Exception):
    """Base class for engine failures."""

    kind: ErrorKind = ErrorKind.MISSING_PARAMETER

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingComponentError(SpokeCalcError):
    """Rim, hub, spokes or spoke count absent from the build recipe."""

    kind = ErrorKind.MISSING_COMPONENT


class UnsupportedConfigurationError(SpokeCalcError):
    """Hub/spoke combination the engine does not model."""

    kind = ErrorKind.UNSUPPORTED_CONFIGURATION


class MissingParameterError(SpokeCalcError):
    """A required numeric input is absent or non-numeric."""

    kind = ErrorKind.MISSING_PARAMETER


class InfeasibleLacingError(SpokeCalcError):
    """No cross pattern is geometrically possible for the spoke count."""

    kind = ErrorKind.INFEASIBLE_LACING

    def __init__(self, message: str, spoke_count: int, cross: int, angle: float) -> None:
        super().__init__(message)
        self.spoke_count = spoke_count
        self.cross = cross
        self.angle = angle


class UnrecognizedValueError(SpokeCalcError):
    """Hub type or vendor class string that maps to no known enum member."""

    kind = ErrorKind.UNRECOGNIZED_VALUE
