from typing import Any, Optional

from pydantic import Field

from spokecalc.core.enums import ErrorKind, Side, WheelPosition
from spokecalc.models.base import CamelModel


class SideLength(CamelModel):
    geo: float  # geometric (metal) length, mm
    final: float  # after vendor adjustment, mm
    stretch: Optional[float] = None  # steel elastic elongation, mm
    rounded: int  # orderable length, mm


class SideLengths(CamelModel):
    left: SideLength
    right: SideLength


class CrossPattern(CamelModel):
    left: int
    right: int


class WheelCalculationResult(CamelModel):
    """Outcome of one wheel-position calculation. Terminal success or failure."""

    position: WheelPosition
    calculation_successful: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    cross_pattern: Optional[CrossPattern] = None
    alert: Optional[str] = None
    lengths: Optional[SideLengths] = None
    spoke_count: int = 0
    inputs: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        position: WheelPosition,
        kind: ErrorKind,
        message: str,
        inputs: dict[str, Any] | None = None,
    ) -> "WheelCalculationResult":
        return cls(
            position=position,
            calculation_successful=False,
            error=message,
            error_kind=kind,
            inputs=inputs or {},
        )


class SpokeOrderLine(CamelModel):
    """One spoke pick: what the inventory collaborator deducts."""

    position: WheelPosition
    side: Side
    variant_id: str
    product_id: Optional[str] = None
    title: str = ""
    color: Optional[str] = None
    length_mm: int
    quantity: int


class BuildReport(CamelModel):
    front: Optional[WheelCalculationResult] = None
    rear: Optional[WheelCalculationResult] = None
    errors: list[str] = Field(default_factory=list)
    spoke_order_lines: list[SpokeOrderLine] = Field(default_factory=list)

    @property
    def successful(self) -> bool:
        results = [r for r in (self.front, self.rear) if r is not None]
        return bool(results) and all(r.calculation_successful for r in results)
