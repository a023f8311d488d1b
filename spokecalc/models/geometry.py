"""Resolved component geometry, built from metadata for one wheel position."""

from typing import Optional

from pydantic import BaseModel, Field

from spokecalc.core.enums import HubType, LacingPolicy, SpokeVendorClass, WasherPolicy


class HubGeometry(BaseModel):
    hub_type: HubType
    flange_diameter_left: float
    flange_diameter_right: float
    flange_offset_left: float
    flange_offset_right: float
    spoke_hole_diameter: Optional[float] = None  # classic flange only
    sp_offset_left: float = 0.0  # straight pull only
    sp_offset_right: float = 0.0
    lacing_policy: LacingPolicy = LacingPolicy.STANDARD
    manual_cross_value: int = 0


class RimGeometry(BaseModel):
    erd: float
    spoke_hole_offset: float = 0.0  # asymmetry, mm
    washer_policy: WasherPolicy = WasherPolicy.OPTIONAL
    nipple_washer_thickness: float = 0.0
    target_tension_kgf: float = 0.0

    @property
    def final_erd(self) -> float:
        """ERD the spoke must span once nipple washers are seated.

        A washer sits under each nipple head on both sides of the rim, so the
        effective diameter grows by twice the single-washer thickness.
        """
        if self.washer_policy is WasherPolicy.NOT_COMPATIBLE:
            return self.erd
        return self.erd + (2 * self.nipple_washer_thickness)


class SpokeComponent(BaseModel):
    vendor: str = ""
    vendor_class: SpokeVendorClass = SpokeVendorClass.STEEL
    cross_sectional_area: float = Field(default=0.0, description="mm², steel only")
    selected_color: Optional[str] = None
