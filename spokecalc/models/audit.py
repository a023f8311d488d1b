from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spokecalc.core.enums import HubType


class AuditCalculatorRequest(BaseModel):
    """Flat measurement set posted by the regression harness.

    Field names match the official calculator's export so recorded cases can
    be replayed without translation.
    """

    model_config = ConfigDict(populate_by_name=True)

    hub_type: HubType = Field(validation_alias="hubType", serialization_alias="hubType")
    spoke_count: int = Field(gt=0, validation_alias="spokeCount", serialization_alias="spokeCount")
    cross_l: int = Field(ge=0, validation_alias="crossL", serialization_alias="crossL")
    cross_r: int = Field(ge=0, validation_alias="crossR", serialization_alias="crossR")
    rim_erd: float = Field(gt=0, validation_alias="rimErd", serialization_alias="rimErd")
    washer_thickness: float = Field(
        default=0.0, validation_alias="washerThickness", serialization_alias="washerThickness"
    )
    rim_asymmetry: float = Field(
        default=0.0, validation_alias="rimAsymmetry", serialization_alias="rimAsymmetry"
    )
    pcd_l: float = Field(gt=0)
    pcd_r: float = Field(gt=0)
    flange_l: float
    flange_r: float
    spo_l: float = 0.0
    spo_r: float = 0.0
    shd: Optional[float] = None
    spoke_vendor: str = Field(
        default="Steel", validation_alias="spokeVendor", serialization_alias="spokeVendor"
    )
    target_tension: float = Field(
        default=0.0, validation_alias="targetTension", serialization_alias="targetTension"
    )
    cross_section_area: float = Field(
        default=0.0, validation_alias="crossSectionArea", serialization_alias="crossSectionArea"
    )

    @field_validator("hub_type", mode="before")
    @classmethod
    def parse_hub_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            parsed = HubType.from_string(value)
            if parsed is None:
                raise ValueError(f"Unknown hub type: {value!r}")
            return parsed
        return value
