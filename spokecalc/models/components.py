from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator

from spokecalc.core.enums import BuildType, WheelPosition
from spokecalc.models.base import CamelModel
from spokecalc.utils.converters import parse_spoke_count


class SelectedOption(CamelModel):
    name: str
    value: str


class ComponentReference(CamelModel):
    """A rim, hub or spoke line chosen in the wheel builder."""

    model_config = ConfigDict(frozen=True)

    variant_id: str
    product_id: Optional[str] = None
    title: str = ""
    vendor: str = ""
    selected_options: tuple[SelectedOption, ...] = ()

    @field_validator("variant_id", "product_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        """Storefront ids arrive as ints or gid strings; keep them as strings."""
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def option(self, name: str) -> Optional[str]:
        """Return the value of a selected option by (case-insensitive) name."""
        wanted = name.lower()
        for opt in self.selected_options:
            if opt.name.lower() == wanted:
                return opt.value
        return None

    @property
    def color(self) -> Optional[str]:
        return self.option("Color") or self.option("Colour")


class BuildComponents(CamelModel):
    front_rim: Optional[ComponentReference] = None
    front_hub: Optional[ComponentReference] = None
    front_spokes: Optional[ComponentReference] = None
    rear_rim: Optional[ComponentReference] = None
    rear_hub: Optional[ComponentReference] = None
    rear_spokes: Optional[ComponentReference] = None

    def for_position(
        self, position: WheelPosition
    ) -> tuple[
        Optional[ComponentReference],
        Optional[ComponentReference],
        Optional[ComponentReference],
    ]:
        """Return (rim, hub, spokes) for a wheel position."""
        if position is WheelPosition.FRONT:
            return self.front_rim, self.front_hub, self.front_spokes
        return self.rear_rim, self.rear_hub, self.rear_spokes


class BuildSpecs(CamelModel):
    # Raw spec strings from the order, e.g. "32" or "28h"
    front_spoke_count: Optional[str] = None
    rear_spoke_count: Optional[str] = None

    @field_validator("front_spoke_count", "rear_spoke_count", mode="before")
    @classmethod
    def coerce_count(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def spoke_count(self, position: WheelPosition) -> int:
        raw = (
            self.front_spoke_count
            if position is WheelPosition.FRONT
            else self.rear_spoke_count
        )
        return parse_spoke_count(raw)


class BuildRecipe(CamelModel):
    """Parsed `_build` property of a custom wheel order. Read-only engine input."""

    model_config = ConfigDict(frozen=True)

    build_type: BuildType
    components: BuildComponents = Field(default_factory=BuildComponents)
    specs: BuildSpecs = Field(default_factory=BuildSpecs)

    @field_validator("build_type", mode="before")
    @classmethod
    def parse_build_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            parsed = BuildType.from_string(value)
            if parsed is None:
                raise ValueError(f"Unknown build type: {value!r}")
            return parsed
        return value

    @property
    def positions(self) -> list[WheelPosition]:
        return self.build_type.positions
