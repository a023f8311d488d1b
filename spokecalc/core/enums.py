"""Enums for wheel-build constants."""

from enum import Enum


def _normalize(value: object) -> str:
    return "".join(ch for ch in str(value).lower() if ch.isalnum())


class HubType(str, Enum):
    """Hub flange interface. Drives the geometry correction and vendor constants."""

    CLASSIC_FLANGE = "Classic Flange"
    STRAIGHT_PULL = "Straight Pull"
    HOOK_FLANGE = "Hook Flange"

    @classmethod
    def from_string(cls, value: str | None) -> "HubType | None":
        """Convert a storefront spelling to enum, returning None if unknown."""
        if not value:
            return None
        mappings = {
            "classicflange": cls.CLASSIC_FLANGE,
            "classic": cls.CLASSIC_FLANGE,
            "jbend": cls.CLASSIC_FLANGE,
            "straightpull": cls.STRAIGHT_PULL,
            "sp": cls.STRAIGHT_PULL,
            "hookflange": cls.HOOK_FLANGE,
            "hook": cls.HOOK_FLANGE,
        }
        return mappings.get(_normalize(value))


class SpokeVendorClass(str, Enum):
    """Spoke material family used for length correction and rounding."""

    STEEL = "steel"
    ELASTOMER_CORED = "elastomer_cored"

    @classmethod
    def from_vendor(cls, vendor: str | None) -> "SpokeVendorClass":
        """Classify a spoke vendor name. Anything not known as cored is steel-like."""
        if vendor and _normalize(vendor) in ELASTOMER_CORED_VENDORS:
            return cls.ELASTOMER_CORED
        return cls.STEEL


# Normalized vendor names whose spokes are built around a flexible core
ELASTOMER_CORED_VENDORS = {"berd", "berdspokes"}


class WasherPolicy(str, Enum):
    """Whether a rim takes nipple washers."""

    MANDATORY = "Mandatory"
    OPTIONAL = "Optional"
    NOT_COMPATIBLE = "Not Compatible"

    @classmethod
    def from_string(cls, value: str | None) -> "WasherPolicy":
        """Convert to enum. Unknown or missing values are treated as optional."""
        if not value:
            return cls.OPTIONAL
        mappings = {
            "mandatory": cls.MANDATORY,
            "required": cls.MANDATORY,
            "optional": cls.OPTIONAL,
            "notcompatible": cls.NOT_COMPATIBLE,
            "incompatible": cls.NOT_COMPATIBLE,
            "none": cls.NOT_COMPATIBLE,
        }
        return mappings.get(_normalize(value), cls.OPTIONAL)


class LacingPolicy(str, Enum):
    """How the hub's cross pattern is chosen."""

    STANDARD = "Standard"
    MANUAL_OVERRIDE = "Manual Override"

    @classmethod
    def from_string(cls, value: str | None) -> "LacingPolicy":
        if value and _normalize(value) in ("manualoverride", "manual", "override"):
            return cls.MANUAL_OVERRIDE
        return cls.STANDARD


class BuildType(str, Enum):
    """What the customer ordered."""

    FRONT = "Front"
    REAR = "Rear"
    WHEEL_SET = "Wheel Set"

    @classmethod
    def from_string(cls, value: str | None) -> "BuildType | None":
        if not value:
            return None
        mappings = {
            "front": cls.FRONT,
            "frontwheel": cls.FRONT,
            "frontonly": cls.FRONT,
            "rear": cls.REAR,
            "rearwheel": cls.REAR,
            "rearonly": cls.REAR,
            "wheelset": cls.WHEEL_SET,
            "set": cls.WHEEL_SET,
            "pair": cls.WHEEL_SET,
        }
        return mappings.get(_normalize(value))

    @property
    def positions(self) -> list["WheelPosition"]:
        if self is BuildType.FRONT:
            return [WheelPosition.FRONT]
        if self is BuildType.REAR:
            return [WheelPosition.REAR]
        return [WheelPosition.FRONT, WheelPosition.REAR]


class WheelPosition(str, Enum):
    FRONT = "front"
    REAR = "rear"


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class HookFlangeCorrection(str, Enum):
    """Correction applied to hook-flange hubs.

    NONE uses the raw geometric length. SPOKE_HOLE subtracts half the hub
    spoke-hole diameter like a classic flange.
    """

    NONE = "none"
    SPOKE_HOLE = "spoke_hole"


class ErrorKind(str, Enum):
    """Failure categories attached to wheel calculation results."""

    MISSING_COMPONENT = "missing_component"
    UNSUPPORTED_CONFIGURATION = "unsupported_configuration"
    MISSING_PARAMETER = "missing_parameter"
    INFEASIBLE_LACING = "infeasible_lacing"
    UNRECOGNIZED_VALUE = "unrecognized_value"


# Failure kinds that are also reported at build level
BUILD_LEVEL_ERROR_KINDS = {
    ErrorKind.MISSING_PARAMETER,
    ErrorKind.INFEASIBLE_LACING,
    ErrorKind.UNRECOGNIZED_VALUE,
}

# Default cross pattern thresholds (spoke count at or above -> 3-cross)
DEFAULT_CROSS_THRESHOLD = 28
ALTERNATE_CROSS_THRESHOLD = 32
