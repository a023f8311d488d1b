"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spokecalc.core.enums import (
    ALTERNATE_CROSS_THRESHOLD,
    DEFAULT_CROSS_THRESHOLD,
    HookFlangeCorrection,
    SpokeVendorClass,
)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class EngineConfig(BaseModel):
    """Business-rule knobs the calculation engine takes explicitly.

    Revisions of the shop's calculator disagreed on the 3-cross threshold
    (28 vs 32 holes) and on hook-flange handling; both are exposed here so
    the product owner can settle them without a code change.
    """

    model_config = ConfigDict(frozen=True)

    default_cross_threshold: int = Field(default=DEFAULT_CROSS_THRESHOLD, ge=1)
    hook_flange_correction: HookFlangeCorrection = HookFlangeCorrection.NONE
    unsupported_hook_flange_vendors: frozenset[SpokeVendorClass] = frozenset()
    metadata_cache_size: int = Field(default=256, ge=1)

    @field_validator("default_cross_threshold")
    @classmethod
    def check_threshold(cls, value: int) -> int:
        if value not in (DEFAULT_CROSS_THRESHOLD, ALTERNATE_CROSS_THRESHOLD):
            raise ValueError(
                f"default_cross_threshold must be {DEFAULT_CROSS_THRESHOLD} "
                f"or {ALTERNATE_CROSS_THRESHOLD}, got {value}"
            )
        return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Audit harness
    internal_api_secret: str = Field(default="", validation_alias="INTERNAL_API_SECRET")

    # Engine rules
    default_cross_threshold: int = Field(
        default=DEFAULT_CROSS_THRESHOLD, validation_alias="DEFAULT_CROSS_THRESHOLD"
    )
    hook_flange_correction: HookFlangeCorrection = Field(
        default=HookFlangeCorrection.NONE, validation_alias="HOOK_FLANGE_CORRECTION"
    )
    unsupported_hook_flange_vendors: list[SpokeVendorClass] = Field(
        default=[], validation_alias="UNSUPPORTED_HOOK_FLANGE_VENDORS"
    )
    metadata_cache_size: int = Field(default=256, validation_alias="METADATA_CACHE_SIZE")

    # Service
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    allowed_origins: list[str] = Field(
        default=["*"],
        validation_alias="ALLOWED_ORIGINS",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or return list."""
        if isinstance(self.allowed_origins, str):
            return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return self.allowed_origins

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            default_cross_threshold=self.default_cross_threshold,
            hook_flange_correction=self.hook_flange_correction,
            unsupported_hook_flange_vendors=frozenset(
                self.unsupported_hook_flange_vendors
            ),
            metadata_cache_size=self.metadata_cache_size,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
