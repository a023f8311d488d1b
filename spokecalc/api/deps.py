"""FastAPI dependency injection."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from spokecalc.config import EngineConfig, Settings, get_settings
from spokecalc.core.logging import logger


def get_engine_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> EngineConfig:
    """Dependency for the engine's business-rule configuration."""
    return settings.engine_config()


async def verify_internal_secret(
    request: Request,
    x_internal_secret: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> bool:
    """Shared-secret check for the regression harness endpoint."""
    expected = settings.internal_api_secret
    if not expected or x_internal_secret != expected:
        logger.warning(f"Unauthorized calculator harness call from {request.client}")
        raise HTTPException(status_code=401, detail="Unauthorized")
    return True
