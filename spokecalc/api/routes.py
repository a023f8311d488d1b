"""FastAPI route definitions for the spoke calculator API."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from spokecalc.api.deps import get_engine_config, verify_internal_secret
from spokecalc.config import EngineConfig
from spokecalc.core.enums import WheelPosition
from spokecalc.core.errors import InfeasibleLacingError, SpokeCalcError
from spokecalc.core.logging import log_error
from spokecalc.models.audit import AuditCalculatorRequest
from spokecalc.models.components import BuildRecipe
from spokecalc.models.results import BuildReport, WheelCalculationResult
from spokecalc.services.audit import run_audit_calculation
from spokecalc.services.build_engine import build_report, calculate_wheel
from spokecalc.services.metadata import MetadataResolver

router = APIRouter()


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------


class BuildRequest(BaseModel):
    recipe: BuildRecipe
    # componentId -> {key -> value}
    metadata: dict[str, dict[str, Any]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Build Reports
# ---------------------------------------------------------------------------


@router.post("/builds", response_model=BuildReport, response_model_by_alias=True)
async def create_build_report(
    req: BuildRequest,
    config: Annotated[EngineConfig, Depends(get_engine_config)],
):
    """Calculate spoke lengths for every wheel in a build recipe."""
    return build_report(req.recipe, req.metadata, config=config)


@router.post(
    "/wheels/{position}",
    response_model=WheelCalculationResult,
    response_model_by_alias=True,
)
async def calculate_single_wheel(
    position: WheelPosition,
    req: BuildRequest,
    config: Annotated[EngineConfig, Depends(get_engine_config)],
):
    """Calculate one wheel position, regardless of the recipe's build type."""
    resolver = MetadataResolver(req.metadata, cache_size=config.metadata_cache_size)
    return calculate_wheel(position, req.recipe, resolver, config)


# ---------------------------------------------------------------------------
# Regression Harness
# ---------------------------------------------------------------------------


@router.post("/test-calculator", dependencies=[Depends(verify_internal_secret)])
async def replay_calculator_case(
    req: AuditCalculatorRequest,
    config: Annotated[EngineConfig, Depends(get_engine_config)],
):
    """Replay a measurement set from the official calculator for comparison."""
    try:
        result = run_audit_calculation(req, config)
    except InfeasibleLacingError as e:
        return JSONResponse(
            status_code=400,
            content={"calculationSuccessful": False, "error": e.message},
        )
    except SpokeCalcError as e:
        log_error("Calculator harness failed", exc=e)
        raise HTTPException(status_code=422, detail=e.message)
    return result.model_dump(by_alias=True, mode="json", exclude={"position"})
