"""FastAPI app entry point for the spoke calculator."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from spokecalc.api.routes import router
from spokecalc.config import get_settings
from spokecalc.core.logging import log_request, log_response, logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup / shutdown."""
    settings = get_settings()
    logger.setLevel(settings.log_level.upper())
    engine = settings.engine_config()
    logger.info(
        f"Starting spoke calculator (cross_threshold={engine.default_cross_threshold}, "
        f"hook_flange_correction={engine.hook_flange_correction.value})"
    )
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Spoke Calculator API",
    description="Spoke length calculation for custom wheel builds",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Internal-Secret"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    client = request.client.host if request.client else None
    log_request(request.method, request.url.path, client=client)

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    log_response(request.method, request.url.path, response.status_code, duration_ms)

    return response


# Routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "spoke-calculator"}
