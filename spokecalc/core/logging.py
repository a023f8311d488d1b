"""Structured logging configuration."""

import logging
import sys
from typing import Any


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``spokecalc`` logger; engine modules log as its children."""
    logger = logging.getLogger("spokecalc")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)

    return logger


logger = setup_logging()


def _fields(**kwargs: Any) -> str:
    return " ".join(f"{k}={v}" for k, v in kwargs.items() if v is not None)


def log_request(method: str, path: str, client: str | None = None, **kwargs: Any) -> None:
    """Log an incoming API call."""
    logger.info(f"REQUEST {method} {path} {_fields(client=client, **kwargs)}".strip())


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    """Log an outgoing response. Client and server errors log at WARNING."""
    level = logging.WARNING if status >= 400 else logging.INFO
    logger.log(level, f"RESPONSE {method} {path} status={status} duration_ms={duration_ms:.2f}")


def log_error(message: str, exc: Exception | None = None, **kwargs: Any) -> None:
    """Log a failure.

    Engine errors carry a ``kind`` and are expected outcomes of bad inputs, so
    they are logged without a traceback.
    """
    kind = getattr(exc, "kind", None)
    if kind is not None:
        kwargs["kind"] = kind.value
    extra = _fields(**kwargs)
    if exc is not None and kind is None:
        logger.error(f"ERROR {message} {extra}".strip(), exc_info=exc)
    else:
        detail = f": {exc}" if exc is not None else ""
        logger.error(f"ERROR {message}{detail} {extra}".strip())


def log_calculation(
    position: str, success: bool, duration_ms: float | None = None, **kwargs: Any
) -> None:
    """Log the outcome of one wheel-position calculation."""
    status = "success" if success else "failed"
    duration = f"duration_ms={duration_ms:.2f}" if duration_ms else ""
    logger.info(f"CALC {position} status={status} {duration} {_fields(**kwargs)}".strip())


def log_build(build_type: str, positions: list[str], errors: int) -> None:
    """Log a finished build report."""
    level = logging.WARNING if errors else logging.INFO
    logger.log(
        level, f"BUILD type={build_type} positions={','.join(positions)} errors={errors}"
    )
