from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from app.schemas.metrics import HealthResponse

_POSITIVE_INT_ENV_VARS = (
    "METRICS_MAX_UPLOAD_BYTES",
    "METRICS_MIN_DATE_HEADERS",
    "METRICS_MAX_VALIDATION_ERRORS",
)


def _validate_env() -> None:
    """
    Validate optional environment variables at startup.

    Raises RuntimeError listing every invalid variable so the operator can
    fix all problems in one restart cycle.

    Rules:
    - Numeric settings, when set, must be positive integers.
    - LOG_LEVEL, when set, must name a standard logging level.
    """

    from app.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Numeric settings -----------------------------------------------
    for name in _POSITIVE_INT_ENV_VARS:
        raw_value = os.getenv(name)
        if raw_value is None:
            continue
        try:
            parsed = int(raw_value.strip())
        except ValueError:
            errors.append(f"{name}={raw_value!r} is not an integer.")
            continue
        if parsed <= 0:
            errors.append(f"{name}={parsed} must be greater than zero.")

    # --- Log level ------------------------------------------------------
    log_level = os.getenv("LOG_LEVEL")
    if log_level is not None and not isinstance(
        logging.getLevelName(log_level.strip().upper()), int
    ):
        errors.append(
            f"LOG_LEVEL='{log_level}' is not valid. "
            "Allowed values: ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed: invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="MRR Metrics API",
        version="1.0.0",
    )

    from app.api.routers import metrics_export_router, metrics_router

    application.include_router(metrics_router)
    application.include_router(metrics_export_router)

    @application.get("/health")
    def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok")

    return application


app = create_app()
