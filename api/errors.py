"""
Map pipeline exceptions onto HTTP responses
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from core.exceptions import (
    EnergyPipelineError,
    AuthError,
    UpstreamFetchError,
    WeatherFetchError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    AuthError: 502,
    UpstreamFetchError: 502,
    WeatherFetchError: 502,
    PersistenceError: 500,
}


async def pipeline_error_handler(request: Request, exc: EnergyPipelineError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in STATUS_CODES.items() if isinstance(exc, error_type)),
        500
    )
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"[{request_id}] {request.method} {request.url.path} failed: {exc}")

    detail = exc.to_dict()
    detail["context"] = {k: v for k, v in detail["context"].items() if k != "errors"}
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "request_id": request_id, "error": detail}
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(EnergyPipelineError, pipeline_error_handler)
