from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.services.onboarding.errors import OnboardingError

logger = logging.getLogger(__name__)


def to_http_exception(exc: OnboardingError) -> HTTPException:
    return HTTPException(status_code=_map_error_code(exc.code), detail=str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Install request-validation handling shared by every router."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        logger.info(
            "api.request_invalid",
            extra={"path": request.url.path, "errors": len(errors)},
        )
        # Rejected inputs are not echoed back; non-finite floats cannot be rendered as JSON.
        detail = [{key: value for key, value in error.items() if key != "input"} for error in errors]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_encoder(detail)},
        )


def _map_error_code(code: str) -> int:
    if code.startswith("404_"):
        return status.HTTP_404_NOT_FOUND
    if code.startswith("409_"):
        return status.HTTP_409_CONFLICT
    if code.startswith("422_"):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_500_INTERNAL_SERVER_ERROR
