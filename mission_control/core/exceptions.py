"""Exception handlers for the Mission Control API."""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mission_control.core.logging import get_logger, request_context

logger = get_logger(__name__)


class MissionControlError(Exception):
    """Base exception for Mission Control."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "E5000",
        details: dict = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(MissionControlError):
    """Resource not found."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, code="E4040")


class RequestValidationFailed(MissionControlError):
    """Request body was well-formed JSON but semantically invalid."""

    def __init__(self, message: str = "Validation failed", details: dict = None):
        super().__init__(
            message,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="E4000",
            details=details,
        )


class IntegrationTestError(MissionControlError):
    """An integration test crashed outside the probe's own error handling."""

    def __init__(self, message: str = "Internal server error during connection test"):
        super().__init__(
            "Test failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="E5001",
            details={"message": message},
        )


def _request_id() -> str | None:
    ctx = request_context.get()
    return ctx.get("request_id") if ctx else None


def _validation_errors(errors: list) -> list:
    # ctx may hold exception instances, which are not JSON serializable.
    return jsonable_encoder([{k: v for k, v in err.items() if k != "ctx"} for err in errors])


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(MissionControlError)
    async def mission_control_exception_handler(
        request: Request, exc: MissionControlError
    ) -> JSONResponse:
        """Handle application exceptions."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            f"Request failed: {exc.message}",
            data={"status_code": exc.status_code, "code": exc.code},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "request_id": _request_id(),
                },
                **exc.details,
            },
        )

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc) -> JSONResponse:
        """Handle request body and model validation errors."""
        errors = _validation_errors(exc.errors())
        logger.warning("Validation error", data={"errors": errors})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "Validation failed",
                "details": errors,
                "error": {
                    "code": "E4000",
                    "message": "Validation failed",
                    "request_id": _request_id(),
                },
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        code = f"E{exc.status_code}0"
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error": {
                    "code": code,
                    "message": exc.detail,
                    "request_id": _request_id(),
                },
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error": {
                    "code": "E5000",
                    "message": "Internal server error",
                    "request_id": _request_id(),
                },
            },
        )
