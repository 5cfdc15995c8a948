from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from nim_gateway.core.logging import get_logger

logger = get_logger(__name__)


class GatewayError(Exception):
    """Base exception for all gateway errors."""
    status_code: int = 500
    error_type: str = "api_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_envelope(self) -> dict:
        error = {"message": self.message, "type": self.error_type}
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


class ConfigurationError(GatewayError):
    status_code = 500
    error_type = "configuration_error"


class InvalidRequestError(GatewayError):
    status_code = 400
    error_type = "invalid_request_error"


class UpstreamError(GatewayError):
    error_type = "nvidia_api_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        # Mirror the upstream status when one was received
        self.status_code = status_code or 500
        super().__init__(message, details)


async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"message": str(exc) or type(exc).__name__, "type": "api_error"}},
    )
