from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from nim_gateway.core.exceptions import unhandled_exception_handler


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Turns unexpected exceptions into the api_error envelope inside CORS and request-id handling."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await unhandled_exception_handler(request, exc)
