import time
from typing import Any, Optional

import httpx
import orjson

from nim_gateway.core.config import Settings
from nim_gateway.core.exceptions import ConfigurationError, UpstreamError
from nim_gateway.core.logging import get_logger
from nim_gateway.models.request import ChatCompletionRequest
from nim_gateway.providers.base import BaseProvider

logger = get_logger(__name__)


def _decode(response: httpx.Response) -> Any:
    # orjson rejects invalid UTF-8 and lone surrogates, which could not be re-encoded later
    return orjson.loads(response.content)


def _error_details(response: httpx.Response) -> Any:
    try:
        return _decode(response)
    except orjson.JSONDecodeError:
        return response.text or None


def _error_message(details: Any, fallback: str) -> str:
    if isinstance(details, dict):
        error = details.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
    return fallback


class NvidiaProvider(BaseProvider):
    """NVIDIA NIM provider, called through its OpenAI-compatible endpoint."""

    provider_name = "nvidia"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._api_key = settings.nvidia_api_key.strip()
        self.base_url = settings.nvidia_base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.upstream_timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("NVIDIA_API_KEY is not configured")

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def fetch_completion(self, request: ChatCompletionRequest) -> Any:
        self.ensure_configured()
        start = time.monotonic()

        try:
            response = await self.client.post(
                "/chat/completions",
                content=orjson.dumps(request.upstream_payload()),
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            details = _error_details(e.response)
            logger.warning(
                "upstream_error",
                provider=self.provider_name,
                status=e.response.status_code,
                details=details,
            )
            raise UpstreamError(
                _error_message(details, str(e)),
                status_code=e.response.status_code,
                details=details,
            )
        except httpx.HTTPError as e:
            logger.warning("upstream_unreachable", provider=self.provider_name, error=repr(e))
            raise UpstreamError(str(e) or type(e).__name__)

        logger.info(
            "upstream_response",
            provider=self.provider_name,
            status=response.status_code,
            latency_ms=int((time.monotonic() - start) * 1000),
        )
        try:
            return _decode(response)
        except orjson.JSONDecodeError:
            raise UpstreamError(
                "Upstream returned a non-JSON response",
                details=response.text or None,
            )

    async def health_check(self) -> bool:
        if not self.configured:
            return False
        try:
            response = await self.client.get("/models", headers=self._headers())
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def aclose(self) -> None:
        await self.client.aclose()
