from typing import Iterator, Tuple

from nim_gateway.core.config import Settings
from nim_gateway.core.logging import get_logger
from nim_gateway.gateway.normalizer import normalize_completion
from nim_gateway.gateway.streaming import StreamEmulator
from nim_gateway.gateway.validator import parse_body, validate_request
from nim_gateway.models.request import ChatCompletionRequest
from nim_gateway.models.response import ChatCompletionResponse
from nim_gateway.providers.base import BaseProvider

logger = get_logger(__name__)


class TranslationGateway:
    """
    Request pipeline: validate → call upstream → transform → emit.

    ``handle`` covers everything up to the normalized completion. Emission is
    left to the caller, which picks ``render_json`` or ``stream_frames``
    depending on ``request.stream``.
    """

    def __init__(self, settings: Settings, provider: BaseProvider):
        self.settings = settings
        self.provider = provider
        self.emulator = StreamEmulator(settings.stream_chunk_size)

    async def handle(self, raw_body: bytes) -> Tuple[ChatCompletionRequest, ChatCompletionResponse]:
        # Missing credentials win over any problem with the body
        self.provider.ensure_configured()

        request = validate_request(parse_body(raw_body), self.settings)
        logger.info(
            "completion_request",
            model=request.model,
            stream=request.stream,
            messages=len(request.messages),
        )

        upstream = await self.fetch_completion(request)
        completion = normalize_completion(
            upstream,
            model=request.model,
            placeholder_prompt_tokens=self.settings.placeholder_prompt_tokens,
        )
        return request, completion

    async def fetch_completion(self, request: ChatCompletionRequest):
        """Blocks until the full upstream completion is available."""
        return await self.provider.fetch_completion(request)

    def render_json(self, completion: ChatCompletionResponse) -> dict:
        return completion.model_dump()

    def stream_frames(self, completion: ChatCompletionResponse) -> Iterator[str]:
        return self.emulator.frames(completion)
