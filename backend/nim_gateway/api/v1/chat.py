from typing import AsyncGenerator, Iterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from nim_gateway.core.logging import get_logger
from nim_gateway.gateway.service import TranslationGateway

logger = get_logger(__name__)
router = APIRouter()

# Clients disagree on where the completion endpoint lives; accept all of them
COMPLETION_PATHS = ["/v1/chat/completions", "/chat/completions", "/v1", "/"]


def get_gateway(request: Request) -> TranslationGateway:
    return request.app.state.gateway


async def _emit_frames(frames: Iterator[str]) -> AsyncGenerator[str, None]:
    """
    Writes frames in order. Starlette stops iterating when the client goes
    away; nothing besides the response itself needs releasing then.
    """
    sent = 0
    completed = False
    try:
        for frame in frames:
            sent += 1
            yield frame
        completed = True
    finally:
        if completed:
            logger.info("stream_emitted", frames=sent)
        else:
            logger.info("stream_aborted", frames=sent)


async def chat_completions(
    request: Request,
    gateway: TranslationGateway = Depends(get_gateway),
):
    body, completion = await gateway.handle(await request.body())

    # Upstream has already answered in full, so errors can no longer occur
    # once the first frame is written.
    if body.stream:
        return StreamingResponse(
            _emit_frames(gateway.stream_frames(completion)),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
            },
        )

    return JSONResponse(content=gateway.render_json(completion))


for _path in COMPLETION_PATHS:
    router.add_api_route(_path, chat_completions, methods=["POST"])
