"""
Stream Emulator

Serializes an already complete completion as a sequence of SSE frames. The
upstream call has finished before the first frame is produced, so this is a
simulated stream: it gives clients the protocol they expect but no latency
benefit over the JSON reply.
"""

from typing import Iterator, List

import orjson

from nim_gateway.models.response import (
    ChatCompletionChunk,
    ChatCompletionChunkChoice,
    ChatCompletionResponse,
)

DEFAULT_CHUNK_SIZE = 50
DONE_SENTINEL = "data: [DONE]\n\n"


def split_content(content: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[str]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [content[i:i + chunk_size] for i in range(0, len(content), chunk_size)]


def sse_line(data: str) -> str:
    return f"data: {data}\n\n"


class StreamEmulator:
    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def _chunk(self, completion: ChatCompletionResponse, delta: dict, finish_reason=None) -> ChatCompletionChunk:
        return ChatCompletionChunk(
            id=completion.id,
            created=completion.created,
            model=completion.model,
            choices=[
                ChatCompletionChunkChoice(index=0, delta=delta, finish_reason=finish_reason)
            ],
        )

    def chunks(self, completion: ChatCompletionResponse) -> Iterator[ChatCompletionChunk]:
        """One chunk per content slice, then the terminal ``stop`` chunk."""
        for piece in split_content(completion.content, self.chunk_size):
            yield self._chunk(completion, {"content": piece})
        yield self._chunk(completion, {}, finish_reason="stop")

    def frames(self, completion: ChatCompletionResponse) -> Iterator[str]:
        for chunk in self.chunks(completion):
            yield sse_line(orjson.dumps(chunk.model_dump()).decode())
        yield DONE_SENTINEL
