"""
Response Normalizer

Reshapes whatever the upstream returned into the OpenAI ``chat.completion``
envelope. Every field is read through ``resolve`` so missing or malformed
upstream fields fall back to a default instead of raising.

Fallback policy:
  - id:       upstream id, else ``chatcmpl-<epoch millis>``
  - created:  always the local wall-clock time, upstream value ignored
  - model:    the resolved request model, never the upstream's own name
  - choices:  exactly one; role "assistant", content "", finish_reason "stop"
  - usage:    prompt_tokens defaults to a placeholder, completion_tokens to
              the content length in characters. Both are approximations,
              not token counts.
"""

import time
from typing import Any, Optional

from nim_gateway.gateway.validator import resolve
from nim_gateway.models.response import (
    ChatCompletionChoice,
    ChatCompletionMessage,
    ChatCompletionResponse,
    UsageInfo,
)

ID_PREFIX = "chatcmpl-"
DEFAULT_PROMPT_TOKENS = 100


def generate_completion_id(now: Optional[float] = None) -> str:
    now = time.time() if now is None else now
    return f"{ID_PREFIX}{int(now * 1000)}"


def _first_choice(upstream: Any) -> Any:
    choices = resolve(upstream, "choices", [])
    return choices[0] if choices else {}


def normalize_choice(upstream: Any) -> ChatCompletionChoice:
    choice = _first_choice(upstream)
    message = resolve(choice, "message", {})
    return ChatCompletionChoice(
        index=0,
        message=ChatCompletionMessage(
            role=resolve(message, "role", "assistant"),
            content=resolve(message, "content", ""),
        ),
        finish_reason=resolve(choice, "finish_reason", "stop"),
    )


def normalize_usage(
    upstream: Any, content: str, placeholder_prompt_tokens: int = DEFAULT_PROMPT_TOKENS
) -> UsageInfo:
    usage = resolve(upstream, "usage", {})
    prompt_tokens = resolve(usage, "prompt_tokens", placeholder_prompt_tokens)
    completion_tokens = resolve(usage, "completion_tokens", len(content))
    total_tokens = resolve(usage, "total_tokens", prompt_tokens + completion_tokens)
    return UsageInfo(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


def normalize_completion(
    upstream: Any,
    model: str,
    placeholder_prompt_tokens: int = DEFAULT_PROMPT_TOKENS,
    now: Optional[float] = None,
) -> ChatCompletionResponse:
    now = time.time() if now is None else now
    choice = normalize_choice(upstream)
    completion_id = resolve(upstream, "id", "") or generate_completion_id(now)

    return ChatCompletionResponse(
        id=completion_id,
        created=int(now),
        model=model,
        choices=[choice],
        usage=normalize_usage(upstream, choice.message.content, placeholder_prompt_tokens),
    )
