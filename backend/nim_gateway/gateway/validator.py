from collections.abc import Mapping
from typing import Any

import orjson
from pydantic import ValidationError

from nim_gateway.core.config import Settings
from nim_gateway.core.exceptions import InvalidRequestError
from nim_gateway.models.request import ChatCompletionRequest

MESSAGES_REQUIRED = "'messages' is required and must be an array"


def resolve(source: Any, field: str, fallback: Any) -> Any:
    """
    Read ``field`` from ``source`` or fall back.

    Total over every input: a non-mapping source, an absent key, a null value
    and a value whose type does not match the fallback's all yield ``fallback``.
    """
    if not isinstance(source, Mapping):
        return fallback
    value = source.get(field)
    if value is None or fallback is None:
        return fallback if value is None else value

    expected = type(fallback)
    if isinstance(value, bool) and expected is not bool:
        return fallback
    if expected is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, expected):
        return fallback
    return value


def parse_body(raw_body: bytes) -> Any:
    try:
        return orjson.loads(raw_body)
    except orjson.JSONDecodeError as e:
        raise InvalidRequestError(f"Request body must be valid JSON: {e}")


def validate_request(body: Any, settings: Settings) -> ChatCompletionRequest:
    """Check the parsed body and fill every omitted option from configuration."""
    if not isinstance(body, Mapping):
        raise InvalidRequestError(MESSAGES_REQUIRED)
    if not isinstance(body.get("messages"), list):
        raise InvalidRequestError(MESSAGES_REQUIRED)

    try:
        parsed = ChatCompletionRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidRequestError(
            "Invalid chat completion request",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        )

    values = parsed.model_dump(include={"model", "temperature", "max_tokens", "stream"})
    return parsed.model_copy(
        update={
            "model": resolve(values, "model", settings.default_model),
            "temperature": resolve(values, "temperature", settings.default_temperature),
            "max_tokens": resolve(values, "max_tokens", settings.default_max_tokens),
            "stream": resolve(values, "stream", False),
        }
    )
