import orjson
import pytest

from nim_gateway.core.exceptions import ConfigurationError, InvalidRequestError, UpstreamError
from nim_gateway.gateway.service import TranslationGateway
from nim_gateway.providers.base import BaseProvider

from conftest import make_settings


class StubProvider(BaseProvider):
    provider_name = "stub"

    def __init__(self, reply=None, configured=True, error=None):
        self.reply = reply if reply is not None else {}
        self._configured = configured
        self.error = error
        self.calls = []

    @property
    def configured(self) -> bool:
        return self._configured

    def ensure_configured(self) -> None:
        if not self._configured:
            raise ConfigurationError("not configured")

    async def fetch_completion(self, request):
        self.calls.append(request)
        if self.error:
            raise self.error
        return self.reply

    async def health_check(self) -> bool:
        return self._configured


def _body(**fields) -> bytes:
    return orjson.dumps({"messages": [{"role": "user", "content": "hi"}], **fields})


async def test_handle_returns_request_and_normalized_completion():
    provider = StubProvider({"choices": [{"message": {"content": "hello"}}]})
    gateway = TranslationGateway(make_settings(), provider)

    request, completion = await gateway.handle(_body(model="m/x"))

    assert request.model == "m/x"
    assert completion.model == "m/x"
    assert completion.content == "hello"
    assert len(provider.calls) == 1


@pytest.mark.parametrize("raw", [b"", b"{}", b'{"messages": "hi"}', b"garbage"])
async def test_configuration_error_wins_over_bad_body(raw):
    provider = StubProvider(configured=False)
    gateway = TranslationGateway(make_settings(), provider)

    with pytest.raises(ConfigurationError):
        await gateway.handle(raw)
    assert provider.calls == []


async def test_invalid_body_never_reaches_upstream():
    provider = StubProvider()
    gateway = TranslationGateway(make_settings(), provider)

    with pytest.raises(InvalidRequestError):
        await gateway.handle(b'{"model": "x"}')
    assert provider.calls == []


async def test_upstream_error_propagates():
    provider = StubProvider(error=UpstreamError("nope", status_code=418))
    gateway = TranslationGateway(make_settings(), provider)

    with pytest.raises(UpstreamError) as exc_info:
        await gateway.handle(_body())
    assert exc_info.value.status_code == 418


async def test_emit_stage_uses_configured_chunk_size():
    provider = StubProvider({"choices": [{"message": {"content": "abcdefg"}}]})
    gateway = TranslationGateway(make_settings(stream_chunk_size=3), provider)

    _, completion = await gateway.handle(_body(stream=True))
    frames = list(gateway.stream_frames(completion))

    # "abc", "def", "g", terminal, [DONE]
    assert len(frames) == 5
    assert gateway.render_json(completion)["choices"][0]["message"]["content"] == "abcdefg"
