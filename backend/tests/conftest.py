from typing import Any, List

import httpx
import orjson
import pytest
from fastapi.testclient import TestClient

from nim_gateway.core.config import Settings
from nim_gateway.main import create_app
from nim_gateway.providers.nvidia import NvidiaProvider

BASE_URL = "https://nim.test/v1"


def make_settings(**overrides) -> Settings:
    values = dict(
        nvidia_api_key="nvapi-test",
        nvidia_base_url=BASE_URL,
        default_model="deepseek-ai/deepseek-r1",
        default_temperature=0.6,
        default_max_tokens=2048,
        stream_chunk_size=50,
        placeholder_prompt_tokens=100,
        cors_allow_origins="*",
        app_env="test",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeUpstream:
    """Stands in for the NIM API behind an httpx.MockTransport."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Any = {
            "id": "cmpl-upstream",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": "hello"},
                    "finish_reason": "stop",
                }
            ],
        }
        self.error: Exception = None

    def reply(self, body: Any, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_payload(self) -> dict:
        return orjson.loads(self.requests[-1].content)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def provider(settings, upstream) -> NvidiaProvider:
    return NvidiaProvider(settings, transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def client(settings, provider):
    with TestClient(create_app(settings, provider)) as test_client:
        yield test_client


@pytest.fixture
def unconfigured_client(upstream):
    settings = make_settings(nvidia_api_key="")
    provider = NvidiaProvider(settings, transport=httpx.MockTransport(upstream.handler))
    with TestClient(create_app(settings, provider)) as test_client:
        yield test_client
