import base64
import json
from collections.abc import AsyncIterable, Callable

import httpx
import pytest
from dishka import Provider, Scope, provide
from fastapi.testclient import TestClient

from deeptrust.core.config import Config, HuggingFaceConfig, LovableConfig
from deeptrust.ioc import create_container
from deeptrust.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 16
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")

HF_MODEL = "org/detector"
HF_URL = f"https://api-inference.huggingface.co/models/{HF_MODEL}"
GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"

Handler = Callable[[httpx.Request], httpx.Response]


def make_config(**overrides) -> Config:
    values = {
        "app_name": "DeepTrust Test",
        "huggingface": HuggingFaceConfig(token="hf-test-token", model=HF_MODEL),
        "lovable": LovableConfig(api_key="lovable-test-key", model="google/gemini-2.5-flash"),
    }
    values.update(overrides)
    return Config(**values)


def gateway_reply(content) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def gateway_json(report: dict) -> dict:
    return gateway_reply(json.dumps(report))


class MockHttpClientProvider(Provider):
    """Outbound client whose requests are answered by ``handler``."""

    def __init__(self, handler: Handler) -> None:
        super().__init__()
        self._handler = handler

    @provide(scope=Scope.APP)
    async def provide_http_client(self) -> AsyncIterable[httpx.AsyncClient]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(self._handler)) as client:
            yield client


@pytest.fixture
def mock_client():
    """Factory for a standalone ``httpx.AsyncClient`` answering via a handler."""
    def _make(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def app_client():
    """Factory for a TestClient whose upstream calls go to ``handler``."""
    clients: list[TestClient] = []

    def _make(handler: Handler, **config_overrides) -> TestClient:
        config = make_config(**config_overrides)
        container = create_container(config, MockHttpClientProvider(handler))
        client = TestClient(create_app(config, container))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
