import io
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from utils.settings import Settings


def make_png(size=(32, 24), color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeResponses:
    """Stands in for ``AsyncOpenAI().responses``."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            output_text=self.reply,
            output=[],
            usage=SimpleNamespace(input_tokens=120, output_tokens=18),
        )


class FakeOpenAI:
    def __init__(self, reply="", error=None):
        self.responses = FakeResponses(reply, error)


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def settings():
    return Settings(openai_api_key=None, openai_model="test-model", session_ttl_seconds=0.0)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
