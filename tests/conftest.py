import os
import time
from typing import List, Optional, Union

import httpx
import pytest

# Pin the environment before finguard.config builds its module-level Settings
os.environ["TZ"] = "UTC"
if hasattr(time, "tzset"):
    time.tzset()
os.environ["ENV"] = "test"
os.environ.pop("GOOGLE_AI_API_KEY", None)
os.environ["GOOGLE_AI_API_KEY_FILE"] = "/nonexistent/google_ai_api_key"
os.environ["LOG_JSON"] = "0"

from fastapi.testclient import TestClient  # noqa: E402

from finguard.config import Settings  # noqa: E402
from finguard.deps.narrative import get_narrative  # noqa: E402
from finguard.errors import ProviderError  # noqa: E402
from finguard.main import create_app  # noqa: E402
from finguard.providers.google_ai import Sampling  # noqa: E402
from finguard.services.narrative import NarrativeRewriter  # noqa: E402


class FakeProvider:
    """Stands in for GoogleAiClient: replays canned replies or raises ProviderError."""

    def __init__(self, replies: Optional[List[Union[str, Exception]]] = None):
        self.replies = list(replies or [])
        self.prompts: List[str] = []
        self.samplings: List[Sampling] = []

    async def generate(self, prompt: str, sampling: Sampling) -> str:
        self.prompts.append(prompt)
        self.samplings.append(sampling)
        if not self.replies:
            raise ProviderError("timeout", "no canned reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(scope="session")
def anyio_backend():
    """Async tests run on asyncio."""
    return "asyncio"


@pytest.fixture
def test_settings():
    return Settings(GOOGLE_AI_API_KEY=None, GOOGLE_AI_API_KEY_FILE="/nonexistent/key")


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def narrative_client(app, test_settings, fake_provider):
    """TestClient whose routes rewrite through ``fake_provider``."""
    rewriter = NarrativeRewriter.from_settings(test_settings, fake_provider)
    app.dependency_overrides[get_narrative] = lambda: rewriter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def asgi_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
