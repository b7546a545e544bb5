from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from quizmaster.core.config import settings

# Override settings for tests
settings.gemini_api_keys = "gem-key-1,gem-key-2"
settings.openrouter_api_key = "or-test-key"
settings.rate_limit_enabled = False
settings.app_env = "development"

from quizmaster.core.dependencies import get_document_store, get_quiz_gateway  # noqa: E402
from quizmaster.core.rate_limit import limiter  # noqa: E402
from quizmaster.gateway.gateway import QuizGateway  # noqa: E402
from quizmaster.gateway.key_rotator import KeyRotator  # noqa: E402
from quizmaster.gateway.vendor_adapters import GeminiAdapter, OpenRouterAdapter  # noqa: E402
from quizmaster.main import app  # noqa: E402
from quizmaster.storage.documents import DocumentStore  # noqa: E402

limiter.enabled = False

GEMINI_URL = "https://gemini.test/v1beta/models/gemini-2.0-flash:generateContent"
OPENROUTER_URL = "https://openrouter.test/api/v1/chat/completions"
ANALYSIS_MODEL = "anthropic/claude-3.5-sonnet"


def gemini_envelope(text: str) -> dict:
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": text}], "role": "model"},
                "finishReason": "STOP",
            }
        ],
        "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 20, "totalTokenCount": 30},
    }


def chat_envelope(text: str) -> dict:
    return {
        "choices": [{"message": {"role": "assistant", "content": text}, "finish_reason": "stop"}],
        "model": ANALYSIS_MODEL,
    }


@pytest.fixture
def gemini() -> GeminiAdapter:
    """Gemini adapter whose network call is replaced by an AsyncMock."""
    adapter = GeminiAdapter(GEMINI_URL, timeout=5.0)
    adapter.send = AsyncMock(return_value=gemini_envelope("[]"))
    return adapter


@pytest.fixture
def openrouter() -> OpenRouterAdapter:
    adapter = OpenRouterAdapter(OPENROUTER_URL, timeout=5.0, referer="http://localhost:3000", title="QuizMaster")
    adapter.send = AsyncMock(return_value=chat_envelope("Focus on fractions."))
    return adapter


@pytest.fixture
def quiz_gateway(gemini, openrouter) -> QuizGateway:
    return QuizGateway(
        gemini=gemini,
        openrouter=openrouter,
        gemini_keys=KeyRotator(["gem-key-1", "gem-key-2"], name="gemini"),
        openrouter_keys=KeyRotator(["or-test-key"], name="openrouter"),
        analysis_model=ANALYSIS_MODEL,
    )


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    document_store = DocumentStore(tmp_path / "quizmaster_uploads")
    document_store.ensure_root()
    return document_store


@pytest.fixture
async def client(quiz_gateway, store) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_quiz_gateway] = lambda: quiz_gateway
    app.dependency_overrides[get_document_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
