"""
Shared fixtures: test settings and stand-ins for the Gemini client.

The OCR adapter is exercised through `httpx.MockTransport`; the executor runs
real subprocesses with the current interpreter.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from core.config import Settings


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        GEMINI_API_KEY="test-gemini-key",
        OCR_SPACE_API_KEY="test-ocr-key",
        OCR_SPACE_URL="https://ocr.test/parse/image",
        SUPABASE_URL="https://storage.test",
        SUPABASE_ANON_KEY="test-anon-key",
        EXECUTION_TIMEOUT_SECONDS=20,
    )


def gemini_response(
    text: str | None = None,
    block_reason: str | None = None,
    finish_reason: str | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        text=text,
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
        candidates=[SimpleNamespace(finish_reason=finish_reason)] if finish_reason else [],
    )


class _FakeModels:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


class FakeGeminiClient:
    """Mimics the `client.aio.models.generate_content` surface of google-genai."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.models = _FakeModels(response=response, error=error)
        self.aio = SimpleNamespace(models=self.models)

    @property
    def calls(self) -> list[dict]:
        return self.models.calls


class FakeSynthesizer:
    def __init__(self, raw_text: str | None = None, error: Exception | None = None) -> None:
        self.raw_text = raw_text
        self.error = error
        self.calls: list[str] = []

    async def generate(self, problem_text: str) -> str:
        self.calls.append(problem_text)
        if self.error is not None:
            raise self.error
        return self.raw_text or ""


@pytest.fixture
def make_gemini_client():
    def _make(text: str | None = None, error: Exception | None = None, **kwargs) -> FakeGeminiClient:
        if error is not None:
            return FakeGeminiClient(error=error)
        return FakeGeminiClient(response=gemini_response(text=text, **kwargs))

    return _make


@pytest.fixture
def make_synthesizer():
    return FakeSynthesizer
