from __future__ import annotations

import httpx
import pytest

from core.errors import (
    ConfigMissing,
    ContentBlocked,
    ContentPolicyError,
    EmptyGeneration,
    ModelRefused,
    UpstreamCallFailed,
)
from services import synthesis
from services.synthesis import CodeSynthesizer, build_prompt, find_refusal

pytestmark = pytest.mark.anyio

SCRIPT = "```python\nimport matplotlib.pyplot as plt\nplt.figure()\n```"


def test_build_prompt_is_deterministic_and_embeds_problem():
    first = build_prompt("circle radius 5")
    assert first == build_prompt("circle radius 5")
    assert "--- START PROBLEM ---\ncircle radius 5\n--- END PROBLEM ---" in first


def test_build_prompt_keeps_dollar_signs_in_problem_text():
    prompt = build_prompt("A shirt costs $20 and ${x} more")
    assert "A shirt costs $20 and ${x} more" in prompt


def test_find_refusal_only_matches_first_line():
    assert find_refusal("ERROR:CANNOT_VISUALIZE: not a geometry problem") == (
        "ERROR:CANNOT_VISUALIZE: not a geometry problem"
    )
    assert find_refusal("```\nERROR:CANNOT_VISUALIZE: nope\n```") == "ERROR:CANNOT_VISUALIZE: nope"
    assert find_refusal("import x\n# ERROR:CANNOT_VISUALIZE: later") is None
    assert find_refusal("error:cannot_visualize: lower case") is None
    assert find_refusal("") is None


async def test_generate_returns_raw_text_and_uses_settings(settings, make_gemini_client):
    client = make_gemini_client(text=SCRIPT)
    synthesizer = CodeSynthesizer(settings, client=client)

    raw = await synthesizer.generate("circle radius 5")

    assert raw == SCRIPT
    call = client.calls[0]
    assert call["model"] == "gemini-2.0-flash"
    assert call["contents"] == build_prompt("circle radius 5")
    config = call["config"]
    assert config.temperature == pytest.approx(0.3)
    assert config.top_k == 1
    assert config.top_p == pytest.approx(1.0)
    assert config.max_output_tokens == 2048


async def test_missing_key_raises_config_missing(settings):
    synthesizer = CodeSynthesizer(settings.model_copy(update={"GEMINI_API_KEY": None}))
    with pytest.raises(ConfigMissing) as excinfo:
        await synthesizer.generate("circle radius 5")
    assert excinfo.value.status_code == 500
    assert excinfo.value.error_kind == "ConfigurationError"


async def test_prompt_block_raises_content_blocked(settings, make_gemini_client):
    client = make_gemini_client(block_reason="SAFETY")
    with pytest.raises(ContentBlocked) as excinfo:
        await CodeSynthesizer(settings, client=client).generate("something")
    assert excinfo.value.details == "SAFETY"
    assert excinfo.value.status_code == 422


async def test_safety_finish_reason_raises_content_blocked(settings, make_gemini_client):
    client = make_gemini_client(text=None, finish_reason="PROHIBITED_CONTENT")
    with pytest.raises(ContentBlocked):
        await CodeSynthesizer(settings, client=client).generate("something")


@pytest.mark.parametrize("text", [None, "", "   \n "])
async def test_empty_text_raises_empty_generation(settings, make_gemini_client, text):
    client = make_gemini_client(text=text, finish_reason="STOP")
    with pytest.raises(EmptyGeneration) as excinfo:
        await CodeSynthesizer(settings, client=client).generate("something")
    assert excinfo.value.error_kind == "GenerationEmptyError"


async def test_refusal_prefix_raises_model_refused(settings, make_gemini_client):
    client = make_gemini_client(text="ERROR:CANNOT_VISUALIZE: this is a proof, not a figure")
    with pytest.raises(ModelRefused) as excinfo:
        await CodeSynthesizer(settings, client=client).generate("prove sqrt(2) is irrational")
    assert isinstance(excinfo.value, ContentPolicyError)
    assert excinfo.value.to_envelope()["errorKind"] == "ContentPolicyError"
    assert "this is a proof" in excinfo.value.details


async def test_transport_error_raises_upstream_call_failed(settings, make_gemini_client):
    client = make_gemini_client(error=httpx.ConnectError("connection refused"))
    with pytest.raises(UpstreamCallFailed) as excinfo:
        await CodeSynthesizer(settings, client=client).generate("circle radius 5")
    assert "connection refused" in excinfo.value.details
    assert excinfo.value.error_kind == "UpstreamServiceError"


def test_synthesizers_share_one_gemini_client(settings, monkeypatch):
    monkeypatch.setattr(synthesis, "_genai_client", None)
    monkeypatch.setattr(synthesis, "_genai_api_key", None)

    first = CodeSynthesizer(settings)._get_client()
    second = CodeSynthesizer(settings)._get_client()

    assert first is second
    assert synthesis._genai_client is first


async def test_close_genai_client_releases_the_shared_client(settings, monkeypatch):
    monkeypatch.setattr(synthesis, "_genai_client", None)
    monkeypatch.setattr(synthesis, "_genai_api_key", None)
    first = CodeSynthesizer(settings)._get_client()

    await synthesis.close_genai_client()

    assert synthesis._genai_client is None
    assert CodeSynthesizer(settings)._get_client() is not first
