import base64
from types import SimpleNamespace

import pytest

import megamaluca.ai.client as client_module
from megamaluca.ai.capabilities import GeminiCapabilities
from megamaluca.ai.client import GeminiClient, GeminiConfig, extract_inline_data
from megamaluca.config.settings import AISettings


def make_client(**overrides):
    config = GeminiConfig(api_key="test-key", retry_delay=0.0, **overrides)
    return GeminiClient(config)


class FakeModels:
    """Mimics ``genai.Client().models``."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = []

    def generate_content(self, model, contents, config):
        self.calls.append((model, contents, config))
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return SimpleNamespace(text=answer)


def response_with(data, camel=True):
    key = "inlineData" if camel else "inline_data"
    return {"candidates": [{"content": {"parts": [{"text": "ok"}, {key: {"data": data}}]}}]}


def test_from_settings_uses_longest_timeout():
    config = GeminiConfig.from_settings(AISettings(gemini_api_key="k", image_timeout=200.0))
    assert config.api_key == "k"
    assert config.timeout == 200.0
    assert config.speech_model == "gemini-2.5-flash-preview-tts"


@pytest.mark.parametrize("camel", [True, False])
def test_extract_inline_data(camel):
    assert extract_inline_data(response_with("QUJD", camel)) == "QUJD"


def test_extract_inline_data_missing():
    assert extract_inline_data({}) is None
    assert extract_inline_data({"candidates": [{"content": {"parts": [{"text": "x"}]}}]}) is None


async def test_generate_text_retries_on_overload():
    client = make_client()
    models = FakeModels([Exception("503 UNAVAILABLE"), "que fracasso"])
    client._client = SimpleNamespace(models=models)

    text = await client.generate_text("prompt", system_instruction="system")

    assert text == "que fracasso"
    assert len(models.calls) == 2
    assert models.calls[0][0] == client.config.text_model


async def test_generate_text_gives_up_on_other_errors():
    client = make_client()
    models = FakeModels([Exception("400 bad request"), "never"])
    client._client = SimpleNamespace(models=models)

    assert await client.generate_text("prompt") is None
    assert len(models.calls) == 1


async def test_generate_text_without_key():
    client = GeminiClient(GeminiConfig(api_key=""))
    assert not client.is_available
    assert await client.generate_text("prompt") is None


async def test_generate_image_payload(monkeypatch):
    client = make_client()
    sent = {}

    async def fake_post(model, payload):
        sent["model"] = model
        sent["payload"] = payload
        return response_with(base64.b64encode(b"png-bytes").decode())

    monkeypatch.setattr(client, "_post_generate_content", fake_post)
    image = await client.generate_image("add a hat", reference_image=b"old")

    assert image == b"png-bytes"
    assert sent["model"] == client.config.image_model
    parts = sent["payload"]["contents"][0]["parts"]
    assert parts[0]["inlineData"]["data"] == base64.b64encode(b"old").decode()
    assert parts[1] == {"text": "add a hat"}
    assert sent["payload"]["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]


async def test_generate_image_without_inline_data(monkeypatch):
    client = make_client()

    async def fake_post(model, payload):
        return {"candidates": []}

    monkeypatch.setattr(client, "_post_generate_content", fake_post)
    assert await client.generate_image("anything") is None


async def test_generate_speech_returns_raw_base64(monkeypatch):
    client = make_client()
    sent = {}

    async def fake_post(model, payload):
        sent["model"] = model
        sent["payload"] = payload
        return response_with("AAABAA==")

    monkeypatch.setattr(client, "_post_generate_content", fake_post)
    payload = await client.generate_speech("Vem meu querido", voice_name="Puck")

    assert payload == "AAABAA=="
    assert sent["model"] == client.config.speech_model
    speech = sent["payload"]["generationConfig"]["speechConfig"]
    assert speech["voiceConfig"]["prebuiltVoiceConfig"]["voiceName"] == "Puck"


async def test_post_without_key_returns_none():
    client = GeminiClient(GeminiConfig(api_key=""))
    assert await client._post_generate_content("model", {}) is None


async def test_generations_logged_when_enabled(monkeypatch, tmp_path):
    logged = []

    class RecordingLogger:
        def log_text_generation(self, **kwargs):
            logged.append(("text", kwargs))

        def log_image_generation(self, **kwargs):
            logged.append(("image", kwargs))

    monkeypatch.setattr(client_module, "get_ai_logger", lambda log_dir=None: RecordingLogger())

    client = make_client(log_generations=True, log_dir=tmp_path)
    client._client = SimpleNamespace(models=FakeModels(["oi"]))

    async def fake_post(model, payload):
        return response_with(base64.b64encode(b"img").decode())

    monkeypatch.setattr(client, "_post_generate_content", fake_post)

    await client.generate_text("prompt")
    await client.generate_image("prompt")

    assert [kind for kind, _ in logged] == ["text", "image"]
    assert logged[0][1]["response"] == "oi"
    assert logged[1][1]["category"] == "celebration"


async def test_celebration_speech_reaches_capability(monkeypatch):
    settings = AISettings(gemini_api_key="test-key", retry_delay=0.0)
    client = GeminiClient(GeminiConfig.from_settings(settings))

    async def fake_post(model, payload):
        return response_with("AAABAA==")

    monkeypatch.setattr(client, "_post_generate_content", fake_post)
    result = await GeminiCapabilities(settings, client=client).generate_celebration_speech()

    assert result.ok
    assert result.value == "AAABAA=="
