from __future__ import annotations

import base64
import json
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from fashion_ai_gateway.errors import BackendCallFailed, BackendUnavailable
from fashion_ai_gateway.host import HostRuntime
from fashion_ai_gateway.prompts import PERSONA_PROMPTS, SYSTEM_PROMPTS, session_config
from fashion_ai_gateway.providers import (
    GeminiProvider,
    LightweightProvider,
    OnDeviceProvider,
    OpenAIProvider,
    ServerProxyProvider,
    VeniceProvider,
)
from fashion_ai_gateway.providers.base import CompletionRequest
from fashion_ai_gateway.schemas import (
    AnalysisInput,
    CritiqueMode,
    ImageInput,
    ModelSize,
    StylistPersona,
    TaskKind,
)

from conftest import CRITIQUE_TEXT, FakeLanguageModel, FakeWriterFactory

DESIGN_TEXT = "A linen wrap dress in sage green with a tailored waist and flutter sleeves."


@pytest.mark.asyncio
async def test_on_device_critique_uses_task_session_and_destroys(
    host: HostRuntime, language_model: FakeLanguageModel
) -> None:
    provider = OnDeviceProvider(host)

    analysis = AnalysisInput(description="navy blazer, cream chinos", mode=CritiqueMode.ROAST)
    result = await provider.analyze_outfit(analysis)

    assert result.rating == 8.5
    config = language_model.configs[0]
    assert config.temperature == pytest.approx(0.8)
    assert config.top_k == 25
    assert config.system_prompt == SYSTEM_PROMPTS[TaskKind.CRITIQUE]
    assert "navy blazer, cream chinos" in language_model.prompts[0][0]
    assert language_model.destroyed == 1


@pytest.mark.asyncio
async def test_on_device_sends_image_bytes(
    host: HostRuntime, language_model: FakeLanguageModel, sample_image: ImageInput
) -> None:
    provider = OnDeviceProvider(host)

    await provider.analyze_photo(sample_image)

    assert language_model.prompts[0][1] == sample_image.data
    assert language_model.configs[0].temperature == pytest.approx(0.3)


@pytest.mark.asyncio
async def test_on_device_unavailable_while_downloading() -> None:
    provider = OnDeviceProvider(HostRuntime(language_model=FakeLanguageModel(availability="after-download")))

    with pytest.raises(BackendUnavailable, match="downloading"):
        await provider.chat_with_stylist("hi", StylistPersona.LUXURY)


@pytest.mark.asyncio
async def test_on_device_unavailable_without_host() -> None:
    with pytest.raises(BackendUnavailable):
        await OnDeviceProvider(None).generate_design("a coat")


@pytest.mark.asyncio
async def test_on_device_runtime_error_is_wrapped(host: HostRuntime, language_model: FakeLanguageModel) -> None:
    language_model.error = RuntimeError("session crashed")

    with pytest.raises(BackendCallFailed) as excinfo:
        await OnDeviceProvider(host).chat_with_stylist("hi", StylistPersona.LUXURY)

    assert str(excinfo.value) == "on_device call failed: session crashed"
    assert excinfo.value.backend == "on_device"
    assert language_model.destroyed == 1


@pytest.mark.asyncio
async def test_on_device_design_adds_writer_variations(
    host: HostRuntime, language_model: FakeLanguageModel, writer_factory: FakeWriterFactory
) -> None:
    language_model.response = DESIGN_TEXT
    provider = OnDeviceProvider(host, clock=lambda: 42.0, id_factory=lambda: "design-7")

    design = await provider.generate_design("summer wedding guest dress")

    assert design.id == "design-7"
    assert design.timestamp == 42.0
    assert design.description == DESIGN_TEXT
    assert design.variations == ["A relaxed linen variation."] * 3
    assert [options.tone for options in writer_factory.options] == ["casual", "formal", "neutral"]
    assert writer_factory.destroyed == 3
    assert {"linen", "green", "tailored", "wedding"} <= set(design.tags)


@pytest.mark.asyncio
async def test_on_device_design_survives_writer_failure(
    host: HostRuntime, language_model: FakeLanguageModel, writer_factory: FakeWriterFactory
) -> None:
    language_model.response = DESIGN_TEXT
    writer_factory.error = RuntimeError("writer crashed")

    design = await OnDeviceProvider(host).generate_design("summer dress")

    assert design.variations == ["Classic version", "Modern twist"]
    assert writer_factory.destroyed == 1


@pytest.mark.asyncio
async def test_lightweight_degrades_photo_to_metadata(
    host: HostRuntime, writer_factory: FakeWriterFactory, sample_image: ImageInput
) -> None:
    analysis = await LightweightProvider(host).analyze_photo(sample_image)

    request = writer_factory.requests[0]
    assert "outfit.png" in request
    assert "4x6 px" in request
    assert writer_factory.options[0].length == "long"
    assert writer_factory.options[0].shared_context == SYSTEM_PROMPTS[TaskKind.FIT]
    assert analysis.body_type == "balanced"
    assert writer_factory.destroyed == 1


@pytest.mark.asyncio
async def test_lightweight_unavailable_without_writer(language_model: FakeLanguageModel) -> None:
    provider = LightweightProvider(HostRuntime(language_model=language_model))

    with pytest.raises(BackendUnavailable, match="host writer"):
        await provider.generate_design("a coat")


def _design_request() -> CompletionRequest:
    return CompletionRequest(
        task=TaskKind.DESIGN,
        prompt="a coat",
        session=session_config(TaskKind.DESIGN),
        model_size=ModelSize.BALANCED,
    )


@pytest.mark.asyncio
async def test_host_completions_raise_unavailable_when_host_member_is_missing() -> None:
    with pytest.raises(BackendUnavailable, match="no language model"):
        await OnDeviceProvider(HostRuntime())._complete(_design_request())
    with pytest.raises(BackendUnavailable, match="no writer"):
        await LightweightProvider(None)._complete(_design_request())


def _proxy_client(handler: Any) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_proxy_generate_route_and_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"result": CRITIQUE_TEXT, "provider": "gemini"})

    async with _proxy_client(handler) as client:
        provider = ServerProxyProvider("http://proxy.test/", http_client=client)
        result = await provider.analyze_outfit(AnalysisInput(description="denim jacket"))

    assert result.rating == 8.5
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/generate"
    body = json.loads(seen[0].content)
    assert body["provider"] == "auto"
    assert body["model"] == "pro"
    assert body["type"] == "critique"
    assert body["prompt"].startswith(SYSTEM_PROMPTS[TaskKind.CRITIQUE])
    assert "denim jacket" in body["prompt"]


@pytest.mark.asyncio
async def test_proxy_image_route(sample_image: ImageInput) -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/analyze-image"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"result": "Hourglass figure", "provider": "openai"})

    async with _proxy_client(handler) as client:
        analysis = await ServerProxyProvider("http://proxy.test", http_client=client).analyze_photo(sample_image)

    assert analysis.body_type == "hourglass"
    assert base64.b64decode(seen[0]["imageBase64"]) == sample_image.data
    assert seen[0]["mimeType"] == "image/png"


@pytest.mark.asyncio
async def test_proxy_error_message_is_preserved() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Gemini quota exceeded"})

    async with _proxy_client(handler) as client:
        with pytest.raises(BackendCallFailed) as excinfo:
            await ServerProxyProvider("http://proxy.test", http_client=client).generate_design("a coat")

    assert str(excinfo.value) == "proxy call failed: Gemini quota exceeded"
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_proxy_contract_violation() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": 42})

    async with _proxy_client(handler) as client:
        with pytest.raises(BackendCallFailed) as excinfo:
            await ServerProxyProvider("http://proxy.test", http_client=client).generate_design("a coat")

    assert excinfo.value.error_type == "contract_violation"


@pytest.mark.asyncio
async def test_proxy_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _proxy_client(handler) as client:
        with pytest.raises(BackendCallFailed, match="proxy call failed: connection refused"):
            await ServerProxyProvider("http://proxy.test", http_client=client).generate_design("a coat")


@pytest.mark.asyncio
async def test_proxy_status_reports_vendors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/status"
        return httpx.Response(200, json={"ok": True, "providers": {"gemini": True, "openai": False}})

    async with _proxy_client(handler) as client:
        status = await ServerProxyProvider("http://proxy.test", http_client=client).status()

    assert status.providers == {"gemini": True, "openai": False}
    assert status.any_configured


@pytest.mark.asyncio
async def test_proxy_without_url_is_unavailable() -> None:
    with pytest.raises(BackendUnavailable, match="URL"):
        await ServerProxyProvider(None).chat_with_stylist("hi", StylistPersona.LUXURY)


class FakeCompletions:
    def __init__(self, content: str | None = CRITIQUE_TEXT, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _openai_client(completions: FakeCompletions) -> Any:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.mark.asyncio
async def test_openai_chat_messages_and_model() -> None:
    completions = FakeCompletions(content="1. White sneakers: clean and easy\nTip: pair with cuffed denim")
    provider = OpenAIProvider(None, client=_openai_client(completions))

    response = await provider.chat_with_stylist("what shoes go with this?", StylistPersona.STREETWEAR)

    call = completions.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["messages"][0] == {"role": "system", "content": PERSONA_PROMPTS[StylistPersona.STREETWEAR]}
    assert call["messages"][1]["role"] == "user"
    assert call["temperature"] == pytest.approx(0.7)
    assert response.recommendations[0].item == "White sneakers"


@pytest.mark.asyncio
async def test_openai_quality_tasks_use_larger_model() -> None:
    completions = FakeCompletions()
    await OpenAIProvider(None, client=_openai_client(completions)).analyze_outfit(AnalysisInput(description="suit"))

    assert completions.calls[0]["model"] == "gpt-4o"


@pytest.mark.asyncio
async def test_venice_uses_vision_model_for_photos(sample_image: ImageInput) -> None:
    completions = FakeCompletions(content="Pear shape. Hips: curvy")
    provider = VeniceProvider(None, client=_openai_client(completions))

    analysis = await provider.analyze_photo(sample_image)

    call = completions.calls[0]
    assert call["model"] == "mistral-31-24b"
    content = call["messages"][-1]["content"]
    assert content[1]["image_url"]["url"] == sample_image.data_url()
    assert analysis.body_type == "pear"
    assert analysis.measurements.hips == "broad"


@pytest.mark.asyncio
async def test_openai_requires_key() -> None:
    with pytest.raises(BackendUnavailable, match="OPENAI_API_KEY"):
        await OpenAIProvider(None).generate_design("a coat")
    with pytest.raises(BackendUnavailable, match="VENICE_API_KEY"):
        await VeniceProvider(None).generate_design("a coat")


@pytest.mark.asyncio
async def test_openai_sdk_error_is_wrapped() -> None:
    completions = FakeCompletions(error=RuntimeError("rate limited"))

    with pytest.raises(BackendCallFailed, match="openai call failed: rate limited"):
        await OpenAIProvider(None, client=_openai_client(completions)).generate_design("a coat")


@pytest.mark.asyncio
async def test_openai_empty_content_normalizes_to_defaults() -> None:
    completions = FakeCompletions(content=None)

    response = await OpenAIProvider(None, client=_openai_client(completions)).chat_with_stylist(
        "hi", StylistPersona.LUXURY
    )

    assert response.message
    assert response.recommendations[0].item == "Color coordination"


class FakeGeminiModels:
    def __init__(self, text: str | None = CRITIQUE_TEXT) -> None:
        self.text = text
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, *, model: str, contents: list[Any], config: Any) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        return SimpleNamespace(text=self.text)


@pytest.mark.asyncio
async def test_gemini_sends_image_part_and_config(sample_image: ImageInput) -> None:
    models = FakeGeminiModels()
    client = SimpleNamespace(aio=SimpleNamespace(models=models))

    result = await GeminiProvider(None, client=client).analyze_outfit(
        AnalysisInput(description="trench coat", image=sample_image)
    )

    call = models.calls[0]
    assert call["model"] == "gemini-2.5-pro"
    assert len(call["contents"]) == 2
    assert "trench coat" in call["contents"][-1]
    assert SYSTEM_PROMPTS[TaskKind.CRITIQUE] in str(call["config"].system_instruction)
    assert call["config"].temperature == pytest.approx(0.6)
    assert call["config"].top_k == 25
    assert result.rating == 8.5


@pytest.mark.asyncio
async def test_gemini_requires_key() -> None:
    with pytest.raises(BackendUnavailable, match="GEMINI_API_KEY"):
        await GeminiProvider(None).chat_with_stylist("hi", StylistPersona.LUXURY)


@pytest.mark.asyncio
async def test_explicit_model_size_override() -> None:
    models = FakeGeminiModels(text="Some reply")
    client = SimpleNamespace(aio=SimpleNamespace(models=models))

    await GeminiProvider(None, client=client, model_size=ModelSize.FAST).analyze_outfit(
        AnalysisInput(description="suit")
    )

    assert models.calls[0]["model"] == "gemini-2.5-flash-lite"
