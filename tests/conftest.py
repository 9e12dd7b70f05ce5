from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from fashion_ai_gateway.config import AppConfig
from fashion_ai_gateway.errors import BackendUnavailable
from fashion_ai_gateway.host import HostRuntime
from fashion_ai_gateway.providers.base import CompletionRequest, FashionProvider
from fashion_ai_gateway.schemas import CapabilityTier, ImageInput, ProviderChoice

CRITIQUE_TEXT = """Rating: 8.5/10 - a polished weekend look.
Strengths:
- great color balance between the navy blazer and cream trousers
- excellent tailoring through the shoulders
Improvements:
- improve the fit at the ankle
- consider a lighter shoe
Style notes: a relaxed, modern aesthetic.
Confidence: 9/10"""


def _png_bytes(size: tuple[int, int] = (4, 6)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 180, 160)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def sample_image_bytes() -> bytes:
    return _png_bytes()


@pytest.fixture()
def sample_image_path(tmp_path: Path, sample_image_bytes: bytes) -> Path:
    target = tmp_path / "outfit.png"
    target.write_bytes(sample_image_bytes)
    return target


@pytest.fixture()
def sample_image(sample_image_bytes: bytes) -> ImageInput:
    return ImageInput(
        name="outfit.png",
        mime_type="image/png",
        data=sample_image_bytes,
        last_modified=1_700_000_000.0,
        width=4,
        height=6,
    )


def make_config(**overrides: Any) -> AppConfig:
    base = AppConfig(
        gemini_api_key=None,
        openai_api_key=None,
        venice_api_key=None,
        proxy_url=None,
        proxy_ping=False,
        proxy_ping_timeout_s=0.5,
        request_timeout_s=5.0,
        client_hosted=True,
        preference=ProviderChoice.AUTO,
        model_size=None,
        cache_enabled=True,
        cache_backend="memory",
        cache_dir=Path(".cache/test"),
        analysis_ttl_s=3600,
        transform_ttl_s=86400,
        max_image_bytes=1024 * 1024,
        log_level="INFO",
    )
    return replace(base, **overrides)


class FakeSession:
    def __init__(self, model: FakeLanguageModel) -> None:
        self.model = model
        self.destroyed = False

    async def prompt(self, text: str, image: bytes | None = None) -> str:
        self.model.prompts.append((text, image))
        if self.model.error is not None:
            raise self.model.error
        if self.model.delay is not None:
            await self.model.delay()
        return self.model.response

    def destroy(self) -> None:
        self.destroyed = True
        self.model.destroyed += 1


class FakeLanguageModel:
    """Host language model double; records configs, prompts, and destroyed sessions."""

    def __init__(self, availability: str = "readily", response: str = CRITIQUE_TEXT) -> None:
        self._availability = availability
        self.response = response
        self.error: Exception | None = None
        self.delay: Callable[[], Any] | None = None
        self.configs: list[Any] = []
        self.prompts: list[tuple[str, bytes | None]] = []
        self.destroyed = 0

    async def availability(self) -> str:
        return self._availability

    def create(self, config: Any) -> FakeSession:
        self.configs.append(config)
        return FakeSession(self)


class FakeWriter:
    def __init__(self, factory: FakeWriterFactory) -> None:
        self.factory = factory

    def write(self, text: str) -> str:
        self.factory.requests.append(text)
        if self.factory.error is not None:
            raise self.factory.error
        return self.factory.response

    async def destroy(self) -> None:
        self.factory.destroyed += 1


class FakeWriterFactory:
    def __init__(self, availability: str = "ready", response: str = "A relaxed linen variation.") -> None:
        self._availability = availability
        self.response = response
        self.error: Exception | None = None
        self.options: list[Any] = []
        self.requests: list[str] = []
        self.destroyed = 0

    def availability(self) -> str:
        return self._availability

    def create(self, options: Any) -> FakeWriter:
        self.options.append(options)
        return FakeWriter(self)


@pytest.fixture()
def language_model() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture()
def writer_factory() -> FakeWriterFactory:
    return FakeWriterFactory()


@pytest.fixture()
def host(language_model: FakeLanguageModel, writer_factory: FakeWriterFactory) -> HostRuntime:
    return HostRuntime(language_model=language_model, writer=writer_factory)


class ScriptedProvider(FashionProvider):
    """Provider double whose backend, tier, and outcome are set per instance."""

    supports_images = True

    def __init__(
        self,
        backend: ProviderChoice,
        tier: CapabilityTier,
        *,
        text: str = CRITIQUE_TEXT,
        error: Exception | None = None,
        unavailable: str | None = None,
    ) -> None:
        super().__init__(clock=lambda: 1_700_000_000.0, id_factory=lambda: "design-1")
        self.backend = backend  # type: ignore[misc]
        self.tier = tier  # type: ignore[misc]
        self.text = text
        self.error = error
        self.unavailable = unavailable
        self.calls = 0

    async def ensure_available(self) -> None:
        if self.unavailable:
            raise BackendUnavailable(self.unavailable, backend=self.name)

    async def _complete(self, request: CompletionRequest) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


class StubFactory:
    """Stands in for ``ProviderFactory``; returns pre-built providers by backend."""

    def __init__(self, providers: dict[ProviderChoice, FashionProvider]) -> None:
        self.providers = providers
        self.created: list[ProviderChoice] = []

    def create(self, backend: ProviderChoice) -> FashionProvider:
        self.created.append(backend)
        return self.providers[backend]
