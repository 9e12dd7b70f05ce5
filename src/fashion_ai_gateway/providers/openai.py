"""Hosted OpenAI and OpenAI-compatible (Venice) chat-completions providers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, ClassVar

from openai import AsyncOpenAI

from ..errors import BackendUnavailable
from ..schemas import CapabilityTier, ModelSize, ProviderChoice
from .base import CompletionRequest, FashionProvider

logger = logging.getLogger("fashion_ai_gateway.providers.openai")

VENICE_BASE_URL = "https://api.venice.ai/api/v1"


class OpenAIProvider(FashionProvider):
    backend = ProviderChoice.OPENAI
    tier = CapabilityTier.REMOTE
    supports_images = True

    text_models: ClassVar[dict[ModelSize, str]] = {
        ModelSize.FAST: "gpt-4o-mini",
        ModelSize.BALANCED: "gpt-4o-mini",
        ModelSize.QUALITY: "gpt-4o",
    }
    vision_model: ClassVar[str | None] = None
    base_url: ClassVar[str | None] = None
    key_name: ClassVar[str] = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str | None,
        *,
        client: Any | None = None,
        timeout_s: float = 60.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key
        self._client = client
        self.timeout_s = timeout_s

    async def ensure_available(self) -> None:
        if self._client is None and not self._api_key:
            raise BackendUnavailable(f"{self.key_name} is not configured", backend=self.name)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self.base_url, timeout=self.timeout_s)
        return self._client

    def _model(self, request: CompletionRequest) -> str:
        if request.image is not None and self.vision_model:
            return self.vision_model
        return self.text_models[request.model_size]

    async def _complete(self, request: CompletionRequest) -> str:
        model = self._model(request)
        messages: list[dict[str, Any]] = []
        if request.session.system_prompt:
            messages.append({"role": "system", "content": request.session.system_prompt})
        if request.image is not None:
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.prompt},
                        {"type": "image_url", "image_url": {"url": request.image.data_url()}},
                    ],
                }
            )
        else:
            messages.append({"role": "user", "content": request.prompt})

        logger.info("llm:%s request model=%s timeout_s=%s", self.name, model, self.timeout_s)
        resp = await asyncio.wait_for(
            self._get_client().chat.completions.create(
                model=model,
                messages=messages,
                temperature=request.session.temperature,
            ),
            timeout=self.timeout_s,
        )
        return resp.choices[0].message.content if resp.choices else ""


class VeniceProvider(OpenAIProvider):
    """Venice exposes an OpenAI-compatible API with its own model names."""

    backend = ProviderChoice.VENICE
    text_models = {
        ModelSize.FAST: "venice-lite",
        ModelSize.BALANCED: "llama-3.3-70b",
        ModelSize.QUALITY: "llama-3.3-70b",
    }
    vision_model = "mistral-31-24b"
    base_url = VENICE_BASE_URL
    key_name = "VENICE_API_KEY"
