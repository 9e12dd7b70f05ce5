"""Hosted Gemini provider using the google-genai SDK."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from google import genai
from google.genai import types

from ..errors import BackendUnavailable
from ..schemas import CapabilityTier, ModelSize, ProviderChoice
from .base import CompletionRequest, FashionProvider

logger = logging.getLogger("fashion_ai_gateway.providers.gemini")

GEMINI_MODELS: dict[ModelSize, str] = {
    ModelSize.FAST: "gemini-2.5-flash-lite",
    ModelSize.BALANCED: "gemini-2.5-flash",
    ModelSize.QUALITY: "gemini-2.5-pro",
}


class GeminiProvider(FashionProvider):
    backend = ProviderChoice.GEMINI
    tier = CapabilityTier.REMOTE
    supports_images = True

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
            raise BackendUnavailable("GEMINI_API_KEY is not configured", backend=self.name)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def _complete(self, request: CompletionRequest) -> str:
        model = GEMINI_MODELS[request.model_size]
        contents: list[Any] = []
        if request.image is not None:
            contents.append(types.Part.from_bytes(data=request.image.data, mime_type=request.image.mime_type))
        contents.append(request.prompt)

        logger.info("llm:gemini request model=%s timeout_s=%s", model, self.timeout_s)
        response = await asyncio.wait_for(
            self._get_client().aio.models.generate_content(
                model=model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=request.session.system_prompt or None,
                    temperature=request.session.temperature,
                    top_k=request.session.top_k,
                ),
            ),
            timeout=self.timeout_s,
        )
        text = response.text
        if text is None:
            logger.warning("llm:gemini empty text model=%s", model)
        return text or ""
