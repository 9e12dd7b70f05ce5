"""Server-proxy provider speaking the proxy's JSON routes over httpx."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from ..contracts import GENERATE_RESPONSE_SCHEMA, STATUS_SCHEMA, validate_proxy_payload
from ..errors import BackendCallFailed, BackendUnavailable
from ..schemas import CapabilityTier, ModelSize, ProviderChoice, ProxyGenerateResponse, ProxyStatus
from .base import CompletionRequest, FashionProvider

logger = logging.getLogger("fashion_ai_gateway.providers.proxy")

PROXY_MODEL_VALUES: dict[ModelSize, str] = {
    ModelSize.FAST: "flash-lite",
    ModelSize.BALANCED: "flash",
    ModelSize.QUALITY: "pro",
}


class ServerProxyProvider(FashionProvider):
    """Forwards prompts to the proxy, which picks a remote vendor server-side."""

    backend = ProviderChoice.PROXY
    tier = CapabilityTier.REMOTE
    supports_images = True

    def __init__(
        self,
        base_url: str | None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 60.0,
        vendor: str = "auto",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/") if base_url else None
        self.vendor = vendor
        self.timeout_s = timeout_s
        self._http_client = http_client

    async def ensure_available(self) -> None:
        if not self.base_url:
            raise BackendUnavailable("server proxy URL is not configured", backend=self.name)

    async def status(self, *, timeout_s: float | None = None) -> ProxyStatus:
        """Return which vendor families the proxy has configured."""

        await self.ensure_available()
        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_url}/status", timeout=timeout_s or self.timeout_s)
        except httpx.HTTPError as exc:
            raise BackendCallFailed.wrap(self.name, exc) from exc
        payload = self._decode(response)
        validate_proxy_payload(payload, STATUS_SCHEMA, backend=self.name)
        return ProxyStatus.model_validate(payload)

    async def _complete(self, request: CompletionRequest) -> str:
        prompt = request.prompt
        if request.session.system_prompt:
            prompt = f"{request.session.system_prompt}\n\n{request.prompt}"
        body: dict[str, Any] = {
            "prompt": prompt,
            "provider": self.vendor,
            "model": PROXY_MODEL_VALUES[request.model_size],
        }
        if request.image is not None:
            route = "analyze-image"
            body["imageBase64"] = request.image.to_base64()
            body["mimeType"] = request.image.mime_type
        else:
            route = "generate"
            body["type"] = request.task.value

        async with self._client() as client:
            response = await client.post(f"{self.base_url}/{route}", json=body, timeout=self.timeout_s)
        payload = self._decode(response)
        validate_proxy_payload(payload, GENERATE_RESPONSE_SCHEMA, backend=self.name)
        reply = ProxyGenerateResponse.model_validate(payload)
        logger.info("proxy_reply route=%s vendor=%s", route, reply.provider)
        return reply.result

    def _decode(self, response: httpx.Response) -> Any:
        if not response.is_success:
            raise BackendCallFailed(
                f"{self.name} call failed: {_error_message(response)}",
                backend=self.name,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise BackendCallFailed(
                f"{self.name} reply is not JSON: {exc}",
                backend=self.name,
                error_type="contract_violation",
            ) from exc

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            yield client


def _error_message(response: httpx.Response) -> str:
    """Prefer the proxy's ``{error}`` message; fall back to the HTTP status."""

    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"]:
        return payload["error"]
    return f"HTTP {response.status_code}"
