"""Provider selection from a capability report and a caller preference."""

from __future__ import annotations

import logging

import httpx

from .capabilities import is_usable
from .config import AppConfig
from .errors import NoProviderAvailable
from .host import HostRuntime
from .providers import (
    FashionProvider,
    GeminiProvider,
    LightweightProvider,
    OnDeviceProvider,
    OpenAIProvider,
    ServerProxyProvider,
    VeniceProvider,
)
from .schemas import REMOTE_BACKENDS, CapabilityReport, ProviderChoice

logger = logging.getLogger("fashion_ai_gateway.selector")


class ProviderFactory:
    """Builds provider instances that share read-only config and one HTTP client."""

    def __init__(
        self,
        config: AppConfig,
        host: HostRuntime | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self.http_client = http_client

    def create(self, backend: ProviderChoice) -> FashionProvider:
        model_size = self.config.model_size
        timeout_s = self.config.request_timeout_s
        if backend is ProviderChoice.ON_DEVICE:
            return OnDeviceProvider(self.host, model_size=model_size)
        if backend is ProviderChoice.LIGHTWEIGHT:
            return LightweightProvider(self.host, model_size=model_size)
        if backend is ProviderChoice.PROXY:
            return ServerProxyProvider(
                self.config.proxy_url,
                http_client=self.http_client,
                timeout_s=timeout_s,
                model_size=model_size,
            )
        if backend is ProviderChoice.GEMINI:
            return GeminiProvider(self.config.gemini_api_key, timeout_s=timeout_s, model_size=model_size)
        if backend is ProviderChoice.OPENAI:
            return OpenAIProvider(self.config.openai_api_key, timeout_s=timeout_s, model_size=model_size)
        if backend is ProviderChoice.VENICE:
            return VeniceProvider(self.config.venice_api_key, timeout_s=timeout_s, model_size=model_size)
        raise ValueError(f"Cannot build a provider for '{backend}'.")


class ProviderSelector:
    """Resolves ``auto`` to a concrete backend; explicit choices never substitute."""

    def __init__(self, factory: ProviderFactory) -> None:
        self.factory = factory

    def select(self, preference: ProviderChoice, report: CapabilityReport) -> FashionProvider:
        backend = self.resolve(preference, report)
        logger.info("provider_selected preference=%s backend=%s", preference, backend)
        return self.factory.create(backend)

    def resolve(self, preference: ProviderChoice, report: CapabilityReport) -> ProviderChoice:
        preference = ProviderChoice(preference)
        if preference is not ProviderChoice.AUTO:
            reason = unusable_reason(preference, report)
            if reason:
                raise NoProviderAvailable(
                    f"Requested backend '{preference}' is unusable: {reason}",
                    backend=preference.value,
                )
            return preference

        for backend in automatic_order():
            if unusable_reason(backend, report, automatic=True) is None:
                return backend
        raise NoProviderAvailable("No AI backend is available in this environment.")

    def resolve_remote(self, report: CapabilityReport) -> ProviderChoice | None:
        """The automatic order restricted to the proxy and remote vendors."""

        for backend in (ProviderChoice.PROXY, *REMOTE_BACKENDS):
            if unusable_reason(backend, report, automatic=True) is None:
                return backend
        return None


def automatic_order() -> tuple[ProviderChoice, ...]:
    return (ProviderChoice.ON_DEVICE, ProviderChoice.PROXY, *REMOTE_BACKENDS)


def unusable_reason(backend: ProviderChoice, report: CapabilityReport, *, automatic: bool = False) -> str | None:
    """Return why ``backend`` cannot serve under ``report``, or ``None`` when usable.

    The client-hosted restriction on the proxy only applies to automatic
    resolution.
    """

    if backend is ProviderChoice.ON_DEVICE:
        return None if is_usable(report.on_device) else f"on-device model is {report.on_device}"
    if backend is ProviderChoice.LIGHTWEIGHT:
        return None if is_usable(report.lightweight) else f"host writer is {report.lightweight}"
    if backend is ProviderChoice.PROXY:
        if not report.proxy:
            return "server proxy is not available"
        if automatic and not report.client_hosted:
            return "server proxy is only used for client-hosted callers"
        return None
    if backend in REMOTE_BACKENDS:
        return None if report.remote_configured(backend) else f"{backend} API key is not configured"
    return f"'{backend}' is not a concrete backend"
