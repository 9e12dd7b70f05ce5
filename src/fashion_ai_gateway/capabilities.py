"""Capability probe: one snapshot of which backends are structurally reachable."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import httpx

from .config import AppConfig
from .errors import FashionAIError
from .host import HostRuntime, check_availability
from .providers.proxy import ServerProxyProvider
from .schemas import REMOTE_BACKENDS, Availability, CapabilityReport

logger = logging.getLogger("fashion_ai_gateway.capabilities")


class CapabilityProbe:
    """Builds a ``CapabilityReport`` from config, the host runtime, and an optional proxy ping.

    Remote vendors are judged by configuration only. The proxy ping is the
    only network I/O and is bounded by ``proxy_ping_timeout_s``; any failure
    reports the proxy as unavailable.
    """

    def __init__(
        self,
        config: AppConfig,
        host: HostRuntime | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self.http_client = http_client

    async def detect(self, ping_proxy: bool | None = None) -> CapabilityReport:
        on_device = await check_availability(self.host.language_model if self.host else None)
        lightweight = await check_availability(self.host.writer if self.host else None)
        remote = {backend.value: bool(self.config.api_key(backend)) for backend in REMOTE_BACKENDS}

        should_ping = self.config.proxy_ping if ping_proxy is None else ping_proxy
        proxy = bool(self.config.proxy_url)
        proxy_vendors: dict[str, bool] = {}
        if proxy and should_ping:
            proxy, proxy_vendors = await self._ping_proxy()

        report = CapabilityReport(
            on_device=on_device,
            lightweight=lightweight,
            remote=remote,
            proxy=proxy,
            proxy_vendors=proxy_vendors,
            client_hosted=self.config.client_hosted,
            detected_at=datetime.now(UTC),
        )
        logger.info(
            "capabilities on_device=%s lightweight=%s proxy=%s remote=%s",
            report.on_device,
            report.lightweight,
            report.proxy,
            ",".join(name for name, ok in remote.items() if ok) or "none",
        )
        return report

    async def _ping_proxy(self) -> tuple[bool, dict[str, bool]]:
        provider = ServerProxyProvider(
            self.config.proxy_url,
            http_client=self.http_client,
            timeout_s=self.config.proxy_ping_timeout_s,
        )
        try:
            status = await provider.status(timeout_s=self.config.proxy_ping_timeout_s)
        except (FashionAIError, httpx.HTTPError) as exc:
            logger.info("proxy_ping_failed error=%s", exc)
            return False, {}
        return status.ok and status.any_configured, dict(status.providers)


def is_usable(availability: Availability) -> bool:
    return availability is Availability.READY
