"""Service-layer helpers that wire config, probe, cache, and orchestrator for the API and CLI."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from fastapi import status

from .cache import CacheRegistry, build_cache
from .capabilities import CapabilityProbe
from .config import AppConfig
from .config import config as default_config
from .errors import (
    AllTiersExhausted,
    BackendCallFailed,
    BackendUnavailable,
    FashionAIError,
    InvalidImage,
    NoProviderAvailable,
    RequestCancelled,
)
from .host import HostRuntime
from .images import image_from_base64
from .orchestrator import FallbackOrchestrator
from .schemas import (
    AnalysisInput,
    APIError,
    CapabilityReport,
    ChatRequest,
    CritiqueRequest,
    CritiqueResponse,
    DesignGeneration,
    DesignRequest,
    FitRequest,
    ImageInput,
    ImagePayload,
    ProviderChoice,
    StylistResponse,
    VirtualTryOnAnalysis,
)
from .selector import ProviderFactory

logger = logging.getLogger("fashion_ai_gateway.service_layer")

HTTP_499_CLIENT_CLOSED_REQUEST = 499

_STATUS_CODES: tuple[tuple[type[FashionAIError], int], ...] = (
    (InvalidImage, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (RequestCancelled, HTTP_499_CLIENT_CLOSED_REQUEST),
    (BackendCallFailed, status.HTTP_502_BAD_GATEWAY),
    (NoProviderAvailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AllTiersExhausted, status.HTTP_503_SERVICE_UNAVAILABLE),
    (BackendUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)


class ServiceError(Exception):
    """A gateway failure paired with its wire payload and HTTP status."""

    def __init__(self, error: APIError, status_code: int) -> None:
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


def to_service_error(exc: FashionAIError, stage: str) -> ServiceError:
    details: dict[str, Any] | None = None
    if isinstance(exc, AllTiersExhausted):
        details = {"attempts": [{"tier": tier, "reason": reason} for tier, reason in exc.attempts]}
    elif isinstance(exc, BackendCallFailed) and exc.status_code is not None:
        details = {"status_code": exc.status_code}
    error = APIError(
        error_type=exc.error_type,
        message=str(exc),
        stage=stage,
        backend=exc.backend,
        details=details,
    )
    status_code = next(
        (code for error_cls, code in _STATUS_CODES if isinstance(exc, error_cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return ServiceError(error, status_code)


class GatewayService:
    """Holds the process-wide cache and capability report; builds one orchestrator per request."""

    def __init__(
        self,
        cfg: AppConfig | None = None,
        *,
        host: HostRuntime | None = None,
        http_client: httpx.AsyncClient | None = None,
        cache: CacheRegistry | None = None,
    ) -> None:
        self.config = cfg or default_config
        self.host = host
        self.http_client = http_client
        self.cache = cache if cache is not None else build_cache(self.config)
        self.factory = ProviderFactory(self.config, host=host, http_client=http_client)
        self.probe = CapabilityProbe(self.config, host=host, http_client=http_client)
        self._report: CapabilityReport | None = None
        self._report_lock = asyncio.Lock()

    async def capabilities(self, *, refresh: bool = False, ping_proxy: bool | None = None) -> CapabilityReport:
        async with self._report_lock:
            if refresh or self._report is None:
                self._report = await self.probe.detect(ping_proxy=ping_proxy)
            return self._report

    async def orchestrator(self, preference: ProviderChoice | None = None) -> FallbackOrchestrator:
        report = await self.capabilities()
        return FallbackOrchestrator(
            self.factory,
            report,
            cache=self.cache,
            preference=preference or self.config.preference,
        )

    async def critique(self, request: CritiqueRequest, *, signal: asyncio.Event | None = None) -> CritiqueResponse:
        image = self._decode_image(request.image, stage="critique") if request.image else None
        try:
            analysis = AnalysisInput(
                description=request.description,
                image=image,
                mode=request.mode,
                persona=request.persona,
            )
        except ValueError as exc:
            raise ServiceError(
                APIError(error_type="invalid_request", message=str(exc), stage="critique"),
                status.HTTP_422_UNPROCESSABLE_ENTITY,
            ) from exc
        orchestrator = await self.orchestrator(request.provider)
        return await self._guard("critique", orchestrator.analyze_outfit(analysis, signal=signal))

    async def design(self, request: DesignRequest, *, signal: asyncio.Event | None = None) -> DesignGeneration:
        orchestrator = await self.orchestrator(request.provider)
        return await self._guard("design", orchestrator.generate_design(request.prompt, signal=signal))

    async def chat(self, request: ChatRequest, *, signal: asyncio.Event | None = None) -> StylistResponse:
        orchestrator = await self.orchestrator(request.provider)
        return await self._guard(
            "chat",
            orchestrator.chat_with_stylist(request.message, request.persona, signal=signal),
        )

    async def fit(self, request: FitRequest, *, signal: asyncio.Event | None = None) -> VirtualTryOnAnalysis:
        image = self._decode_image(request.image, stage="fit")
        orchestrator = await self.orchestrator(request.provider)
        return await self._guard("fit", orchestrator.analyze_photo(image, signal=signal))

    def clear_cache(self) -> int:
        if self.cache is None:
            return 0
        return self.cache.clear()

    def _decode_image(self, payload: ImagePayload, *, stage: str) -> ImageInput:
        try:
            return image_from_base64(
                payload.data_base64,
                name=payload.name,
                max_bytes=self.config.max_image_bytes,
                last_modified=payload.last_modified,
            )
        except InvalidImage as exc:
            raise to_service_error(exc, stage) from exc

    async def _guard(self, stage: str, call: Any) -> Any:
        try:
            return await call
        except FashionAIError as exc:
            logger.warning("request_failed stage=%s error_type=%s backend=%s", stage, exc.error_type, exc.backend)
            raise to_service_error(exc, stage) from exc
