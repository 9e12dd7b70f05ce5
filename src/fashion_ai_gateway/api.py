"""FastAPI application exposing the fashion AI gateway as a service."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from time import perf_counter
from typing import TypeVar

from fastapi import FastAPI, HTTPException

from .config import config
from .schemas import (
    CapabilityReport,
    ChatRequest,
    CritiqueRequest,
    CritiqueResponse,
    DesignGeneration,
    DesignRequest,
    FitRequest,
    StylistResponse,
    VirtualTryOnAnalysis,
)
from .service_layer import GatewayService, ServiceError

logger = logging.getLogger("fashion_ai_gateway.api")
logging.basicConfig(level=config.log_level)

T = TypeVar("T")

app = FastAPI(
    title="Fashion AI Gateway API",
    version="0.1.0",
    description="Outfit critique, design, stylist chat, and fit analysis over swappable AI backends.",
)

service = GatewayService(config)


@app.get("/health")
def health() -> dict[str, str]:
    """Lightweight health probe for orchestration/monitoring."""

    return {"status": "ok"}


@app.get("/v1/capabilities", response_model=CapabilityReport)
async def capabilities_v1() -> CapabilityReport:
    return await service.capabilities(refresh=True)


@app.post("/v1/critique", response_model=CritiqueResponse)
async def critique_v1(request: CritiqueRequest) -> CritiqueResponse:
    return await _serve("POST /v1/critique", service.critique(request))


@app.post("/v1/design", response_model=DesignGeneration)
async def design_v1(request: DesignRequest) -> DesignGeneration:
    return await _serve("POST /v1/design", service.design(request))


@app.post("/v1/chat", response_model=StylistResponse)
async def chat_v1(request: ChatRequest) -> StylistResponse:
    return await _serve("POST /v1/chat", service.chat(request))


@app.post("/v1/fit", response_model=VirtualTryOnAnalysis)
async def fit_v1(request: FitRequest) -> VirtualTryOnAnalysis:
    return await _serve("POST /v1/fit", service.fit(request))


async def _serve(route: str, call: Awaitable[T]) -> T:
    started = perf_counter()
    try:
        result = await call
    except ServiceError as exc:
        logger.info(
            "route=%s status=%d error_type=%s elapsed_ms=%.2f",
            route,
            exc.status_code,
            exc.error.error_type,
            (perf_counter() - started) * 1000,
        )
        raise _http_error(exc) from exc
    logger.info("route=%s status=200 elapsed_ms=%.2f", route, (perf_counter() - started) * 1000)
    return result


def _http_error(exc: ServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.error.model_dump())
