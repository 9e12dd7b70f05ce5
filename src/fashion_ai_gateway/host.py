"""Boundary contracts for host-provided on-device models and their sessions."""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Literal, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .schemas import Availability

logger = logging.getLogger("fashion_ai_gateway.host")

MAX_TOP_K = 128

_AVAILABILITY_ALIASES: dict[str, Availability] = {
    "ready": Availability.READY,
    "readily": Availability.READY,
    "available": Availability.READY,
    "downloading": Availability.DOWNLOADING,
    "after-download": Availability.DOWNLOADING,
    "downloadable": Availability.DOWNLOADING,
    "unavailable": Availability.UNAVAILABLE,
    "no": Availability.UNAVAILABLE,
}

T = TypeVar("T")


class SessionConfig(BaseModel):
    """Sampling parameters and system instruction for a host model session."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(..., ge=0, le=2)
    top_k: int = Field(..., ge=1, le=MAX_TOP_K)
    system_prompt: str = ""


class WriterOptions(BaseModel):
    """Options for a host single-shot writer."""

    model_config = ConfigDict(frozen=True)

    tone: Literal["formal", "neutral", "casual"] = "neutral"
    format: Literal["plain-text", "markdown"] = "plain-text"
    length: Literal["short", "medium", "long"] = "medium"
    shared_context: str | None = None


class HostSession(Protocol):
    def prompt(self, text: str, image: bytes | None = None) -> Any: ...

    def destroy(self) -> Any: ...


class HostLanguageModel(Protocol):
    def availability(self) -> Any: ...

    def create(self, config: SessionConfig) -> Any: ...


class HostWriter(Protocol):
    def write(self, text: str) -> Any: ...

    def destroy(self) -> Any: ...


class HostWriterFactory(Protocol):
    def availability(self) -> Any: ...

    def create(self, options: WriterOptions) -> Any: ...


@dataclass
class HostRuntime:
    """Host-injected capabilities; either member may be absent."""

    language_model: HostLanguageModel | None = None
    writer: HostWriterFactory | None = None


async def resolve(value: T | Any) -> T:
    """Await ``value`` when the host returned an awaitable, else return it as is."""

    if inspect.isawaitable(value):
        return await value
    return value


def map_availability(raw: Any) -> Availability:
    """Map host readiness vocabulary onto ``Availability``; unknown values are unavailable."""

    if isinstance(raw, Availability):
        return raw
    return _AVAILABILITY_ALIASES.get(str(raw).strip().lower(), Availability.UNAVAILABLE)


async def check_availability(member: HostLanguageModel | HostWriterFactory | None) -> Availability:
    """Ask a host member for readiness, failing closed on absence or error."""

    if member is None:
        return Availability.UNAVAILABLE
    try:
        raw = await resolve(member.availability())
    except Exception as exc:
        logger.info("host_availability_failed error=%s", exc)
        return Availability.UNAVAILABLE
    return map_availability(raw)


@asynccontextmanager
async def host_session(
    factory: HostLanguageModel | HostWriterFactory,
    options: SessionConfig | WriterOptions,
) -> AsyncIterator[Any]:
    """Create a host session or writer, yield it, and always destroy it.

    Destruction runs on success, failure, and cancellation. A failing
    ``destroy()`` is logged rather than raised so it never hides the
    original outcome.
    """

    session = await resolve(factory.create(options))
    try:
        yield session
    finally:
        try:
            await resolve(session.destroy())
        except Exception as exc:
            logger.warning("host_session_destroy_failed error=%s", exc)
