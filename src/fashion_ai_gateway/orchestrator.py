"""Fallback orchestration across capability tiers.

Tiers are attempted strictly one after another. Only ``BackendUnavailable``
moves the walk forward; every other error, and caller cancellation, ends it.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel

from .cache import (
    CRITIQUE_NAMESPACE,
    DESIGN_NAMESPACE,
    FIT_NAMESPACE,
    STYLIST_NAMESPACE,
    CacheRegistry,
    file_key,
    make_key,
)
from .errors import AllTiersExhausted, BackendUnavailable, RequestCancelled
from .providers import FashionProvider
from .schemas import (
    AnalysisInput,
    CapabilityReport,
    CapabilityTier,
    CritiqueResponse,
    DesignGeneration,
    ImageInput,
    ProviderChoice,
    StylistPersona,
    StylistResponse,
    VirtualTryOnAnalysis,
)
from .selector import ProviderFactory, ProviderSelector, unusable_reason
from .timing import TimingTracker

logger = logging.getLogger("fashion_ai_gateway.orchestrator")

T = TypeVar("T")
R = TypeVar("R", bound=BaseModel)

Operation = Callable[[FashionProvider], Awaitable[R]]

TIER_ORDER: tuple[CapabilityTier, ...] = (
    CapabilityTier.FULL,
    CapabilityTier.LIGHTWEIGHT,
    CapabilityTier.REMOTE,
    CapabilityTier.NONE,
)


async def await_with_signal(
    start: Callable[[], Awaitable[T]],
    signal: asyncio.Event | None,
    *,
    backend: str | None = None,
) -> T:
    """Run ``start()`` unless ``signal`` is set first.

    When the signal fires mid-call the call task is cancelled, allowed to run
    its cleanup, and ``RequestCancelled`` is raised.
    """

    if signal is None:
        return await start()
    if signal.is_set():
        raise RequestCancelled("Request cancelled before the backend call started", backend=backend)

    call = asyncio.ensure_future(start())
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        call.cancel()
        waiter.cancel()
        raise

    if call in done:
        waiter.cancel()
        return call.result()

    call.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await call
    raise RequestCancelled("Request cancelled by caller", backend=backend)


def _digest(text: str | None) -> str:
    if not text:
        return ""
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()[:16]


def critique_key(analysis: AnalysisInput) -> str:
    image_part = file_key(analysis.image) if analysis.image else ""
    persona = analysis.persona.value if analysis.persona else ""
    return make_key(analysis.mode.value, persona, image_part, _digest(analysis.description))


def design_key(prompt: str) -> str:
    return make_key(_digest(prompt))


def stylist_key(message: str, persona: StylistPersona) -> str:
    return make_key(persona.value, _digest(message))


def fit_key(image: ImageInput) -> str:
    return file_key(image)


class FallbackOrchestrator:
    """The only component that knows about every provider at once."""

    def __init__(
        self,
        factory: ProviderFactory,
        report: CapabilityReport,
        cache: CacheRegistry | None = None,
        preference: ProviderChoice = ProviderChoice.AUTO,
        selector: ProviderSelector | None = None,
    ) -> None:
        self.factory = factory
        self.report = report
        self.cache = cache
        self.preference = ProviderChoice(preference)
        self.selector = selector or ProviderSelector(factory)
        self.timings = TimingTracker()

    async def analyze_outfit(self, analysis: AnalysisInput, *, signal: asyncio.Event | None = None) -> CritiqueResponse:
        return await self._execute(
            CRITIQUE_NAMESPACE,
            critique_key(analysis),
            CritiqueResponse,
            lambda provider: provider.analyze_outfit(analysis),
            signal,
        )

    async def generate_design(self, prompt: str, *, signal: asyncio.Event | None = None) -> DesignGeneration:
        return await self._execute(
            DESIGN_NAMESPACE,
            design_key(prompt),
            DesignGeneration,
            lambda provider: provider.generate_design(prompt),
            signal,
        )

    async def chat_with_stylist(
        self,
        message: str,
        persona: StylistPersona,
        *,
        signal: asyncio.Event | None = None,
    ) -> StylistResponse:
        return await self._execute(
            STYLIST_NAMESPACE,
            stylist_key(message, persona),
            StylistResponse,
            lambda provider: provider.chat_with_stylist(message, persona),
            signal,
        )

    async def analyze_photo(self, image: ImageInput, *, signal: asyncio.Event | None = None) -> VirtualTryOnAnalysis:
        return await self._execute(
            FIT_NAMESPACE,
            fit_key(image),
            VirtualTryOnAnalysis,
            lambda provider: provider.analyze_photo(image),
            signal,
        )

    async def _execute(
        self,
        namespace: str,
        key: str,
        model: type[R],
        operation: Operation[R],
        signal: asyncio.Event | None,
    ) -> R:
        # An unusable explicit preference fails the same way with or without a warm cache.
        provider: FashionProvider | None = None
        if self.preference is not ProviderChoice.AUTO:
            provider = self.selector.select(self.preference, self.report)

        cache = self.cache.for_namespace(namespace, model) if self.cache else None
        if cache is not None:
            cached = cache.get(key)
            if cached is not None:
                logger.info("cache_hit namespace=%s", namespace)
                return cached

        if provider is None:
            result = await self._walk_tiers(operation, signal)
        else:
            result = await self._attempt(provider.tier, provider, operation, signal)

        if cache is not None:
            cache.put(key, result)
        return result

    async def _walk_tiers(self, operation: Operation[R], signal: asyncio.Event | None) -> R:
        attempts: list[tuple[str, str]] = []
        for tier in TIER_ORDER:
            if tier is CapabilityTier.NONE:
                break
            backend, reason = self._backend_for(tier)
            if backend is None:
                attempts.append((tier.value, reason))
                logger.info("tier_unavailable tier=%s reason=%s", tier, reason)
                continue
            provider = self.factory.create(backend)
            try:
                return await self._attempt(tier, provider, operation, signal)
            except BackendUnavailable as exc:
                attempts.append((tier.value, str(exc)))
                logger.info("tier_unavailable tier=%s backend=%s reason=%s", tier, provider.name, exc)
        raise AllTiersExhausted(attempts)

    def _backend_for(self, tier: CapabilityTier) -> tuple[ProviderChoice | None, str]:
        if tier is CapabilityTier.FULL:
            candidate = ProviderChoice.ON_DEVICE
        elif tier is CapabilityTier.LIGHTWEIGHT:
            candidate = ProviderChoice.LIGHTWEIGHT
        else:
            remote = self.selector.resolve_remote(self.report)
            if remote is None:
                return None, "no server proxy or remote API is configured"
            return remote, ""
        reason = unusable_reason(candidate, self.report, automatic=True)
        return (None, reason) if reason else (candidate, "")

    async def _attempt(
        self,
        tier: CapabilityTier,
        provider: FashionProvider,
        operation: Operation[R],
        signal: asyncio.Event | None,
    ) -> R:
        with self.timings.context(f"{tier}:{provider.name}"):
            result = await await_with_signal(lambda: operation(provider), signal, backend=provider.name)
        logger.info("tier_served tier=%s backend=%s elapsed_ms=%.2f", tier, provider.name, self.timings.last_ms())
        return result
