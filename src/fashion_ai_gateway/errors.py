"""Error taxonomy shared by providers, the selector, and the orchestrator."""

from __future__ import annotations

from collections.abc import Sequence


class FashionAIError(Exception):
    """Base class for every failure raised by the gateway core."""

    error_type = "fashion_ai_error"

    def __init__(self, message: str, *, backend: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend


class BackendUnavailable(FashionAIError):
    """A backend's prerequisite capability is missing or not ready.

    This is an expected capability gap and is the only error that makes the
    orchestrator advance to the next tier.
    """

    error_type = "backend_unavailable"


class BackendCallFailed(FashionAIError):
    """The backend was reachable but the call itself failed at runtime."""

    error_type = "backend_call_failed"

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        error_type: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, backend=backend)
        if error_type:
            self.error_type = error_type
        self.status_code = status_code

    @classmethod
    def wrap(cls, backend: str, exc: BaseException) -> BackendCallFailed:
        """Wrap a transport/runtime error, preserving its message."""

        detail = str(exc) or exc.__class__.__name__
        return cls(f"{backend} call failed: {detail}", backend=backend)


class NoProviderAvailable(FashionAIError):
    """The selector could not resolve a usable backend for the preference."""

    error_type = "no_provider_available"


class AllTiersExhausted(FashionAIError):
    """Every capability tier reported a capability gap."""

    error_type = "all_tiers_exhausted"

    def __init__(self, attempts: Sequence[tuple[str, str]]) -> None:
        self.attempts = list(attempts)
        summary = "; ".join(f"{tier}: {reason}" for tier, reason in self.attempts)
        super().__init__(f"All capability tiers exhausted ({summary})")


class RequestCancelled(FashionAIError):
    """The caller's cancellation signal fired while a backend call was in flight."""

    error_type = "cancelled"


class InvalidImage(FashionAIError):
    """An input image could not be read, decoded, or exceeds the size limit."""

    error_type = "invalid_image"
