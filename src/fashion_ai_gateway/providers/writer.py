"""Lightweight single-shot provider backed by the host writer transform."""

from __future__ import annotations

from typing import Any

from ..errors import BackendUnavailable
from ..host import HostRuntime, WriterOptions, check_availability, host_session, resolve
from ..schemas import Availability, CapabilityTier, ImageFallback, ProviderChoice
from .base import CompletionRequest, FashionProvider


class LightweightProvider(FashionProvider):
	"""Text-only: photos are described by their metadata instead of being sent."""

	backend = ProviderChoice.LIGHTWEIGHT
	tier = CapabilityTier.LIGHTWEIGHT
	supports_images = False
	image_fallback = ImageFallback.DEGRADE

	def __init__(self, host: HostRuntime | None, **kwargs: Any) -> None:
		super().__init__(**kwargs)
		self.host = host

	async def ensure_available(self) -> None:
		writer = self.host.writer if self.host else None
		availability = await check_availability(writer)
		if availability is not Availability.READY:
			raise BackendUnavailable(f"host writer is {availability}", backend=self.name)

	async def _complete(self, request: CompletionRequest) -> str:
		host_writer = self.host.writer if self.host else None
		if host_writer is None:
			raise BackendUnavailable("host exposes no writer", backend=self.name)
		options = WriterOptions(tone="neutral", length="long", shared_context=request.session.system_prompt or None)
		async with host_session(host_writer, options) as writer:
			result = await resolve(writer.write(request.prompt))
		return str(result or "")
