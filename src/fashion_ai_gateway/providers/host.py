"""On-device provider backed by the host's conversational language model."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import BackendUnavailable
from ..host import HostRuntime, WriterOptions, check_availability, host_session, resolve
from ..prompts import VARIATION_STYLES, build_variation_request
from ..schemas import Availability, CapabilityTier, ProviderChoice
from .base import CompletionRequest, FashionProvider

logger = logging.getLogger("fashion_ai_gateway.providers.host")

_VARIATION_TONES: dict[str, str] = {"casual": "casual", "formal": "formal", "sustainable": "neutral"}


class OnDeviceProvider(FashionProvider):
	"""Runs every task in a fresh host session that is always destroyed afterwards."""

	backend = ProviderChoice.ON_DEVICE
	tier = CapabilityTier.FULL
	supports_images = True

	def __init__(self, host: HostRuntime | None, **kwargs: Any) -> None:
		super().__init__(**kwargs)
		self.host = host

	async def ensure_available(self) -> None:
		model = self.host.language_model if self.host else None
		availability = await check_availability(model)
		if availability is not Availability.READY:
			raise BackendUnavailable(f"on-device model is {availability}", backend=self.name)

	async def _complete(self, request: CompletionRequest) -> str:
		model = self.host.language_model if self.host else None
		if model is None:
			raise BackendUnavailable("host exposes no language model", backend=self.name)
		async with host_session(model, request.session) as session:
			if request.image is not None:
				result = await resolve(session.prompt(request.prompt, request.image.data))
			else:
				result = await resolve(session.prompt(request.prompt))
		return str(result or "")

	async def _design_variations(self, description: str) -> list[str] | None:
		"""Best-effort casual/formal/sustainable rewrites through the host writer."""

		writer = self.host.writer if self.host else None
		if not description.strip() or await check_availability(writer) is not Availability.READY:
			return None

		variations: list[str] = []
		try:
			for style in VARIATION_STYLES:
				options = WriterOptions(tone=_VARIATION_TONES[style], length="short")
				async with host_session(writer, options) as session:
					text = await resolve(session.write(build_variation_request(description, style)))
				if text and str(text).strip():
					variations.append(str(text).strip())
		except Exception as exc:
			logger.warning("design_variations_failed backend=%s error=%s", self.name, exc)
			return None
		return variations or None
