"""Provider contract shared by every backend family.

A provider builds the instruction payload for a task, hands it to its backend
through ``_complete`` and passes the raw text to the shared normalizer. Only
``_complete`` (and optionally ``ensure_available``) differ per backend, so no
provider ever parses model output on its own.
"""

from __future__ import annotations

import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

from ..errors import BackendCallFailed, BackendUnavailable, FashionAIError
from ..host import SessionConfig
from ..normalizer import normalize_critique, normalize_design, normalize_fit, normalize_stylist
from ..prompts import (
	build_chat_prompt,
	build_critique_prompt,
	build_design_prompt,
	build_fit_prompt,
	model_size_for,
	session_config,
)
from ..schemas import (
	AnalysisInput,
	CapabilityTier,
	CritiqueResponse,
	DesignGeneration,
	ImageFallback,
	ImageInput,
	ModelSize,
	ProviderChoice,
	StylistPersona,
	StylistResponse,
	TaskKind,
	VirtualTryOnAnalysis,
)

logger = logging.getLogger("fashion_ai_gateway.providers")


@dataclass(frozen=True)
class CompletionRequest:
	"""Everything a backend needs for one raw-text completion."""

	task: TaskKind
	prompt: str
	session: SessionConfig
	model_size: ModelSize
	image: ImageInput | None = None


class FashionProvider(ABC):
	"""Uniform four-operation contract over one backend family."""

	backend: ClassVar[ProviderChoice]
	tier: ClassVar[CapabilityTier]
	supports_images: ClassVar[bool] = True
	image_fallback: ClassVar[ImageFallback] = ImageFallback.FAIL

	def __init__(
		self,
		*,
		model_size: ModelSize | None = None,
		clock: Callable[[], float] = time.time,
		id_factory: Callable[[], str] | None = None,
	) -> None:
		self.model_size = model_size
		self._clock = clock
		self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

	@property
	def name(self) -> str:
		return self.backend.value

	async def ensure_available(self) -> None:
		"""Raise ``BackendUnavailable`` when the backend's prerequisite is missing."""

	@abstractmethod
	async def _complete(self, request: CompletionRequest) -> str:
		"""Send one request to the backend and return its raw text."""

	async def analyze_outfit(self, analysis: AnalysisInput) -> CritiqueResponse:
		image, note = self._image_channel(analysis.image)
		request = CompletionRequest(
			task=TaskKind.CRITIQUE,
			prompt=build_critique_prompt(analysis, image_note=note),
			session=session_config(TaskKind.CRITIQUE, mode=analysis.mode, persona=analysis.persona),
			model_size=model_size_for(TaskKind.CRITIQUE, self.model_size),
			image=image,
		)
		return normalize_critique(await self._run(request))

	async def generate_design(self, prompt: str) -> DesignGeneration:
		request = CompletionRequest(
			task=TaskKind.DESIGN,
			prompt=build_design_prompt(prompt),
			session=session_config(TaskKind.DESIGN),
			model_size=model_size_for(TaskKind.DESIGN, self.model_size),
		)
		raw = await self._run(request)
		variations = await self._design_variations(raw)
		return normalize_design(
			raw,
			prompt,
			design_id=self._id_factory(),
			timestamp=self._clock(),
			variations=variations,
		)

	async def chat_with_stylist(self, message: str, persona: StylistPersona) -> StylistResponse:
		request = CompletionRequest(
			task=TaskKind.CHAT,
			prompt=build_chat_prompt(message, persona),
			session=session_config(TaskKind.CHAT, persona=persona),
			model_size=model_size_for(TaskKind.CHAT, self.model_size),
		)
		return normalize_stylist(await self._run(request))

	async def analyze_photo(self, image: ImageInput) -> VirtualTryOnAnalysis:
		channel_image, note = self._image_channel(image)
		request = CompletionRequest(
			task=TaskKind.FIT,
			prompt=build_fit_prompt(image_note=note),
			session=session_config(TaskKind.FIT),
			model_size=model_size_for(TaskKind.FIT, self.model_size),
			image=channel_image,
		)
		return normalize_fit(await self._run(request))

	async def _design_variations(self, description: str) -> list[str] | None:
		"""Backends with a separate rewriting channel override this."""

		return None

	async def _run(self, request: CompletionRequest) -> str:
		await self.ensure_available()
		started = time.perf_counter()
		try:
			raw = await self._complete(request)
		except FashionAIError:
			raise
		except Exception as exc:
			logger.warning("backend_call_failed backend=%s task=%s error=%s", self.name, request.task, exc)
			raise BackendCallFailed.wrap(self.name, exc) from exc
		logger.info(
			"backend_call backend=%s task=%s model_size=%s elapsed_ms=%.2f",
			self.name,
			request.task,
			request.model_size,
			(time.perf_counter() - started) * 1000,
		)
		return raw or ""

	def _image_channel(self, image: ImageInput | None) -> tuple[ImageInput | None, str | None]:
		"""Return ``(image_to_send, metadata_note)`` according to the image flags."""

		if image is None:
			return None, None
		if self.supports_images:
			return image, None
		if self.image_fallback is ImageFallback.DEGRADE:
			logger.info("image_degraded backend=%s", self.name)
			return None, image.describe()
		raise BackendUnavailable(f"{self.name} has no image channel", backend=self.name)
