"""Pydantic data models shared across providers, the orchestrator, API, and CLI."""

from __future__ import annotations

import base64
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Availability(StrEnum):
    """Readiness of a host-provided model."""

    READY = "ready"
    DOWNLOADING = "downloading"
    UNAVAILABLE = "unavailable"


class ProviderChoice(StrEnum):
    """Caller's backend preference; ``auto`` resolves to a concrete backend."""

    AUTO = "auto"
    ON_DEVICE = "on_device"
    LIGHTWEIGHT = "lightweight"
    PROXY = "proxy"
    GEMINI = "gemini"
    OPENAI = "openai"
    VENICE = "venice"


REMOTE_BACKENDS: tuple[ProviderChoice, ...] = (
    ProviderChoice.GEMINI,
    ProviderChoice.OPENAI,
    ProviderChoice.VENICE,
)
"""Remote vendor families in fixed selection priority order."""


class ModelSize(StrEnum):
    """Vendor-neutral model-size selector."""

    FAST = "fast"
    BALANCED = "balanced"
    QUALITY = "quality"


class CapabilityTier(StrEnum):
    """Fallback levels walked in declaration order."""

    FULL = "full"
    LIGHTWEIGHT = "lightweight"
    REMOTE = "remote"
    NONE = "none"


class ImageFallback(StrEnum):
    """What a text-only backend does with a photo."""

    DEGRADE = "degrade"
    FAIL = "fail"


class TaskKind(StrEnum):
    CRITIQUE = "critique"
    DESIGN = "design"
    CHAT = "chat"
    FIT = "fit"


class StylistPersona(StrEnum):
    LUXURY = "luxury"
    STREETWEAR = "streetwear"
    SUSTAINABLE = "sustainable"
    EDINA = "edina"
    MIRANDA = "miranda"
    SHAFT = "shaft"


class CritiqueMode(StrEnum):
    ROAST = "roast"
    FLATTER = "flatter"
    REAL = "real"


class ImageInput(BaseModel):
    """An uploaded photo together with the metadata used for cache identity."""

    name: str = Field(..., description="Original file name.")
    mime_type: str = Field(default="image/jpeg", description="MIME type of the encoded bytes.")
    data: bytes = Field(..., repr=False, description="Raw encoded image bytes.")
    size: int = Field(default=0, ge=0, description="Byte size; derived from data when omitted.")
    last_modified: float = Field(default=0.0, description="Modification time (epoch seconds).")
    width: int | None = Field(default=None, description="Pixel width when the image was decoded.")
    height: int | None = Field(default=None, description="Pixel height when the image was decoded.")

    @model_validator(mode="after")
    def _fill_size(self) -> ImageInput:
        if not self.size:
            self.size = len(self.data)
        return self

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def describe(self) -> str:
        """Short metadata description used by text-only backends."""

        parts = [f"file '{self.name}'", self.mime_type, f"{self.size} bytes"]
        if self.width and self.height:
            parts.append(f"{self.width}x{self.height} px")
        return ", ".join(parts)


class AnalysisInput(BaseModel):
    """Outfit critique request; at least a description or an image is required."""

    description: str | None = Field(default=None, description="Free-text outfit description.")
    image: ImageInput | None = Field(default=None, description="Optional outfit photo.")
    mode: CritiqueMode = Field(default=CritiqueMode.REAL, description="Critique tone.")
    persona: StylistPersona | None = Field(default=None, description="Optional critic voice.")
    context: dict[str, Any] | None = Field(default=None, description="Extra caller context.")

    @model_validator(mode="after")
    def _ensure_subject(self) -> AnalysisInput:
        if not ((self.description and self.description.strip()) or self.image):
            raise ValueError("Outfit analysis needs a description or an image.")
        return self


class CritiqueResponse(BaseModel):
    """Normalized outfit critique."""

    rating: float = Field(..., ge=1, le=10, description="Overall rating on a 1-10 scale.")
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    style_notes: str = ""
    confidence: float = Field(..., ge=0, le=1)


class DesignGeneration(BaseModel):
    """Generated garment concept."""

    id: str
    description: str
    design_prompt: str
    variations: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list, description="Unordered, de-duplicated tags.")
    timestamp: float = Field(..., description="Creation time (epoch seconds).")

    @field_validator("tags")
    @classmethod
    def _tags_as_set(cls, value: list[str]) -> list[str]:
        return sorted({tag.strip().lower() for tag in value if tag and tag.strip()})


class Measurements(BaseModel):
    """Size-band estimate for the four fixed body measurements."""

    model_config = ConfigDict(extra="forbid")

    shoulders: str = Field(..., min_length=1)
    chest: str = Field(..., min_length=1)
    waist: str = Field(..., min_length=1)
    hips: str = Field(..., min_length=1)


class VirtualTryOnAnalysis(BaseModel):
    """Body and fit analysis for a photo."""

    body_type: str
    measurements: Measurements
    fit_recommendations: list[str] = Field(default_factory=list)
    style_adjustments: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    item: str
    reason: str
    priority: int = Field(..., ge=1, le=5, description="Higher means more prominent.")


class StylistResponse(BaseModel):
    """One conversational stylist turn."""

    message: str
    recommendations: list[Recommendation] = Field(default_factory=list)
    styling_tips: list[str] = Field(default_factory=list)


class CapabilityReport(BaseModel):
    """Snapshot of which backends are structurally reachable."""

    model_config = ConfigDict(frozen=True)

    on_device: Availability = Availability.UNAVAILABLE
    lightweight: Availability = Availability.UNAVAILABLE
    remote: dict[str, bool] = Field(default_factory=dict)
    proxy: bool = False
    proxy_vendors: dict[str, bool] = Field(default_factory=dict)
    client_hosted: bool = True
    detected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def remote_configured(self, backend: str) -> bool:
        return bool(self.remote.get(str(backend), False))


class ProxyGenerateResponse(BaseModel):
    """Successful server-proxy reply."""

    result: str
    provider: str


class ProxyStatus(BaseModel):
    """Server-proxy status reply: which vendor families are configured."""

    ok: bool = True
    providers: dict[str, bool] = Field(default_factory=dict)

    @property
    def any_configured(self) -> bool:
        return any(self.providers.values())


class APIError(BaseModel):
    """Standardized error payload for the HTTP surface."""

    error_type: str
    message: str
    stage: str
    backend: str | None = None
    details: dict[str, Any] | None = None


class ImagePayload(BaseModel):
    """Base64 image body accepted by the HTTP API."""

    name: str = "upload.jpg"
    mime_type: str = "image/jpeg"
    data_base64: str = Field(..., repr=False)
    last_modified: float = 0.0


class CritiqueRequest(BaseModel):
    description: str | None = None
    image: ImagePayload | None = None
    mode: CritiqueMode = CritiqueMode.REAL
    persona: StylistPersona | None = None
    provider: ProviderChoice | None = None


class DesignRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    provider: ProviderChoice | None = None


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    persona: StylistPersona = StylistPersona.LUXURY
    provider: ProviderChoice | None = None


class FitRequest(BaseModel):
    image: ImagePayload
    provider: ProviderChoice | None = None
