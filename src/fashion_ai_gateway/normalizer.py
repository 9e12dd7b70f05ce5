"""Turn raw model text into the typed result shapes shared by every provider.

Each ``normalize_*`` function is pure and total: the same text always yields an
equal result, and any field that cannot be extracted falls back to a fixed
default. Fallbacks are reported through a single ``parse_degraded`` log record
so degraded parsing stays visible without being treated as an error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .extractors import ratings, sections, vocabulary
from .schemas import (
	CritiqueResponse,
	DesignGeneration,
	Measurements,
	Recommendation,
	StylistResponse,
	VirtualTryOnAnalysis,
)

logger = logging.getLogger("fashion_ai_gateway.normalizer")

_FALLBACK_CHAT_MESSAGE = (
	"I'm here to help with your style. Could you tell me a little more about what you're looking for?"
)


def normalize_critique(raw: str) -> CritiqueResponse:
	"""Extract rating, strengths, improvements, style notes, and confidence."""

	degraded: list[str] = []
	rating = ratings.match_rating(raw)
	if rating is None:
		rating = ratings.DEFAULT_RATING
		degraded.append("rating")
	confidence = ratings.match_confidence(raw)
	if confidence is None:
		confidence = ratings.DEFAULT_CONFIDENCE
		degraded.append("confidence")

	buckets = sections.classify_lines(raw, [sections.IMPROVEMENTS, sections.STRENGTHS])
	strengths = _bucket(buckets, sections.STRENGTHS.name, degraded)
	improvements = _bucket(buckets, sections.IMPROVEMENTS.name, degraded)

	style_notes = sections.extract_style_notes(raw)
	if style_notes is None:
		style_notes = sections.FALLBACK_STYLE_NOTES
		degraded.append("style_notes")

	_report("critique", degraded)
	return CritiqueResponse(
		rating=rating,
		strengths=strengths,
		improvements=improvements,
		style_notes=style_notes,
		confidence=confidence,
	)


def normalize_design(
	raw: str,
	prompt: str,
	*,
	design_id: str,
	timestamp: float,
	variations: Sequence[str] | None = None,
) -> DesignGeneration:
	"""Build a design from raw text.

	``design_id`` and ``timestamp`` come from the caller. ``variations`` wins
	over extraction when a backend produced them separately (e.g. via the host
	writer).
	"""

	degraded: list[str] = []
	description = (raw or "").strip()
	if not description:
		description = f"Design concept for: {prompt}"
		degraded.append("description")

	if variations:
		chosen = [item.strip() for item in variations if item and item.strip()][: sections.VARIATIONS.limit]
	else:
		chosen = []
	if not chosen:
		extracted = sections.extract_section(raw, sections.VARIATIONS)
		chosen = _with_fallback(extracted, sections.VARIATIONS.name, degraded)

	tags, unmatched = vocabulary.extract_tags(f"{prompt}\n{raw}")
	degraded.extend(f"tags.{category}" for category in unmatched)

	_report("design", degraded)
	return DesignGeneration(
		id=design_id,
		description=description,
		design_prompt=prompt,
		variations=chosen,
		tags=tags,
		timestamp=timestamp,
	)


def normalize_stylist(raw: str) -> StylistResponse:
	degraded: list[str] = []
	message = (raw or "").strip()
	if not message:
		message = _FALLBACK_CHAT_MESSAGE
		degraded.append("message")

	triples = sections.extract_recommendations(raw)
	if not triples:
		triples = [sections.FALLBACK_RECOMMENDATION]
		degraded.append("recommendations")
	recommendations = [Recommendation(item=item, reason=reason, priority=priority) for item, reason, priority in triples]

	tips = sections.extract_section(raw, sections.STYLING_TIPS)
	tips = _with_fallback(tips, sections.STYLING_TIPS.name, degraded)

	_report("stylist", degraded)
	return StylistResponse(message=message, recommendations=recommendations, styling_tips=tips)


def normalize_fit(raw: str) -> VirtualTryOnAnalysis:
	degraded: list[str] = []
	body_type = vocabulary.match_body_type(raw)
	if body_type is None:
		body_type = vocabulary.DEFAULT_BODY_TYPE
		degraded.append("body_type")

	measurements, fell_back = vocabulary.extract_measurements(raw)
	degraded.extend(f"measurements.{key}" for key in fell_back)

	buckets = sections.classify_lines(raw, [sections.FIT_RECOMMENDATIONS, sections.STYLE_ADJUSTMENTS])
	fit_recommendations = _bucket(buckets, sections.FIT_RECOMMENDATIONS.name, degraded)
	style_adjustments = _bucket(buckets, sections.STYLE_ADJUSTMENTS.name, degraded)

	_report("fit", degraded)
	return VirtualTryOnAnalysis(
		body_type=body_type,
		measurements=Measurements(**measurements),
		fit_recommendations=fit_recommendations,
		style_adjustments=style_adjustments,
	)


def _bucket(buckets: dict[str, list[str]], name: str, degraded: list[str]) -> list[str]:
	return _with_fallback(buckets.get(name, []), name, degraded)


def _with_fallback(items: list[str], name: str, degraded: list[str]) -> list[str]:
	values, used_fallback = sections.with_fallback(items, name)
	if used_fallback:
		degraded.append(name)
	return values


def _report(result_type: str, degraded: list[str]) -> None:
	if degraded:
		logger.info("parse_degraded result=%s fields=%s", result_type, ",".join(degraded))
