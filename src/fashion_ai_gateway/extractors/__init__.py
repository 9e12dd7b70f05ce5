"""Deterministic text heuristics used by the response normalizer."""

from .ratings import extract_confidence, extract_rating
from .sections import classify_lines, extract_recommendations, extract_style_notes
from .vocabulary import extract_body_type, extract_measurements, extract_tags

__all__ = [
	"extract_rating",
	"extract_confidence",
	"classify_lines",
	"extract_recommendations",
	"extract_style_notes",
	"extract_tags",
	"extract_body_type",
	"extract_measurements",
]
