"""Numeric rating and confidence extraction from free-text model output."""

from __future__ import annotations

import re

DEFAULT_RATING = 7.5
DEFAULT_CONFIDENCE = 0.8
RATING_MIN = 1.0
RATING_MAX = 10.0

_RATING_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:/\s*10\b|out\s+of\s+10\b)", flags=re.IGNORECASE)
_CONFIDENCE_PATTERN = re.compile(r"confidence\D{0,40}?(\d+(?:\.\d+)?)", flags=re.IGNORECASE)


def match_rating(text: str) -> float | None:
    """Return the first "<n>/10" or "<n> out of 10" value clamped to [1, 10]."""

    match = _RATING_PATTERN.search(text or "")
    if not match:
        return None
    value = _parse_float(match.group(1))
    if value is None:
        return None
    return _clamp(value, RATING_MIN, RATING_MAX)


def extract_rating(text: str) -> float:
    rating = match_rating(text)
    return DEFAULT_RATING if rating is None else rating


def match_confidence(text: str) -> float | None:
    """Return "confidence ... <n>" divided by ten and clamped to [0, 1]."""

    match = _CONFIDENCE_PATTERN.search(text or "")
    if not match:
        return None
    value = _parse_float(match.group(1))
    if value is None:
        return None
    return _clamp(value / 10, 0.0, 1.0)


def extract_confidence(text: str) -> float:
    confidence = match_confidence(text)
    return DEFAULT_CONFIDENCE if confidence is None else confidence


def _parse_float(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
