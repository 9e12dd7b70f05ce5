"""Vocabulary lookups for design tags, body type, and size-band measurements."""

from __future__ import annotations

import re

from .sections import split_lines

DESIGN_TAG = "custom-design"
DEFAULT_BODY_TYPE = "balanced"
DEFAULT_BAND = "medium"
MEASUREMENT_KEYS = ("shoulders", "chest", "waist", "hips")
_TAGS_PER_CATEGORY = 3

COLOR_KEYWORDS: dict[str, str] = {
    "black": "black",
    "white": "white",
    "navy": "navy",
    "red": "red",
    "blue": "blue",
    "green": "green",
    "emerald": "emerald",
    "beige": "beige",
    "cream": "cream",
    "ivory": "ivory",
    "camel": "camel",
    "burgundy": "burgundy",
    "pink": "pink",
    "grey": "grey",
    "gray": "grey",
    "brown": "brown",
    "gold": "gold",
    "silver": "silver",
    "olive": "olive",
    "mustard": "mustard",
    "lavender": "lavender",
    "teal": "teal",
    "pastel": "pastel",
}
MATERIAL_PHRASES: dict[str, str] = {
    "organic cotton": "organic cotton",
    "faux leather": "faux leather",
    "recycled polyester": "recycled polyester",
}
MATERIAL_KEYWORDS: dict[str, str] = {
    "cotton": "cotton",
    "linen": "linen",
    "silk": "silk",
    "wool": "wool",
    "cashmere": "cashmere",
    "denim": "denim",
    "leather": "leather",
    "velvet": "velvet",
    "satin": "satin",
    "chiffon": "chiffon",
    "tweed": "tweed",
    "jersey": "jersey",
    "corduroy": "corduroy",
    "recycled": "recycled",
}
STYLE_KEYWORDS: dict[str, str] = {
    "casual": "casual",
    "formal": "formal",
    "elegant": "elegant",
    "modern": "modern",
    "vintage": "vintage",
    "minimalist": "minimalist",
    "minimal": "minimalist",
    "bold": "bold",
    "classic": "classic",
    "streetwear": "streetwear",
    "bohemian": "bohemian",
    "boho": "bohemian",
    "sustainable": "sustainable",
    "tailored": "tailored",
    "oversized": "oversized",
    "romantic": "romantic",
    "edgy": "edgy",
}
OCCASION_PHRASES: dict[str, str] = {
    "black tie": "black tie",
    "date night": "date night",
}
OCCASION_KEYWORDS: dict[str, str] = {
    "evening": "evening",
    "office": "office",
    "work": "office",
    "wedding": "wedding",
    "weekend": "weekend",
    "party": "party",
    "resort": "resort",
    "beach": "resort",
}

TAG_CATEGORIES: tuple[tuple[str, dict[str, str], dict[str, str], str], ...] = (
    ("color", {}, COLOR_KEYWORDS, "neutral"),
    ("material", MATERIAL_PHRASES, MATERIAL_KEYWORDS, "standard fabric"),
    ("style", {}, STYLE_KEYWORDS, "versatile"),
    ("occasion", OCCASION_PHRASES, OCCASION_KEYWORDS, "everyday"),
)

BODY_TYPE_PHRASES: dict[str, str] = {
    "inverted triangle": "inverted triangle",
    "hourglass": "hourglass",
    "pear": "pear",
    "triangle": "pear",
    "apple": "apple",
    "rectangle": "rectangle",
    "athletic": "athletic",
}

MEASUREMENT_ALIASES: dict[str, tuple[str, ...]] = {
    "shoulders": ("shoulder",),
    "chest": ("chest", "bust"),
    "waist": ("waist",),
    "hips": ("hip",),
}
BAND_KEYWORDS: dict[str, str] = {
    "narrower": "defined",
    "narrow": "narrow",
    "slim": "narrow",
    "slender": "narrow",
    "small": "narrow",
    "petite": "narrow",
    "broad": "broad",
    "wide": "broad",
    "full": "broad",
    "large": "broad",
    "curvy": "broad",
    "defined": "defined",
    "cinched": "defined",
    "tapered": "defined",
    "medium": "medium",
    "average": "medium",
    "balanced": "medium",
    "proportioned": "medium",
    "moderate": "medium",
    "standard": "medium",
}


def extract_tags(text: str) -> tuple[list[str], list[str]]:
    """Return ``(tags, unmatched_categories)``.

    Each category contributes up to three matched terms, or its neutral
    default when nothing matched. ``custom-design`` is always present.
    """

    tags: list[str] = [DESIGN_TAG]
    unmatched: list[str] = []
    for category, phrases, keywords, default in TAG_CATEGORIES:
        found = _ordered_matches(text, phrases, keywords)[:_TAGS_PER_CATEGORY]
        if not found:
            unmatched.append(category)
            found = [default]
        for tag in found:
            if tag not in tags:
                tags.append(tag)
    return tags, unmatched


def match_body_type(text: str) -> str | None:
    """Return the earliest body-type mention; longer phrases win positional ties."""

    found = _ordered_matches(text, BODY_TYPE_PHRASES, {})
    return found[0] if found else None


def extract_body_type(text: str) -> str:
    return match_body_type(text) or DEFAULT_BODY_TYPE


def extract_measurements(text: str) -> tuple[dict[str, str], list[str]]:
    """Return size bands for the four fixed keys and the keys that fell back.

    A key's band is read from the span between its mention and the next
    measurement mention on the same line, so "Shoulders: broad, waist: defined"
    yields distinct bands.
    """

    bands: dict[str, str] = {}
    alias_lookup = {alias: key for key, aliases in MEASUREMENT_ALIASES.items() for alias in aliases}
    key_pattern = _word_pattern(alias_lookup, prefix=True)
    band_pattern = _word_pattern(BAND_KEYWORDS)

    for line in split_lines(text):
        mentions = list(key_pattern.finditer(line))
        for index, mention in enumerate(mentions):
            key = _lookup(alias_lookup, mention.group(0))
            if key is None or key in bands:
                continue
            end = mentions[index + 1].start() if index + 1 < len(mentions) else len(line)
            band_match = band_pattern.search(line, mention.end(), end)
            band = _lookup(BAND_KEYWORDS, band_match.group(0)) if band_match else None
            if band:
                bands[key] = band

    fell_back = [key for key in MEASUREMENT_KEYS if key not in bands]
    return {key: bands.get(key, DEFAULT_BAND) for key in MEASUREMENT_KEYS}, fell_back


def _ordered_matches(text: str, phrases: dict[str, str], keywords: dict[str, str]) -> list[str]:
    """Return canonical values in order of first appearance, de-duplicated."""

    hits: list[tuple[int, int, str]] = []
    for mapping in (phrases, keywords):
        if not mapping:
            continue
        for match in _word_pattern(mapping).finditer(text or ""):
            value = _lookup(mapping, match.group(0))
            if value is not None:
                hits.append((match.start(), -len(match.group(0)), value))

    ordered: list[str] = []
    for _, _, value in sorted(hits):
        if value not in ordered:
            ordered.append(value)
    return ordered


_PATTERN_CACHE: dict[tuple[tuple[str, ...], bool], re.Pattern[str]] = {}


def _word_pattern(mapping: dict[str, str], *, prefix: bool = False) -> re.Pattern[str]:
    key = (tuple(mapping), prefix)
    pattern = _PATTERN_CACHE.get(key)
    if pattern is None:
        terms = sorted(mapping, key=len, reverse=True)
        alternation = "|".join(re.escape(term) for term in terms)
        tail = "" if prefix else r"\b"
        pattern = re.compile(rf"\b(?:{alternation}){tail}", flags=re.IGNORECASE)
        _PATTERN_CACHE[key] = pattern
    return pattern


def _lookup(mapping: dict[str, str], matched: str) -> str | None:
    """Map a case-insensitive hit such as "ſilk" to its canonical value, or None."""

    return mapping.get(matched.casefold())
