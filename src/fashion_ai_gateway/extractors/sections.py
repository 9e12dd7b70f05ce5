"""Line-oriented bucket classification for list-shaped sections of model output.

Every helper here is pure and total: it accepts any string, never raises, and
returns bounded lists in first-seen order. Keyword matching is a word-prefix
test against English vocabulary, so "improve" also matches "improvements".
Non-English output is a known limitation and falls through to the generic
fallbacks.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

_MARKER_PATTERN = re.compile(r"^\s*(?:#{1,6}\s*)?(?:[-*•–—·]+|\(?\d{1,2}[.):]|[a-zA-Z][.)](?=\s))\s*")
_ENUMERATED_PATTERN = re.compile(r"^\s*(?:\*\*)?\(?\d{1,2}[.)]")
_EMPHASIS_PATTERN = re.compile(r"(\*\*|__|`)")
_HEADER_MAX_WORDS = 5

DEFAULT_REASON = "Matches your style preferences"
RECOMMENDATION_PRIORITIES = (3, 3, 2, 2, 1)


@dataclass(frozen=True)
class Bucket:
    """A named list section with its trigger keywords and size bound.

    ``keywords`` match as word prefixes; ``words`` only as whole words, so
    "should" does not fire on "shoulders".
    """

    name: str
    keywords: tuple[str, ...]
    limit: int
    words: tuple[str, ...] = ()

    def matches(self, line: str) -> bool:
        return _keyword_pattern(self.keywords, self.words).search(line) is not None


IMPROVEMENTS = Bucket(
    "improvements",
    ("improv", "consider", "better", "try", "instead", "avoid"),
    3,
    words=("could", "should"),
)
STRENGTHS = Bucket(
    "strengths",
    ("strength", "good", "great", "excellent", "well", "love", "works", "nice", "flatter"),
    4,
)
STYLING_TIPS = Bucket("styling_tips", ("tip", "advice", "try", "pair", "wear", "style"), 3)
FIT_RECOMMENDATIONS = Bucket("fit_recommendations", ("fit", "size", "recommend", "tailor"), 5)
STYLE_ADJUSTMENTS = Bucket("style_adjustments", ("adjust", "enhance", "style", "balance", "define"), 3)
VARIATIONS = Bucket("variations", ("variation", "alternative", "option", "version", "twist"), 3)
RECOMMENDATION_TRIGGERS = Bucket("recommendations", ("recommend", "suggest"), 5)
STYLE_NOTE_TRIGGERS = ("style", "aesthetic", "vibe", "look")

FALLBACKS: dict[str, tuple[str, ...]] = {
    "strengths": ("Cohesive overall look", "Thoughtful color choices"),
    "improvements": ("Consider minor fit adjustments", "Experiment with one statement accessory"),
    "styling_tips": ("Style with confidence", "Balance proportions between top and bottom"),
    "fit_recommendations": (
        "Choose tailored fits that follow your natural shape",
        "Prioritize comfort in the shoulders and waist",
    ),
    "style_adjustments": (
        "Adjust hem lengths for balanced proportions",
        "Define the waist with a belt or tuck",
    ),
    "variations": ("Classic version", "Modern twist"),
}
FALLBACK_STYLE_NOTES = "Clean, well-coordinated look with good attention to detail."
FALLBACK_RECOMMENDATION = ("Color coordination", "Enhances the overall look", 1)

_PATTERN_CACHE: dict[tuple[tuple[str, ...], tuple[str, ...]], re.Pattern[str]] = {}


def split_lines(text: str) -> list[str]:
    """Return non-empty, stripped lines."""

    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def clean_line(line: str) -> str:
    """Strip enumeration markers, bullets, and emphasis from a single line."""

    stripped = _MARKER_PATTERN.sub("", line, count=1)
    stripped = _EMPHASIS_PATTERN.sub("", stripped)
    return stripped.strip(" \t:-")


def is_header(line: str) -> bool:
    """Return True for bare section labels such as "Strengths:"."""

    cleaned = _EMPHASIS_PATTERN.sub("", line).strip()
    if not cleaned.endswith(":"):
        return False
    return len(cleaned.rstrip(":").split()) <= _HEADER_MAX_WORDS


def is_enumerated(line: str) -> bool:
    return _ENUMERATED_PATTERN.match(line) is not None


def classify_lines(text: str, buckets: Sequence[Bucket]) -> dict[str, list[str]]:
    """Assign each line to the first bucket whose keywords it mentions.

    Buckets earlier in ``buckets`` win ties. Each bucket is truncated to its
    limit, preserving first-seen order; duplicates are dropped.
    """

    results: dict[str, list[str]] = {bucket.name: [] for bucket in buckets}
    for line in split_lines(text):
        if is_header(line):
            continue
        cleaned = clean_line(line)
        if not cleaned:
            continue
        for bucket in buckets:
            if bucket.matches(cleaned):
                _append_bounded(results[bucket.name], cleaned, bucket.limit)
                break
    return results


def extract_section(text: str, bucket: Bucket) -> list[str]:
    """Return the lines that mention any of the bucket's keywords."""

    return classify_lines(text, [bucket])[bucket.name]


def with_fallback(items: list[str], bucket_name: str) -> tuple[list[str], bool]:
    """Return ``items`` or the bucket's generic fallback when empty.

    The boolean is True when the fallback was used.
    """

    if items:
        return items, False
    return list(FALLBACKS.get(bucket_name, ())), True


def extract_recommendations(text: str, limit: int = RECOMMENDATION_TRIGGERS.limit) -> list[tuple[str, str, int]]:
    """Return ``(item, reason, priority)`` triples from enumerated or recommending lines."""

    triples: list[tuple[str, str, int]] = []
    seen: set[str] = set()
    for line in split_lines(text):
        if len(triples) >= limit:
            break
        if is_header(line):
            continue
        if not (is_enumerated(line) or RECOMMENDATION_TRIGGERS.matches(line)):
            continue
        cleaned = clean_line(line)
        if not cleaned:
            continue
        item, reason = _split_item_reason(cleaned)
        if item.lower() in seen:
            continue
        seen.add(item.lower())
        priority = RECOMMENDATION_PRIORITIES[min(len(triples), len(RECOMMENDATION_PRIORITIES) - 1)]
        triples.append((item, reason, priority))
    return triples


def extract_style_notes(text: str) -> str | None:
    """Join the lines that talk about style, aesthetic, vibe, or look."""

    pattern = _keyword_pattern(STYLE_NOTE_TRIGGERS)
    notes = [clean_line(line) for line in split_lines(text) if not is_header(line) and pattern.search(line)]
    joined = " ".join(note for note in notes if note)
    return joined or None


def _split_item_reason(line: str) -> tuple[str, str]:
    head, sep, tail = line.partition(":")
    item = head.strip() or line
    reason = tail.strip() if sep else ""
    if not reason:
        head_dash, sep_dash, tail_dash = line.partition(" - ")
        if sep_dash and tail_dash.strip():
            return head_dash.strip(), tail_dash.strip()
    return item, reason or DEFAULT_REASON


def _append_bounded(target: list[str], value: str, limit: int) -> None:
    if len(target) >= limit or value in target:
        return
    target.append(value)


def _keyword_pattern(keywords: Iterable[str], words: Iterable[str] = ()) -> re.Pattern[str]:
    key = (tuple(keywords), tuple(words))
    pattern = _PATTERN_CACHE.get(key)
    if pattern is None:
        alternatives = [re.escape(keyword) for keyword in key[0]]
        alternatives += [re.escape(word) + r"\b" for word in key[1]]
        alternation = "|".join(alternatives)
        pattern = re.compile(rf"\b(?:{alternation})", flags=re.IGNORECASE)
        _PATTERN_CACHE[key] = pattern
    return pattern
