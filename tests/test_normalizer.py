from __future__ import annotations

import logging

import pytest

from conftest import CRITIQUE_TEXT
from fashion_ai_gateway.extractors import sections
from fashion_ai_gateway.normalizer import normalize_critique, normalize_design, normalize_fit, normalize_stylist


def test_critique_extracts_rating_and_buckets() -> None:
    result = normalize_critique("Rating: 8.5/10\n- great color balance\n- improve the fit")

    assert result.rating == 8.5
    assert any("great color balance" in item for item in result.strengths)
    assert any("improve the fit" in item for item in result.improvements)


def test_critique_without_rating_uses_defaults() -> None:
    result = normalize_critique("Lovely look overall.")

    assert result.rating == 7.5
    assert result.confidence == 0.8
    assert result.strengths
    assert result.improvements
    assert result.style_notes


def test_critique_of_full_response() -> None:
    result = normalize_critique(CRITIQUE_TEXT)

    assert result.rating == 8.5
    assert result.confidence == pytest.approx(0.9)
    assert result.strengths == [
        "great color balance between the navy blazer and cream trousers",
        "excellent tailoring through the shoulders",
    ]
    assert result.improvements == ["improve the fit at the ankle", "consider a lighter shoe"]
    assert "modern aesthetic" in result.style_notes


def test_critique_is_deterministic() -> None:
    assert normalize_critique(CRITIQUE_TEXT) == normalize_critique(CRITIQUE_TEXT)


@pytest.mark.parametrize("raw", ["", "   ", "???", "Rating: 99/10", "ñandú 🦩 résumé"])
def test_critique_never_raises(raw: str) -> None:
    result = normalize_critique(raw)

    assert 1 <= result.rating <= 10
    assert 0 <= result.confidence <= 1
    assert len(result.strengths) <= 4
    assert len(result.improvements) <= 3


def test_critique_reports_degraded_fields(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="fashion_ai_gateway.normalizer"):
        normalize_critique("")

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        message.startswith("parse_degraded result=critique")
        and "rating" in message
        and "strengths" in message
        for message in messages
    )


def test_critique_logs_nothing_when_fully_parsed(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="fashion_ai_gateway.normalizer"):
        normalize_critique(CRITIQUE_TEXT)

    assert not [record for record in caplog.records if "parse_degraded" in record.getMessage()]


def test_design_uses_caller_identity_and_tags() -> None:
    raw = "A cropped navy wool jacket with a modern cut.\nVariation: a longline version\nAlternative: a cream twist"

    design = normalize_design(raw, "office jacket", design_id="abc", timestamp=12.5)

    assert design.id == "abc"
    assert design.timestamp == 12.5
    assert design.design_prompt == "office jacket"
    assert design.description.startswith("A cropped navy wool jacket")
    assert design.variations == ["Variation: a longline version", "Alternative: a cream twist"]
    assert {"navy", "wool", "modern", "office", "custom-design"} <= set(design.tags)
    assert design.tags == sorted(set(design.tags))


def test_design_prefers_supplied_variations() -> None:
    design = normalize_design(
        "A dress.",
        "summer dress",
        design_id="d",
        timestamp=0.0,
        variations=["  Linen midi  ", "", "Silk slip", "Cotton wrap", "Fourth"],
    )

    assert design.variations == ["Linen midi", "Silk slip", "Cotton wrap"]


def test_design_falls_back_for_empty_text() -> None:
    design = normalize_design("", "a red coat", design_id="d", timestamp=0.0)

    assert design.description == "Design concept for: a red coat"
    assert design.variations == list(sections.FALLBACKS["variations"])
    assert "red" in design.tags


def test_stylist_recommendations_and_tips() -> None:
    raw = "\n".join(
        [
            "Great question! Here is what I'd do.",
            "1. Silk scarf: adds softness",
            "2. Loafers",
            "Tip: pair it with gold jewelry",
        ]
    )

    response = normalize_stylist(raw)

    assert response.message == raw
    assert [rec.item for rec in response.recommendations] == ["Silk scarf", "Loafers"]
    assert [rec.priority for rec in response.recommendations] == [3, 3]
    assert response.styling_tips == ["Tip: pair it with gold jewelry"]


def test_stylist_defaults_for_empty_reply() -> None:
    response = normalize_stylist("")

    assert response.message
    assert len(response.recommendations) == 1
    assert response.recommendations[0].item == "Color coordination"
    assert response.styling_tips == list(sections.FALLBACKS["styling_tips"])


def test_fit_extracts_body_type_and_bands() -> None:
    raw = "\n".join(
        [
            "You have an hourglass figure.",
            "Shoulders: broad, waist: cinched",
            "Hips: full",
            "- Choose a size up in structured jackets",
            "- Balance volume with a cinched belt",
        ]
    )

    analysis = normalize_fit(raw)

    assert analysis.body_type == "hourglass"
    assert analysis.measurements.model_dump() == {
        "shoulders": "broad",
        "chest": "medium",
        "waist": "defined",
        "hips": "broad",
    }
    assert analysis.fit_recommendations == ["Choose a size up in structured jackets"]
    assert analysis.style_adjustments == ["Balance volume with a cinched belt"]


def test_fit_defaults_for_empty_reply() -> None:
    analysis = normalize_fit("")

    assert analysis.body_type == "balanced"
    assert set(analysis.measurements.model_dump().values()) == {"medium"}
    assert analysis.fit_recommendations
    assert analysis.style_adjustments


TOTALITY_INPUTS = [
    "",
    "   \n\t\n",
    "???",
    "ñandú 🦩 résumé",
    "A ſilk ſlip dreſs with a ſlim waiſt",
    "Shoulders: ſlim, waist: KELVIN-wide",
    "İstanbul ışık linen İNDIGO",
    "1. : \n2. - \n- \n**\n###",
    "Rating: 99/10, confidence: 42\nRating: -3/10",
    "\x00\r\n  ",
    "Strengths:\nImprovements:\nRecommendations:",
]


@pytest.mark.parametrize("raw", TOTALITY_INPUTS)
def test_every_normalizer_is_total(raw: str) -> None:
    critique = normalize_critique(raw)
    design = normalize_design(raw, "brief", design_id="d", timestamp=1.0)
    stylist = normalize_stylist(raw)
    fit = normalize_fit(raw)

    assert 1 <= critique.rating <= 10
    assert 0 <= critique.confidence <= 1
    assert critique.strengths and critique.improvements
    assert design.tags and design.variations
    assert stylist.message and stylist.recommendations and stylist.styling_tips
    assert all(fit.measurements.model_dump().values())
    assert fit.fit_recommendations and fit.style_adjustments
