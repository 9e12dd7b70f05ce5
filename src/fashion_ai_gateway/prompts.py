"""Instruction payloads and sampling defaults shared by every provider.

Prompts carry formatting guidance ("Rating: X/10", one item per line) so raw
output is more likely to suit the normalizer. That guidance is best effort;
the normalizer never depends on it.
"""

from __future__ import annotations

from .host import SessionConfig
from .schemas import AnalysisInput, CritiqueMode, ModelSize, StylistPersona, TaskKind

SYSTEM_PROMPTS: dict[TaskKind, str] = {
    TaskKind.CRITIQUE: (
        "You are a professional fashion critic with expertise in style, color theory, fit, and trends. "
        "Give constructive, specific feedback on outfits and rate them on a 1-10 scale."
    ),
    TaskKind.DESIGN: (
        "You are a creative fashion designer. Turn short briefs into practical, wearable garment designs "
        "with clear visual descriptions, fabric suggestions, color palettes, and styling details."
    ),
    TaskKind.CHAT: "You are a personal fashion stylist who gives friendly, practical advice.",
    TaskKind.FIT: (
        "You are a fashion fit specialist. Describe body proportions in general, body-positive terms "
        "and recommend fits that flatter the person's natural shape."
    ),
}

PERSONA_PROMPTS: dict[StylistPersona, str] = {
    StylistPersona.LUXURY: (
        "You are a luxury stylist fluent in couture, premium fabrics, and timeless elegance. "
        "Favor investment pieces and refined, classic styling."
    ),
    StylistPersona.STREETWEAR: (
        "You are a streetwear expert who follows drops, collaborations, and sneaker culture. "
        "Keep advice fresh, current, and true to urban style."
    ),
    StylistPersona.SUSTAINABLE: (
        "You are a sustainable fashion consultant. Prefer ethical brands, thrifting, and versatile "
        "long-lasting pieces that reduce waste without sacrificing style."
    ),
    StylistPersona.EDINA: (
        "You are Edina Monsoon from Absolutely Fabulous: dramatic, trend-obsessed, and fond of "
        "'sweetie' and 'darling'. Be theatrical but still helpful."
    ),
    StylistPersona.MIRANDA: (
        "You are Miranda Priestly from The Devil Wears Prada: cool, exacting, and impossibly chic. "
        "Deliver understated, cutting judgments backed by deep fashion knowledge."
    ),
    StylistPersona.SHAFT: (
        "You are John Shaft: confident and effortlessly sharp, with a focus on classic menswear. "
        "Keep advice smooth and centered on fit and presence."
    ),
}

CRITIQUE_MODE_MODIFIERS: dict[CritiqueMode, tuple[str, float]] = {
    CritiqueMode.ROAST: (
        "Roast mode: be brutally honest and funny about every misstep, harsh but entertaining.",
        0.2,
    ),
    CritiqueMode.FLATTER: (
        "Flatter mode: be warm and confidence-boosting, lead with what works, keep suggestions gentle.",
        -0.1,
    ),
    CritiqueMode.REAL: (
        "Real mode: be honest and balanced, like a trusted friend who knows fashion.",
        0.0,
    ),
}

SESSION_DEFAULTS: dict[TaskKind, tuple[float, int]] = {
    TaskKind.CRITIQUE: (0.6, 25),
    TaskKind.DESIGN: (0.8, 40),
    TaskKind.CHAT: (0.7, 30),
    TaskKind.FIT: (0.3, 20),
}

TASK_MODEL_SIZES: dict[TaskKind, ModelSize] = {
    TaskKind.CRITIQUE: ModelSize.QUALITY,
    TaskKind.DESIGN: ModelSize.BALANCED,
    TaskKind.CHAT: ModelSize.BALANCED,
    TaskKind.FIT: ModelSize.QUALITY,
}

VARIATION_STYLES = ("casual", "formal", "sustainable")

_TEMPERATURE_FLOOR = 0.1
_TEMPERATURE_CEILING = 1.0


def system_prompt(task: TaskKind, persona: StylistPersona | None = None) -> str:
    if persona is not None and task in (TaskKind.CHAT, TaskKind.CRITIQUE):
        return PERSONA_PROMPTS[persona]
    return SYSTEM_PROMPTS[task]


def session_config(
    task: TaskKind,
    *,
    mode: CritiqueMode | None = None,
    persona: StylistPersona | None = None,
) -> SessionConfig:
    """Per-task sampling defaults, with the critique mode's temperature shift."""

    temperature, top_k = SESSION_DEFAULTS[task]
    if mode is not None:
        temperature += CRITIQUE_MODE_MODIFIERS[mode][1]
    temperature = max(_TEMPERATURE_FLOOR, min(_TEMPERATURE_CEILING, temperature))
    return SessionConfig(
        temperature=round(temperature, 3),
        top_k=top_k,
        system_prompt=system_prompt(task, persona),
    )


def model_size_for(task: TaskKind, override: ModelSize | None = None) -> ModelSize:
    return override or TASK_MODEL_SIZES[task]


def build_critique_prompt(analysis: AnalysisInput, *, image_note: str | None = None) -> str:
    """Critique instruction; ``image_note`` replaces the photo for text-only backends."""

    if analysis.description:
        subject = f'described as: "{analysis.description.strip()}"'
    elif image_note:
        subject = f"from a photo ({image_note})"
    else:
        subject = "from the provided photo"

    lines = [f"Analyze this outfit {subject}."]
    if analysis.description and image_note:
        lines.append(f"A photo is attached as metadata only: {image_note}.")
    lines.append(CRITIQUE_MODE_MODIFIERS[analysis.mode][0])
    if analysis.persona is not None:
        lines.append(f"Answer in the voice of the {analysis.persona.value} persona.")
    lines.extend(
        [
            "",
            "Respond in this format:",
            "Rating: <number>/10 with a one-line explanation",
            "Strengths: 3-4 lines, each starting with '- ' and naming what works well",
            "Improvements: 2-3 lines, each starting with '- ' and suggesting what could improve",
            "Style notes: one or two sentences about the overall style and aesthetic",
            "Confidence: <number>/10",
        ]
    )
    return "\n".join(lines)


def build_design_prompt(prompt: str) -> str:
    return "\n".join(
        [
            f'Create a detailed fashion design for this brief: "{prompt.strip()}".',
            "",
            "Include:",
            "1. Main garment description with silhouette and fit",
            "2. Fabrics and materials",
            "3. A color palette of 3-5 colors",
            "4. Key design details",
            "5. Styling suggestions and target occasion",
            "6. Up to three variations, each on its own line starting with 'Variation:'",
            "",
            "Keep it practical and achievable.",
        ]
    )


def build_chat_prompt(message: str, persona: StylistPersona) -> str:
    return "\n".join(
        [
            message.strip(),
            "",
            "Please provide:",
            "1. A helpful, personalized answer",
            "2. 3-5 numbered recommendations formatted as '<item>: <reason>'",
            "3. 2-3 styling tips, each on a line starting with 'Tip:'",
            "",
            f"Keep the tone friendly and true to the {persona.value} aesthetic.",
        ]
    )


def build_fit_prompt(*, image_note: str | None = None) -> str:
    subject = f"this photo ({image_note})" if image_note else "the provided photo"
    return "\n".join(
        [
            f"Provide a virtual try-on analysis for {subject}.",
            "",
            "Respond in this format:",
            "Body type: one of hourglass, pear, apple, rectangle, inverted triangle, athletic",
            "Shoulders: narrow, medium, or broad",
            "Chest: narrow, medium, or broad",
            "Waist: defined, medium, or broad",
            "Hips: narrow, medium, or broad",
            "Fit recommendations: 5 lines, each starting with '- ' about fit for a clothing type",
            "Style adjustments: 3 lines, each starting with '- ' about how to adjust or balance a look",
            "",
            "Be encouraging and body-positive.",
        ]
    )


def build_variation_request(description: str, style: str) -> str:
    return f"Rewrite this fashion design as a {style} variation in one or two sentences:\n\n{description.strip()}"
