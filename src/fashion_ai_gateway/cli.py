"""Typer CLI for running fashion AI tasks locally."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer
from pydantic import BaseModel

from .config import config
from .errors import FashionAIError
from .images import load_image
from .schemas import AnalysisInput, CritiqueMode, ProviderChoice, StylistPersona
from .service_layer import GatewayService

T = TypeVar("T")

app = typer.Typer(help="Run fashion AI critique, design, stylist chat, and fit analysis from the command line.")

_PROVIDER_HELP = "Backend preference: auto, on_device, lightweight, proxy, gemini, openai, or venice."


def _service() -> GatewayService:
    logging.basicConfig(level=config.log_level)
    return GatewayService(config)


@app.command()
def status(
    ping: bool = typer.Option(False, "--ping", help="Ping the server proxy's /status endpoint.", is_flag=True),
    as_json: bool = typer.Option(False, "--json", help="Print the raw capability report as JSON.", is_flag=True),
) -> None:
    """Report which backends are reachable in this environment."""

    report = _run(_service().capabilities(refresh=True, ping_proxy=ping or None))
    if as_json:
        _echo_json(report)
        return
    typer.echo(f"on_device:   {report.on_device}")
    typer.echo(f"lightweight: {report.lightweight}")
    typer.echo(f"proxy:       {'available' if report.proxy else 'unavailable'}")
    for backend, configured in report.remote.items():
        typer.echo(f"{backend + ':':<13}{'configured' if configured else 'not configured'}")


@app.command()
def critique(
    description: str = typer.Option(None, "--description", "-d", help="Free-text outfit description."),
    image: Path = typer.Option(None, "--image", "-i", help="Path to an outfit photo."),
    mode: CritiqueMode = typer.Option(CritiqueMode.REAL, "--mode", help="Critique tone."),
    persona: StylistPersona = typer.Option(None, "--persona", help="Optional critic persona."),
    provider: ProviderChoice = typer.Option(None, "--provider", "-p", help=_PROVIDER_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON.", is_flag=True),
) -> None:
    """Rate an outfit and list its strengths and improvements."""

    if not (description and description.strip()) and image is None:
        raise typer.BadParameter("Provide --description, --image, or both.")
    service = _service()
    image_input = _load(image) if image is not None else None
    analysis = AnalysisInput(description=description, image=image_input, mode=mode, persona=persona)

    async def _call() -> Any:
        orchestrator = await service.orchestrator(provider)
        return await orchestrator.analyze_outfit(analysis)

    result = _run(_call())
    if as_json:
        _echo_json(result)
        return
    typer.echo(f"Rating: {result.rating:.1f}/10 (confidence {result.confidence:.0%})")
    typer.echo("Strengths:")
    for item in result.strengths:
        typer.echo(f"  - {item}")
    typer.echo("Improvements:")
    for item in result.improvements:
        typer.echo(f"  - {item}")
    typer.echo(f"Style notes: {result.style_notes}")


@app.command()
def design(
    prompt: str = typer.Argument(..., help="Design brief."),
    provider: ProviderChoice = typer.Option(None, "--provider", "-p", help=_PROVIDER_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON.", is_flag=True),
) -> None:
    """Generate a garment concept from a short brief."""

    service = _service()

    async def _call() -> Any:
        orchestrator = await service.orchestrator(provider)
        return await orchestrator.generate_design(prompt)

    result = _run(_call())
    if as_json:
        _echo_json(result)
        return
    typer.echo(result.description)
    if result.variations:
        typer.echo("Variations:")
        for item in result.variations:
            typer.echo(f"  - {item}")
    typer.echo(f"Tags: {', '.join(result.tags)}")


@app.command()
def chat(
    message: str = typer.Argument(..., help="Message for the stylist."),
    persona: StylistPersona = typer.Option(StylistPersona.LUXURY, "--persona", help="Stylist persona."),
    provider: ProviderChoice = typer.Option(None, "--provider", "-p", help=_PROVIDER_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON.", is_flag=True),
) -> None:
    """Ask a stylist persona for advice."""

    service = _service()

    async def _call() -> Any:
        orchestrator = await service.orchestrator(provider)
        return await orchestrator.chat_with_stylist(message, persona)

    result = _run(_call())
    if as_json:
        _echo_json(result)
        return
    typer.echo(result.message)
    for recommendation in result.recommendations:
        typer.echo(f"[{recommendation.priority}] {recommendation.item}: {recommendation.reason}")
    for tip in result.styling_tips:
        typer.echo(f"Tip: {tip}")


@app.command()
def fit(
    image: Path = typer.Argument(..., help="Path to a full-body photo."),
    provider: ProviderChoice = typer.Option(None, "--provider", "-p", help=_PROVIDER_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON.", is_flag=True),
) -> None:
    """Estimate body type, size bands, and fit advice from a photo."""

    service = _service()
    image_input = _load(image)

    async def _call() -> Any:
        orchestrator = await service.orchestrator(provider)
        return await orchestrator.analyze_photo(image_input)

    result = _run(_call())
    if as_json:
        _echo_json(result)
        return
    typer.echo(f"Body type: {result.body_type}")
    for key, band in result.measurements.model_dump().items():
        typer.echo(f"{key}: {band}")
    typer.echo("Fit recommendations:")
    for item in result.fit_recommendations:
        typer.echo(f"  - {item}")
    typer.echo("Style adjustments:")
    for item in result.style_adjustments:
        typer.echo(f"  - {item}")


@app.command("cache-clear")
def cache_clear() -> None:
    """Remove every cached result."""

    removed = _service().clear_cache()
    typer.echo(f"Removed {removed} cached result(s).")


def _load(path: Path) -> Any:
    try:
        return load_image(path, config.max_image_bytes)
    except FashionAIError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except FashionAIError as exc:
        typer.echo(f"Error ({exc.error_type}): {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _echo_json(model: BaseModel) -> None:
    typer.echo(json.dumps(model.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
