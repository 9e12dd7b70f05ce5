from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from fashion_ai_gateway.host import (
    MAX_TOP_K,
    SessionConfig,
    WriterOptions,
    check_availability,
    host_session,
    map_availability,
)
from fashion_ai_gateway.schemas import Availability

from conftest import FakeLanguageModel, FakeWriterFactory


class FailingMember:
    def availability(self) -> str:
        raise RuntimeError("host bridge crashed")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("readily", Availability.READY),
        ("ready", Availability.READY),
        ("after-download", Availability.DOWNLOADING),
        ("Downloading", Availability.DOWNLOADING),
        ("no", Availability.UNAVAILABLE),
        ("something-new", Availability.UNAVAILABLE),
        (None, Availability.UNAVAILABLE),
    ],
)
def test_map_availability(raw: object, expected: Availability) -> None:
    assert map_availability(raw) is expected


@pytest.mark.asyncio
async def test_check_availability_handles_sync_and_async_members() -> None:
    assert await check_availability(FakeLanguageModel()) is Availability.READY
    assert await check_availability(FakeWriterFactory(availability="after-download")) is Availability.DOWNLOADING
    assert await check_availability(None) is Availability.UNAVAILABLE


@pytest.mark.asyncio
async def test_check_availability_fails_closed() -> None:
    assert await check_availability(FailingMember()) is Availability.UNAVAILABLE


@pytest.mark.asyncio
async def test_host_session_destroys_after_success() -> None:
    model = FakeLanguageModel(response="ok")
    config = SessionConfig(temperature=0.5, top_k=10, system_prompt="be brief")

    async with host_session(model, config) as session:
        assert await session.prompt("hello") == "ok"

    assert model.configs == [config]
    assert model.destroyed == 1


@pytest.mark.asyncio
async def test_host_session_destroys_after_failure() -> None:
    model = FakeLanguageModel()
    model.error = RuntimeError("prompt failed")

    with pytest.raises(RuntimeError, match="prompt failed"):
        async with host_session(model, SessionConfig(temperature=0.5, top_k=10)) as session:
            await session.prompt("hello")

    assert model.destroyed == 1


@pytest.mark.asyncio
async def test_host_session_destroys_after_cancellation() -> None:
    writer_factory = FakeWriterFactory()

    with pytest.raises(asyncio.CancelledError):
        async with host_session(writer_factory, WriterOptions()):
            raise asyncio.CancelledError

    assert writer_factory.destroyed == 1


def test_session_config_bounds_top_k() -> None:
    assert SessionConfig(temperature=0.7, top_k=MAX_TOP_K).top_k == 128
    with pytest.raises(ValidationError):
        SessionConfig(temperature=0.7, top_k=MAX_TOP_K + 1)
    with pytest.raises(ValidationError):
        SessionConfig(temperature=2.5, top_k=10)
