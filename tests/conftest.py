from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from fastapi import FastAPI

from app.core.config import Settings, get_settings
from app.main import create_app
from routers.generate import get_description_service
from services.description_generator import DescriptionGeneratorService

THREE_DESCRIPTIONS = {
    "descriptions": [
        {
            "name": "Focus Timer: Deep Work for Remote Teams",
            "description": "Stay on task.\n\n- 🍅 Pomodoro mode\n- 🌙 Dark theme\n\nStart focusing today.",
        },
        {
            "name": "Focus Timer Pro",
            "description": "Reclaim your day.\n\n- ⏱️ Smart sessions\n- 🌙 Easy on the eyes\n\nGet it now.",
        },
        {
            "name": "The Remote Worker's Focus Timer",
            "description": "Work from anywhere without losing focus.\n\nBuy now and ship more.",
        },
    ]
}


def split_fragments(text: str, size: int = 17) -> list[str]:
    return [text[index : index + size] for index in range(0, len(text), size)]


def delta_event(text: str) -> SimpleNamespace:
    return SimpleNamespace(type="response.output_text.delta", delta=text)


def completed_event() -> SimpleNamespace:
    return SimpleNamespace(type="response.completed", response=SimpleNamespace())


class FakeResponseStream:
    """Stand-in for openai.AsyncStream over responses events."""

    def __init__(self, events: Iterable[Any], delay: float = 0.0) -> None:
        self._events = list(events)
        self._delay = delay
        self.closed = False

    async def __aiter__(self):  # type: ignore[no-untyped-def]
        for event in self._events:
            if self._delay:
                await asyncio.sleep(self._delay)
            if isinstance(event, Exception):
                raise event
            yield event

    async def close(self) -> None:
        self.closed = True


class FakeResponses:
    def __init__(self, stream: FakeResponseStream | None = None, error: Exception | None = None, delay: float = 0.0) -> None:
        self.stream = stream
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> FakeResponseStream:
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        assert self.stream is not None
        return self.stream


class FakeOpenAI:
    def __init__(self, responses: FakeResponses) -> None:
        self.responses = responses


def fake_provider(events: Iterable[Any], **kwargs: Any) -> FakeOpenAI:
    return FakeOpenAI(FakeResponses(stream=FakeResponseStream(events, **kwargs)))


def streaming_provider(payload: dict[str, Any] = THREE_DESCRIPTIONS) -> FakeOpenAI:
    text = json.dumps(payload, ensure_ascii=False)
    return fake_provider([*(delta_event(part) for part in split_fragments(text)), completed_event()])


@pytest.fixture
def make_app() -> Callable[..., FastAPI]:
    def factory(provider: FakeOpenAI | None = None, timeout: float = 30.0, settings: Settings | None = None) -> FastAPI:
        app = create_app()
        if settings is not None:
            app.dependency_overrides[get_settings] = lambda: settings
        if provider is not None:
            app.dependency_overrides[get_description_service] = lambda: DescriptionGeneratorService(
                client=provider, timeout=timeout  # type: ignore[arg-type]
            )
        return app

    return factory


def ndjson_response(lines: Iterable[dict[str, Any]], status_code: int = 200) -> httpx.Response:
    body = "".join(json.dumps(line) + "\n" for line in lines)
    return httpx.Response(status_code, content=body.encode(), headers={"Content-Type": "application/x-ndjson"})


class GatedStream(httpx.AsyncByteStream):
    """Response body fed by the test, one chunk at a time."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self.closed = False

    def push(self, event: dict[str, Any]) -> None:
        self._queue.put_nowait((json.dumps(event) + "\n").encode())

    def end(self) -> None:
        self._queue.put_nowait(None)

    async def __aiter__(self):  # type: ignore[no-untyped-def]
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)
