from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

import httpx
from pydantic import ValidationError

from client.partial import merge_partial, parse_partial
from schemas.generation import DescriptionSet, GenerationRequest, PartialDescriptionSet
from schemas.stream import StreamEvent

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong while generating descriptions. Please try again."

Listener = Callable[[], None]


class ConsumerState(str, Enum):
    idle = "idle"
    generating = "generating"
    settled = "settled"


class StreamFailure(RuntimeError):
    """Raised inside a run when the stream cannot deliver a complete result."""


class StreamConsumer:
    """Consume one generation stream at a time and keep the best-known result.

    Every applied event notifies the subscribed listeners. After ``close()`` the
    consumer is inert: the network stream is gone and nothing mutates anymore.
    """

    def __init__(self, client: httpx.AsyncClient, url: str = "/api/generate") -> None:
        self._client = client
        self._url = url
        self._listeners: list[Listener] = []
        self._task: asyncio.Task[None] | None = None
        self._buffer = ""
        self._closed = False

        self.state = ConsumerState.idle
        self.result = PartialDescriptionSet()
        self.error: str | None = None
        self.incomplete = False

    @property
    def is_generating(self) -> bool:
        return self.state is ConsumerState.generating

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if self._closed:
            return
        for listener in list(self._listeners):
            listener()

    def _reset(self) -> None:
        self._buffer = ""
        self.result = PartialDescriptionSet()
        self.error = None
        self.incomplete = False

    def start(self, request: GenerationRequest) -> asyncio.Task[None]:
        if self._closed:
            raise RuntimeError("Consumer is closed.")
        if self.is_generating:
            raise RuntimeError("A generation is already in progress.")
        self._reset()
        self.state = ConsumerState.generating
        self._notify()
        self._task = asyncio.get_running_loop().create_task(self.run(request))
        return self._task

    async def run(self, request: GenerationRequest) -> None:
        if self.state is not ConsumerState.generating:
            self._reset()
            self.state = ConsumerState.generating
            self._notify()
        try:
            await self._consume(request)
        except StreamFailure as exc:
            logger.warning("Generation failed: %s", exc)
            self._fail()
        except httpx.HTTPError as exc:
            logger.warning("Generation transport error: %s", exc)
            self._fail()
        else:
            if not self._closed:
                self.state = ConsumerState.settled
                self._notify()

    def _fail(self) -> None:
        if self._closed:
            return
        self.error = GENERIC_ERROR
        self.incomplete = True
        self.state = ConsumerState.settled
        self._notify()

    async def _consume(self, request: GenerationRequest) -> None:
        async with self._client.stream(
            "POST",
            self._url,
            content=request.model_dump_json(),
            headers={"Content-Type": "application/json"},
        ) as response:
            if response.status_code >= 400:
                body = await response.aread()
                raise StreamFailure(f"HTTP {response.status_code}: {body[:200]!r}")

            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    event = StreamEvent.model_validate_json(line)
                except ValidationError as exc:
                    raise StreamFailure("Malformed stream event.") from exc

                if event.type == "delta":
                    self._apply_delta(event.text or "")
                elif event.type == "error":
                    raise StreamFailure(event.detail or "Upstream error.")
                else:
                    self._finish()
                    return

        raise StreamFailure("Stream ended before completion.")

    def _apply_delta(self, text: str) -> None:
        if self._closed:
            return
        self._buffer += text
        parsed = parse_partial(self._buffer)
        if parsed is None:
            return
        self.result = merge_partial(self.result, parsed)
        self._notify()

    def _finish(self) -> None:
        try:
            final = DescriptionSet.model_validate_json(self._buffer)
        except ValidationError as exc:
            raise StreamFailure("Result does not match the description schema.") from exc
        self.result = PartialDescriptionSet.model_validate(final.model_dump())

    async def close(self) -> None:
        """Tear down: cancel the running stream and stop all further updates."""
        self._closed = True
        self._listeners.clear()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
