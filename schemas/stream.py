from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

StreamEventType = Literal["delta", "error", "done"]


class StreamEvent(BaseModel):
    """One line of the generation response stream."""

    type: StreamEventType
    text: str | None = None
    detail: str | None = None

    @classmethod
    def delta(cls, text: str) -> StreamEvent:
        return cls(type="delta", text=text)

    @classmethod
    def error(cls, detail: str) -> StreamEvent:
        return cls(type="error", detail=detail)

    @classmethod
    def done(cls) -> StreamEvent:
        return cls(type="done")

    def to_line(self) -> str:
        return self.model_dump_json(exclude_none=True) + "\n"
