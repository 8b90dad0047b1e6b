from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from schemas.generation import PartialDescriptionSet

logger = logging.getLogger(__name__)

COPY_RESET_SECONDS = 2.0
DEFAULT_DOWNLOAD_NAME = "product-descriptions.txt"


class CopyAcknowledgement:
    """Copy item text and remember which item shows "Copied!" for a short while."""

    def __init__(
        self,
        writer: Callable[[str], None],
        reset_after: float = COPY_RESET_SECONDS,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._writer = writer
        self._reset_after = reset_after
        self._on_change = on_change
        self._timer: asyncio.TimerHandle | None = None
        self.copied_index: int | None = None

    def copy(self, index: int, text: str) -> None:
        self._writer(text)
        self._cancel_timer()
        self.copied_index = index
        self._timer = asyncio.get_running_loop().call_later(self._reset_after, self._clear)
        self._changed()

    def _clear(self) -> None:
        self._timer = None
        self.copied_index = None
        self._changed()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def close(self) -> None:
        self._cancel_timer()
        self.copied_index = None


def export_text(result: PartialDescriptionSet) -> str:
    """Format every description as plain text, separated by blank lines."""
    blocks = []
    for item in result.descriptions:
        lines = [part for part in (item.name.strip(), item.description.strip()) if part]
        if lines:
            blocks.append("\n\n".join(lines))
    return "\n\n---\n\n".join(blocks) + ("\n" if blocks else "")


def save_text(result: PartialDescriptionSet, path: Path | str = DEFAULT_DOWNLOAD_NAME) -> Path:
    target = Path(path)
    target.write_text(export_text(result), encoding="utf-8")
    logger.info("Saved %s descriptions to %s", len(result.descriptions), target)
    return target
