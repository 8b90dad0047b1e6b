from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import httpx

from client.clipboard import CopyAcknowledgement
from client.consumer import StreamConsumer
from client.form import FormCollector, FormValidationError
from client.renderer import ResultView, render

logger = logging.getLogger(__name__)


class DescriptionSession:
    """One open description-writer page: form, live stream and copy state."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        clipboard: Callable[[str], None],
        url: str = "/api/generate",
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.form = FormCollector()
        self.consumer = StreamConsumer(client, url=url)
        self.copier = CopyAcknowledgement(clipboard, on_change=on_change)
        if on_change is not None:
            self.consumer.subscribe(on_change)

    @property
    def submit_disabled(self) -> bool:
        return self.consumer.is_generating

    def submit(self) -> asyncio.Task[None] | None:
        """Validate the form and start a generation.

        Returns the running task, or None when the submit was ignored because a
        generation is in flight or a required field is empty.
        """
        if self.submit_disabled:
            logger.debug("Submit ignored while generating")
            return None
        try:
            request = self.form.validate()
        except FormValidationError:
            return None
        self.copier.close()
        return self.consumer.start(request)

    def copy(self, index: int) -> None:
        descriptions = self.consumer.result.descriptions
        if not 0 <= index < len(descriptions):
            return
        item = descriptions[index]
        self.copier.copy(index, item.description)

    def view(self) -> ResultView:
        return render(
            self.consumer.state,
            self.consumer.result,
            error=self.consumer.error,
            incomplete=self.consumer.incomplete,
            copied_index=self.copier.copied_index,
        )

    async def aclose(self) -> None:
        self.copier.close()
        await self.consumer.close()
