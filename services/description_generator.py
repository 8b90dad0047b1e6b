from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import httpx
from openai import AsyncOpenAI

from schemas.generation import DescriptionSet

logger = logging.getLogger(__name__)

PROMPT_VERSION = "2024-10-gumroad-v2"

SYSTEM_PROMPT = """You are an expert e-commerce copywriter. Return only valid JSON."""

PROMPT_TEMPLATE = """
Generate 3 high-converting product descriptions optimized for Gumroad.com. Use the following context: {context}

For each description:
1. Create a compelling, attention-grabbing title (max 60 characters)
2. Write a strong hook that immediately captures interest (1-2 sentences)
3. List 3-5 key features, using emojis as bullet points
4. Highlight 2-3 main benefits, focusing on how it solves the user's problems
5. Include a unique selling proposition (USP) that sets this product apart
6. End with a clear, persuasive call-to-action

Guidelines:
- Use the requested tone and description length from the context
- Incorporate power words and emotional triggers to boost conversions
- Keep paragraphs short and use white space effectively for readability
- Naturally weave in the keywords from the context, if any
- Use social proof or testimonials if applicable
- Address potential objections preemptively
- Emphasize scarcity or urgency if relevant (e.g., limited-time offer)
- Ensure each description is unique and tailored to the product's specific attributes

Put the title in "name" and everything else in "description".
Remember, the goal is to create descriptions that not only inform but also persuade and convert visitors into buyers on Gumroad.com.
""".strip()

OUTPUT_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "name": "product_descriptions",
    "schema": DescriptionSet.model_json_schema(),
    "strict": True,
}


class DescriptionGenerationError(RuntimeError):
    """Raised when the provider rejects, fails or abandons a generation."""


class GenerationTimeoutError(DescriptionGenerationError):
    """Raised when a generation runs past its wall-clock bound."""


def _describe_failure(event: Any) -> str:
    if event.type == "error":
        return f"OpenAI stream error: {getattr(event, 'message', None) or 'unknown error'}."
    response = getattr(event, "response", None)
    if event.type == "response.incomplete":
        details = getattr(response, "incomplete_details", None)
        reason = getattr(details, "reason", None) or "unknown reason"
        return f"OpenAI response incomplete: {reason}."
    error = getattr(response, "error", None)
    return f"OpenAI response failed: {getattr(error, 'message', None) or 'unknown error'}."


class DescriptionStream:
    """Text deltas of one provider response.

    ``aclose()`` closes the provider stream whether or not iteration ever started.
    """

    def __init__(self, deltas: AsyncGenerator[str, None], provider_stream: Any) -> None:
        self._deltas = deltas
        self._provider_stream = provider_stream

    def __aiter__(self) -> AsyncGenerator[str, None]:
        return self._deltas

    async def aclose(self) -> None:
        await self._deltas.aclose()
        await self._provider_stream.close()


class DescriptionGeneratorService:
    """Stream Gumroad product descriptions from the OpenAI responses API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o",
        temperature: float = 0.7,
        max_output_tokens: int = 2000,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if client is None:
            client = AsyncOpenAI(api_key=api_key, max_retries=0, http_client=http_client)
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = timeout

    def build_prompt(self, context: Mapping[str, Any]) -> str:
        return PROMPT_TEMPLATE.format(context=json.dumps(context, ensure_ascii=False))

    async def stream(self, context: Mapping[str, Any]) -> DescriptionStream:
        """Open a provider stream and return an iterator over its text deltas.

        Failures while opening the stream raise here, before any output exists.
        Failures after that are raised from the returned iterator. The deadline
        covers both phases.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        logger.debug("Requesting descriptions with prompt %s", PROMPT_VERSION)

        try:
            stream = await asyncio.wait_for(
                self._client.responses.create(
                    model=self._model,
                    input=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": self.build_prompt(context)},
                    ],
                    text={"format": OUTPUT_FORMAT},
                    temperature=self._temperature,
                    max_output_tokens=self._max_output_tokens,
                    stream=True,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationTimeoutError(
                f"OpenAI did not respond within {self._timeout:g} seconds."
            ) from exc
        except Exception as exc:  # noqa: BLE001 - surface OpenAI errors as generation failures
            raise DescriptionGenerationError("OpenAI request failed.") from exc

        return DescriptionStream(self._iter_deltas(stream, deadline), stream)

    async def _iter_deltas(self, stream: Any, deadline: float) -> AsyncGenerator[str, None]:
        loop = asyncio.get_running_loop()
        events = stream.__aiter__()
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise GenerationTimeoutError(
                        f"Generation exceeded {self._timeout:g} seconds."
                    )
                try:
                    event = await asyncio.wait_for(events.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError as exc:
                    raise GenerationTimeoutError(
                        f"Generation exceeded {self._timeout:g} seconds."
                    ) from exc
                except Exception as exc:  # noqa: BLE001 - surface OpenAI errors as generation failures
                    raise DescriptionGenerationError("OpenAI stream failed.") from exc

                if event.type == "response.output_text.delta":
                    yield event.delta
                elif event.type == "response.completed":
                    return
                elif event.type == "response.refusal.delta":
                    raise DescriptionGenerationError("OpenAI refused to generate descriptions.")
                elif event.type in {"response.failed", "response.incomplete", "error"}:
                    raise DescriptionGenerationError(_describe_failure(event))
        finally:
            await stream.close()
