from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.core.config import Settings, get_settings
from schemas.stream import StreamEvent
from services.description_generator import (
    DescriptionGenerationError,
    DescriptionGeneratorService,
    DescriptionStream,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])


def get_description_service(settings: Settings = Depends(get_settings)) -> DescriptionGeneratorService:
    if not settings.openai_api_key:
        raise HTTPException(status_code=500, detail="OpenAI API key is not configured.")
    return DescriptionGeneratorService(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
        timeout=settings.generation_timeout_seconds,
    )


async def _event_stream(deltas: DescriptionStream) -> AsyncIterator[str]:
    try:
        async for delta in deltas:
            yield StreamEvent.delta(delta).to_line()
    except DescriptionGenerationError as exc:
        logger.warning("Description stream failed: %s", exc)
        yield StreamEvent.error(str(exc)).to_line()
        return
    finally:
        await deltas.aclose()
    yield StreamEvent.done().to_line()


@router.post("/generate")
async def generate_descriptions(
    context: dict[str, Any] = Body(...),
    service: DescriptionGeneratorService = Depends(get_description_service),
) -> StreamingResponse:
    try:
        deltas = await service.stream(context)
    except DescriptionGenerationError as exc:
        logger.warning("Description generation failed to start: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return StreamingResponse(
        _event_stream(deltas),
        media_type="application/x-ndjson",
        background=BackgroundTask(deltas.aclose),
    )
