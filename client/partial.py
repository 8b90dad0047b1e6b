from __future__ import annotations

import logging

from pydantic import ValidationError
from pydantic_core import from_json

from schemas.generation import PartialDescription, PartialDescriptionSet

logger = logging.getLogger(__name__)


def parse_partial(buffer: str) -> PartialDescriptionSet | None:
    """Parse an incomplete JSON document into the best-known partial result.

    Returns None while the buffer holds nothing usable yet.
    """
    if not buffer.strip():
        return None
    try:
        data = from_json(buffer, allow_partial="trailing-strings")
    except ValueError:
        logger.debug("Buffer not parseable yet (%s chars)", len(buffer))
        return None
    if not isinstance(data, dict):
        return None

    items = data.get("descriptions")
    if not isinstance(items, list):
        return PartialDescriptionSet()
    try:
        return PartialDescriptionSet(
            descriptions=[item for item in items if isinstance(item, dict)]
        )
    except ValidationError:
        logger.debug("Partial buffer does not match the description shape")
        return None


def _grow(previous: str, incoming: str) -> str:
    if incoming.startswith(previous):
        return incoming
    logger.debug("Ignoring regressed value %r (had %r)", incoming, previous)
    return previous


def merge_partial(
    current: PartialDescriptionSet, incoming: PartialDescriptionSet
) -> PartialDescriptionSet:
    """Merge a fresh parse into the current result without regressing any value.

    Items are replaced index by index. A value that does not extend the one
    already shown is ignored, and items never disappear.
    """
    merged: list[PartialDescription] = []
    for index in range(max(len(current.descriptions), len(incoming.descriptions))):
        if index >= len(incoming.descriptions):
            merged.append(current.descriptions[index])
            continue
        new = incoming.descriptions[index]
        if index >= len(current.descriptions):
            merged.append(new)
            continue
        old = current.descriptions[index]
        merged.append(
            PartialDescription(
                name=_grow(old.name, new.name),
                description=_grow(old.description, new.description),
            )
        )
    return PartialDescriptionSet(descriptions=merged)
