from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from schemas.generation import DescriptionLength, GenerationRequest, Tone

logger = logging.getLogger(__name__)

FIELD_ERRORS: dict[str, str] = {
    "title": "Name is required",
    "features": "At least one feature is required",
    "audience": "Target audience is required",
    "tone": "Tone is required",
    "length": "Description length is required",
}


class FormValidationError(ValueError):
    """Raised when required form fields are empty at submit time."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(", ".join(errors.values()))
        self.errors = errors


class FormCollector:
    """Raw product form values, with the editing rules of the feature list."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}
        self.reset()

    def reset(self) -> None:
        self.title = ""
        self.features: list[str] = [""]
        self.audience = ""
        self.tone = Tone.professional.value
        self.keywords = ""
        self.length = DescriptionLength.medium.value
        self.errors = {}

    def add_feature(self, value: str = "") -> None:
        self.features.append(value)

    def set_feature(self, index: int, value: str) -> None:
        self.features[index] = value

    def remove_feature(self, index: int) -> None:
        if len(self.features) <= 1:
            return
        del self.features[index]

    def values(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "features": list(self.features),
            "audience": self.audience,
            "tone": self.tone,
            "keywords": self.keywords,
            "length": self.length,
        }

    def validate(self) -> GenerationRequest:
        try:
            request = GenerationRequest.model_validate(self.values())
        except ValidationError as exc:
            errors: dict[str, str] = {}
            for error in exc.errors():
                field = str(error["loc"][0])
                errors.setdefault(field, FIELD_ERRORS.get(field, error["msg"]))
            self.errors = errors
            logger.debug("Form rejected: %s", sorted(errors))
            raise FormValidationError(errors) from exc

        self.errors = {}
        return request
