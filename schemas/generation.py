from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Tone(str, Enum):
    professional = "professional"
    persuasive = "persuasive"
    enthusiastic = "enthusiastic"
    confident = "confident"
    friendly = "friendly"
    innovative = "innovative"
    authoritative = "authoritative"
    informative = "informative"
    solution_oriented = "solution-oriented"
    visionary = "visionary"


class DescriptionLength(str, Enum):
    short = "short"
    medium = "medium"
    long = "long"


class GenerationRequest(BaseModel):
    """Product attributes captured by the form at submit time."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str = Field(min_length=1)
    features: tuple[str, ...] = Field(min_length=1)
    audience: str = Field(min_length=1)
    tone: Tone
    keywords: str = ""
    length: DescriptionLength

    @field_validator("features")
    @classmethod
    def drop_blank_features(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(item.strip() for item in value if item.strip())
        if not cleaned:
            raise ValueError("At least one non-empty feature is required")
        return cleaned


class ProductDescription(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Optimized name of a product.")
    description: str = Field(description="Description of the product.")


class DescriptionSet(BaseModel):
    """Final shape of a generation; also the provider's output schema."""

    model_config = ConfigDict(extra="forbid")

    descriptions: list[ProductDescription]


class PartialDescription(BaseModel):
    name: str = ""
    description: str = ""


class PartialDescriptionSet(BaseModel):
    """In-flight view of a DescriptionSet; every field may still be incomplete."""

    descriptions: list[PartialDescription] = Field(default_factory=list)
