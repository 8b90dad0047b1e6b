from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from client.consumer import ConsumerState
from schemas.generation import PartialDescriptionSet

PLACEHOLDER_TITLE = "No descriptions yet"
PLACEHOLDER_HINT = 'Fill out the form and click "Create" to build your product descriptions.'

ViewKind = Literal["placeholder", "busy", "results"]


@dataclass(frozen=True)
class ItemView:
    index: int
    name: str
    description: str
    copied: bool

    @property
    def copy_label(self) -> str:
        return "Copied!" if self.copied else "Copy"


@dataclass(frozen=True)
class ResultView:
    kind: ViewKind
    items: list[ItemView] = field(default_factory=list)
    busy: bool = False
    error: str | None = None
    incomplete: bool = False
    title: str | None = None
    hint: str | None = None


def render(
    state: ConsumerState,
    result: PartialDescriptionSet,
    error: str | None = None,
    incomplete: bool = False,
    copied_index: int | None = None,
) -> ResultView:
    generating = state is ConsumerState.generating
    if result.descriptions:
        return ResultView(
            kind="results",
            items=[
                ItemView(
                    index=index,
                    name=item.name,
                    description=item.description,
                    copied=copied_index == index,
                )
                for index, item in enumerate(result.descriptions)
            ],
            busy=generating,
            error=error,
            incomplete=incomplete,
        )
    if generating:
        return ResultView(kind="busy", busy=True)
    return ResultView(
        kind="placeholder",
        error=error,
        incomplete=incomplete,
        title=PLACEHOLDER_TITLE,
        hint=PLACEHOLDER_HINT,
    )
