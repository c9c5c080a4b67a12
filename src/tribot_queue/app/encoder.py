"""Translate loosely-typed task requests into canonical bot commands.

Beginner terms:
- Tagged union: several request shapes told apart by one field (here ``task``).
- Discriminator: the field pydantic reads to pick the matching shape.
- Raw command: a ready-made command string passed through untouched.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from .errors import InvalidTaskFormat, MissingTask

logger = logging.getLogger(__name__)

EXPECTED_FORMATS: tuple[str, ...] = (
    'walk: {task: "walk", x: 100, y: 200, z: 0}',
    'walk: {task: "walk", coords: [100, 200, 0]}',
    'type: {task: "type", text: "hello world"}',
    'npc: {task: "npc", target: "banker", action: "bank"}',
    'object: {task: "object", target: "tree", action: "chop"}',
    'item: {task: "item", target: "logs", action: "drop"}',
    'raw: {task: "WALK 100,200"}',
)

# Anything shaped like a kind name is treated as one; other strings are raw commands.
_KIND_PATTERN = re.compile(r"[a-z][a-z_]*")

Coordinate = int | float


def _format_number(value: Coordinate) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class _TaskShape(BaseModel):
    # Request bodies also carry bot_id/priority; those are not the encoder's concern.
    # Numeric text, targets and actions (item ids, typed numbers) become strings.
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    def to_command(self) -> str:
        raise NotImplementedError


class WalkTask(_TaskShape):
    task: Literal["walk"]
    x: Coordinate | None = None
    y: Coordinate | None = None
    z: Coordinate | None = None
    coords: list[Coordinate] | None = Field(default=None, min_length=2, max_length=3)

    @model_validator(mode="after")
    def _require_position(self) -> WalkTask:
        if self.coords is None and (self.x is None or self.y is None):
            raise ValueError("walk requires x and y, or coords [x, y, z?]")
        return self

    def to_command(self) -> str:
        if self.coords is not None:
            position = self.coords
        else:
            position = [self.x, self.y] + ([self.z] if self.z is not None else [])
        return "WALK " + ",".join(_format_number(value) for value in position)


class TypeTask(_TaskShape):
    task: Literal["type"]
    text: str = Field(min_length=1)

    def to_command(self) -> str:
        return f"TYPE {self.text}"


class _TargetActionTask(_TaskShape):
    verb: ClassVar[str]

    target: str = Field(min_length=1)
    action: str = Field(min_length=1)

    def to_command(self) -> str:
        return f"{self.verb} {self.target} {self.action}"


class NpcTask(_TargetActionTask):
    verb: ClassVar[str] = "NPC"
    task: Literal["npc"]


class ObjectTask(_TargetActionTask):
    verb: ClassVar[str] = "OBJ"
    task: Literal["object"]


class ItemTask(_TargetActionTask):
    verb: ClassVar[str] = "ITEM"
    task: Literal["item"]


TaskRequest = Annotated[
    WalkTask | TypeTask | NpcTask | ObjectTask | ItemTask,
    Field(discriminator="task"),
]
_REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(TaskRequest)


def encode(raw: Mapping[str, Any]) -> str:
    """Return the canonical command for one task request body.

    Raises MissingTask when ``task`` is absent or blank, and InvalidTaskFormat
    when the kind is unknown or its required fields are missing.
    """
    task = raw.get("task")
    if task is None or task is False or (isinstance(task, str) and not task.strip()):
        raise MissingTask()
    if not isinstance(task, str):
        raise InvalidTaskFormat(expected_formats=list(EXPECTED_FORMATS))
    if not _KIND_PATTERN.fullmatch(task):
        return task

    try:
        request = _REQUEST_ADAPTER.validate_python(dict(raw))
    except ValidationError as exc:
        logger.warning(
            "encoder event=rejected kind=%s errors=%s",
            task,
            exc.error_count(),
        )
        raise InvalidTaskFormat(expected_formats=list(EXPECTED_FORMATS)) from exc
    return request.to_command()
