"""Pydantic models shared across encoder, queue store, registry, and API.

Beginner terms used in this file:
- Model: a typed schema class used for validation/serialization.
- Literal: restricts a field to a fixed set of allowed string values.
- extra="allow": keeps unknown request fields (task-specific ones like x/y).
- default_factory: computes a fresh default (here: "now") per instance.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Placement hint. Only "high" changes where a task lands in the queue.
Priority = Literal["high", "normal", "low"]
# Lifecycle states. Completion is tracked on the bot record, not the task.
TaskStatus = Literal["pending", "assigned"]

DEFAULT_BOT_ID = "default"


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Task(BaseModel):
    """One queued unit of work."""

    task_id: int
    bot_id: str = DEFAULT_BOT_ID
    # Canonical command produced by the encoder.
    command: str
    # Raw request body, kept for diagnostics only.
    original_task: dict[str, Any] = Field(default_factory=dict)
    priority: Priority = "normal"
    status: TaskStatus = "pending"
    created_at: datetime = Field(default_factory=utcnow)
    assigned_at: datetime | None = None
    assigned_to: str | None = None


class AssignedTask(BaseModel):
    """Public view of a claimed task returned to the polling bot."""

    task_id: int
    command: str
    created_at: datetime
    assigned_at: datetime | None


class BotStatusRecord(BaseModel):
    """Last-known liveness snapshot of one bot."""

    last_seen: datetime
    status: str | None = None
    last_task_completed: int | str | None = None
    last_result: str | None = None


class PriorityCounts(BaseModel):
    high: int = 0
    normal: int = 0
    low: int = 0


class QueueStats(BaseModel):
    total_tasks: int
    pending_tasks: int
    assigned_tasks: int
    by_priority: PriorityCounts
    oldest_task: datetime | None = None


class TimestampedResponse(BaseModel):
    """Every API response carries the moment it was generated."""

    timestamp: datetime = Field(default_factory=utcnow)


class EnqueueRequest(BaseModel):
    """Request body for POST /addTask.

    Task-specific fields (x, y, text, target, ...) stay in the model extras
    and are validated later by the encoder.
    """

    model_config = ConfigDict(extra="allow")

    task: Any = None
    bot_id: str = DEFAULT_BOT_ID
    priority: Priority = "normal"


class EnqueueResponse(TimestampedResponse):
    message: str = "Task added successfully"
    task_id: int
    command: str
    queue_position: int


class FetchResponse(TimestampedResponse):
    tasks: list[AssignedTask] = Field(default_factory=list)
    queue_size: int
    bot_id: str


class CompleteTaskRequest(BaseModel):
    """Request body for POST /completeTask."""

    task_id: int | str | None = None
    bot_id: str = DEFAULT_BOT_ID
    result: str = "success"
    message: str = ""


class CompleteTaskResponse(TimestampedResponse):
    message: str = "Task completion recorded"
    task_id: int | str
    result: str


class QueueStatusResponse(QueueStats, TimestampedResponse):
    pass


class ClearQueueRequest(BaseModel):
    bot_id: str | None = None


class ClearQueueResponse(TimestampedResponse):
    message: str = "Queue cleared successfully"
    cleared_tasks: int
    remaining_tasks: int


class BotView(BotStatusRecord):
    """Bot record merged with the number of tasks it could currently claim."""

    bot_id: str
    pending_tasks: int


class BotStatusResponse(BotView, TimestampedResponse):
    pass


class BotListResponse(TimestampedResponse):
    bots: list[BotView] = Field(default_factory=list)
    total_bots: int
    total_queue_size: int


class HealthResponse(TimestampedResponse):
    status: str = "ok"
    service: str
    # No database behind the queue; reported for probe compatibility.
    database: bool = False
    queue_size: int
    active_bots: int
