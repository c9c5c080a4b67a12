"""Dispatch service: the public operations of the task queue.

Beginner terms:
- Enqueue: encode a request into a command and put the task in the queue.
- Fetch: a bot polls for work; matching tasks are claimed and handed out.
- Trust boundary: completion reports are recorded without checking the queue.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from .encoder import encode
from .errors import BotNotFound, MissingTaskId
from .models import (
    DEFAULT_BOT_ID,
    AssignedTask,
    BotListResponse,
    BotStatusResponse,
    BotView,
    ClearQueueResponse,
    CompleteTaskResponse,
    EnqueueResponse,
    FetchResponse,
    HealthResponse,
    Priority,
    QueueStatusResponse,
    Task,
)
from .queue_store import QueueStore
from .registry import BotRegistry

logger = logging.getLogger(__name__)


class DispatchService:
    """Coordinates the encoder, queue store and bot registry."""

    def __init__(
        self,
        queue: QueueStore | None = None,
        registry: BotRegistry | None = None,
        *,
        service_name: str = "tribot-queue",
    ) -> None:
        self.queue = queue or QueueStore()
        self.registry = registry or BotRegistry()
        self.service_name = service_name
        self._next_id = 1
        self._id_lock = threading.Lock()

    def enqueue(
        self,
        raw: Mapping[str, Any],
        bot_id: str = DEFAULT_BOT_ID,
        priority: Priority = "normal",
    ) -> EnqueueResponse:
        # Encoding happens before an id is taken, so failures leave no trace.
        command = encode(raw)
        task = Task(
            task_id=self._take_id(),
            bot_id=bot_id,
            command=command,
            original_task=dict(raw),
            priority=priority,
        )
        position = self.queue.insert(task)
        logger.info(
            "dispatch event=enqueued task_id=%s bot_id=%s priority=%s queue_position=%s",
            task.task_id,
            bot_id,
            priority,
            position,
        )
        return EnqueueResponse(task_id=task.task_id, command=command, queue_position=position)

    def fetch_next(self, bot_id: str = DEFAULT_BOT_ID, limit: Any = 1) -> FetchResponse:
        self.registry.touch(bot_id)
        claimed = self.queue.claim_pending(bot_id, coerce_limit(limit))
        if claimed:
            logger.info(
                "dispatch event=claimed bot_id=%s task_ids=%s",
                bot_id,
                [task.task_id for task in claimed],
            )
        return FetchResponse(
            tasks=[
                AssignedTask(
                    task_id=task.task_id,
                    command=task.command,
                    created_at=task.created_at,
                    assigned_at=task.assigned_at,
                )
                for task in claimed
            ],
            queue_size=self.queue.size(),
            bot_id=bot_id,
        )

    def complete_task(
        self,
        task_id: int | str | None,
        bot_id: str = DEFAULT_BOT_ID,
        result: str = "success",
        message: str = "",
    ) -> CompleteTaskResponse:
        if task_id is None or task_id == "" or task_id == 0:
            raise MissingTaskId()
        self.registry.record_completion(bot_id, task_id, result)
        logger.info(
            "dispatch event=completed task_id=%s bot_id=%s result=%s message=%s",
            task_id,
            bot_id,
            result,
            message,
        )
        return CompleteTaskResponse(task_id=task_id, result=result)

    def queue_status(self, bot_id: str | None = None) -> QueueStatusResponse:
        # A blank bot id means "no filter", same as omitting it.
        stats = self.queue.stats(bot_id or None)
        return QueueStatusResponse(**stats.model_dump())

    def clear_queue(self, bot_id: str | None = None) -> ClearQueueResponse:
        bot_id = bot_id or None
        cleared = self.queue.clear(bot_id)
        remaining = self.queue.size()
        logger.info(
            "dispatch event=cleared bot_id=%s cleared_tasks=%s remaining_tasks=%s",
            bot_id,
            cleared,
            remaining,
        )
        return ClearQueueResponse(cleared_tasks=cleared, remaining_tasks=remaining)

    def bot_status(self, bot_id: str) -> BotStatusResponse:
        record = self.registry.get(bot_id)
        if record is None:
            raise BotNotFound(bot_id=bot_id)
        return BotStatusResponse(
            bot_id=bot_id,
            pending_tasks=self.queue.pending_count(bot_id),
            **record.model_dump(),
        )

    def list_bots(self) -> BotListResponse:
        bots = [
            BotView(
                bot_id=bot_id,
                pending_tasks=self.queue.pending_count(bot_id),
                **record.model_dump(),
            )
            for bot_id, record in self.registry.list()
        ]
        return BotListResponse(
            bots=bots,
            total_bots=len(bots),
            total_queue_size=self.queue.size(),
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            service=self.service_name,
            queue_size=self.queue.size(),
            active_bots=self.registry.count(),
        )

    def _take_id(self) -> int:
        with self._id_lock:
            task_id = self._next_id
            self._next_id += 1
            return task_id


def coerce_limit(raw: Any) -> int:
    """Parse a fetch limit; malformed or non-positive values become 1."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 1
    return max(value, 1)
