"""Bounded, priority-ordered in-memory task queue.

Beginner terms:
- Deque: a list-like sequence with cheap inserts at both ends.
- Critical section: code that runs while holding the lock, so no other
  request thread can interleave with it.
- Claim: remove a pending task from the queue and mark it assigned.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter, deque
from collections.abc import Iterable

from .models import DEFAULT_BOT_ID, PriorityCounts, QueueStats, Task, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000


class QueueStore:
    """Thread-safe queue of pending tasks.

    High-priority tasks go to the front, everything else to the back. When
    the bound is exceeded entries are dropped from the front of the queue,
    whatever their priority. Lossy under pressure, never an error.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._tasks: deque[Task] = deque()
        # One lock for every read/write of the deque (sync handlers run on a thread pool).
        self._lock = threading.Lock()

    def insert(self, task: Task) -> int:
        """Queue a task and return its position (1 for high priority)."""
        with self._lock:
            if task.priority == "high":
                self._tasks.appendleft(task)
            else:
                self._tasks.append(task)
            evicted = self._evict_overflow()
            size = len(self._tasks)
        if evicted:
            logger.info(
                "queue event=evicted count=%s task_ids=%s max_size=%s",
                len(evicted),
                evicted,
                self.max_size,
            )
        return 1 if task.priority == "high" else size

    def select_pending(self, bot_id: str, limit: int) -> list[Task]:
        """Return up to ``limit`` tasks this bot may claim, in queue order."""
        with self._lock:
            return self._select_locked(bot_id, limit)

    def claim(self, task_ids: Iterable[int], bot_id: str) -> list[Task]:
        """Remove the given tasks and mark them assigned.

        Ids that are no longer queued are skipped, so a stale selection can
        never hand the same task out twice.
        """
        with self._lock:
            return self._claim_locked(set(task_ids), bot_id)

    def claim_pending(self, bot_id: str, limit: int) -> list[Task]:
        """Select and claim in one critical section."""
        with self._lock:
            selected = self._select_locked(bot_id, limit)
            return self._claim_locked({task.task_id for task in selected}, bot_id)

    def clear(self, bot_id: str | None = None) -> int:
        """Drop every task, or only the ones scoped to ``bot_id``."""
        with self._lock:
            before = len(self._tasks)
            if bot_id is None:
                self._tasks.clear()
            else:
                self._tasks = deque(task for task in self._tasks if task.bot_id != bot_id)
            return before - len(self._tasks)

    def stats(self, bot_id: str | None = None) -> QueueStats:
        with self._lock:
            tasks = [task for task in self._tasks if bot_id is None or _visible_to(task, bot_id)]
        by_priority = PriorityCounts(**Counter(task.priority for task in tasks))
        return QueueStats(
            total_tasks=len(tasks),
            pending_tasks=sum(1 for task in tasks if task.status == "pending"),
            assigned_tasks=sum(1 for task in tasks if task.status == "assigned"),
            by_priority=by_priority,
            oldest_task=tasks[0].created_at if tasks else None,
        )

    def pending_count(self, bot_id: str) -> int:
        """Number of queued tasks scoped to ``bot_id`` or to the default scope."""
        with self._lock:
            return sum(1 for task in self._tasks if _visible_to(task, bot_id))

    def snapshot(self) -> list[Task]:
        """Copies of the queued tasks in queue order."""
        with self._lock:
            return [task.model_copy() for task in self._tasks]

    def size(self) -> int:
        with self._lock:
            return len(self._tasks)

    def _select_locked(self, bot_id: str, limit: int) -> list[Task]:
        selected: list[Task] = []
        for task in self._tasks:
            if len(selected) >= limit:
                break
            if task.status == "pending" and _claimable_by(task, bot_id):
                selected.append(task)
        return selected

    def _claim_locked(self, task_ids: set[int], bot_id: str) -> list[Task]:
        if not task_ids:
            return []
        claimed: list[Task] = []
        remaining: deque[Task] = deque()
        now = utcnow()
        for task in self._tasks:
            if task.task_id in task_ids and task.status == "pending":
                task.status = "assigned"
                task.assigned_at = now
                task.assigned_to = bot_id
                claimed.append(task)
            else:
                remaining.append(task)
        self._tasks = remaining
        return claimed

    def _evict_overflow(self) -> list[int]:
        evicted: list[int] = []
        while len(self._tasks) > self.max_size:
            evicted.append(self._tasks.popleft().task_id)
        return evicted


def _claimable_by(task: Task, bot_id: str) -> bool:
    # A "default" poller takes anything; a named bot takes its own and unscoped tasks.
    return task.bot_id in (bot_id, DEFAULT_BOT_ID) or bot_id == DEFAULT_BOT_ID


def _visible_to(task: Task, bot_id: str) -> bool:
    return task.bot_id in (bot_id, DEFAULT_BOT_ID)
