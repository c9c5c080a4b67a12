"""Thread-safe map of bot id to its last-known status."""

from __future__ import annotations

import threading

from .models import BotStatusRecord, utcnow


class BotRegistry:
    """Owns every BotStatusRecord; callers only ever get copies."""

    def __init__(self) -> None:
        self._bots: dict[str, BotStatusRecord] = {}
        self._lock = threading.Lock()

    def touch(self, bot_id: str) -> None:
        """Mark the bot as seen and active, keeping its completion history."""
        self._merge(bot_id, status="active")

    def record_completion(self, bot_id: str, task_id: int | str, result: str) -> None:
        # Task ids are trusted as reported; the queue is not consulted.
        self._merge(bot_id, last_task_completed=task_id, last_result=result)

    def get(self, bot_id: str) -> BotStatusRecord | None:
        with self._lock:
            record = self._bots.get(bot_id)
            return record.model_copy() if record else None

    def list(self) -> list[tuple[str, BotStatusRecord]]:
        with self._lock:
            return [(bot_id, record.model_copy()) for bot_id, record in self._bots.items()]

    def count(self) -> int:
        with self._lock:
            return len(self._bots)

    def _merge(self, bot_id: str, **fields: object) -> None:
        with self._lock:
            current = self._bots.get(bot_id)
            update = {"last_seen": utcnow(), **fields}
            if current is None:
                self._bots[bot_id] = BotStatusRecord.model_validate(update)
            else:
                self._bots[bot_id] = current.model_copy(update=update)
