"""Typed failures raised by the dispatch service.

Each error carries the HTTP status the transport should answer with and an
optional ``details`` mapping merged into the error body.
"""

from __future__ import annotations

from typing import Any


class DispatchError(Exception):
    """Base class for recoverable dispatch failures."""

    status_code: int = 400
    default_message: str = "Dispatch request failed"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details: dict[str, Any] = details
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.details}


class InvalidTaskFormat(DispatchError):
    default_message = "Invalid task format"


class MissingTask(DispatchError):
    default_message = "Task is required"


class MissingTaskId(DispatchError):
    default_message = "task_id is required"


class BotNotFound(DispatchError):
    status_code = 404
    default_message = "Bot not found"
