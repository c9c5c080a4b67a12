"""Queue engine: encoder, queue store, bot registry and dispatch service."""

from tribot_queue.app.dispatch import DispatchService
from tribot_queue.app.encoder import EXPECTED_FORMATS, encode
from tribot_queue.app.errors import (
    BotNotFound,
    DispatchError,
    InvalidTaskFormat,
    MissingTask,
    MissingTaskId,
)
from tribot_queue.app.queue_store import QueueStore
from tribot_queue.app.registry import BotRegistry

__all__ = [
    "EXPECTED_FORMATS",
    "BotNotFound",
    "BotRegistry",
    "DispatchError",
    "DispatchService",
    "InvalidTaskFormat",
    "MissingTask",
    "MissingTaskId",
    "QueueStore",
    "encode",
]
