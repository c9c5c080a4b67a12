from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tribot_queue.app.dispatch import DispatchService
from tribot_queue.app.queue_store import QueueStore
from tribot_queue.app.registry import BotRegistry
from tribot_queue.config.settings import Settings
from tribot_queue.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(route_prefix="/tribot", max_queue_size=1000, log_level="WARNING")


@pytest.fixture
def dispatch() -> DispatchService:
    return DispatchService(queue=QueueStore(max_size=1000), registry=BotRegistry())


@pytest.fixture
def client(settings: Settings) -> TestClient:
    app = create_app(settings_override=settings)
    with TestClient(app) as test_client:
        yield test_client
