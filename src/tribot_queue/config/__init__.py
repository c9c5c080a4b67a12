"""Runtime configuration."""

from tribot_queue.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
