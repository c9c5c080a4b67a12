"""In-memory task queue and bot coordination service."""
