"""
Test fixtures for deterministic testing.

This module provides:
- at / make_item: timestamps and items on one fixed day
- async_test: run a coroutine test with asyncio.run
- RecordingTimeUpdater: in-memory time updater with scripted failures
- StaticItemSource: item source backed by a list
"""

from .fakes import DAY, RecordingTimeUpdater, StaticItemSource, async_test, at, make_item

__all__ = ["DAY", "at", "make_item", "async_test", "RecordingTimeUpdater", "StaticItemSource"]
