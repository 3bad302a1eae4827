"""Shared fixtures for CourseTree tests."""

from datetime import datetime, timezone

import pytest

from coursetree.classroom import (
    LearningState,
    ManualScheduler,
    MemoryStore,
    PersistenceController,
)
from coursetree.errors import StorageError

FIXED_NOW = datetime(2025, 1, 6, 10, 0, 0, tzinfo=timezone.utc)


class RecordingStore(MemoryStore):
    """MemoryStore that keeps every successful write."""

    def __init__(self, initial=None, quota_bytes=None):
        super().__init__(initial, quota_bytes)
        self.writes: list[tuple[str, str]] = []

    def set(self, key, value):
        super().set(key, value)
        self.writes.append((key, value))


class FailingStore(RecordingStore):
    """Store whose writes fail while `fail` is True."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = True
        self.attempts = 0

    def set(self, key, value):
        self.attempts += 1
        if self.fail:
            raise StorageError("storage unavailable")
        super().set(key, value)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def state():
    return LearningState.from_defaults()


@pytest.fixture
def make_controller(scheduler):
    """Factory building a loaded controller on the shared virtual clock."""
    controllers = []

    def _make(store, **kwargs):
        controller = PersistenceController(
            LearningState.from_defaults(),
            store,
            scheduler,
            now=lambda: FIXED_NOW,
            **kwargs,
        )
        controller.load()
        controllers.append(controller)
        return controller

    yield _make

    for controller in controllers:
        controller.close()


@pytest.fixture
def status_log():
    """Attach to a controller and record every status it enters."""

    def _attach(controller):
        log = []
        controller.subscribe_status(log.append)
        return log

    return _attach


@pytest.fixture
def failing_store():
    return FailingStore()
