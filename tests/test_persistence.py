"""
Persistence controller tests for CourseTree.

Covers the debounced write path, the sync status machine, load-on-start
fallbacks and teardown. Time is simulated with a ManualScheduler.
"""

import asyncio
import json

import pytest

from coursetree.classroom import (
    LearningState,
    MemoryStore,
    PersistenceController,
    create_platform,
)
from coursetree.config import STORAGE_KEY, Settings
from coursetree.errors import CourseNotFoundError, StorageError
from coursetree.schemas import Document, Section, SyncStatus


def written_payload(store, index=-1) -> dict:
    key, value = store.writes[index]
    assert key == STORAGE_KEY
    return json.loads(value)


class TestLoadOnStart:
    """Test hydration from the storage slot."""

    def test_empty_slot_uses_defaults(self, store, make_controller):
        controller = make_controller(store)
        state = controller.state

        assert state.navigation.selected_id == "sales-forecast"
        assert state.expansion.expanded_ids() == {"1", "3"}
        assert state.store.course_ids() == ["sales-forecast", "data-science"]
        assert controller.status == SyncStatus.IDLE
        assert controller.last_sync is None
        assert controller.status_text == "Not saved"

    def test_loading_does_not_schedule_a_write(self, store, scheduler, make_controller):
        make_controller(store)
        scheduler.advance(5.0)
        assert store.writes == []
        assert scheduler.pending == 0

    def test_malformed_json_falls_back_to_defaults(self, scheduler, make_controller):
        controller = make_controller(MemoryStore({STORAGE_KEY: "{not json"}))

        assert controller.state.store.course_ids() == ["sales-forecast", "data-science"]
        assert controller.state.expansion.expanded_ids() == {"1", "3"}
        assert controller.status == SyncStatus.IDLE

    def test_non_object_payload_falls_back_to_defaults(self, make_controller):
        controller = make_controller(MemoryStore({STORAGE_KEY: "[1, 2, 3]"}))
        assert controller.state.navigation.selected_id == "sales-forecast"
        assert len(controller.state.store) == 2

    def test_loaded_course_id_matches_its_key(self, make_controller):
        raw = json.dumps({"courses": {"a": {"id": "b", "title": "Stats"}}, "selectedCourse": "a"})
        controller = make_controller(MemoryStore({STORAGE_KEY: raw}))
        navigation = controller.state.navigation

        course = navigation.current()
        assert course.id == "a"
        assert navigation.is_selected(course.id)

    def test_missing_courses_field_uses_default_courses(self, make_controller):
        payload = json.dumps({"selectedCourse": "data-science", "expandedSections": ["2"]})
        controller = make_controller(MemoryStore({STORAGE_KEY: payload}))
        state = controller.state

        assert state.store.course_ids() == ["sales-forecast", "data-science"]
        assert state.navigation.selected_id == "data-science"
        assert state.expansion.expanded_ids() == {"2"}

    def test_duplicate_expanded_ids_collapse_into_set(self, make_controller):
        payload = json.dumps({"expandedSections": ["2", "2", "1", "2"]})
        controller = make_controller(MemoryStore({STORAGE_KEY: payload}))
        assert controller.state.expansion.expanded_ids() == {"1", "2"}

    def test_unreadable_store_falls_back_to_defaults(self, scheduler):
        class BrokenStore(MemoryStore):
            def get(self, key):
                raise StorageError("disk gone")

        controller = PersistenceController(LearningState.from_defaults(), BrokenStore(), scheduler)
        assert controller.load() is False
        assert controller.status == SyncStatus.IDLE
        assert controller.state.navigation.selected_id == "sales-forecast"

    def test_last_sync_is_restored(self, make_controller):
        payload = json.dumps({"lastSync": "2025-01-06T10:00:00.000Z"})
        controller = make_controller(MemoryStore({STORAGE_KEY: payload}))

        assert controller.last_sync == "2025-01-06T10:00:00.000Z"
        assert controller.status_text.startswith("Last sync: ")

    def test_stale_selection_is_reported_not_healed(self, make_controller):
        payload = json.dumps({"selectedCourse": "deleted-course"})
        controller = make_controller(MemoryStore({STORAGE_KEY: payload}))
        navigation = controller.state.navigation

        assert navigation.selected_id == "deleted-course"
        with pytest.raises(CourseNotFoundError):
            navigation.current()
        assert navigation.first_available_id() == "sales-forecast"


class TestDebounce:
    """Test that bursts of mutations collapse into one write."""

    def test_default_scenario_toggle_then_save(self, store, scheduler, make_controller, status_log):
        controller = make_controller(store)
        log = status_log(controller)

        controller.state.expansion.toggle("2")
        scheduler.advance(0.5)
        assert store.writes == []
        assert controller.status == SyncStatus.IDLE

        scheduler.advance(0.5)
        assert len(store.writes) == 1
        assert log == [SyncStatus.SAVING, SyncStatus.SAVED]

        reloaded = make_controller(store)
        assert reloaded.state.expansion.expanded_ids() == {"1", "2", "3"}

    def test_burst_produces_one_write_with_final_state(self, store, scheduler, make_controller):
        controller = make_controller(store)
        state = controller.state

        state.expansion.toggle("1")
        scheduler.advance(0.5)
        state.expansion.toggle("4")
        scheduler.advance(0.5)
        state.navigation.select("data-science")
        scheduler.advance(0.5)
        assert store.writes == []

        scheduler.advance(0.5)
        assert len(store.writes) == 1
        payload = written_payload(store)
        assert payload["selectedCourse"] == "data-science"
        assert set(payload["expandedSections"]) == {"3", "4"}

    def test_double_toggle_still_writes_once(self, store, scheduler, make_controller):
        controller = make_controller(store)

        controller.state.expansion.toggle("1")
        scheduler.advance(0.25)
        controller.state.expansion.toggle("1")
        scheduler.advance(1.0)

        assert controller.state.expansion.is_expanded("1")
        assert len(store.writes) == 1
        assert set(written_payload(store)["expandedSections"]) == {"1", "3"}

    def test_content_mutation_schedules_write(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.state.store.toggle_star("sales-forecast", "1", "d2")
        assert controller.has_pending_save

        scheduler.advance(1.0)
        payload = written_payload(store)
        docs = payload["courses"]["sales-forecast"]["chapters"][0]["documents"]
        assert docs[1]["starred"] is True

    def test_payload_shape(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.state.expansion.toggle("2")
        scheduler.advance(1.0)

        payload = written_payload(store)
        assert set(payload) == {"courses", "selectedCourse", "expandedSections", "lastSync"}
        assert isinstance(payload["expandedSections"], list)
        assert payload["lastSync"] == "2025-01-06T10:00:00.000Z"
        course = payload["courses"]["sales-forecast"]
        assert course["totalDocuments"] == 8
        assert course["estimatedTime"] == "40h"
        assert course["type"] == "Manual"


class TestSyncStatus:
    """Test the idle/saving/saved/error state machine."""

    def test_saved_returns_to_idle_after_two_seconds(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.state.expansion.toggle("2")
        scheduler.advance(1.0)
        assert controller.status == SyncStatus.SAVED
        assert controller.status_text == "Saved"

        scheduler.advance(1.5)
        assert controller.status == SyncStatus.SAVED
        scheduler.advance(0.5)
        assert controller.status == SyncStatus.IDLE
        assert controller.status_text.startswith("Last sync: ")

    def test_failed_write_shows_error_then_idle(self, failing_store, scheduler, make_controller, status_log):
        controller = make_controller(failing_store)
        log = status_log(controller)
        courses_before = {cid: c.model_dump() for cid, c in controller.state.store.as_mapping().items()}

        controller.state.expansion.toggle("2")
        scheduler.advance(1.0)

        assert controller.status == SyncStatus.ERROR
        assert controller.status_text == "Save failed"
        assert isinstance(controller.last_error, StorageError)
        assert log == [SyncStatus.SAVING, SyncStatus.ERROR]

        scheduler.advance(2.5)
        assert controller.status == SyncStatus.ERROR
        scheduler.advance(0.5)
        assert controller.status == SyncStatus.IDLE

        courses_after = {cid: c.model_dump() for cid, c in controller.state.store.as_mapping().items()}
        assert courses_after == courses_before
        assert controller.state.expansion.is_expanded("2")

    def test_next_mutation_retries_after_failure(self, failing_store, scheduler, make_controller):
        controller = make_controller(failing_store)
        controller.state.expansion.toggle("2")
        scheduler.advance(1.0)
        assert failing_store.writes == []

        failing_store.fail = False
        controller.state.expansion.toggle("5")
        scheduler.advance(1.0)

        assert failing_store.attempts == 2
        assert controller.status == SyncStatus.SAVED
        assert set(written_payload(failing_store)["expandedSections"]) == {"1", "2", "3", "5"}

    def test_serialization_failure_is_an_error_status(self, store, scheduler, make_controller, monkeypatch):
        controller = make_controller(store)

        def broken_snapshot(last_sync=None):
            raise TypeError("cannot serialize")

        monkeypatch.setattr(controller.state, "to_snapshot", broken_snapshot)
        controller.save_now()

        assert controller.status == SyncStatus.ERROR
        assert store.writes == []

    def test_quota_exceeded_is_an_error_status(self, scheduler, make_controller):
        controller = make_controller(MemoryStore(quota_bytes=10))
        controller.save_now()
        assert controller.status == SyncStatus.ERROR

    def test_unexpected_store_exception_is_an_error_status(self, scheduler, make_controller, status_log):
        class BrokenStore(MemoryStore):
            def set(self, key, value):
                raise RuntimeError("backend exploded")

        controller = make_controller(BrokenStore())
        log = status_log(controller)

        controller.state.expansion.toggle("2")
        scheduler.advance(1.0)
        assert controller.status == SyncStatus.ERROR
        assert isinstance(controller.last_error, RuntimeError)

        scheduler.advance(3.0)
        assert controller.status == SyncStatus.IDLE
        assert log == [SyncStatus.SAVING, SyncStatus.ERROR, SyncStatus.IDLE]

    def test_write_count_includes_failed_serialization(self, store, make_controller, monkeypatch):
        controller = make_controller(store)

        def broken_snapshot(last_sync=None):
            raise TypeError("cannot serialize")

        monkeypatch.setattr(controller.state, "to_snapshot", broken_snapshot)
        controller.save_now()

        assert controller.write_count == 1
        assert store.writes == []

    def test_status_text_while_saving(self, store, make_controller):
        controller = make_controller(store)
        texts = []
        controller.subscribe_status(lambda status: texts.append(controller.status_text))

        controller.save_now()
        assert texts == ["Saving...", "Saved"]


class TestManualSave:
    """Test save_now()."""

    def test_save_now_skips_debounce(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.state.expansion.toggle("2")

        controller.save_now()
        assert len(store.writes) == 1
        assert not controller.has_pending_save

        scheduler.advance(1.0)
        assert len(store.writes) == 1

    def test_save_now_from_saved_restarts_display_window(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.save_now()
        scheduler.advance(1.0)
        controller.save_now()

        # The first reset would have fired at t=2
        scheduler.advance(1.0)
        assert controller.status == SyncStatus.SAVED
        scheduler.advance(1.0)
        assert controller.status == SyncStatus.IDLE
        assert len(store.writes) == 2

    def test_save_now_from_error(self, failing_store, make_controller):
        controller = make_controller(failing_store)
        controller.save_now()
        assert controller.status == SyncStatus.ERROR

        failing_store.fail = False
        controller.save_now()
        assert controller.status == SyncStatus.SAVED

    def test_save_requested_while_saving_is_queued(self, scheduler, make_controller, status_log):
        class NestingStore(MemoryStore):
            def __init__(self):
                super().__init__()
                self.depth = 0
                self.max_depth = 0
                self.count = 0

            def set(self, key, value):
                self.depth += 1
                self.max_depth = max(self.max_depth, self.depth)
                self.count += 1
                super().set(key, value)
                self.depth -= 1

        nesting_store = NestingStore()
        controller = make_controller(nesting_store)
        log = status_log(controller)
        requested = []

        def request_during_save(status):
            if status == SyncStatus.SAVING and not requested:
                requested.append(True)
                controller.save_now()

        controller.subscribe_status(request_during_save)
        controller.save_now()

        assert nesting_store.count == 2
        assert nesting_store.max_depth == 1
        assert log == [SyncStatus.SAVING, SyncStatus.SAVED, SyncStatus.SAVING, SyncStatus.SAVED]


class TestRoundTrip:
    """Test that a saved snapshot reproduces the live state."""

    def test_fresh_instance_reproduces_state(self, store, make_controller):
        controller = make_controller(store)
        state = controller.state
        state.store.add_section(
            "data-science",
            Section(id="ds-1", number="1", title="Statistics", documents=[
                Document(id="n1", name="Cheat sheet", type="note"),
            ]),
        )
        state.store.add_section("data-science", Section(id="ds-1.1", title="Distributions"), parent_id="ds-1")
        state.store.update_progress("data-science", 45)
        state.navigation.select("data-science")
        state.expansion.toggle("ds-1")
        state.expansion.toggle("1")
        controller.save_now()

        reloaded = make_controller(store).state
        assert reloaded.store.as_mapping() == state.store.as_mapping()
        assert reloaded.store.course_ids() == state.store.course_ids()
        assert reloaded.navigation.selected_id == "data-science"
        assert reloaded.expansion.expanded_ids() == state.expansion.expanded_ids()


class TestTeardown:
    """Test close()."""

    def test_close_cancels_pending_write(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.state.expansion.toggle("2")
        controller.close()

        scheduler.advance(5.0)
        assert store.writes == []
        assert scheduler.pending == 0

    def test_mutations_after_close_are_not_persisted(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.close()
        controller.state.expansion.toggle("2")
        controller.save_now()

        scheduler.advance(5.0)
        assert store.writes == []
        assert controller.closed

    def test_close_cancels_status_reset(self, store, scheduler, make_controller):
        controller = make_controller(store)
        controller.save_now()
        controller.close()
        assert scheduler.pending == 0
        assert controller.status == SyncStatus.SAVED


class TestEventLoop:
    """Test the controller on a real asyncio event loop."""

    def test_asyncio_loop_drives_debounce_and_status(self):
        async def scenario():
            loop = asyncio.get_running_loop()
            store = MemoryStore()
            controller = PersistenceController(
                LearningState.from_defaults(),
                store,
                loop,
                debounce_seconds=0.05,
                saved_display_seconds=0.05,
            )
            controller.load()
            controller.state.expansion.toggle("2")
            controller.state.expansion.toggle("5")
            await asyncio.sleep(0.01)
            assert controller.write_count == 0
            await asyncio.sleep(0.3)
            controller.close()
            return store, controller

        store, controller = asyncio.run(scenario())
        assert controller.write_count == 1
        assert controller.status == SyncStatus.IDLE
        payload = json.loads(store.get(STORAGE_KEY))
        assert set(payload["expandedSections"]) == {"1", "2", "3", "5"}


class TestCreatePlatform:
    """Test application wiring."""

    def test_create_platform_with_file_storage(self, tmp_path, scheduler):
        settings = Settings(data_dir=tmp_path, storage="file", debounce_ms=500)
        controller = create_platform(scheduler, settings)

        controller.state.expansion.toggle("2")
        scheduler.advance(0.5)
        controller.close()

        assert (tmp_path / f"{STORAGE_KEY}.json").exists()
        reloaded = create_platform(scheduler, settings)
        assert reloaded.state.expansion.expanded_ids() == {"1", "2", "3"}
        reloaded.close()

    def test_create_platform_with_explicit_store(self, scheduler, store):
        controller = create_platform(scheduler, Settings(storage="memory"), store=store)
        assert controller.store is store
        assert controller.debounce_seconds == 1.0
        controller.close()
