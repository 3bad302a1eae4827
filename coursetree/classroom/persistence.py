"""
PersistenceController - Keep the storage slot eventually consistent with the
live LearningState.

Every mutation restarts a debounce timer; when it fires, one full Snapshot is
written. Writes drive the sync status machine:

    idle -> saving -> saved -> (after 2s) idle
                   -> error -> (after 3s) idle

At most one write is ever in flight. A failed write leaves the in-memory
state untouched; the next mutation schedules another attempt.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from coursetree.config import STORAGE_KEY, Settings, load_settings
from coursetree.errors import SnapshotLoadError, StorageError
from coursetree.schemas import SyncStatus, parse_snapshot
from coursetree.utils import default_snapshot

from .scheduler import CancelHandle, Scheduler
from .state import LearningState
from .storage import KeyValueStore, build_store

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 1.0
SAVED_DISPLAY_SECONDS = 2.0
ERROR_DISPLAY_SECONDS = 3.0

StatusListener = Callable[[SyncStatus], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2025-01-06T10:00:00.000Z"""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PersistenceController:
    """
    Debounced writer of the LearningState snapshot.

    The controller never runs anything concurrently: it only registers
    deferred callbacks on the scheduler (an asyncio loop or a
    ManualScheduler) and runs on whatever thread pumps it.
    """

    def __init__(
        self,
        state: LearningState,
        store: KeyValueStore,
        scheduler: Scheduler,
        key: str = STORAGE_KEY,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        saved_display_seconds: float = SAVED_DISPLAY_SECONDS,
        error_display_seconds: float = ERROR_DISPLAY_SECONDS,
        now: Callable[[], datetime] = _utc_now,
        seed_path: Optional[Path] = None,
    ):
        """
        Initialize the controller and start observing `state`.

        Args:
            state: Live state to persist (held by reference)
            store: Key-value backend holding the snapshot slot
            scheduler: Provides call_later(delay, callback) -> handle.cancel()
            key: Name of the storage slot
            debounce_seconds: Quiet period after the last mutation before writing
            saved_display_seconds: Time "saved" is shown before returning to idle
            error_display_seconds: Time "error" is shown before returning to idle
            now: Clock used for the lastSync timestamp
            seed_path: Optional custom seed file for the built-in defaults
        """
        self.state = state
        self.store = store
        self.scheduler = scheduler
        self.key = key
        self.debounce_seconds = debounce_seconds
        self.saved_display_seconds = saved_display_seconds
        self.error_display_seconds = error_display_seconds
        self._now = now
        self._seed_path = seed_path

        self.last_sync: Optional[str] = None
        self.last_error: Optional[Exception] = None
        self.write_count = 0

        self._status = SyncStatus.IDLE
        self._status_listeners: list[StatusListener] = []
        self._debounce_handle: Optional[CancelHandle] = None
        self._status_handle: Optional[CancelHandle] = None
        self._saving = False
        self._save_queued = False
        self._closed = False
        self._unsubscribe = state.subscribe(self.notify_change)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def has_pending_save(self) -> bool:
        return self._debounce_handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def status_text(self) -> str:
        """Human-readable sync status for display."""
        if self._status == SyncStatus.SAVING:
            return "Saving..."
        if self._status == SyncStatus.SAVED:
            return "Saved"
        if self._status == SyncStatus.ERROR:
            return "Save failed"
        if not self.last_sync:
            return "Not saved"
        return f"Last sync: {_local_time(self.last_sync)}"

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener called with each new status."""
        self._status_listeners.append(listener)

        def unsubscribe():
            if listener in self._status_listeners:
                self._status_listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: SyncStatus):
        self._status = status
        for listener in list(self._status_listeners):
            listener(status)

    def _schedule_status_reset(self, delay: float):
        self._status_handle = self.scheduler.call_later(delay, self._reset_status)

    def _reset_status(self):
        self._status_handle = None
        self._set_status(SyncStatus.IDLE)

    def _cancel_status_reset(self):
        if self._status_handle is not None:
            self._status_handle.cancel()
            self._status_handle = None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Hydrate the state from the storage slot, once, at startup.

        Any failure (absent slot, unreadable store, malformed JSON) falls
        back to the built-in defaults. This is logged, never surfaced as an
        error status.

        Returns:
            True if a saved snapshot was loaded, False if defaults were used
        """
        defaults = default_snapshot(self._seed_path)

        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            logger.warning(f"Could not read saved data, using defaults: {e}")
            raw = None

        if raw is None:
            logger.info(f"No saved data under {self.key!r}, using defaults")
            self.state.apply_snapshot(defaults)
            self.last_sync = None
            return False

        try:
            snapshot = parse_snapshot(raw, defaults)
        except SnapshotLoadError as e:
            logger.warning(f"Error while loading saved data, using defaults: {e}")
            self.state.apply_snapshot(defaults)
            self.last_sync = None
            return False

        self.state.apply_snapshot(snapshot)
        self.last_sync = snapshot.last_sync
        logger.info(
            f"Loaded {len(snapshot.courses)} courses, "
            f"{len(set(snapshot.expanded_sections))} expanded sections"
        )
        return True

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def notify_change(self):
        """Restart the debounce timer. Called on every observed mutation."""
        if self._closed:
            return
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self.scheduler.call_later(self.debounce_seconds, self._on_debounce)

    def _on_debounce(self):
        self._debounce_handle = None
        self._write()

    def save_now(self):
        """
        Write immediately, skipping the debounce wait.

        If a write is already in flight, the request runs right after it.
        """
        if self._closed:
            logger.warning("save_now() called on a closed controller, ignoring")
            return
        if self._saving:
            self._save_queued = True
            return
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._write()

    def _write(self):
        self._saving = True
        self._cancel_status_reset()
        self._set_status(SyncStatus.SAVING)
        self.write_count += 1
        try:
            last_sync = format_timestamp(self._now())
            payload = self.state.to_snapshot(last_sync).to_json()
            self.store.set(self.key, payload)
        except Exception as e:
            logger.error(f"Error while saving: {e}")
            self.last_error = e
            self._set_status(SyncStatus.ERROR)
            self._schedule_status_reset(self.error_display_seconds)
        else:
            self.last_sync = last_sync
            self.last_error = None
            self._set_status(SyncStatus.SAVED)
            self._schedule_status_reset(self.saved_display_seconds)
        finally:
            self._saving = False

        if self._save_queued and not self._closed:
            self._save_queued = False
            self._write()

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def close(self):
        """Cancel pending timers and stop observing the state."""
        if self._closed:
            return
        self._closed = True
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._cancel_status_reset()
        self._save_queued = False
        self._unsubscribe()


def _local_time(timestamp: str) -> str:
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone().strftime("%H:%M:%S")


def create_platform(
    scheduler: Scheduler,
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    now: Callable[[], datetime] = _utc_now,
) -> PersistenceController:
    """
    Build the live state and its controller, then load the saved snapshot.

    Args:
        scheduler: Event loop or ManualScheduler driving the timers
        settings: Runtime settings (default: read from the environment)
        store: Storage backend (default: chosen by settings)
        now: Clock used for lastSync timestamps

    Returns:
        PersistenceController whose `state` is ready for the UI
    """
    settings = settings or load_settings()
    store = store if store is not None else build_store(settings)

    state = LearningState.from_defaults()
    controller = PersistenceController(
        state,
        store,
        scheduler,
        key=settings.storage_key,
        debounce_seconds=settings.debounce_seconds,
        saved_display_seconds=settings.saved_display_seconds,
        error_display_seconds=settings.error_display_seconds,
        now=now,
    )
    controller.load()
    return controller
