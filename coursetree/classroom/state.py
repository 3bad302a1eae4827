"""
LearningState - The live application state shared by the UI and the
persistence controller.

Bundles the three mutable components and converts them to and from a
Snapshot. The persistence controller holds a reference to this object, so a
debounced write always sees the current values.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from coursetree.schemas import Snapshot
from coursetree.utils import default_snapshot

from .expansion import ExpansionTracker
from .navigator import NavigationState
from .store import ContentStore


@dataclass
class LearningState:
    store: ContentStore
    expansion: ExpansionTracker
    navigation: NavigationState

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "LearningState":
        store = ContentStore(snapshot.courses.values())
        return cls(
            store=store,
            expansion=ExpansionTracker(snapshot.expanded_sections),
            navigation=NavigationState(store, snapshot.selected_course),
        )

    @classmethod
    def from_defaults(cls, seed_path: Optional[Path] = None) -> "LearningState":
        """Build state from the built-in course set."""
        return cls.from_snapshot(default_snapshot(seed_path))

    def apply_snapshot(self, snapshot: Snapshot):
        """Replace all live values with the snapshot's, without notifying."""
        self.store.initialize(snapshot.courses)
        self.navigation.initialize(snapshot.selected_course)
        self.expansion.initialize(snapshot.expanded_sections)

    def to_snapshot(self, last_sync: Optional[str] = None) -> Snapshot:
        """Capture the current state. Expanded ids are sorted for stable output."""
        return Snapshot(
            courses=self.store.as_mapping(),
            selected_course=self.navigation.selected_id,
            expanded_sections=sorted(self.expansion.expanded_ids()),
            last_sync=last_sync,
        )

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Subscribe to mutations of any component. Returns an unsubscriber."""
        unsubscribers = [
            self.store.subscribe(listener),
            self.expansion.subscribe(listener),
            self.navigation.subscribe(listener),
        ]

        def unsubscribe():
            for unsub in unsubscribers:
                unsub()

        return unsubscribe
