"""
CourseTree Classroom - Runtime components for organizing and persisting
learning material.

This module provides:
- ContentStore: Course trees keyed by id
- ExpansionTracker: Expanded section ids
- NavigationState: Selected course
- PersistenceController: Debounced snapshot writes and sync status
- Storage backends and schedulers used by the controller
"""

from .store import ContentStore

from .expansion import (
    ExpansionTracker,
    DEFAULT_EXPANDED_SECTIONS,
)

from .navigator import (
    NavigationState,
    DEFAULT_SELECTED_COURSE,
)

from .state import LearningState

from .scheduler import (
    ManualScheduler,
    ScheduledCall,
    Scheduler,
)

from .storage import (
    KeyValueStore,
    MemoryStore,
    FileStore,
    SQLiteStore,
    build_store,
)

from .persistence import (
    PersistenceController,
    create_platform,
    format_timestamp,
    DEBOUNCE_SECONDS,
    SAVED_DISPLAY_SECONDS,
    ERROR_DISPLAY_SECONDS,
)

__all__ = [
    # Content
    "ContentStore",
    "ExpansionTracker",
    "DEFAULT_EXPANDED_SECTIONS",
    "NavigationState",
    "DEFAULT_SELECTED_COURSE",
    "LearningState",
    # Scheduling
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "SQLiteStore",
    "build_store",
    # Persistence
    "PersistenceController",
    "create_platform",
    "format_timestamp",
    "DEBOUNCE_SECONDS",
    "SAVED_DISPLAY_SECONDS",
    "ERROR_DISPLAY_SECONDS",
]
