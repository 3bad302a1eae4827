"""
CourseTree Schemas - Pydantic models for the learning material organizer.

This module exports all schema classes for:
- Course: course, section and document tree
- Snapshot: persisted state and sync status
"""

# Course tree schemas
from .course import (
    CourseType,
    Difficulty,
    DocumentType,
    Document,
    Section,
    Course,
)

# Snapshot schemas
from .snapshot import (
    SyncStatus,
    Snapshot,
    parse_snapshot,
)

__all__ = [
    # Course tree
    'CourseType',
    'Difficulty',
    'DocumentType',
    'Document',
    'Section',
    'Course',
    # Snapshot
    'SyncStatus',
    'Snapshot',
    'parse_snapshot',
]
