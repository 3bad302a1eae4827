"""
CourseTree Viewer - Rendering components for the course organizer.

This module provides:
- Course cards and course header rendering
- Expandable section tree rendering
- Sync status indicator
"""

from .tree import (
    get_tree_css,
    get_file_icon,
    get_course_icon,
    render_progress_bar,
    render_difficulty_badge,
    render_course_card,
    render_course_header,
    render_document_row,
    render_section_tree,
    render_course_tree,
    FILE_ICONS,
    DEFAULT_FILE_ICON,
)

from .status import (
    get_sync_icon,
    render_sync_indicator,
)

__all__ = [
    # Tree
    "get_tree_css",
    "get_file_icon",
    "get_course_icon",
    "render_progress_bar",
    "render_difficulty_badge",
    "render_course_card",
    "render_course_header",
    "render_document_row",
    "render_section_tree",
    "render_course_tree",
    "FILE_ICONS",
    "DEFAULT_FILE_ICON",
    # Status
    "get_sync_icon",
    "render_sync_indicator",
]
