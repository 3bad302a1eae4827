"""
Course tree renderer - Course cards and the expandable section tree.

Provides:
- Course card rendering for the sidebar list
- Course header with progress bar
- Recursive section tree honoring the expansion state
"""

import html
from typing import Callable

from coursetree.schemas import Course, CourseType, Difficulty, Document, DocumentType, Section

FILE_ICONS = {
    DocumentType.PDF: "📄",
    DocumentType.NOTE: "📓",
    DocumentType.DOC: "📝",
}
DEFAULT_FILE_ICON = "📎"

DIFFICULTY_COLORS = {
    Difficulty.BEGINNER: ("#E8F5E9", "#2E7D32"),
    Difficulty.INTERMEDIATE: ("#FFF8E1", "#F57F17"),
    Difficulty.ADVANCED: ("#FFEBEE", "#C62828"),
}

INDENT_PX = 24


def get_tree_css() -> str:
    """Get CSS styles for course cards and the section tree."""
    return """
    <style>
    .course-card {
        background: white;
        border: 2px solid #f0f0f0;
        border-radius: 12px;
        padding: 1em;
        margin-bottom: 0.8em;
    }
    .course-card.selected {
        background: #eef4ff;
        border-color: #90caf9;
        box-shadow: 0 4px 8px rgba(0,0,0,0.08);
    }
    .course-card-title {
        font-weight: 600;
        color: #222;
    }
    .course-card-type {
        font-size: 0.85em;
        color: #888;
    }
    .course-difficulty {
        display: inline-block;
        padding: 0.1em 0.6em;
        border-radius: 999px;
        font-size: 0.75em;
        font-weight: 500;
    }
    .course-progress {
        background: #eee;
        border-radius: 999px;
        height: 6px;
        margin-top: 0.6em;
    }
    .course-progress-bar {
        background: linear-gradient(90deg, #1976D2, #5E35B1);
        border-radius: 999px;
        height: 6px;
    }
    .tree-section {
        padding: 0.4em 0.6em;
        border-radius: 8px;
    }
    .tree-section.chapter {
        background: #eef4ff;
        border: 1px solid #bbdefb;
        margin-top: 0.4em;
    }
    .tree-section-number {
        color: #1565C0;
        font-family: monospace;
        margin-right: 0.4em;
    }
    .tree-doc-count {
        float: right;
        font-size: 0.75em;
        color: #888;
    }
    .tree-document {
        padding: 0.25em 0.6em;
        color: #444;
    }
    </style>
    """


def get_file_icon(doc_type: DocumentType) -> str:
    """Get the display icon for a document type."""
    return FILE_ICONS.get(doc_type, DEFAULT_FILE_ICON)


def get_course_icon(course: Course) -> str:
    return "📘" if course.type == CourseType.MANUAL else "🎓"


def _doc_count_label(count: int) -> str:
    return f"{count} doc{'s' if count > 1 else ''}"


def render_progress_bar(progress: int) -> str:
    return (
        '<div class="course-progress">'
        f'<div class="course-progress-bar" style="width: {progress}%;"></div>'
        '</div>'
    )


def render_difficulty_badge(difficulty: Difficulty) -> str:
    background, color = DIFFICULTY_COLORS[difficulty]
    return (
        f'<span class="course-difficulty" style="background:{background}; color:{color};">'
        f'{html.escape(difficulty.value)}</span>'
    )


def render_course_card(course: Course, selected: bool = False) -> str:
    """
    Render a course card for the sidebar.

    Args:
        course: Course to render
        selected: Whether the course is the active one

    Returns:
        HTML string for the card
    """
    css_class = "course-card selected" if selected else "course-card"
    parts = [f'<div class="{css_class}" data-course-id="{html.escape(course.id)}">']
    parts.append(f'<span>{get_course_icon(course)}</span> ')
    parts.append(f'<span class="course-card-title">{html.escape(course.title)}</span>')
    parts.append(f'<div class="course-card-type">{html.escape(course.type.value)}</div>')
    parts.append(f'<p>{html.escape(course.description)}</p>')
    parts.append(render_difficulty_badge(course.difficulty))
    parts.append(
        f' <small>⏱ {html.escape(course.estimated_time)} · '
        f'{course.total_documents} documents · {html.escape(course.last_accessed)}</small>'
    )
    parts.append(render_progress_bar(course.progress))
    parts.append(f'<small>{course.progress}% complete</small>')
    parts.append('</div>')
    return ''.join(parts)


def render_course_header(course: Course) -> str:
    """Render the header shown above the selected course's tree."""
    parts = ['<div class="course-header">']
    parts.append(f'<h2>{get_course_icon(course)} {html.escape(course.title)}</h2>')
    parts.append(f'<p>{html.escape(course.description)}</p>')
    parts.append(render_difficulty_badge(course.difficulty))
    parts.append(f' <small>Progress: {course.progress}%</small>')
    parts.append(render_progress_bar(course.progress))
    parts.append('</div>')
    return ''.join(parts)


def render_document_row(doc: Document, level: int = 0) -> str:
    """Render one document line inside a section at nesting depth `level`."""
    star = " ⭐" if doc.starred else ""
    return (
        f'<div class="tree-document" style="padding-left: {32 + level * INDENT_PX}px;">'
        f'{get_file_icon(doc.type)} {html.escape(doc.name)}{star}</div>'
    )


def render_section_tree(
    section: Section,
    is_expanded: Callable[[str], bool],
    level: int = 0,
) -> str:
    """
    Render a section and, when expanded, its documents and subsections.

    Args:
        section: Section to render
        is_expanded: Predicate telling whether a section id is expanded
        level: Nesting depth (0 for chapters)

    Returns:
        HTML string for the section subtree
    """
    indent = level * INDENT_PX
    expanded = is_expanded(section.id)

    if section.is_leaf:
        marker = "•"
    else:
        marker = "▾" if expanded else "▸"

    css_class = "tree-section chapter" if level == 0 else "tree-section"
    parts = [
        f'<div class="{css_class}" data-section-id="{html.escape(section.id)}" '
        f'style="padding-left: {16 + indent}px;">'
    ]
    parts.append(f'{marker} ')
    if section.number:
        parts.append(f'<span class="tree-section-number">{html.escape(section.number)}</span>')
    parts.append(html.escape(section.title))
    if section.documents:
        parts.append(f'<span class="tree-doc-count">{_doc_count_label(len(section.documents))}</span>')
    parts.append('</div>')

    if expanded and not section.is_leaf:
        for doc in section.documents:
            parts.append(render_document_row(doc, level))
        for child in section.subsections:
            parts.append(render_section_tree(child, is_expanded, level + 1))

    return ''.join(parts)


def render_course_tree(course: Course, is_expanded: Callable[[str], bool]) -> str:
    """Render all chapters of a course, or an empty-state hint."""
    if not course.chapters:
        return (
            '<p style="color:#666;">Add content to your course to start '
            'organizing your learning material.</p>'
        )
    return ''.join(render_section_tree(chapter, is_expanded) for chapter in course.chapters)
