"""
ContentStore - Owns the mapping of course id to Course tree.

Provides:
- Course lookup and listing in insertion order
- Tree mutations (courses, sections, documents, stars, progress) that keep
  section ids unique across each course tree
- Change notification for the persistence controller
"""

from typing import TYPE_CHECKING, Iterable, Optional

from coursetree.errors import (
    CourseNotFoundError,
    DocumentNotFoundError,
    DuplicateIdError,
    SectionNotFoundError,
)
from coursetree.schemas import Course, Document, Section

from .events import ChangeNotifier

if TYPE_CHECKING:
    from .navigator import NavigationState


class ContentStore(ChangeNotifier):
    """
    Course trees keyed by id.

    The store owns its courses exclusively: inserted objects are deep-copied,
    so no section is ever shared between two trees.
    """

    def __init__(self, courses: Optional[Iterable[Course]] = None):
        super().__init__()
        self._courses: dict[str, Course] = {}
        self._navigation: Optional["NavigationState"] = None
        for course in courses or []:
            self._courses[course.id] = course

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_course(self, course_id: str) -> Optional[Course]:
        """Get a course by id, or None if it does not exist."""
        return self._courses.get(course_id)

    def list_courses(self) -> list[Course]:
        """Get all courses in insertion order."""
        return list(self._courses.values())

    def course_ids(self) -> list[str]:
        return list(self._courses)

    def as_mapping(self) -> dict[str, Course]:
        """Shallow copy of the id -> Course mapping, in insertion order."""
        return dict(self._courses)

    def __contains__(self, course_id: object) -> bool:
        return course_id in self._courses

    def __len__(self) -> int:
        return len(self._courses)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def attach_navigation(self, navigation: "NavigationState"):
        self._navigation = navigation

    def set_selected(self, course_id: str):
        """Select a course through the attached NavigationState."""
        if self._navigation is None:
            raise RuntimeError("ContentStore has no NavigationState attached")
        self._navigation.select(course_id)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def initialize(self, courses: dict[str, Course]):
        """Replace all courses (used when hydrating). Does not notify."""
        self._courses = dict(courses)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_course(self, course: Course) -> Course:
        """
        Add a new course.

        Raises:
            DuplicateIdError: If the course id exists or its tree repeats a section id
        """
        if course.id in self._courses:
            raise DuplicateIdError(f"Course already exists: {course.id}")
        duplicates = course.duplicate_section_ids()
        if duplicates:
            raise DuplicateIdError(f"Duplicate section ids in course {course.id}: {sorted(duplicates)}")

        stored = course.model_copy(deep=True)
        self._courses[stored.id] = stored
        self._notify()
        return stored

    def add_section(self, course_id: str, section: Section, parent_id: Optional[str] = None) -> Section:
        """
        Insert a section (with its whole subtree) as a chapter, or as the last
        subsection of `parent_id`.

        Raises:
            CourseNotFoundError: If the course does not exist
            SectionNotFoundError: If parent_id is given and not in the course
            DuplicateIdError: If any id in the new subtree already exists in the course
        """
        course = self._require_course(course_id)

        new_ids = [s.id for s in section.iter_sections()]
        existing = set(course.section_ids())
        clashes = {sid for sid in new_ids if sid in existing}
        if clashes or len(set(new_ids)) != len(new_ids):
            raise DuplicateIdError(
                f"Section ids must be unique in course {course_id}: {sorted(clashes) or new_ids}"
            )

        stored = section.model_copy(deep=True)
        if parent_id is None:
            course.chapters.append(stored)
        else:
            parent = course.find_section(parent_id)
            if parent is None:
                raise SectionNotFoundError(course_id, parent_id)
            parent.subsections.append(stored)
        self._notify()
        return stored

    def add_document(self, course_id: str, section_id: str, document: Document) -> Document:
        """
        Append a document to a section.

        Raises:
            DuplicateIdError: If the section already has a document with this id
        """
        section = self._require_section(course_id, section_id)
        if section.find_document(document.id) is not None:
            raise DuplicateIdError(f"Document {document.id} already exists in section {section_id}")

        stored = document.model_copy(deep=True)
        section.documents.append(stored)
        self._notify()
        return stored

    def toggle_star(self, course_id: str, section_id: str, document_id: str) -> bool:
        """Flip a document's starred flag. Returns the new value."""
        section = self._require_section(course_id, section_id)
        document = section.find_document(document_id)
        if document is None:
            raise DocumentNotFoundError(section_id, document_id)

        document.starred = not document.starred
        self._notify()
        return document.starred

    def update_progress(self, course_id: str, progress: int):
        """
        Set a course's progress percentage.

        Raises:
            ValueError: If progress is outside 0-100
        """
        if not 0 <= progress <= 100:
            raise ValueError(f"Progress must be between 0 and 100, got {progress}")
        course = self._require_course(course_id)
        course.progress = progress
        self._notify()

    def _require_course(self, course_id: str) -> Course:
        course = self._courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    def _require_section(self, course_id: str, section_id: str) -> Section:
        section = self._require_course(course_id).find_section(section_id)
        if section is None:
            raise SectionNotFoundError(course_id, section_id)
        return section
