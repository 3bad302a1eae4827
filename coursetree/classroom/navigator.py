"""
Navigator - Track which course is currently active.

The navigator does not repair a stale selection: if the selected id has no
matching course, `current()` raises CourseNotFoundError and the presentation
layer decides how to recover (typically with `first_available_id()`).
"""

from typing import TYPE_CHECKING, Optional

from coursetree.errors import CourseNotFoundError
from coursetree.schemas import Course

from .events import ChangeNotifier

if TYPE_CHECKING:
    from .store import ContentStore

DEFAULT_SELECTED_COURSE = "sales-forecast"


class NavigationState(ChangeNotifier):
    """Selection of the active course."""

    def __init__(self, store: "ContentStore", selected_id: str = DEFAULT_SELECTED_COURSE):
        """
        Initialize navigation state.

        Args:
            store: ContentStore used to resolve the selected id
            selected_id: Initially selected course id
        """
        super().__init__()
        self.store = store
        self._selected_id = selected_id
        store.attach_navigation(self)

    @property
    def selected_id(self) -> str:
        return self._selected_id

    def select(self, course_id: str):
        """Select a course. Unknown ids are accepted; `current()` reports them."""
        self._selected_id = course_id
        self._notify()

    def initialize(self, course_id: str):
        """Set the selection without notifying (used when hydrating)."""
        self._selected_id = course_id

    def current(self) -> Course:
        """
        Get the selected course.

        Raises:
            CourseNotFoundError: If the selected id has no matching course
        """
        course = self.store.get_course(self._selected_id)
        if course is None:
            raise CourseNotFoundError(self._selected_id)
        return course

    def is_selected(self, course_id: str) -> bool:
        return course_id == self._selected_id

    def first_available_id(self) -> Optional[str]:
        """Get the id of the first course in store order, if any."""
        ids = self.store.course_ids()
        return ids[0] if ids else None
