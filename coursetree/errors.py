"""Domain-level errors for CourseTree."""


class CourseTreeError(Exception):
    """Base class for all CourseTree errors."""


class CourseNotFoundError(CourseTreeError, KeyError):
    """Raised when a course id has no matching Course."""

    def __init__(self, course_id: str):
        super().__init__(course_id)
        self.course_id = course_id

    def __str__(self) -> str:
        return f"Course not found: {self.course_id}"


class SectionNotFoundError(CourseTreeError, KeyError):
    """Raised when a section id does not exist in a course tree."""

    def __init__(self, course_id: str, section_id: str):
        super().__init__(section_id)
        self.course_id = course_id
        self.section_id = section_id

    def __str__(self) -> str:
        return f"Section {self.section_id} not found in course {self.course_id}"


class DuplicateIdError(CourseTreeError, ValueError):
    """Raised when an insert would break id uniqueness."""


class SnapshotLoadError(CourseTreeError):
    """Raised when a persisted snapshot is absent or malformed."""


class StorageError(CourseTreeError):
    """Raised when the durable slot cannot be written or read."""


class StorageQuotaExceededError(StorageError):
    """Raised when a write would exceed the store's quota."""


class DocumentNotFoundError(CourseTreeError, KeyError):
    """Raised when a document id does not exist in a section."""

    def __init__(self, section_id: str, document_id: str):
        super().__init__(document_id)
        self.section_id = section_id
        self.document_id = document_id

    def __str__(self) -> str:
        return f"Document {self.document_id} not found in section {self.section_id}"
