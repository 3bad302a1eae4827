"""
Content tree schemas for CourseTree.

Defines Pydantic models for the learning material tree:
- Course: top-level unit of material (manual or online course)
- Section: chapter/subsection node, recursive
- Document: leaf attachment owned by a section

Loading is lenient: missing or malformed optional attributes fall back to
their defaults instead of failing validation.
"""

from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -----------------------------------------------------------------------------
# Enumerations
# -----------------------------------------------------------------------------

class CourseType(str, Enum):
    MANUAL = "Manual"
    ONLINE_COURSE = "OnlineCourse"

    @classmethod
    def _missing_(cls, value):
        return _COURSE_TYPE_ALIASES.get(value)


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

    @classmethod
    def _missing_(cls, value):
        return _DIFFICULTY_ALIASES.get(value)


class DocumentType(str, Enum):
    PDF = "pdf"
    NOTE = "note"
    DOC = "doc"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


# Labels written by the first (French) release of the product
_COURSE_TYPE_ALIASES = {
    "Manuel": CourseType.MANUAL,
    "Formation en ligne": CourseType.ONLINE_COURSE,
    "Online course": CourseType.ONLINE_COURSE,
}

_DIFFICULTY_ALIASES = {
    "Débutant": Difficulty.BEGINNER,
    "Intermédiaire": Difficulty.INTERMEDIATE,
    "Avancé": Difficulty.ADVANCED,
}


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Enum:
    """Parse an enum value, substituting the default when unrecognized."""
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _as_list(value: Any) -> Any:
    return [] if value is None else value


# -----------------------------------------------------------------------------
# Tree nodes
# -----------------------------------------------------------------------------

class Document(BaseModel):
    """A leaf attachment (pdf, note, ...) inside a section."""
    id: str
    name: str = ""
    type: DocumentType = DocumentType.OTHER
    starred: bool = False

    @field_validator("id", "name", mode="before")
    @classmethod
    def text_fields(cls, v):
        return _as_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def type_lenient(cls, v):
        return _coerce_enum(DocumentType, v, DocumentType.OTHER)

    @field_validator("starred", mode="before")
    @classmethod
    def starred_lenient(cls, v):
        return bool(v) if v is not None else False


class Section(BaseModel):
    """
    A chapter or subsection. Sections nest arbitrarily deep through
    `subsections`; a section with neither documents nor subsections is a leaf.
    """
    id: str
    number: str = ""         # display label, may be empty
    title: str = ""
    documents: list[Document] = []
    subsections: list["Section"] = []

    @field_validator("id", "number", "title", mode="before")
    @classmethod
    def text_fields(cls, v):
        return _as_text(v)

    @field_validator("documents", "subsections", mode="before")
    @classmethod
    def list_fields(cls, v):
        return _as_list(v)

    @property
    def is_leaf(self) -> bool:
        return not self.documents and not self.subsections

    def iter_sections(self) -> Iterator["Section"]:
        """Yield this section and all descendants, depth-first pre-order."""
        yield self
        for child in self.subsections:
            yield from child.iter_sections()

    def find_document(self, document_id: str) -> Optional[Document]:
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        return None


class Course(BaseModel):
    """
    A course tree. `total_documents` is informational and never recomputed
    from the tree; use `count_documents()` for the actual count.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    type: CourseType = CourseType.MANUAL
    description: str = ""
    progress: int = Field(default=0, ge=0, le=100)
    total_documents: int = Field(default=0, ge=0, alias="totalDocuments")
    last_accessed: str = Field(default="", alias="lastAccessed")
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_time: str = Field(default="", alias="estimatedTime")
    chapters: list[Section] = []

    @field_validator("id", "title", "description", "last_accessed", "estimated_time", mode="before")
    @classmethod
    def text_fields(cls, v):
        return _as_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def type_lenient(cls, v):
        return _coerce_enum(CourseType, v, CourseType.MANUAL)

    @field_validator("difficulty", mode="before")
    @classmethod
    def difficulty_lenient(cls, v):
        return _coerce_enum(Difficulty, v, Difficulty.BEGINNER)

    @field_validator("progress", mode="before")
    @classmethod
    def progress_clamped(cls, v):
        return min(100, max(0, _as_int(v)))

    @field_validator("total_documents", mode="before")
    @classmethod
    def total_documents_non_negative(cls, v):
        return max(0, _as_int(v))

    @field_validator("chapters", mode="before")
    @classmethod
    def chapters_list(cls, v):
        return _as_list(v)

    # -------------------------------------------------------------------------
    # Structural queries
    # -------------------------------------------------------------------------

    def iter_sections(self) -> Iterator[Section]:
        """Yield every section in the course, depth-first pre-order."""
        for chapter in self.chapters:
            yield from chapter.iter_sections()

    def find_section(self, section_id: str) -> Optional[Section]:
        for section in self.iter_sections():
            if section.id == section_id:
                return section
        return None

    def section_ids(self) -> list[str]:
        return [section.id for section in self.iter_sections()]

    def duplicate_section_ids(self) -> set[str]:
        """Section ids that occur more than once anywhere in the tree."""
        seen: set[str] = set()
        duplicates: set[str] = set()
        for section_id in self.section_ids():
            if section_id in seen:
                duplicates.add(section_id)
            seen.add(section_id)
        return duplicates

    def count_documents(self) -> int:
        return sum(len(section.documents) for section in self.iter_sections())


def _as_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
