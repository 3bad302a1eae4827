"""
Persistence schemas for CourseTree.

Defines the Snapshot (the single persisted unit) and the sync status states.
The wire format keeps the camelCase keys of the original storage slot:
`courses`, `selectedCourse`, `expandedSections`, `lastSync`.
"""

import json
import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from coursetree.errors import SnapshotLoadError

from .course import Course

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class Snapshot(BaseModel):
    """All persisted state at one instant, written wholesale."""
    model_config = ConfigDict(populate_by_name=True)

    courses: dict[str, Course]
    selected_course: str = Field(alias="selectedCourse")
    expanded_sections: list[str] = Field(default=[], alias="expandedSections")
    last_sync: Optional[str] = Field(default=None, alias="lastSync")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def parse_snapshot(raw: str, defaults: Snapshot) -> Snapshot:
    """
    Parse a persisted snapshot, substituting defaults per field.

    Args:
        raw: JSON text read from the storage slot
        defaults: Built-in snapshot used for missing or malformed fields

    Returns:
        Snapshot hydrated from `raw`

    Raises:
        SnapshotLoadError: If `raw` is not JSON or not a JSON object
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SnapshotLoadError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotLoadError(f"Snapshot must be a JSON object, got {type(data).__name__}")

    courses = _parse_courses(data.get("courses"))
    if courses is None:
        logger.warning("Snapshot has no usable 'courses' mapping, using built-in courses")
        courses = {cid: course.model_copy(deep=True) for cid, course in defaults.courses.items()}

    selected = data.get("selectedCourse")
    if not isinstance(selected, str) or not selected:
        selected = defaults.selected_course

    expanded = data.get("expandedSections")
    if isinstance(expanded, list):
        expanded = [str(item) for item in expanded if isinstance(item, (str, int)) and not isinstance(item, bool)]
    else:
        expanded = list(defaults.expanded_sections)

    last_sync = data.get("lastSync")
    if not isinstance(last_sync, str):
        last_sync = None

    return Snapshot(
        courses=courses,
        selected_course=selected,
        expanded_sections=expanded,
        last_sync=last_sync,
    )


def _parse_courses(value) -> Optional[dict[str, Course]]:
    """Parse the courses mapping; entries that fail validation are dropped.

    The mapping key is the course id, whatever id the entry itself carries.
    """
    if not isinstance(value, dict):
        return None

    courses = {}
    for key, entry in value.items():
        if not isinstance(entry, dict):
            logger.warning(f"Skipping malformed course entry {key!r}")
            continue
        entry = {**entry, "id": key}
        try:
            courses[key] = Course.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping invalid course {key!r}: {e.error_count()} validation errors")
    return courses
