"""
Seed loader utility for CourseTree.

Loads the built-in course set from a YAML file in the package data/ directory.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from coursetree.schemas import Course, Snapshot


# Default seed file (inside the installed package)
DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_SEED_FILE = DATA_DIR / "default_courses.yaml"


def load_seed(path: Path | None = None) -> dict[str, Any]:
    """
    Load a course seed file.

    Args:
        path: Optional custom seed file (default: data/default_courses.yaml)

    Returns:
        Dict containing the parsed YAML with keys:
        - meta: version, selected_course, expanded_sections
        - courses: list of course mappings

    Raises:
        FileNotFoundError: If the seed file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    file_path = path or DEFAULT_SEED_FILE

    if not file_path.exists():
        raise FileNotFoundError(f"Seed file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@lru_cache(maxsize=None)
def _default_snapshot(path: Path) -> Snapshot:
    seed = load_seed(path)
    meta = seed.get("meta") or {}
    courses = [Course.model_validate(entry) for entry in seed.get("courses") or []]
    return Snapshot(
        courses={course.id: course for course in courses},
        selected_course=meta.get("selected_course", ""),
        expanded_sections=[str(s) for s in meta.get("expanded_sections") or []],
    )


def default_snapshot(path: Path | None = None) -> Snapshot:
    """
    Build the built-in snapshot. The YAML is parsed once per path; every call
    returns a fresh deep copy so callers may mutate it freely.
    """
    return _default_snapshot(path or DEFAULT_SEED_FILE).model_copy(deep=True)
