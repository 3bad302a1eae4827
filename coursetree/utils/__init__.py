"""CourseTree utilities."""

from .seed_loader import load_seed, default_snapshot, DEFAULT_SEED_FILE

__all__ = ["load_seed", "default_snapshot", "DEFAULT_SEED_FILE"]
