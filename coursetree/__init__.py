"""CourseTree - Organize courses, chapters and documents in a persistent tree."""

__version__ = "0.1.0"
