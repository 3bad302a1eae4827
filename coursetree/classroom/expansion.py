"""
ExpansionTracker - The set of section ids shown open in the course tree.

Membership is independent of the content: ids with no matching section are
kept as-is and simply have no effect until such a section exists.
"""

from typing import Iterable

from .events import ChangeNotifier

# Chapter 1 and chapter 3 of the default course start open
DEFAULT_EXPANDED_SECTIONS = frozenset({"1", "3"})


class ExpansionTracker(ChangeNotifier):
    """Track which sections are expanded."""

    def __init__(self, ids: Iterable[str] = DEFAULT_EXPANDED_SECTIONS):
        super().__init__()
        self._expanded: set[str] = set(ids)

    def toggle(self, section_id: str) -> bool:
        """
        Flip the expansion state of a section.

        Returns:
            True if the section is expanded after the call
        """
        if section_id in self._expanded:
            self._expanded.discard(section_id)
            expanded = False
        else:
            self._expanded.add(section_id)
            expanded = True
        self._notify()
        return expanded

    def is_expanded(self, section_id: str) -> bool:
        return section_id in self._expanded

    def initialize(self, ids: Iterable[str]):
        """Replace the whole set (used when hydrating from a snapshot)."""
        self._expanded = set(ids)

    def expanded_ids(self) -> frozenset[str]:
        return frozenset(self._expanded)

    def __contains__(self, section_id: object) -> bool:
        return section_id in self._expanded

    def __len__(self) -> int:
        return len(self._expanded)
