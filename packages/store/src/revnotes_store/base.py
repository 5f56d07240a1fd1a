"""Abstract note store interface.

A note store keeps append-only lines of review metadata attached to
revisions, grouped by namespace (``reviews``, ``discuss``, ``ci``,
``analyses``). It knows nothing about record schemas (decoding lives in
revnotes_core.models), so backends only move raw lines around.

The core depends on BaseNoteStore, not on a concrete backend, so the same
aggregation code runs against git notes or an in-memory dict.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from revnotes_store.merge import merge_lines


class BaseNoteStore(ABC):
    """Pluggable persistence layer for review notes.

    Notes are immutable and additive: lines are only ever appended or
    merged in, never edited or removed.
    """

    @abstractmethod
    def read(self, namespace: str, revision: str) -> list[str]:
        """Return the note lines for a revision in stored order.

        Returns an empty list if the revision has no note and never raises
        for a missing note, and does not validate line contents.
        """

    @abstractmethod
    def append(self, namespace: str, revision: str, line: str) -> None:
        """Add one single-line JSON record to a revision's note."""

    @abstractmethod
    def write(self, namespace: str, revision: str, lines: Iterable[str]) -> None:
        """Replace a revision's note with the given lines."""

    @abstractmethod
    def revisions(self, namespace: str) -> list[str]:
        """Return every revision that carries a note in the namespace."""

    def merge(self, namespace: str, local: Iterable[str], remote: Iterable[str]) -> list[str]:
        """Reconcile two copies of a note. Identical for every namespace."""
        return merge_lines(local, remote)

    def reconcile(self, namespace: str, revision: str, remote: Iterable[str]) -> list[str]:
        """Merge remote lines into the stored note and persist the result."""
        merged = self.merge(namespace, self.read(namespace, revision), remote)
        self.write(namespace, revision, merged)
        return merged

    def close(self) -> None:
        """Release any resources held by the store.

        Optional. The default is a no-op so callers can always call close().
        """

    @staticmethod
    def _check_line(line: str) -> None:
        if "\n" in line or "\r" in line:
            raise ValueError("A note record must be a single line")
