"""In-memory note store: no repository required.

Used for dry runs and tests. Behaves exactly like a git-backed store:
lines keep append order, reconcile applies the same union merge.
"""

from __future__ import annotations

from collections.abc import Iterable

from revnotes_store.base import BaseNoteStore


class MemoryNoteStore(BaseNoteStore):
    """Keeps notes in a ``{namespace: {revision: [lines]}}`` dict."""

    def __init__(self):
        self._notes: dict[str, dict[str, list[str]]] = {}

    def read(self, namespace: str, revision: str) -> list[str]:
        return list(self._notes.get(namespace, {}).get(revision, []))

    def append(self, namespace: str, revision: str, line: str) -> None:
        self._check_line(line)
        self._notes.setdefault(namespace, {}).setdefault(revision, []).append(line)

    def write(self, namespace: str, revision: str, lines: Iterable[str]) -> None:
        lines = [line for line in lines if line.strip()]
        for line in lines:
            self._check_line(line)
        self._notes.setdefault(namespace, {})[revision] = lines

    def revisions(self, namespace: str) -> list[str]:
        return [rev for rev, lines in self._notes.get(namespace, {}).items() if lines]
