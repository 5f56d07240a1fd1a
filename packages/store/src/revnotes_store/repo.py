"""RepoNoteStore: review notes kept in the repository itself.

Why notes refs as the store:
- Zero infra: review history travels with the code through ordinary
  fetch/push, every clone holds the complete history.
- Content addressed: notes attach to commit ids, so rewriting a branch
  never corrupts another review's metadata.
- Mergeable: divergent copies reconcile with a union of lines (see
  revnotes_store.merge), no server or locking involved.

Layout: namespace ``X`` lives at ``<ref_prefix>/X``, by default
``refs/notes/devtools/reviews``, ``.../discuss``, ``.../ci`` and
``.../analyses``. Each note is newline-delimited JSON, one record per line.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from revnotes_store.base import BaseNoteStore
from revnotes_store.merge import join_note, split_note

logger = logging.getLogger(__name__)

DEFAULT_REF_PREFIX = "refs/notes/devtools"


class NoteBackend(Protocol):
    """The note-blob half of the repository contract."""

    def read_note_blob(self, notes_ref: str, revision: str) -> str: ...

    def write_note_blob(self, notes_ref: str, revision: str, blob: str) -> None: ...

    def append_note_blob(self, notes_ref: str, revision: str, text: str) -> None: ...

    def list_noted_revisions(self, notes_ref: str) -> list[str]: ...


class RepoNoteStore(BaseNoteStore):
    """Reads and writes notes through a repository backend.

    The backend is usually a revnotes_core GitRepo, but anything that
    satisfies NoteBackend works (the core's MockRepo does).
    """

    def __init__(self, backend: NoteBackend, ref_prefix: str = DEFAULT_REF_PREFIX):
        self._backend = backend
        self._ref_prefix = ref_prefix.rstrip("/")

    def notes_ref(self, namespace: str) -> str:
        return f"{self._ref_prefix}/{namespace}"

    def read(self, namespace: str, revision: str) -> list[str]:
        return split_note(self._backend.read_note_blob(self.notes_ref(namespace), revision))

    def append(self, namespace: str, revision: str, line: str) -> None:
        self._check_line(line)
        logger.debug("Appending note to %s on %s", self.notes_ref(namespace), revision)
        self._backend.append_note_blob(self.notes_ref(namespace), revision, line)

    def write(self, namespace: str, revision: str, lines: Iterable[str]) -> None:
        lines = list(lines)
        for line in lines:
            self._check_line(line)
        self._backend.write_note_blob(self.notes_ref(namespace), revision, join_note(lines))

    def revisions(self, namespace: str) -> list[str]:
        return self._backend.list_noted_revisions(self.notes_ref(namespace))
