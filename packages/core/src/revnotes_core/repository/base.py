"""Abstract repository interface.

Everything revnotes needs from version control goes through Repo: ref
resolution, ancestry tests, the final ref mutation of a submission, and
raw note blob access. Review logic depends on this contract only, so a
real git checkout (GitRepo) and an in-memory DAG (MockRepo) are
interchangeable.

Revisions are full commit ids; refs are full names such as
``refs/heads/master`` (short names are accepted wherever git accepts them).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from revnotes_core.errors import InvalidRefError


class Repo(ABC):
    # --- refs and history ---------------------------------------------------

    @abstractmethod
    def get_head_ref(self) -> str:
        """Return the full name of the checked-out ref (e.g. ``refs/heads/feature``)."""

    @abstractmethod
    def resolve_ref(self, ref: str) -> str:
        """Return the commit a ref points at. Raises InvalidRefError."""

    @abstractmethod
    def ref_exists(self, ref: str) -> bool:
        """Return True if the ref resolves to a commit."""

    def verify_ref(self, ref: str) -> None:
        """Raise InvalidRefError unless the ref resolves to a commit."""
        if not ref or not self.ref_exists(ref):
            raise InvalidRefError(ref)

    @abstractmethod
    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Return True if ``ancestor`` is reachable from ``descendant`` (or equal)."""

    @abstractmethod
    def merge_base(self, first: str, second: str) -> str:
        """Return the best common ancestor of two revisions."""

    @abstractmethod
    def list_ancestors(self, revision: str, first_parent: bool = False) -> list[str]:
        """Return ``revision`` and all of its ancestors, newest first.

        With ``first_parent`` only the first parent of each merge is followed,
        so history merged in from other branches is skipped.
        """

    @abstractmethod
    def list_commits_between(self, start: str, end: str, ancestry_path: bool = False) -> list[str]:
        """Return commits reachable from ``end`` but not from ``start``, oldest first.

        With ``ancestry_path`` only commits that descend from ``start`` are kept.
        """

    # --- working tree mutation ------------------------------------------------

    @abstractmethod
    def switch_to_ref(self, ref: str) -> None:
        """Check out ``ref`` so later merges and rebases apply to it."""

    @abstractmethod
    def merge_ref(self, ref: str, fast_forward: bool, *messages: str) -> None:
        """Merge ``ref`` into the checked-out ref.

        With ``fast_forward`` the merge must not create a merge commit;
        otherwise a merge commit is always created, its message made of
        ``messages`` joined by blank lines.
        """

    @abstractmethod
    def rebase_ref(self, ref: str) -> None:
        """Replay the commits of ``ref`` onto the checked-out ref and advance it."""

    @abstractmethod
    def get_user_email(self) -> str:
        """Return the configured user's email address."""

    # --- notes ----------------------------------------------------------------

    @abstractmethod
    def read_note_blob(self, notes_ref: str, revision: str) -> str:
        """Return the raw note attached to a revision, or ``""`` if there is none."""

    @abstractmethod
    def write_note_blob(self, notes_ref: str, revision: str, blob: str) -> None:
        """Replace the note attached to a revision."""

    @abstractmethod
    def append_note_blob(self, notes_ref: str, revision: str, text: str) -> None:
        """Append text to the note attached to a revision."""

    @abstractmethod
    def list_noted_revisions(self, notes_ref: str) -> list[str]:
        """Return every revision with a note under ``notes_ref``."""

    # --- replication ----------------------------------------------------------

    @abstractmethod
    def fetch_notes(self, remote: str, notes_prefix: str, tracking_prefix: str) -> None:
        """Fetch ``<notes_prefix>/*`` from a remote into ``<tracking_prefix>/*``."""

    @abstractmethod
    def merge_notes(self, notes_ref: str, other_ref: str) -> None:
        """Union-merge the notes of ``other_ref`` into ``notes_ref``."""

    @abstractmethod
    def push_notes(self, remote: str, notes_prefix: str) -> None:
        """Push ``<notes_prefix>/*`` to a remote."""
