"""MockRepo: an in-memory repository for tests and dry runs.

Models just enough of git to exercise review logic: a commit DAG with
monotonically increasing commit times, branch refs, a checked-out ref,
notes refs, and named remotes that are themselves MockRepos.
"""

from __future__ import annotations

import hashlib
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from revnotes_core.errors import GitError, InvalidRefError
from revnotes_core.repository.base import Repo
from revnotes_store.merge import join_note, merge_lines, split_note

logger = logging.getLogger(__name__)


@dataclass
class MockCommit:
    hash: str
    message: str
    parents: list[str] = field(default_factory=list)
    time: int = 0


class MockRepo(Repo):
    """A fake repository whose state lives in plain dicts."""

    def __init__(self, user_email: str = "user@example.com", head: str = "refs/heads/master"):
        self.user_email = user_email
        self.head = head
        self.commits: dict[str, MockCommit] = {}
        self.refs: dict[str, str] = {}
        self.notes: dict[str, dict[str, str]] = {}
        self.remotes: dict[str, MockRepo] = {}
        self._clock = 0

    # --- fixture helpers ------------------------------------------------------

    def add_commit(self, message: str, parents: Iterable[str] = (), ref: str | None = None) -> str:
        """Create a commit and optionally point ``ref`` at it. Returns its hash."""
        parents = list(parents)
        for parent in parents:
            if parent not in self.commits:
                raise InvalidRefError(parent)
        self._clock += 1
        seed = f"{message}\0{' '.join(parents)}\0{self._clock}".encode()
        commit = MockCommit(
            hash=hashlib.sha1(seed).hexdigest(),
            message=message,
            parents=parents,
            time=self._clock,
        )
        self.commits[commit.hash] = commit
        if ref is not None:
            self.refs[self._full_name(ref)] = commit.hash
        return commit.hash

    def add_remote(self, name: str, remote: MockRepo) -> None:
        self.remotes[name] = remote

    def _full_name(self, ref: str) -> str:
        if ref == "HEAD":
            return self.head
        if ref.startswith("refs/"):
            return ref
        return f"refs/heads/{ref}"

    def _reachable(self, revision: str) -> set[str]:
        seen: set[str] = set()
        queue = deque([revision])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self.commits[current].parents)
        return seen

    def _by_time(self, hashes: Iterable[str], newest_first: bool) -> list[str]:
        return sorted(hashes, key=lambda h: self.commits[h].time, reverse=newest_first)

    def _remote(self, name: str) -> MockRepo:
        try:
            return self.remotes[name]
        except KeyError:
            raise GitError(["fetch", name], 128, f"'{name}' does not appear to be a git repository") from None

    # --- refs and history ---------------------------------------------------

    def get_head_ref(self) -> str:
        return self.head

    def resolve_ref(self, ref: str) -> str:
        name = self._full_name(ref)
        if name in self.refs:
            return self.refs[name]
        if ref in self.commits:
            return ref
        raise InvalidRefError(ref)

    def ref_exists(self, ref: str) -> bool:
        return self._full_name(ref) in self.refs or ref in self.commits

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return self.resolve_ref(ancestor) in self._reachable(self.resolve_ref(descendant))

    def merge_base(self, first: str, second: str) -> str:
        common = self._reachable(self.resolve_ref(first)) & self._reachable(self.resolve_ref(second))
        if not common:
            raise GitError(["merge-base", first, second], 1)
        return self._by_time(common, newest_first=True)[0]

    def list_ancestors(self, revision: str, first_parent: bool = False) -> list[str]:
        current = self.resolve_ref(revision)
        if not first_parent:
            return self._by_time(self._reachable(current), newest_first=True)
        chain = [current]
        while self.commits[chain[-1]].parents:
            chain.append(self.commits[chain[-1]].parents[0])
        return chain

    def list_commits_between(self, start: str, end: str, ancestry_path: bool = False) -> list[str]:
        start = self.resolve_ref(start)
        excluded = self._reachable(start)
        commits = self._reachable(self.resolve_ref(end)) - excluded
        if ancestry_path:
            commits = {c for c in commits if start in self._reachable(c)}
        return self._by_time(commits, newest_first=False)

    # --- working tree mutation ------------------------------------------------

    def switch_to_ref(self, ref: str) -> None:
        name = self._full_name(ref)
        if name not in self.refs:
            raise InvalidRefError(ref)
        self.head = name

    def merge_ref(self, ref: str, fast_forward: bool, *messages: str) -> None:
        source = self.resolve_ref(ref)
        current = self.refs[self.head]
        if self.is_ancestor(source, current):
            return  # already up to date
        if fast_forward:
            if not self.is_ancestor(current, source):
                raise GitError(["merge", "--ff-only", ref], 128, "Not possible to fast-forward, aborting.")
            self.refs[self.head] = source
            return
        message = "\n\n".join(messages) or f"Merge {ref}"
        self.refs[self.head] = self.add_commit(message, parents=[current, source])

    def rebase_ref(self, ref: str) -> None:
        tip = self.refs[self.head]
        for commit_hash in self.list_commits_between(tip, ref):
            commit = self.commits[commit_hash]
            if len(commit.parents) > 1:
                continue  # rebase drops merge commits
            tip = self.add_commit(commit.message, parents=[tip])
        self.refs[self.head] = tip

    def get_user_email(self) -> str:
        return self.user_email

    # --- notes ----------------------------------------------------------------

    def read_note_blob(self, notes_ref: str, revision: str) -> str:
        return self.notes.get(notes_ref, {}).get(revision, "")

    def write_note_blob(self, notes_ref: str, revision: str, blob: str) -> None:
        notes = self.notes.setdefault(notes_ref, {})
        if blob.strip():
            notes[revision] = blob
        else:
            notes.pop(revision, None)

    def append_note_blob(self, notes_ref: str, revision: str, text: str) -> None:
        notes = self.notes.setdefault(notes_ref, {})
        existing = notes.get(revision, "")
        # Like `git notes append`, separate paragraphs with a blank line.
        notes[revision] = f"{existing}\n{text}\n" if existing else f"{text}\n"

    def list_noted_revisions(self, notes_ref: str) -> list[str]:
        return list(self.notes.get(notes_ref, {}))

    # --- replication ----------------------------------------------------------

    def fetch_notes(self, remote: str, notes_prefix: str, tracking_prefix: str) -> None:
        other = self._remote(remote)
        prefix = notes_prefix.rstrip("/") + "/"
        for ref, notes in other.notes.items():
            if ref.startswith(prefix):
                self.notes[tracking_prefix.rstrip("/") + "/" + ref[len(prefix) :]] = dict(notes)

    def merge_notes(self, notes_ref: str, other_ref: str) -> None:
        if other_ref not in self.notes:
            raise InvalidRefError(other_ref)
        local = self.notes.setdefault(notes_ref, {})
        for revision, blob in self.notes[other_ref].items():
            merged = merge_lines(split_note(local.get(revision)), split_note(blob))
            local[revision] = join_note(merged)

    def push_notes(self, remote: str, notes_prefix: str) -> None:
        other = self._remote(remote)
        prefix = notes_prefix.rstrip("/") + "/"
        for ref, notes in self.notes.items():
            if not ref.startswith(prefix):
                continue
            theirs = other.notes.get(ref, {})
            for revision, blob in theirs.items():
                if not set(split_note(blob)) <= set(split_note(notes.get(revision))):
                    raise GitError(["push", remote, ref], 1, f"! [rejected] {ref} (non-fast-forward)")
            other.notes[ref] = dict(notes)
