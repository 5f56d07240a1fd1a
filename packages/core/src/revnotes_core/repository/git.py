"""GitRepo: the repository contract implemented with the git executable.

Every operation shells out to ``git`` in the repository directory. A
failing command raises GitError carrying git's stderr, except where the
exit status is itself the answer (ancestry tests, missing notes, refs that
do not exist).
"""

from __future__ import annotations

import logging
import subprocess

from revnotes_core.errors import GitError, InvalidRefError
from revnotes_core.repository.base import Repo

logger = logging.getLogger(__name__)

_BRANCH_PREFIX = "refs/heads/"


class GitRepo(Repo):
    """A local git checkout."""

    def __init__(self, path: str = "."):
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _run(self, *args: str, check: bool = True, input: str | None = None) -> subprocess.CompletedProcess:
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self._path,
                capture_output=True,
                text=True,
                input=input,
            )
        except FileNotFoundError as e:
            # Either git is not installed or the repository path does not exist.
            raise GitError(list(args), 127, str(e)) from e
        if check and result.returncode != 0:
            raise GitError(list(args), result.returncode, result.stderr)
        return result

    def _output(self, *args: str) -> str:
        return self._run(*args).stdout.strip()

    # --- refs and history ---------------------------------------------------

    def get_head_ref(self) -> str:
        return self._output("symbolic-ref", "HEAD")

    def resolve_ref(self, ref: str) -> str:
        result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", check=False)
        if result.returncode != 0:
            raise InvalidRefError(ref)
        return result.stdout.strip()

    def ref_exists(self, ref: str) -> bool:
        result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", check=False)
        return result.returncode == 0

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        args = ("merge-base", "--is-ancestor", ancestor, descendant)
        result = self._run(*args, check=False)
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise GitError(list(args), result.returncode, result.stderr)

    def merge_base(self, first: str, second: str) -> str:
        return self._output("merge-base", first, second)

    def list_ancestors(self, revision: str, first_parent: bool = False) -> list[str]:
        if first_parent:
            return self._output("rev-list", "--first-parent", revision).split()
        return self._output("rev-list", revision).split()

    def list_commits_between(self, start: str, end: str, ancestry_path: bool = False) -> list[str]:
        flags = ["--ancestry-path"] if ancestry_path else []
        return self._output("rev-list", "--reverse", *flags, f"{start}..{end}").split()

    # --- working tree mutation ------------------------------------------------

    def switch_to_ref(self, ref: str) -> None:
        # A full branch name would check out a detached HEAD.
        if ref.startswith(_BRANCH_PREFIX):
            ref = ref[len(_BRANCH_PREFIX) :]
        logger.info("Switching to %s", ref)
        self._run("checkout", ref)

    def merge_ref(self, ref: str, fast_forward: bool, *messages: str) -> None:
        args = ["merge"]
        if fast_forward:
            args += ["--ff", "--ff-only"]
        else:
            args.append("--no-ff")
        if messages:
            args += ["-m", "\n\n".join(messages)]
        args.append(ref)
        logger.info("Merging %s (fast-forward only: %s)", ref, fast_forward)
        self._run(*args)

    def rebase_ref(self, ref: str) -> None:
        branch = self.get_head_ref()
        if branch.startswith(_BRANCH_PREFIX):
            branch = branch[len(_BRANCH_PREFIX) :]
        logger.info("Rebasing %s onto %s", ref, branch)
        # Replay on a detached checkout so the source ref itself is untouched.
        self._run("checkout", "--quiet", "--detach", ref)
        self._run("rebase", branch)
        rebased = self._output("rev-parse", "HEAD")
        self._run("checkout", "--quiet", branch)
        self._run("merge", "--ff-only", rebased)

    def get_user_email(self) -> str:
        return self._output("config", "user.email")

    # --- notes ----------------------------------------------------------------

    def read_note_blob(self, notes_ref: str, revision: str) -> str:
        result = self._run("notes", "--ref", notes_ref, "show", revision, check=False)
        if result.returncode != 0:
            return ""
        return result.stdout

    def write_note_blob(self, notes_ref: str, revision: str, blob: str) -> None:
        self._run("notes", "--ref", notes_ref, "add", "-f", "-F", "-", revision, input=blob)

    def append_note_blob(self, notes_ref: str, revision: str, text: str) -> None:
        self._run("notes", "--ref", notes_ref, "append", "-m", text, revision)

    def list_noted_revisions(self, notes_ref: str) -> list[str]:
        result = self._run("notes", "--ref", notes_ref, "list", check=False)
        if result.returncode != 0:
            return []
        revisions = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) == 2:
                revisions.append(parts[1])
        return revisions

    # --- replication ----------------------------------------------------------

    def fetch_notes(self, remote: str, notes_prefix: str, tracking_prefix: str) -> None:
        self._run("fetch", "--quiet", remote, f"+{notes_prefix}/*:{tracking_prefix}/*")

    def merge_notes(self, notes_ref: str, other_ref: str) -> None:
        # cat_sort_uniq is git's built-in form of revnotes_store.merge.merge_lines.
        self._run("notes", "--ref", notes_ref, "merge", "--quiet", "-s", "cat_sort_uniq", other_ref)

    def push_notes(self, remote: str, notes_prefix: str) -> None:
        self._run("push", remote, f"{notes_prefix}/*:{notes_prefix}/*")
