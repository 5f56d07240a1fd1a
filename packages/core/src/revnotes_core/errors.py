"""Error taxonomy for review operations.

Only ValidationError is recovered locally (the offending note line is
skipped while reading). Everything else propagates to the caller, which
reports the message and exits non-zero.
"""

from __future__ import annotations


class RevnotesError(Exception):
    """Base class for every error raised by revnotes."""


class ValidationError(RevnotesError):
    """A note line is not a well-formed record of the expected kind."""


class NotFoundError(RevnotesError):
    """No review request could be located."""


class InvalidRefError(RevnotesError):
    """A named reference does not resolve to a revision."""

    def __init__(self, ref: str):
        super().__init__(f"Reference {ref!r} does not resolve to a revision.")
        self.ref = ref


class NonFastForwardError(RevnotesError):
    """The target ref is not an ancestor of the review's source ref."""


class NotAcceptedError(RevnotesError):
    """Submission attempted for a review that has not been accepted."""


class ConflictingOptionsError(RevnotesError):
    """Mutually exclusive submission modes were both selected."""


class GitError(RevnotesError):
    """A git plumbing command failed."""

    def __init__(self, args: list[str], returncode: int, stderr: str = ""):
        message = f"git {' '.join(args)} failed with exit status {returncode}"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr
