"""Submission: fold an accepted review into its target ref.

A review moves Open -> Accepted -> Submitted. Open and Accepted are
derived from comments (see review.derive_resolved); Submitted is reached
only here, by advancing the target ref to include the review's source.

Preconditions are checked in order and the first failure aborts:

1. at most one of merge / rebase is selected,
2. the review is accepted (Resolved is exactly True) unless forced,
3. both target and source refs resolve,
4. the target is an ancestor of the source; submission never rebases to
   make this true; the author must first merge the target in.

Only then is the target checked out and mutated. There is no rollback: if
the mutation fails the working tree stays on the target ref.
"""

from __future__ import annotations

import logging
from enum import Enum

from revnotes_core.errors import ConflictingOptionsError, NonFastForwardError, NotAcceptedError
from revnotes_core.repository.base import Repo
from revnotes_core.review import Review

logger = logging.getLogger(__name__)


class SubmitMode(str, Enum):
    MERGE = "merge"
    REBASE = "rebase"
    FAST_FORWARD = "fast-forward"


def submit_mode(merge: bool = False, rebase: bool = False, default: SubmitMode = SubmitMode.FAST_FORWARD) -> SubmitMode:
    """Turn the mutually exclusive merge/rebase selectors into a mode."""
    if merge and rebase:
        raise ConflictingOptionsError("Only one of --merge or --rebase is allowed.")
    if merge:
        return SubmitMode.MERGE
    if rebase:
        return SubmitMode.REBASE
    return default


def submit_message(review: Review) -> str:
    return f"Submitting review {review.revision[:12]}"


def submit(
    repo: Repo,
    review: Review,
    merge: bool = False,
    rebase: bool = False,
    force_unresolved: bool = False,
    default_mode: SubmitMode = SubmitMode.FAST_FORWARD,
) -> str:
    """Submit ``review`` and return the new revision of its target ref."""
    mode = submit_mode(merge, rebase, default=default_mode)

    if not force_unresolved and review.resolved is not True:
        raise NotAcceptedError("Not submitting as the review has not yet been accepted.")

    target = review.request.target_ref
    source = review.request.review_ref
    repo.verify_ref(target)
    repo.verify_ref(source)

    if not repo.is_ancestor(target, source):
        raise NonFastForwardError("Refusing to submit a non-fast-forward review. First merge the target ref.")

    repo.switch_to_ref(target)
    logger.info("Submitting review %s into %s by %s", review.short_id, target, mode.value)
    if mode is SubmitMode.MERGE:
        messages = [submit_message(review)]
        if review.request.description:
            messages.append(review.request.description)
        repo.merge_ref(source, False, *messages)
    elif mode is SubmitMode.REBASE:
        repo.rebase_ref(source)
    else:
        repo.merge_ref(source, True)

    return repo.resolve_ref(target)
