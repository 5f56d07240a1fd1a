"""Writers: append new review records to the note store.

Every function here only ever adds a line; nothing already recorded is
changed. The resulting notes replicate with ordinary note fetch/push.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from revnotes_core.errors import NotFoundError, ValidationError
from revnotes_core.models import (
    ANALYSES,
    CI,
    CI_FAILURE,
    CI_SUCCESS,
    DISCUSS,
    REVIEWS,
    Analysis,
    CIStatus,
    Comment,
    Location,
    Request,
    encode,
    format_timestamp,
)
from revnotes_core.repository.base import Repo
from revnotes_core.review import Review
from revnotes_store.base import BaseNoteStore

logger = logging.getLogger(__name__)


def request_review(
    repo: Repo,
    store: BaseNoteStore,
    target_ref: str,
    review_ref: str | None = None,
    reviewers: Iterable[str] = (),
    description: str = "",
    requester: str | None = None,
) -> tuple[str, Request]:
    """Open a review of ``review_ref`` against ``target_ref``.

    The request is anchored on the oldest commit of the review ref that is
    not already on the target. Returns ``(anchor, request)``.
    """
    review_ref = review_ref or repo.get_head_ref()
    repo.verify_ref(target_ref)
    repo.verify_ref(review_ref)

    base = repo.merge_base(target_ref, review_ref)
    commits = repo.list_commits_between(base, review_ref)
    if not commits:
        raise NotFoundError(f"There are no commits on {review_ref} that are not already on {target_ref}.")
    anchor = commits[0]

    request = Request(
        timestamp=format_timestamp(),
        review_ref=review_ref,
        target_ref=target_ref,
        requester=requester or repo.get_user_email(),
        reviewers=list(reviewers),
        description=description,
        base_commit=base,
    )
    store.append(REVIEWS, anchor, encode(request))
    logger.info("Requested review of %s anchored at %s", review_ref, anchor[:12])
    return anchor, request


def _resolve_parent(review: Review, parent: str) -> str:
    matches = {c.hash for c in review.comments if c.hash.startswith(parent)}
    if len(matches) != 1:
        raise NotFoundError(f"No single comment matching {parent!r} in review {review.short_id}.")
    return matches.pop()


def add_comment(
    repo: Repo,
    store: BaseNoteStore,
    review: Review,
    description: str,
    parent: str | None = None,
    location: Location | None = None,
    resolved: bool | None = None,
    author: str | None = None,
) -> Comment:
    """Record a comment on ``review``. ``parent`` may be an abbreviated hash."""
    comment = Comment(
        timestamp=format_timestamp(),
        author=author or repo.get_user_email(),
        parent=_resolve_parent(review, parent) if parent else None,
        location=location,
        description=description,
        resolved=resolved,
    )
    comment.raw = encode(comment)
    store.append(DISCUSS, review.revision, comment.raw)
    return comment


def accept(
    repo: Repo, store: BaseNoteStore, review: Review, description: str = "", author: str | None = None
) -> Comment:
    return add_comment(repo, store, review, description, resolved=True, author=author)


def reject(
    repo: Repo, store: BaseNoteStore, review: Review, description: str = "", author: str | None = None
) -> Comment:
    return add_comment(repo, store, review, description, resolved=False, author=author)


def report_ci(store: BaseNoteStore, revision: str, url: str, status: str | None = None, agent: str = "") -> CIStatus:
    """Record a build result for ``revision``. A None status means pending."""
    if status is not None and status not in (CI_SUCCESS, CI_FAILURE):
        raise ValidationError(f"Unknown CI status {status!r}")
    record = CIStatus(timestamp=format_timestamp(), url=url, status=status, agent=agent)
    store.append(CI, revision, encode(record))
    return record


def add_analysis(store: BaseNoteStore, revision: str, url: str) -> Analysis:
    record = Analysis(timestamp=format_timestamp(), url=url)
    store.append(ANALYSES, revision, encode(record))
    return record
