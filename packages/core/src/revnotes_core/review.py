"""Review aggregation: project scattered notes into one Review.

A review is never stored as such. Its pieces live in four note namespaces
attached to different commits and arrive from different clones:

- the Request, on the review's first commit (the anchor),
- Comments, CI statuses and analyses, on any commit that descends from the
  anchor and leads to the current head of the review ref. Commits merged in
  from the target do not count.

get() rebuilds the whole view on every call. It is a pure read: nothing is
cached and nothing is written, so it is safe to call repeatedly.

Ordering: records are ordered by a stable sort on their timestamp. Records
with equal timestamps keep the order in which they were read (note line
order within a revision, revisions oldest first), and the later one wins
wherever "latest" matters (Resolved, CI status per agent).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from revnotes_core.errors import NotFoundError
from revnotes_core.models import (
    ANALYSES,
    CI,
    DISCUSS,
    REVIEWS,
    Analysis,
    CIStatus,
    Comment,
    Request,
    decode_all,
    timestamp_key,
)
from revnotes_core.repository.base import Repo
from revnotes_store.base import BaseNoteStore

logger = logging.getLogger(__name__)


class ReviewState(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    SUBMITTED = "submitted"


@dataclass
class CommentThread:
    """A comment plus every reply to it, replies in chronological order."""

    hash: str
    comment: Comment
    children: list[CommentThread] = field(default_factory=list)


@dataclass
class Review:
    """The current state of one review, derived from notes."""

    revision: str  # anchor: the commit carrying the Request
    request: Request
    source: str  # current head of the review ref (the anchor if the ref is gone)
    comments: list[Comment] = field(default_factory=list)
    threads: list[CommentThread] = field(default_factory=list)
    ci_statuses: dict[str, CIStatus] = field(default_factory=dict)
    analyses: list[Analysis] = field(default_factory=list)
    resolved: bool | None = None

    @property
    def short_id(self) -> str:
        return self.revision[:12]


def build_threads(comments: list[Comment]) -> list[CommentThread]:
    """Link comments into a forest through their ``parent`` hashes.

    A comment whose parent is not among ``comments`` becomes a root of its
    own, so replies to comments we have not fetched yet are still shown.
    """
    threads: dict[str, CommentThread] = {}
    for comment in comments:
        threads.setdefault(comment.hash, CommentThread(hash=comment.hash, comment=comment))

    roots = []
    for thread in threads.values():
        parent = thread.comment.parent
        if parent and parent != thread.hash and parent in threads:
            threads[parent].children.append(thread)
        else:
            if parent and parent not in threads:
                logger.debug("Comment %s replies to unknown comment %s", thread.hash[:12], parent[:12])
            roots.append(thread)

    for thread in threads.values():
        thread.children.sort(key=lambda t: timestamp_key(t.comment))
    roots.sort(key=lambda t: timestamp_key(t.comment))
    return roots


def derive_resolved(comments: list[Comment]) -> bool | None:
    """Return the chronologically last explicit ``resolved`` value, or None."""
    resolved = None
    for comment in sorted(comments, key=timestamp_key):
        if comment.resolved is not None:
            resolved = comment.resolved
    return resolved


def latest_ci_statuses(statuses: list[CIStatus]) -> dict[str, CIStatus]:
    """Keep only the most recent status reported by each agent."""
    latest: dict[str, CIStatus] = {}
    for status in sorted(statuses, key=timestamp_key):
        latest[status.agent] = status
    return latest


def _unique_lines(store: BaseNoteStore, namespace: str, revisions: list[str]) -> list[str]:
    seen: set[str] = set()
    lines = []
    for revision in revisions:
        for line in store.read(namespace, revision):
            if line not in seen:
                seen.add(line)
                lines.append(line)
    return lines


def find_request(repo: Repo, store: BaseNoteStore, revision: str) -> tuple[str, Request]:
    """Walk back from ``revision`` to the nearest commit carrying a Request.

    Only first-parent history is walked, so reviews that were merged in from
    the target are not mistaken for the one ``revision`` belongs to.

    Returns ``(anchor, request)``. When the anchor holds several requests
    the latest one wins. Raises NotFoundError if no ancestor has one.
    """
    for ancestor in repo.list_ancestors(revision, first_parent=True):
        requests = decode_all(Request, store.read(REVIEWS, ancestor))
        if requests:
            return ancestor, sorted(requests, key=timestamp_key)[-1]
    raise NotFoundError(f"No review request found for {revision[:12]} or any of its ancestors.")


def get(repo: Repo, store: BaseNoteStore, revision: str) -> Review:
    """Build the Review that ``revision`` belongs to."""
    anchor, request = find_request(repo, store, repo.resolve_ref(revision))

    source = anchor
    if request.review_ref and repo.ref_exists(request.review_ref):
        source = repo.resolve_ref(request.review_ref)
    else:
        logger.debug("Review ref %r is gone; using the anchor revision", request.review_ref)

    revisions = [anchor]
    if source != anchor:
        revisions += [rev for rev in repo.list_commits_between(anchor, source, ancestry_path=True) if rev != anchor]

    comments = decode_all(Comment, _unique_lines(store, DISCUSS, revisions))
    comments.sort(key=timestamp_key)

    return Review(
        revision=anchor,
        request=request,
        source=source,
        comments=comments,
        threads=build_threads(comments),
        ci_statuses=latest_ci_statuses(decode_all(CIStatus, _unique_lines(store, CI, revisions))),
        analyses=decode_all(Analysis, _unique_lines(store, ANALYSES, revisions)),
        resolved=derive_resolved(comments),
    )


def get_current(repo: Repo, store: BaseNoteStore) -> Review:
    """Build the Review for the checked-out commit."""
    return get(repo, store, "HEAD")


def list_all(repo: Repo, store: BaseNoteStore) -> list[Review]:
    """Return every review in the repository, oldest request first."""
    reviews = []
    for revision in store.revisions(REVIEWS):
        if not decode_all(Request, store.read(REVIEWS, revision)):
            continue
        if not repo.ref_exists(revision):
            logger.warning("Skipping review on unknown revision %s", revision[:12])
            continue
        reviews.append(get(repo, store, revision))
    reviews.sort(key=lambda r: timestamp_key(r.request))
    return reviews


def is_submitted(repo: Repo, review: Review) -> bool:
    """A review is submitted once its source is contained in its target."""
    target = review.request.target_ref
    return repo.ref_exists(target) and repo.is_ancestor(review.source, target)


def list_open(repo: Repo, store: BaseNoteStore) -> list[Review]:
    return [r for r in list_all(repo, store) if not is_submitted(repo, r)]


def review_state(repo: Repo, review: Review) -> ReviewState:
    if is_submitted(repo, review):
        return ReviewState.SUBMITTED
    if review.resolved is True:
        return ReviewState.ACCEPTED
    return ReviewState.OPEN
