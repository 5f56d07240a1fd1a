"""Replication of review notes between clones.

pull() fetches a remote's note refs into ``refs/notes/remotes/<remote>/``
and union-merges each namespace into the local ref, so concurrent writers
on different clones converge. push() publishes the local note refs.
"""

from __future__ import annotations

import logging

from revnotes_core.models import NAMESPACES
from revnotes_core.repository.base import Repo
from revnotes_store.repo import DEFAULT_REF_PREFIX

logger = logging.getLogger(__name__)

_NOTES_ROOT = "refs/notes/"


def tracking_prefix(remote: str, notes_prefix: str = DEFAULT_REF_PREFIX) -> str:
    """Where a remote's notes are fetched to, e.g. ``refs/notes/remotes/origin/devtools``."""
    suffix = notes_prefix[len(_NOTES_ROOT) :] if notes_prefix.startswith(_NOTES_ROOT) else notes_prefix
    return f"{_NOTES_ROOT}remotes/{remote}/{suffix.strip('/')}"


def pull(repo: Repo, remote: str = "origin", notes_prefix: str = DEFAULT_REF_PREFIX) -> list[str]:
    """Fetch and merge remote review notes. Returns the namespaces merged."""
    tracking = tracking_prefix(remote, notes_prefix)
    repo.fetch_notes(remote, notes_prefix, tracking)

    merged = []
    for namespace in NAMESPACES:
        remote_ref = f"{tracking}/{namespace}"
        if not repo.list_noted_revisions(remote_ref):
            continue
        repo.merge_notes(f"{notes_prefix}/{namespace}", remote_ref)
        merged.append(namespace)
    logger.info("Merged %d note namespace(s) from %s", len(merged), remote)
    return merged


def push(repo: Repo, remote: str = "origin", notes_prefix: str = DEFAULT_REF_PREFIX) -> None:
    repo.push_notes(remote, notes_prefix)
