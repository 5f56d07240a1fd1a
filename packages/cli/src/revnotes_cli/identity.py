"""Author resolution for new review records.

Resolution order (stops at first success):
  1. ``author`` from .revnotes.yml (or REVNOTES_AUTHOR, folded in by load_config)
  2. GIT_AUTHOR_EMAIL environment variable
  3. ``git config user.email`` of the repository
"""

from __future__ import annotations

import logging
import os

from revnotes_core.errors import GitError

logger = logging.getLogger(__name__)


def resolve_author(config: dict, repo) -> str | None:
    """Return the author email or None if no source is available.

    Never raises. Callers should check for None and emit a UsageError.
    """
    author = config.get("author")
    if author:
        return author

    author = os.environ.get("GIT_AUTHOR_EMAIL")
    if author:
        return author

    try:
        email = repo.get_user_email()
    except GitError as e:
        logger.debug("No user.email configured: %s", e)
        return None
    return email or None
