"""Tests for note replication between clones."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from revnotes_core import review as reviews, sync
from revnotes_core.errors import GitError
from revnotes_core.models import DISCUSS, REVIEWS, Comment, Request, encode
from revnotes_core.repository.mock import MockRepo
from revnotes_store.repo import RepoNoteStore


def _make_clones():
    """A shared remote plus two clones with the same single commit."""
    origin = MockRepo()
    clones = []
    for email in ("alice@example.com", "bob@example.com"):
        clone = MockRepo(user_email=email)
        clone.add_commit("initial", ref="master")
        clone.add_remote("origin", origin)
        clones.append(clone)
    revision = clones[0].resolve_ref("master")
    assert clones[1].resolve_ref("master") == revision
    return origin, clones[0], clones[1], revision


class TestTrackingPrefix:
    def test_default(self):
        assert sync.tracking_prefix("origin") == "refs/notes/remotes/origin/devtools"

    def test_custom_prefix(self):
        assert sync.tracking_prefix("upstream", "refs/notes/review/") == "refs/notes/remotes/upstream/review"


class TestPullAndPush:
    def test_concurrent_comments_converge(self):
        origin, alice, bob, revision = _make_clones()
        alice_line = encode(Comment(timestamp="0000000100", author="alice@example.com", description="one"))
        bob_line = encode(Comment(timestamp="0000000200", author="bob@example.com", description="two"))
        RepoNoteStore(alice).append(DISCUSS, revision, alice_line)
        RepoNoteStore(bob).append(DISCUSS, revision, bob_line)

        sync.push(alice)
        with pytest.raises(GitError, match="rejected"):
            sync.push(bob)

        assert sync.pull(bob) == [DISCUSS]
        sync.push(bob)
        sync.pull(alice)

        for clone in (alice, bob):
            lines = RepoNoteStore(clone).read(DISCUSS, revision)
            assert sorted(lines) == sorted([alice_line, bob_line])

    def test_pull_is_idempotent(self):
        origin, alice, bob, revision = _make_clones()
        line = encode(Comment(timestamp="0000000100", description="once"))
        RepoNoteStore(alice).append(DISCUSS, revision, line)
        sync.push(alice)

        sync.pull(bob)
        sync.pull(bob)

        assert RepoNoteStore(bob).read(DISCUSS, revision) == [line]

    def test_pull_with_nothing_on_remote(self):
        _, alice, _, _ = _make_clones()
        assert sync.pull(alice) == []

    def test_pulled_review_is_visible(self):
        origin, alice, bob, _ = _make_clones()
        base = alice.resolve_ref("master")
        for clone in (alice, bob):
            clone.add_commit("fix", parents=[base], ref="feature")
        anchor = alice.resolve_ref("feature")
        request = Request(timestamp="0000000100", review_ref="refs/heads/feature", target_ref="refs/heads/master")
        RepoNoteStore(alice).append(REVIEWS, anchor, encode(request))
        sync.push(alice)

        sync.pull(bob)

        assert reviews.get(bob, RepoNoteStore(bob), "refs/heads/feature").revision == anchor

    def test_pull_calls_repo_in_order(self):
        repo = MagicMock()
        repo.list_noted_revisions.side_effect = lambda ref: ["a" * 40] if ref.endswith("/ci") else []

        assert sync.pull(repo, "upstream") == ["ci"]

        repo.fetch_notes.assert_called_once_with(
            "upstream", "refs/notes/devtools", "refs/notes/remotes/upstream/devtools"
        )
        repo.merge_notes.assert_called_once_with(
            "refs/notes/devtools/ci", "refs/notes/remotes/upstream/devtools/ci"
        )
