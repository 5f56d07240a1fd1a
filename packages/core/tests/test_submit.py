"""Tests for review submission."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from revnotes_core import review as reviews
from revnotes_core.errors import (
    ConflictingOptionsError,
    InvalidRefError,
    NonFastForwardError,
    NotAcceptedError,
)
from revnotes_core.models import DISCUSS, REVIEWS, Comment, Request, encode
from revnotes_core.repository.mock import MockRepo
from revnotes_core.submit import SubmitMode, submit, submit_mode
from revnotes_store.memory import MemoryNoteStore


def _make_scenario(master_is_ancestor=True, resolved=True):
    """Request anchored at R1 (feature), target master, description "fix bug"."""
    repo = MockRepo()
    base = repo.add_commit("initial", ref="master")
    r1 = repo.add_commit("fix bug", parents=[base], ref="feature")
    r2 = repo.add_commit("more fixes", parents=[r1], ref="feature")
    if not master_is_ancestor:
        repo.add_commit("someone else's change", parents=[base], ref="master")
    repo.head = "refs/heads/feature"

    store = MemoryNoteStore()
    request = Request(
        timestamp="0000000100",
        review_ref="refs/heads/feature",
        target_ref="refs/heads/master",
        requester="alice@example.com",
        description="fix bug",
        base_commit=base,
    )
    store.append(REVIEWS, r1, encode(request))
    if resolved is not None:
        store.append(DISCUSS, r1, encode(Comment(timestamp="0000000200", author="bob@example.com", resolved=resolved)))
    return repo, store, r1, r2


class TestSubmitMode:
    def test_default_is_fast_forward(self):
        assert submit_mode() is SubmitMode.FAST_FORWARD

    def test_merge(self):
        assert submit_mode(merge=True) is SubmitMode.MERGE

    def test_rebase(self):
        assert submit_mode(rebase=True) is SubmitMode.REBASE

    def test_both_conflict(self):
        with pytest.raises(ConflictingOptionsError):
            submit_mode(merge=True, rebase=True)

    def test_configured_default(self):
        assert submit_mode(default=SubmitMode.REBASE) is SubmitMode.REBASE


class TestSubmitGates:
    def test_both_modes_always_conflict(self):
        repo = MagicMock()
        review = MagicMock(resolved=True)
        with pytest.raises(ConflictingOptionsError):
            submit(repo, review, merge=True, rebase=True, force_unresolved=True)
        repo.switch_to_ref.assert_not_called()

    @pytest.mark.parametrize("resolved", [None, False])
    def test_not_accepted(self, resolved):
        repo, store, _, r2 = _make_scenario(resolved=resolved)
        review = reviews.get(repo, store, r2)
        with pytest.raises(NotAcceptedError):
            submit(repo, review)
        assert repo.head == "refs/heads/feature"

    def test_tbr_overrides_acceptance(self):
        repo, store, _, r2 = _make_scenario(resolved=False)
        review = reviews.get(repo, store, r2)
        assert submit(repo, review, force_unresolved=True) == r2

    def test_missing_target_ref(self):
        repo, store, _, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)
        del repo.refs["refs/heads/master"]
        with pytest.raises(InvalidRefError):
            submit(repo, review)

    def test_missing_source_ref(self):
        repo, store, _, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)
        del repo.refs["refs/heads/feature"]
        with pytest.raises(InvalidRefError):
            submit(repo, review)

    @pytest.mark.parametrize("resolved", [True, False, None])
    @pytest.mark.parametrize("mode", [{}, {"merge": True}, {"rebase": True}])
    def test_divergent_target_never_submits(self, resolved, mode):
        repo, store, _, r2 = _make_scenario(master_is_ancestor=False, resolved=resolved)
        review = reviews.get(repo, store, r2)
        master_before = repo.refs["refs/heads/master"]

        with pytest.raises(NonFastForwardError):
            submit(repo, review, force_unresolved=True, **mode)

        assert repo.refs["refs/heads/master"] == master_before
        assert repo.head == "refs/heads/feature"


class TestSubmitModes:
    def test_merge_creates_merge_commit(self):
        repo, store, r1, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)
        assert review.resolved is True

        new_head = submit(repo, review, merge=True)

        commit = repo.commits[new_head]
        assert commit.message.startswith("Submitting review " + r1[:12])
        assert commit.message.endswith("fix bug")
        assert len(commit.parents) == 2
        assert commit.parents[1] == r2
        assert repo.refs["refs/heads/master"] == new_head
        assert repo.head == "refs/heads/master"

    def test_fast_forward_moves_target_to_source(self):
        repo, store, _, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)

        new_head = submit(repo, review)

        assert new_head == r2
        assert repo.refs["refs/heads/master"] == r2
        assert repo.head == "refs/heads/master"

    def test_rebase_linearizes_history(self):
        repo, store, _, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)

        new_head = submit(repo, review, rebase=True)

        assert repo.refs["refs/heads/master"] == new_head
        assert all(len(repo.commits[c].parents) <= 1 for c in repo.list_ancestors(new_head))
        assert repo.commits[new_head].message == "more fixes"

    def test_default_mode_used_without_selectors(self):
        repo, store, _, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)

        new_head = submit(repo, review, default_mode=SubmitMode.MERGE)

        assert len(repo.commits[new_head].parents) == 2

    def test_submitted_review_reports_submitted(self):
        repo, store, _, r2 = _make_scenario()
        review = reviews.get(repo, store, r2)
        submit(repo, review)
        assert reviews.is_submitted(repo, reviews.get(repo, store, r2))


class TestSubmitCallSequence:
    def test_switches_before_mutating(self):
        review = MagicMock(resolved=True, revision="a" * 40)
        review.request.target_ref = "refs/heads/master"
        review.request.review_ref = "refs/heads/feature"
        review.request.description = ""
        repo = MagicMock()
        repo.is_ancestor.return_value = True
        calls = []
        repo.switch_to_ref.side_effect = lambda ref: calls.append(("switch", ref))
        repo.merge_ref.side_effect = lambda *args: calls.append(("merge", *args))

        submit(repo, review, merge=True)

        assert calls == [
            ("switch", "refs/heads/master"),
            ("merge", "refs/heads/feature", False, "Submitting review " + "a" * 12),
        ]
        repo.verify_ref.assert_any_call("refs/heads/master")
        repo.verify_ref.assert_any_call("refs/heads/feature")
        repo.is_ancestor.assert_called_once_with("refs/heads/master", "refs/heads/feature")

    def test_fast_forward_only_merge(self):
        review = MagicMock(resolved=True, revision="a" * 40)
        review.request.target_ref = "refs/heads/master"
        review.request.review_ref = "refs/heads/feature"
        repo = MagicMock()
        repo.is_ancestor.return_value = True

        submit(repo, review)

        repo.merge_ref.assert_called_once_with("refs/heads/feature", True)
        repo.rebase_ref.assert_not_called()


class TestSubmitAfterMergingTarget:
    def test_submits_own_review_not_the_merged_one(self):
        repo = MockRepo()
        base = repo.add_commit("initial", ref="master")
        x1 = repo.add_commit("start x", parents=[base], ref="x")
        y1 = repo.add_commit("start y", parents=[base], ref="y")
        store = MemoryNoteStore()
        for anchor, ref in ((x1, "refs/heads/x"), (y1, "refs/heads/y")):
            store.append(
                REVIEWS, anchor, encode(Request(timestamp="0000000100", review_ref=ref, target_ref="refs/heads/master"))
            )
        repo.refs["refs/heads/master"] = y1
        merge = repo.add_commit("merge master into x", parents=[x1, y1], ref="x")
        repo.head = "refs/heads/x"

        review = reviews.get_current(repo, store)
        assert review.revision == x1

        assert submit(repo, review, force_unresolved=True) == merge
        assert repo.refs["refs/heads/master"] == merge
