"""Tests for revnotes-store: the merge rule and the store backends."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from revnotes_store.memory import MemoryNoteStore
from revnotes_store.merge import join_note, merge_lines, split_note
from revnotes_store.repo import DEFAULT_REF_PREFIX, RepoNoteStore

REV = "a" * 40

LINE_A = '{"timestamp":"0000000100","author":"alice@example.com","description":"first"}'
LINE_B = '{"timestamp":"0000000200","author":"bob@example.com","description":"second"}'
LINE_C = '{"timestamp":"0000000300","author":"carol@example.com","resolved":true}'


# ---------------------------------------------------------------------------
# merge_lines
# ---------------------------------------------------------------------------


class TestMergeLines:
    def test_idempotent(self):
        lines = [LINE_B, LINE_A]
        assert merge_lines(lines, lines) == merge_lines(lines, [])

    def test_commutative(self):
        assert merge_lines([LINE_A, LINE_C], [LINE_B]) == merge_lines([LINE_B], [LINE_A, LINE_C])

    def test_associative(self):
        a, b, c = [LINE_A], [LINE_B, "not json"], [LINE_C, LINE_A]
        assert merge_lines(merge_lines(a, b), c) == merge_lines(a, merge_lines(b, c))

    def test_exact_duplicates_collapse(self):
        assert merge_lines([LINE_A, LINE_A], [LINE_A]) == [LINE_A]

    def test_near_duplicates_are_kept(self):
        spaced = LINE_A.replace(",", ", ")
        assert merge_lines([LINE_A], [spaced]) == sorted([LINE_A, spaced])

    def test_malformed_lines_preserved_verbatim(self):
        assert "{broken" in merge_lines(["{broken"], [LINE_A])

    def test_timestamp_first_sorts_chronologically(self):
        merged = merge_lines([LINE_C, LINE_A], [LINE_B])
        assert merged == [LINE_A, LINE_B, LINE_C]

    def test_blank_lines_dropped(self):
        assert merge_lines(["", LINE_A], ["   "]) == [LINE_A]

    def test_replicas_converge_in_either_order(self):
        # Two clones append different comments to the same revision.
        base = [LINE_A]
        replica_1 = base + [LINE_B]
        replica_2 = base + [LINE_C]

        one_way = merge_lines(replica_1, replica_2)
        other_way = merge_lines(replica_2, replica_1)

        assert one_way == other_way
        assert one_way.count(LINE_B) == 1
        assert one_way.count(LINE_C) == 1


class TestNoteBlobs:
    def test_split_ignores_blank_paragraph_separators(self):
        assert split_note(f"{LINE_A}\n\n{LINE_B}\n") == [LINE_A, LINE_B]

    def test_split_empty(self):
        assert split_note("") == []
        assert split_note(None) == []

    def test_join_one_record_per_line(self):
        assert join_note([LINE_A, LINE_B]) == f"{LINE_A}\n{LINE_B}\n"


# ---------------------------------------------------------------------------
# MemoryNoteStore
# ---------------------------------------------------------------------------


class TestMemoryNoteStore:
    def test_read_missing_returns_empty(self):
        assert MemoryNoteStore().read("discuss", REV) == []

    def test_append_keeps_order(self):
        store = MemoryNoteStore()
        store.append("discuss", REV, LINE_B)
        store.append("discuss", REV, LINE_A)
        assert store.read("discuss", REV) == [LINE_B, LINE_A]

    def test_namespaces_isolated(self):
        store = MemoryNoteStore()
        store.append("discuss", REV, LINE_A)
        assert store.read("ci", REV) == []
        assert store.revisions("discuss") == [REV]
        assert store.revisions("ci") == []

    def test_append_rejects_multiline(self):
        with pytest.raises(ValueError):
            MemoryNoteStore().append("discuss", REV, f"{LINE_A}\n{LINE_B}")

    def test_read_returns_copy(self):
        store = MemoryNoteStore()
        store.append("discuss", REV, LINE_A)
        store.read("discuss", REV).append(LINE_B)
        assert store.read("discuss", REV) == [LINE_A]

    def test_reconcile_grows_only(self):
        store = MemoryNoteStore()
        store.append("discuss", REV, LINE_B)
        store.append("discuss", REV, LINE_A)

        merged = store.reconcile("discuss", REV, [LINE_C, LINE_A])

        assert merged == [LINE_A, LINE_B, LINE_C]
        assert store.read("discuss", REV) == merged

    def test_reconcile_twice_is_stable(self):
        store = MemoryNoteStore()
        store.append("discuss", REV, LINE_A)
        first = store.reconcile("discuss", REV, [LINE_B])
        second = store.reconcile("discuss", REV, [LINE_B])
        assert first == second


# ---------------------------------------------------------------------------
# RepoNoteStore
# ---------------------------------------------------------------------------


class TestRepoNoteStore:
    def test_reads_from_namespaced_ref(self):
        backend = MagicMock()
        backend.read_note_blob.return_value = f"{LINE_A}\n\n{LINE_B}\n"
        store = RepoNoteStore(backend)

        assert store.read("discuss", REV) == [LINE_A, LINE_B]
        backend.read_note_blob.assert_called_once_with(f"{DEFAULT_REF_PREFIX}/discuss", REV)

    def test_append_delegates(self):
        backend = MagicMock()
        store = RepoNoteStore(backend, ref_prefix="refs/notes/custom/")

        store.append("reviews", REV, LINE_A)

        backend.append_note_blob.assert_called_once_with("refs/notes/custom/reviews", REV, LINE_A)

    def test_append_rejects_multiline(self):
        backend = MagicMock()
        with pytest.raises(ValueError):
            RepoNoteStore(backend).append("reviews", REV, "a\nb")
        backend.append_note_blob.assert_not_called()

    def test_write_joins_lines(self):
        backend = MagicMock()
        RepoNoteStore(backend).write("ci", REV, [LINE_A, LINE_B])
        backend.write_note_blob.assert_called_once_with(f"{DEFAULT_REF_PREFIX}/ci", REV, f"{LINE_A}\n{LINE_B}\n")

    def test_reconcile_writes_merged_note(self):
        backend = MagicMock()
        backend.read_note_blob.return_value = f"{LINE_B}\n"
        store = RepoNoteStore(backend)

        merged = store.reconcile("discuss", REV, [LINE_A])

        assert merged == [LINE_A, LINE_B]
        backend.write_note_blob.assert_called_once_with(
            f"{DEFAULT_REF_PREFIX}/discuss", REV, f"{LINE_A}\n{LINE_B}\n"
        )

    def test_revisions_delegates(self):
        backend = MagicMock()
        backend.list_noted_revisions.return_value = [REV]
        assert RepoNoteStore(backend).revisions("reviews") == [REV]
        backend.list_noted_revisions.assert_called_once_with(f"{DEFAULT_REF_PREFIX}/reviews")
