"""Tests for conflict prediction.

Every scenario builds a small real history and checks the prediction
against it.  Prediction must never change refs, the index or the
working tree.
"""

from __future__ import annotations

import pytest

from gzgit import (
    ConflictType,
    InvalidArgumentError,
    MergeDifficulty,
    RefNotFoundError,
)
from gzgit.models.merge import Conflict, difficulty_for
from gzgit.operations.conflicts import detect_conflicts, find_merge_base


def _diverge(repo, main_files, feature_files, *, base_files=None):
    """Commit ``base_files`` on main, then one commit on each side."""
    if base_files:
        repo.commit("base", base_files)
    repo.branch("feature")
    if main_files:
        repo.commit("main side", main_files)
    repo.checkout("feature")
    if feature_files:
        repo.commit("feature side", feature_files)
    repo.checkout("main")


# ---------------------------------------------------------------------------
# Difficulty
# ---------------------------------------------------------------------------


class TestDifficulty:
    def _conflicts(self, n, conflict_type=ConflictType.CONTENT):
        return [Conflict(path=f"f{i}", conflict_type=conflict_type) for i in range(n)]

    def test_fast_forward_is_trivial(self):
        assert difficulty_for([], can_fast_forward=True) == MergeDifficulty.TRIVIAL

    def test_no_conflicts_is_clean(self):
        assert difficulty_for([], can_fast_forward=False) == MergeDifficulty.CLEAN

    @pytest.mark.parametrize("n", [1, 2])
    def test_few_conflicts_are_moderate(self, n):
        assert difficulty_for(self._conflicts(n), can_fast_forward=False) == MergeDifficulty.MODERATE

    def test_three_conflicts_are_complex(self):
        assert difficulty_for(self._conflicts(3), can_fast_forward=False) == MergeDifficulty.COMPLEX

    def test_binary_conflict_is_complex(self):
        conflicts = self._conflicts(1, ConflictType.BINARY)
        assert difficulty_for(conflicts, can_fast_forward=False) == MergeDifficulty.COMPLEX


# ---------------------------------------------------------------------------
# Fast-forward and up-to-date
# ---------------------------------------------------------------------------


class TestFastForward:
    def test_source_ahead_fast_forwards(self, workspace, git_repo):
        git_repo.branch("feature")
        git_repo.checkout("feature")
        git_repo.commit("ahead", {"new.txt": "n\n"})
        git_repo.checkout("main")

        result = workspace.detect_conflicts("feature", "main")
        assert result.can_fast_forward is True
        assert result.up_to_date is False
        assert result.conflicts == []
        assert result.difficulty == MergeDifficulty.TRIVIAL
        assert result.merge_base == git_repo.rev("main")

    def test_source_behind_is_up_to_date(self, workspace, git_repo):
        git_repo.branch("old")
        git_repo.commit("ahead", {"new.txt": "n\n"})

        result = workspace.detect_conflicts("old", "main")
        assert result.up_to_date is True
        assert result.difficulty == MergeDifficulty.TRIVIAL

    def test_target_defaults_to_head(self, workspace, git_repo):
        git_repo.branch("same")
        result = workspace.detect_conflicts("same")
        assert result.target == "HEAD"
        assert result.up_to_date is True


# ---------------------------------------------------------------------------
# Diverged histories
# ---------------------------------------------------------------------------


class TestDiverged:
    def test_content_conflict(self, workspace, diverged):
        result = workspace.detect_conflicts("feature/x", "main")
        assert result.can_fast_forward is False
        assert result.conflict_paths == ["shared.txt"]
        assert result.conflicts[0].conflict_type == ConflictType.CONTENT
        assert result.difficulty == MergeDifficulty.MODERATE

    def test_disjoint_changes_are_clean(self, workspace, git_repo):
        _diverge(git_repo, {"a.txt": "a\n"}, {"b.txt": "b\n"})
        result = workspace.detect_conflicts("feature", "main")
        assert result.conflicts == []
        assert result.difficulty == MergeDifficulty.CLEAN

    def test_identical_changes_are_not_conflicts(self, workspace, git_repo):
        _diverge(
            git_repo,
            {"same.txt": "same\n", "a.txt": "a\n"},
            {"same.txt": "same\n", "b.txt": "b\n"},
        )
        assert workspace.detect_conflicts("feature", "main").conflicts == []

    def test_add_add(self, workspace, git_repo):
        _diverge(git_repo, {"new.txt": "ours\n"}, {"new.txt": "theirs\n"})
        result = workspace.detect_conflicts("feature", "main")
        assert result.conflicts == [Conflict(path="new.txt", conflict_type=ConflictType.ADD_ADD)]

    def test_modify_delete(self, workspace, git_repo):
        git_repo.commit("base", {"doomed.txt": "v1\n"})
        git_repo.branch("feature")
        git_repo.remove("doomed.txt", "delete on main")
        git_repo.checkout("feature")
        git_repo.commit("modify on feature", {"doomed.txt": "v2\n"})
        git_repo.checkout("main")

        result = workspace.detect_conflicts("feature", "main")
        assert result.conflicts[0].conflict_type == ConflictType.MODIFY_DELETE

    def test_both_deleted_is_not_a_conflict(self, workspace, git_repo):
        git_repo.commit("base", {"gone.txt": "v1\n"})
        git_repo.branch("feature")
        git_repo.remove("gone.txt", "delete on main")
        git_repo.commit("main extra", {"m.txt": "m\n"})
        git_repo.checkout("feature")
        git_repo.remove("gone.txt", "delete on feature")
        git_repo.checkout("main")

        assert workspace.detect_conflicts("feature", "main").conflicts == []

    def test_binary_conflict(self, workspace, git_repo):
        _diverge(
            git_repo,
            {"blob.bin": b"\x00\x01main"},
            {"blob.bin": b"\x00\x02feature"},
            base_files={"blob.bin": b"\x00\x00base"},
        )
        result = workspace.detect_conflicts("feature", "main")
        assert result.conflicts[0].conflict_type == ConflictType.BINARY
        assert result.difficulty == MergeDifficulty.COMPLEX

    def test_many_conflicts_sorted_and_complex(self, workspace, git_repo):
        base = {f"{name}.txt": "base\n" for name in ("c", "a", "b")}
        _diverge(
            git_repo,
            {name: "main\n" for name in base},
            {name: "feature\n" for name in base},
            base_files=base,
        )
        result = workspace.detect_conflicts("feature", "main")
        assert result.conflict_paths == ["a.txt", "b.txt", "c.txt"]
        assert result.difficulty == MergeDifficulty.COMPLEX

    def test_unrelated_histories(self, workspace, git_repo):
        git_repo.git("checkout", "-q", "--orphan", "other")
        git_repo.git("rm", "-rf", "-q", ".")
        git_repo.commit("unrelated root", {"README.md": "# other\n"})
        git_repo.checkout("main")

        result = workspace.detect_conflicts("other", "main")
        assert result.merge_base is None
        assert result.can_fast_forward is False
        assert result.conflicts == [Conflict(path="README.md", conflict_type=ConflictType.ADD_ADD)]


# ---------------------------------------------------------------------------
# Guarantees
# ---------------------------------------------------------------------------


class TestGuarantees:
    def test_idempotent(self, workspace, diverged):
        first = workspace.detect_conflicts("feature/x", "main")
        second = workspace.detect_conflicts("feature/x", "main")
        assert first == second

    def test_read_only(self, workspace, diverged):
        before = (diverged.rev("HEAD"), diverged.git("status", "--porcelain"))
        workspace.detect_conflicts("feature/x", "main")
        after = (diverged.rev("HEAD"), diverged.git("status", "--porcelain"))
        assert before == after
        assert workspace.state().value == "none"

    def test_unknown_source(self, workspace):
        with pytest.raises(RefNotFoundError, match="nope"):
            workspace.detect_conflicts("nope", "main")

    def test_unknown_target(self, workspace):
        with pytest.raises(RefNotFoundError) as exc_info:
            workspace.detect_conflicts("main", "missing")
        assert exc_info.value.ref == "missing"

    def test_empty_ref_rejected(self, workspace):
        with pytest.raises(InvalidArgumentError):
            workspace.detect_conflicts("", "main")

    def test_requires_repository(self):
        with pytest.raises(InvalidArgumentError):
            detect_conflicts(None, "a", "b")

    def test_merge_base_helper(self, workspace, diverged):
        base = find_merge_base(
            workspace.repository, diverged.rev("main"), diverged.rev("feature/x")
        )
        assert base == diverged.rev("main~1")
