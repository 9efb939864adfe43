"""Merge and rebase domain models for gzgit.

Defines conflict predictions, merge difficulty, the live merge state of a
working copy, and the options and outcomes of merge and rebase execution.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel


class ConflictType(str, enum.Enum):
    """Kinds of predicted path conflicts."""

    CONTENT = "content"
    ADD_ADD = "add/add"
    MODIFY_DELETE = "modify/delete"
    BINARY = "binary"

    def __repr__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class MergeDifficulty(str, enum.Enum):
    """How hard a merge is expected to be."""

    TRIVIAL = "trivial"
    CLEAN = "clean"
    MODERATE = "moderate"
    COMPLEX = "complex"

    def __str__(self) -> str:
        return self.value


class MergeState(str, enum.Enum):
    """In-progress operation of a working copy, read live from disk."""

    NONE = "none"
    MERGING = "merging"
    REBASING = "rebasing"

    def __str__(self) -> str:
        return self.value


class MergeStrategy(str, enum.Enum):
    """Merge strategies supported by ``execute``."""

    FAST_FORWARD = "fast-forward"
    RECURSIVE = "recursive"
    OURS = "ours"
    THEIRS = "theirs"
    OCTOPUS = "octopus"

    def __str__(self) -> str:
        return self.value


class Conflict(BaseModel):
    """A path both sides changed since their common ancestor."""

    model_config = {"frozen": True}

    path: str
    conflict_type: ConflictType

    def __str__(self) -> str:
        return f"{self.path} ({self.conflict_type.value})"


def difficulty_for(conflicts: list[Conflict], *, can_fast_forward: bool) -> MergeDifficulty:
    """Derive merge difficulty from the conflict count and mix."""
    if can_fast_forward:
        return MergeDifficulty.TRIVIAL
    if not conflicts:
        return MergeDifficulty.CLEAN
    if len(conflicts) >= 3 or any(
        c.conflict_type == ConflictType.BINARY for c in conflicts
    ):
        return MergeDifficulty.COMPLEX
    return MergeDifficulty.MODERATE


class MergeResult(BaseModel):
    """Advisory prediction for merging ``source`` into ``target``.

    Produced without touching refs, the index or the working tree.
    """

    model_config = {"frozen": True}

    source: str
    target: str
    source_revision: str
    target_revision: str
    merge_base: Optional[str] = None  # None when histories are unrelated
    can_fast_forward: bool = False
    up_to_date: bool = False  # Source already contained in target
    conflicts: list[Conflict] = []
    difficulty: MergeDifficulty = MergeDifficulty.CLEAN

    @property
    def conflict_paths(self) -> list[str]:
        return [c.path for c in self.conflicts]

    def __repr__(self) -> str:
        return (
            f"MergeResult({self.source}->{self.target} "
            f"ff={self.can_fast_forward} conflicts={len(self.conflicts)} "
            f"{self.difficulty.value})"
        )

    def __str__(self) -> str:
        if self.can_fast_forward:
            return f"merge {self.source}->{self.target}: fast-forward"
        return (
            f"merge {self.source}->{self.target}: "
            f"{len(self.conflicts)} potential conflict(s), {self.difficulty.value}"
        )


@dataclass(frozen=True)
class ExecuteOptions:
    """Options for executing a merge.

    Attributes:
        strategy: Merge strategy.  ``theirs`` resolves conflicting hunks
            in favour of the incoming branch.
        no_ff: Always create a merge commit.
        squash: Stage the combined changes without committing a merge.
        no_commit: Stop before creating the merge commit.
        dry_run: Resolve and predict, but do not run the merge.
        message: Merge commit message.  None uses git's default.
        extra_branches: Additional heads for the octopus strategy.
    """

    strategy: MergeStrategy = MergeStrategy.RECURSIVE
    no_ff: bool = False
    squash: bool = False
    no_commit: bool = False
    dry_run: bool = False
    message: Optional[str] = None
    extra_branches: tuple[str, ...] = ()


@dataclass(frozen=True)
class RebaseOptions:
    """Options for rebasing the current branch.

    Attributes:
        interactive: Hand the terminal to ``git rebase -i``.
        dry_run: Resolve and predict, but do not rebase.
    """

    interactive: bool = False
    dry_run: bool = False


class MergeOutcome(BaseModel):
    """Result of ``execute``."""

    status: Literal["fast_forward", "merged", "squashed", "staged", "dry_run"]
    branch: str
    strategy: MergeStrategy
    prediction: Optional[MergeResult] = None
    head_revision: Optional[str] = None
    command: list[str] = []

    def __str__(self) -> str:
        head = (self.head_revision or "")[:8]
        if self.status == "dry_run":
            return f"Merge of {self.branch} would run: git {' '.join(self.command)}"
        return f"Merge {self.branch} ({self.strategy.value}): {self.status}, head={head}"


class RebaseOutcome(BaseModel):
    """Result of ``rebase``."""

    status: Literal["rebased", "up_to_date", "dry_run"]
    onto: str
    prediction: Optional[MergeResult] = None
    head_revision: Optional[str] = None
    command: list[str] = []

    def __str__(self) -> str:
        head = (self.head_revision or "")[:8]
        if self.status == "dry_run":
            return f"Rebase onto {self.onto} would run: git {' '.join(self.command)}"
        return f"Rebase onto {self.onto}: {self.status}, head={head}"
