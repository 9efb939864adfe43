"""Branch domain models for gzgit.

Branch is the typed record parsed from one line of ``git branch -vv``
output.  The option dataclasses carry named, defaulted arguments for the
branch lifecycle operations.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


class BranchType(str, enum.Enum):
    """Naming category of a branch, inferred from its first path segment."""

    FEATURE = "feature"
    FIX = "fix"
    HOTFIX = "hotfix"
    RELEASE = "release"
    EXPERIMENT = "experiment"
    OTHER = "other"

    def __repr__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class SortBy(str, enum.Enum):
    """Sort orders accepted by branch listing."""

    NAME = "name"
    DATE = "date"
    AUTHOR = "author"

    def __str__(self) -> str:
        return self.value


class Branch(BaseModel):
    """One named ref from a branch listing snapshot.

    Instances are immutable.  Every registry query builds fresh values;
    a changed branch shows up as a new value in the next snapshot.
    """

    model_config = {"frozen": True}

    name: str
    ref: str
    revision: str
    is_head: bool = False
    is_remote: bool = False
    is_merged: bool = False
    upstream: str = ""  # Empty when untracked
    ahead_by: int = Field(default=0, ge=0)
    behind_by: int = Field(default=0, ge=0)

    @property
    def branch_type(self) -> BranchType:
        """Naming category of this branch."""
        from gzgit.operations.protection import infer_type

        return infer_type(self.short_name)

    @property
    def short_name(self) -> str:
        """Branch name without the remote segment for remote-tracking refs."""
        if self.is_remote and "/" in self.name:
            return self.name.split("/", 1)[1]
        return self.name

    @property
    def is_tracking(self) -> bool:
        return bool(self.upstream)

    def __repr__(self) -> str:
        head = "* " if self.is_head else ""
        return f"Branch({head}{self.name} {self.revision})"

    def __str__(self) -> str:
        text = f"{self.name} {self.revision}"
        if self.upstream:
            text += f" [{self.upstream}"
            if self.ahead_by or self.behind_by:
                text += f": +{self.ahead_by}/-{self.behind_by}"
            text += "]"
        return text


@dataclass(frozen=True)
class ListOptions:
    """Options for listing branches.

    Attributes:
        all: Include remote-tracking branches.
        merged: Only branches already merged into HEAD.
        sort: Sort order.  None keeps git's listing order.
        limit: Maximum number of branches returned.  None = unbounded.
    """

    all: bool = False
    merged: bool = False
    sort: Optional[SortBy] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class CreateOptions:
    """Options for creating a branch.

    Attributes:
        base: Start point (branch, tag or revision).  None = HEAD.
        checkout: Switch the working copy to the new branch.
        track: Set up upstream tracking against ``base``.
        force: Reset the branch if it already exists.
        validate: Check the name against naming rules before calling git.
    """

    base: Optional[str] = None
    checkout: bool = False
    track: bool = False
    force: bool = False
    validate: bool = False


@dataclass(frozen=True)
class DeleteOptions:
    """Options for deleting a branch.

    Attributes:
        remote: The name is a remote-tracking ref (e.g. ``origin/old``).
        force: Delete protected or unmerged branches.
        dry_run: Run every check but do not delete.
    """

    remote: bool = False
    force: bool = False
    dry_run: bool = False


class DeleteResult(BaseModel):
    """Outcome of a delete (or the plan, for a dry run)."""

    name: str
    ref: str
    revision: str
    remote: bool = False
    dry_run: bool = False
    command: list[str] = []

    def __str__(self) -> str:
        verb = "Would delete" if self.dry_run else "Deleted"
        kind = "remote-tracking branch" if self.remote else "branch"
        return f"{verb} {kind} {self.name} (was {self.revision})"
