"""Workspace -- the public SDK entry point for gzgit.

Binds an open Repository to a configuration and exposes branch management,
conflict prediction and merge orchestration as methods.  Users interact
with ``Workspace.open()``, ``ws.branches()``, ``ws.merge()``, etc.

Read-only queries may share a Workspace across threads.  Mutating calls on
the same working copy should come from one thread at a time.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from gzgit.models.branch import CreateOptions, DeleteOptions, ListOptions
from gzgit.models.config import GzgitConfig
from gzgit.models.merge import ExecuteOptions, MergeState, RebaseOptions
from gzgit.repository import Repository

if TYPE_CHECKING:
    from gzgit.context import InvocationContext
    from gzgit.models.branch import Branch, DeleteResult
    from gzgit.models.merge import MergeOutcome, MergeResult, RebaseOutcome


class Workspace:
    """A git working copy seen through gzgit.

    Create via :meth:`Workspace.open`.  After :meth:`close` every operation
    raises InvalidArgumentError.
    """

    def __init__(self, repo: Repository) -> None:
        self._repo: Repository | None = repo

    @classmethod
    def open(
        cls,
        path: str | Path = ".",
        *,
        config: GzgitConfig | None = None,
        ctx: InvocationContext | None = None,
    ) -> Workspace:
        """Open the git work tree containing ``path``.

        Raises:
            RepositoryNotFoundError: If ``path`` is not inside a work tree.
        """
        return cls(Repository.open(path, config=config, ctx=ctx))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def repository(self) -> Repository | None:
        """The underlying handle, or None once closed."""
        return self._repo

    @property
    def path(self) -> Path | None:
        return self._repo.path if self._repo is not None else None

    @property
    def config(self) -> GzgitConfig | None:
        return self._repo.config if self._repo is not None else None

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def branches(
        self,
        *,
        all: bool = False,
        merged: bool = False,
        sort: str | None = None,
        limit: int | None = None,
        ctx: InvocationContext | None = None,
    ) -> list[Branch]:
        """List branches.  See :func:`gzgit.operations.branch.list_branches`."""
        from gzgit.operations.branch import list_branches

        options = ListOptions(all=all, merged=merged, sort=sort, limit=limit)
        return list_branches(self._repo, options, ctx=ctx)

    def branch(
        self,
        name: str,
        *,
        base: str | None = None,
        checkout: bool = False,
        track: bool = False,
        force: bool = False,
        validate: bool = False,
        ctx: InvocationContext | None = None,
    ) -> Branch:
        """Create a branch.

        Args:
            name: New branch name.
            base: Ref to branch from.  Defaults to HEAD.
            checkout: Switch to the new branch.
            track: Set the base (or current branch) as upstream.
            force: Reset an existing branch instead of failing.
            validate: Check git-style naming rules first.
            ctx: Invocation context.

        Returns:
            The new Branch.

        Raises:
            BranchExistsError: If the branch exists and ``force`` is False.
            InvalidBranchNameError: If ``validate`` and the name is invalid.
        """
        from gzgit.operations.branch import create_branch

        options = CreateOptions(
            base=base, checkout=checkout, track=track, force=force, validate=validate
        )
        return create_branch(self._repo, name, options, ctx=ctx)

    def get_branch(self, name: str, *, ctx: InvocationContext | None = None) -> Branch:
        from gzgit.operations.branch import get_branch

        return get_branch(self._repo, name, ctx=ctx)

    def current_branch(self, *, ctx: InvocationContext | None = None) -> Branch:
        """The checked-out branch.  Raises DetachedHeadError when detached."""
        from gzgit.operations.branch import current_branch

        return current_branch(self._repo, ctx=ctx)

    def branch_exists(
        self,
        name: str,
        *,
        remote: bool = False,
        ctx: InvocationContext | None = None,
    ) -> bool:
        from gzgit.operations.branch import branch_exists

        return branch_exists(self._repo, name, remote=remote, ctx=ctx)

    def delete_branch(
        self,
        name: str,
        *,
        remote: bool = False,
        force: bool = False,
        dry_run: bool = False,
        ctx: InvocationContext | None = None,
    ) -> DeleteResult:
        """Delete a branch.

        Raises:
            ProtectedBranchError: If protected and ``force`` is False.
            BranchNotFoundError: If the branch does not exist.
            CheckedOutBranchError: If it is the checked-out branch.
            UnmergedBranchError: If unmerged and ``force`` is False.
        """
        from gzgit.operations.branch import delete_branch

        options = DeleteOptions(remote=remote, force=force, dry_run=dry_run)
        return delete_branch(self._repo, name, options, ctx=ctx)

    def is_protected(self, name: str) -> bool:
        """True when this workspace's protection rules cover ``name``."""
        from gzgit.operations.branch import require_repository
        from gzgit.operations.protection import is_protected, parse_rules

        repo = require_repository(self._repo)
        return is_protected(name, parse_rules(repo.config.protected_branches))

    # ------------------------------------------------------------------
    # Merge and rebase
    # ------------------------------------------------------------------

    def detect_conflicts(
        self,
        source: str,
        target: str = "HEAD",
        *,
        ctx: InvocationContext | None = None,
    ) -> MergeResult:
        """Predict merging ``source`` into ``target`` without side effects."""
        from gzgit.operations.conflicts import detect_conflicts

        return detect_conflicts(self._repo, source, target, ctx=ctx)

    def merge(
        self,
        branch: str,
        options: ExecuteOptions | None = None,
        *,
        ctx: InvocationContext | None = None,
    ) -> MergeOutcome:
        """Merge ``branch`` into the checked-out branch.

        Raises:
            MergeConflictError: If the merge stopped on conflicts.
            NothingToMergeError: If there is nothing to merge.
            OperationInProgressError: If a merge or rebase is in progress.
        """
        from gzgit.operations.merge import execute_merge

        return execute_merge(self._repo, branch, options or ExecuteOptions(), ctx=ctx)

    def rebase(
        self,
        onto: str,
        options: RebaseOptions | None = None,
        *,
        ctx: InvocationContext | None = None,
    ) -> RebaseOutcome:
        """Rebase the checked-out branch onto ``onto``.

        Raises:
            RebaseConflictError: If the rebase stopped on conflicts.
            OperationInProgressError: If a merge or rebase is in progress.
        """
        from gzgit.operations.merge import rebase_onto

        return rebase_onto(self._repo, onto, options or RebaseOptions(), ctx=ctx)

    def abort(self, *, ctx: InvocationContext | None = None) -> MergeState:
        """Abort the in-progress merge or rebase and return what was aborted."""
        from gzgit.operations.merge import abort

        return abort(self._repo, ctx=ctx)

    def state(self) -> MergeState:
        from gzgit.operations.merge import merge_state

        return merge_state(self._repo)

    def in_progress(self) -> bool:
        from gzgit.operations.merge import in_progress

        return in_progress(self._repo)

    def conflicted_paths(self, *, ctx: InvocationContext | None = None) -> list[str]:
        from gzgit.operations.merge import conflicted_paths

        return conflicted_paths(self._repo, ctx=ctx)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._repo is None

    def close(self) -> None:
        """Release the repository handle.  Idempotent."""
        self._repo = None

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._repo is None:
            return "Workspace(closed=True)"
        return f"Workspace(path='{self._repo.path}')"
