"""gzgit exception hierarchy.

All gzgit-specific exceptions inherit from GzgitError.
"""

from __future__ import annotations

from collections.abc import Sequence


class GzgitError(Exception):
    """Base exception for all gzgit errors."""


class InvalidArgumentError(GzgitError, ValueError):
    """Raised when a required argument is missing or empty.

    Detected locally, before any git process is started.
    """


class RepositoryNotFoundError(GzgitError):
    """Raised when a path is not inside a git work tree."""

    def __init__(self, path: str, details: str = "") -> None:
        self.path = path
        self.details = details
        msg = f"Not a git repository: {path}"
        if details:
            msg += f" ({details})"
        super().__init__(msg)


class InvalidBranchNameError(GzgitError):
    """Raised when a branch name violates naming rules."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid branch name '{name}': {reason}")


class MalformedLineError(GzgitError):
    """Raised when a branch listing line cannot be parsed.

    Should not happen with a supported git; usually signals an output
    format change.
    """

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed branch line {line!r}: {reason}")


class BranchNotFoundError(GzgitError):
    """Raised when a branch lookup fails."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(f"Branch not found: {branch_name}")


class BranchExistsError(GzgitError):
    """Raised when trying to create a branch that already exists."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(f"Branch already exists: {branch_name}")


class ProtectedBranchError(GzgitError):
    """Raised when a destructive operation targets a protected branch."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(
            f"Branch '{branch_name}' is protected. Use force=True to override."
        )


class CheckedOutBranchError(GzgitError):
    """Raised when trying to delete the currently checked-out branch."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(
            f"Cannot delete the current branch '{branch_name}'. "
            f"Switch to another branch first."
        )


class UnmergedBranchError(GzgitError):
    """Raised when trying to delete a branch with unmerged commits."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(
            f"Branch '{branch_name}' has unmerged commits. "
            f"Use force=True to delete anyway."
        )


class DetachedHeadError(GzgitError):
    """Raised when a branch is required but HEAD is detached."""

    def __init__(self) -> None:
        super().__init__(
            "HEAD is detached; no branch is checked out. "
            "Use 'git switch <branch>' to return to a branch."
        )


class RefNotFoundError(GzgitError):
    """Raised when a ref given to conflict prediction cannot be resolved."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Ref not found: {ref}")


class CancelledError(GzgitError):
    """Raised when an invocation context is cancelled or its deadline passes.

    The repository is left exactly as the interrupted git process left it.
    """

    def __init__(self, command: Sequence[str] | None = None, reason: str = "cancelled") -> None:
        self.command = list(command) if command else []
        self.reason = reason
        if self.command:
            super().__init__(f"git {' '.join(self.command)}: {reason}")
        else:
            super().__init__(f"Operation {reason}")


class GitCommandError(GzgitError):
    """Raised when a git invocation exits non-zero.

    Carries the operation name, the ref or branch involved, and git's own
    diagnostic text unchanged.
    """

    def __init__(
        self,
        operation: str,
        args: Sequence[str],
        returncode: int,
        stderr: str = "",
        *,
        target: str | None = None,
        stdout: str = "",
    ) -> None:
        self.operation = operation
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        self.target = target
        where = f" '{target}'" if target else ""
        diagnostic = stderr.strip() or stdout.strip() or "no output"
        super().__init__(
            f"{operation}{where} failed (git {' '.join(self.args_list)}, "
            f"exit {returncode}): {diagnostic}"
        )


class GitLockError(GitCommandError):
    """Raised when git cannot take a lock file (another git process is running)."""


class MergeError(GzgitError):
    """Base exception for all merge errors."""


class MergeConflictError(MergeError):
    """Raised when a merge stops on conflicts.

    The repository stays in the merging state; resolve and commit, or abort.
    """

    def __init__(self, paths: Sequence[str], details: str = "") -> None:
        self.paths = list(paths)
        self.conflict_count = len(self.paths)
        msg = f"Merge has {self.conflict_count} conflict(s) requiring resolution"
        if self.paths:
            msg += f": {', '.join(self.paths)}"
        elif details:
            msg += f": {details}"
        super().__init__(msg)


class NothingToMergeError(MergeError):
    """Raised when the source branch is already merged (up-to-date)."""

    def __init__(self, source_branch: str) -> None:
        self.source_branch = source_branch
        super().__init__(f"Branch '{source_branch}' is already up-to-date")


class FastForwardError(MergeError):
    """Raised when a fast-forward-only merge is not possible."""

    def __init__(self, source_branch: str) -> None:
        self.source_branch = source_branch
        super().__init__(
            f"Cannot fast-forward to '{source_branch}': branches have diverged"
        )


class OperationInProgressError(MergeError):
    """Raised when a merge or rebase is started while another is in progress."""

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(
            f"A {state} operation is already in progress. "
            f"Finish it or abort it first."
        )


class NoOperationInProgressError(MergeError):
    """Raised when abort is requested but no merge or rebase is in progress."""

    def __init__(self) -> None:
        super().__init__("No merge or rebase in progress; nothing to abort")


class RebaseError(GzgitError):
    """Base exception for rebase errors."""


class RebaseConflictError(RebaseError):
    """Raised when a rebase stops on conflicts.

    The repository stays in the rebasing state; continue or abort.
    """

    def __init__(self, paths: Sequence[str], details: str = "") -> None:
        self.paths = list(paths)
        self.conflict_count = len(self.paths)
        msg = f"Rebase stopped with {self.conflict_count} conflict(s)"
        if self.paths:
            msg += f": {', '.join(self.paths)}"
        elif details:
            msg += f": {details}"
        super().__init__(msg)
