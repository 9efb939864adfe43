"""Merge and rebase orchestration for gzgit.

The per-repository state machine is

    none --merge--> merging --commit | abort--> none
    none --rebase--> rebasing --continue | abort--> none

and it is never stored here.  merge_state() reads git's marker files on
every call; another process can move the working copy between any two
calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gzgit.exceptions import (
    BranchNotFoundError,
    FastForwardError,
    GitCommandError,
    InvalidArgumentError,
    MergeConflictError,
    NoOperationInProgressError,
    NothingToMergeError,
    OperationInProgressError,
    RebaseConflictError,
)
from gzgit.models.merge import (
    ExecuteOptions,
    MergeOutcome,
    MergeState,
    MergeStrategy,
    RebaseOptions,
    RebaseOutcome,
)
from gzgit.operations.branch import require_name, require_repository
from gzgit.operations.conflicts import detect_conflicts

if TYPE_CHECKING:
    from gzgit.context import InvocationContext
    from gzgit.repository import Repository

logger = logging.getLogger(__name__)

_REBASE_MARKERS = ("rebase-merge", "rebase-apply")
_MERGE_MARKER = "MERGE_HEAD"

_STRATEGY_ARGS: dict[MergeStrategy, list[str]] = {
    MergeStrategy.FAST_FORWARD: ["--ff-only"],
    MergeStrategy.RECURSIVE: ["-s", "recursive"],
    MergeStrategy.OURS: ["-s", "ours"],
    MergeStrategy.THEIRS: ["-X", "theirs"],
    MergeStrategy.OCTOPUS: ["-s", "octopus"],
}


# ---------------------------------------------------------------------------
# State probes
# ---------------------------------------------------------------------------


def merge_state(repo: Repository | None) -> MergeState:
    """Live in-progress state of the working copy."""
    repo = require_repository(repo)
    if any(repo.marker_exists(marker) for marker in _REBASE_MARKERS):
        return MergeState.REBASING
    if repo.marker_exists(_MERGE_MARKER):
        return MergeState.MERGING
    return MergeState.NONE


def in_progress(repo: Repository | None) -> bool:
    """True while a merge or rebase is waiting to be finished or aborted."""
    return merge_state(repo) != MergeState.NONE


def conflicted_paths(
    repo: Repository | None,
    *,
    ctx: InvocationContext | None = None,
) -> list[str]:
    """Paths with unresolved conflicts in the index."""
    repo = require_repository(repo)
    result = repo.git(
        ["diff", "--name-only", "--diff-filter=U", "-z"],
        ctx=ctx,
        operation="list conflicted paths",
    )
    return sorted({p for p in result.stdout.split("\0") if p})


def _ensure_idle(repo: Repository) -> None:
    state = merge_state(repo)
    if state != MergeState.NONE:
        raise OperationInProgressError(state.value)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _merge_args(branch: str, options: ExecuteOptions, strategy: MergeStrategy) -> list[str]:
    args = ["merge", "--no-edit", *_STRATEGY_ARGS[strategy]]
    if options.no_ff:
        args.append("--no-ff")
    if options.squash:
        args.append("--squash")
    if options.no_commit:
        args.append("--no-commit")
    if options.message is not None:
        args += ["-m", options.message]
    args.append(branch)
    args.extend(options.extra_branches)
    return args


def execute_merge(
    repo: Repository | None,
    branch: str,
    options: ExecuteOptions | None = None,
    *,
    ctx: InvocationContext | None = None,
) -> MergeOutcome:
    """Merge ``branch`` into the checked-out branch.

    Runs conflict prediction first.  With ``dry_run`` nothing else runs.

    Returns:
        MergeOutcome with the prediction and the new HEAD revision.

    Raises:
        InvalidArgumentError: Missing repository or branch, or options
            that cannot be combined.
        OperationInProgressError: A merge or rebase is already in progress.
        BranchNotFoundError: ``branch`` (or an extra octopus head) does
            not resolve.
        NothingToMergeError: HEAD already contains ``branch``.
        FastForwardError: Fast-forward strategy on diverged branches.
        MergeConflictError: The merge stopped on conflicts.  The working
            copy is left merging; commit the resolution or abort.
        GitCommandError: git failed for any other reason.
    """
    repo = require_repository(repo)
    require_name(branch)
    options = options or ExecuteOptions()
    strategy = MergeStrategy(options.strategy)

    if options.extra_branches and strategy != MergeStrategy.OCTOPUS:
        raise InvalidArgumentError("extra branches require the octopus strategy")
    if strategy == MergeStrategy.FAST_FORWARD and (options.no_ff or options.squash):
        raise InvalidArgumentError("fast-forward strategy cannot be combined with no_ff or squash")

    _ensure_idle(repo)

    revision = repo.resolve(branch, ctx=ctx)
    if revision is None:
        raise BranchNotFoundError(branch)
    for extra in options.extra_branches:
        if repo.resolve(extra, ctx=ctx) is None:
            raise BranchNotFoundError(extra)

    prediction = detect_conflicts(repo, branch, "HEAD", ctx=ctx)
    if prediction.up_to_date and not options.extra_branches:
        raise NothingToMergeError(branch)
    if strategy == MergeStrategy.FAST_FORWARD and not prediction.can_fast_forward:
        raise FastForwardError(branch)

    args = _merge_args(branch, options, strategy)
    if options.dry_run:
        logger.info("Dry run: would merge %s (%s)", branch, prediction.difficulty.value)
        return MergeOutcome(
            status="dry_run",
            branch=branch,
            strategy=strategy,
            prediction=prediction,
            head_revision=prediction.target_revision,
            command=args,
        )

    try:
        repo.git(args, ctx=ctx, operation="merge", target=branch)
    except GitCommandError as e:
        paths = conflicted_paths(repo, ctx=ctx)
        if paths or merge_state(repo) == MergeState.MERGING:
            logger.warning("Merge of %s stopped with %d conflict(s)", branch, len(paths))
            raise MergeConflictError(paths, e.stdout.strip()) from e
        raise

    head = repo.resolve("HEAD", ctx=ctx)
    if options.squash:
        status = "squashed"
    elif head == revision:
        status = "fast_forward"
    elif options.no_commit:
        status = "staged"
    else:
        status = "merged"

    logger.info("Merged %s (%s): %s", branch, strategy.value, status)
    return MergeOutcome(
        status=status,
        branch=branch,
        strategy=strategy,
        prediction=prediction,
        head_revision=head,
        command=args,
    )


# ---------------------------------------------------------------------------
# Rebase
# ---------------------------------------------------------------------------


def rebase_onto(
    repo: Repository | None,
    onto: str,
    options: RebaseOptions | None = None,
    *,
    ctx: InvocationContext | None = None,
) -> RebaseOutcome:
    """Rebase the checked-out branch onto ``onto``.

    Raises:
        InvalidArgumentError: Missing repository or ``onto``.
        OperationInProgressError: A merge or rebase is already in progress.
        BranchNotFoundError: ``onto`` does not resolve.
        RebaseConflictError: The rebase stopped on conflicts.  The working
            copy is left rebasing; continue or abort.
        GitCommandError: git failed for any other reason.
    """
    repo = require_repository(repo)
    require_name(onto, "rebase target")
    options = options or RebaseOptions()

    _ensure_idle(repo)

    if repo.resolve(onto, ctx=ctx) is None:
        raise BranchNotFoundError(onto)

    prediction = detect_conflicts(repo, "HEAD", onto, ctx=ctx)
    args = ["rebase"]
    if options.interactive:
        args.append("-i")
    args.append(onto)

    if options.dry_run:
        logger.info("Dry run: would rebase onto %s", onto)
        return RebaseOutcome(
            status="dry_run",
            onto=onto,
            prediction=prediction,
            head_revision=prediction.source_revision,
            command=args,
        )

    try:
        repo.git(
            args,
            ctx=ctx,
            operation="rebase",
            target=onto,
            interactive=options.interactive,
        )
    except GitCommandError as e:
        if merge_state(repo) == MergeState.REBASING:
            paths = conflicted_paths(repo, ctx=ctx)
            logger.warning("Rebase onto %s stopped with %d conflict(s)", onto, len(paths))
            raise RebaseConflictError(paths, e.stderr.strip()) from e
        raise

    head = repo.resolve("HEAD", ctx=ctx)
    status = "up_to_date" if head == prediction.source_revision else "rebased"
    logger.info("Rebased onto %s: %s", onto, status)
    return RebaseOutcome(
        status=status,
        onto=onto,
        prediction=prediction,
        head_revision=head,
        command=args,
    )


# ---------------------------------------------------------------------------
# Abort
# ---------------------------------------------------------------------------


def abort(
    repo: Repository | None,
    *,
    ctx: InvocationContext | None = None,
) -> MergeState:
    """Abort the in-progress merge or rebase.

    Returns:
        The state that was aborted.

    Raises:
        NoOperationInProgressError: Nothing is in progress.  Never a
            silent no-op.
        GitCommandError: git could not abort.
    """
    repo = require_repository(repo)
    state = merge_state(repo)
    if state == MergeState.NONE:
        raise NoOperationInProgressError()

    command = "rebase" if state == MergeState.REBASING else "merge"
    repo.git([command, "--abort"], ctx=ctx, operation=f"abort {command}")
    logger.info("Aborted %s", command)
    return state
