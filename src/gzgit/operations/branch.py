"""Branch operations for gzgit.

Validate names, list branches (the registry), and create, inspect and
delete them.  Every function takes an open Repository and fails fast with
InvalidArgumentError, before any git process starts, when the handle or a
required name is missing.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from gzgit.exceptions import (
    BranchExistsError,
    BranchNotFoundError,
    CheckedOutBranchError,
    DetachedHeadError,
    GitCommandError,
    InvalidArgumentError,
    InvalidBranchNameError,
    ProtectedBranchError,
    UnmergedBranchError,
)
from gzgit.models.branch import (
    Branch,
    CreateOptions,
    DeleteOptions,
    DeleteResult,
    ListOptions,
    SortBy,
)
from gzgit.operations.parser import parse_branch_list
from gzgit.operations.protection import is_protected, parse_rules

if TYPE_CHECKING:
    from gzgit.context import InvocationContext
    from gzgit.repository import Repository

logger = logging.getLogger(__name__)


# Characters forbidden in branch names (git-style)
_FORBIDDEN_CHARS = re.compile(r"[\s~^:?*\[\]\\]")

_SORT_KEYS: dict[SortBy, str] = {
    SortBy.NAME: "refname",
    SortBy.DATE: "-committerdate",
    SortBy.AUTHOR: "authorname",
}


def validate_branch_name(name: str) -> None:
    """Validate a branch name against git-style naming rules.

    Raises InvalidBranchNameError on violation.
    """
    if not name:
        raise InvalidBranchNameError(name, "branch name cannot be empty")

    if ".." in name:
        raise InvalidBranchNameError(name, "branch name cannot contain '..'")

    if name.endswith(".lock"):
        raise InvalidBranchNameError(name, "branch name cannot end with '.lock'")

    if name.startswith("."):
        raise InvalidBranchNameError(name, "branch name cannot start with '.'")

    if name.endswith("."):
        raise InvalidBranchNameError(name, "branch name cannot end with '.'")

    if name.startswith("-"):
        raise InvalidBranchNameError(name, "branch name cannot start with '-'")

    if _FORBIDDEN_CHARS.search(name):
        raise InvalidBranchNameError(
            name,
            "branch name contains forbidden characters "
            "(whitespace, ~, ^, :, ?, *, [, ], \\)",
        )

    if name.startswith("/") or name.endswith("/") or "//" in name:
        raise InvalidBranchNameError(name, "branch name has invalid slash usage")


def require_repository(repo: Repository | None) -> Repository:
    if repo is None:
        raise InvalidArgumentError("an open repository is required")
    return repo


def require_name(name: str | None, what: str = "branch name") -> str:
    if not name:
        raise InvalidArgumentError(f"{what} cannot be empty")
    return name


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _merged_refs(
    repo: Repository,
    *,
    include_remote: bool,
    ctx: InvocationContext | None,
) -> set[str]:
    """Fully-qualified refs whose tips are reachable from HEAD."""
    args = ["for-each-ref", "--merged=HEAD", "--format=%(refname)", "refs/heads/"]
    if include_remote:
        args.append("refs/remotes/")
    result = repo.git(args, ctx=ctx, operation="list merged branches")
    return set(result.lines())


def list_branches(
    repo: Repository | None,
    options: ListOptions | None = None,
    *,
    ctx: InvocationContext | None = None,
) -> list[Branch]:
    """List branches as a fresh snapshot, in git's listing order.

    Args:
        repo: Open repository.
        options: Scope, sort and limit.  Defaults to local branches only.
        ctx: Invocation context.

    Returns:
        One Branch per listed ref.  At most one has ``is_head=True``;
        none does when HEAD is detached.

    Raises:
        InvalidArgumentError: If ``repo`` is None.
        GitCommandError: If git fails.
        MalformedLineError: If any listing line cannot be parsed.  The
            whole call fails rather than dropping entries.
    """
    repo = require_repository(repo)
    options = options or ListOptions()

    args = ["branch", "-vv", "--no-color"]
    if options.all:
        args.append("-a")
    if options.merged:
        args.append("--merged")
    if options.sort is not None:
        args.append(f"--sort={_SORT_KEYS[SortBy(options.sort)]}")

    result = repo.git(args, ctx=ctx, operation="list branches")
    parsed = parse_branch_list(result.stdout)
    if options.limit is not None:
        parsed = parsed[: max(options.limit, 0)]
    if not parsed:
        return []

    if options.merged:
        merged = {b.ref for b in parsed}
    else:
        merged = _merged_refs(repo, include_remote=options.all, ctx=ctx)

    return [b.model_copy(update={"is_merged": b.ref in merged}) for b in parsed]


def get_branch(
    repo: Repository | None,
    name: str,
    *,
    ctx: InvocationContext | None = None,
) -> Branch:
    """Look up one branch by name.  Local branches win over remote ones.

    Raises:
        InvalidArgumentError: If ``repo`` is None or ``name`` is empty.
        BranchNotFoundError: If no branch has that name.
    """
    repo = require_repository(repo)
    require_name(name)

    branches = list_branches(repo, ListOptions(all=True), ctx=ctx)
    local = [b for b in branches if b.name == name and not b.is_remote]
    if local:
        return local[0]
    remote = [b for b in branches if b.name == name and b.is_remote]
    if remote:
        return remote[0]
    raise BranchNotFoundError(name)


def current_branch(
    repo: Repository | None,
    *,
    ctx: InvocationContext | None = None,
) -> Branch:
    """The checked-out branch.

    Raises:
        InvalidArgumentError: If ``repo`` is None.
        DetachedHeadError: If HEAD is detached.
        BranchNotFoundError: If the current branch has no commits yet.
    """
    repo = require_repository(repo)
    name = repo.current_branch_name(ctx=ctx)
    if name is None:
        raise DetachedHeadError()
    for branch in list_branches(repo, ctx=ctx):
        if branch.is_head:
            return branch
    raise BranchNotFoundError(name)


def branch_exists(
    repo: Repository | None,
    name: str,
    *,
    remote: bool = False,
    ctx: InvocationContext | None = None,
) -> bool:
    """True when a local (or, with ``remote``, remote-tracking) branch exists."""
    repo = require_repository(repo)
    require_name(name)
    namespace = "refs/remotes" if remote else "refs/heads"
    return repo.has_ref(f"{namespace}/{name}", ctx=ctx)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def create_branch(
    repo: Repository | None,
    name: str,
    options: CreateOptions | None = None,
    *,
    ctx: InvocationContext | None = None,
) -> Branch:
    """Create a branch at ``options.base`` (HEAD by default).

    Returns:
        The new Branch as listed right after creation.

    Raises:
        InvalidArgumentError: If ``repo`` is None or ``name`` is empty.
        InvalidBranchNameError: If ``options.validate`` and the name is invalid.
        BranchExistsError: If the branch exists and ``options.force`` is False.
        BranchNotFoundError: If ``options.base`` does not resolve.
        GitCommandError: If git refuses for any other reason.
    """
    repo = require_repository(repo)
    require_name(name)
    options = options or CreateOptions()

    if options.validate:
        validate_branch_name(name)

    if not options.force and branch_exists(repo, name, ctx=ctx):
        raise BranchExistsError(name)

    base = options.base
    if options.track and base is None:
        base = repo.current_branch_name(ctx=ctx)

    if options.checkout:
        args = ["checkout"]
        if options.track:
            args.append("--track")
        args += ["-B" if options.force else "-b", name]
    else:
        args = ["branch"]
        if options.force:
            args.append("--force")
        if options.track:
            args.append("--track")
        args.append(name)
    if base:
        args.append(base)

    try:
        repo.git(args, ctx=ctx, operation="create branch", target=name)
    except GitCommandError as e:
        if "already exists" in e.stderr:
            raise BranchExistsError(name) from e
        if base and "not a valid" in e.stderr:
            raise BranchNotFoundError(base) from e
        raise

    logger.info("Created branch %s%s", name, f" from {base}" if base else "")
    return get_branch(repo, name, ctx=ctx)


def delete_branch(
    repo: Repository | None,
    name: str,
    options: DeleteOptions | None = None,
    *,
    ctx: InvocationContext | None = None,
) -> DeleteResult:
    """Delete a branch, or report what would be deleted on a dry run.

    Protection is checked on the branch part of the name, so
    ``origin/main`` counts as ``main`` when ``options.remote`` is set.
    A remote name without a remote segment gets the configured default
    remote, so ``old`` means ``origin/old``.

    Raises:
        InvalidArgumentError: If ``repo`` is None or ``name`` is empty.
        ProtectedBranchError: If the branch is protected and not forced.
        BranchNotFoundError: If the branch does not exist.
        CheckedOutBranchError: If it is the checked-out local branch.
        UnmergedBranchError: If it has unmerged commits and is not forced.
        GitCommandError: If git refuses for any other reason.
    """
    repo = require_repository(repo)
    require_name(name)
    options = options or DeleteOptions()

    if options.remote and "/" not in name:
        name = f"{repo.config.default_remote}/{name}"
    short = name.split("/", 1)[1] if options.remote else name
    rules = parse_rules(repo.config.protected_branches)
    if not options.force and is_protected(short, rules):
        raise ProtectedBranchError(name)

    ref = f"refs/remotes/{name}" if options.remote else f"refs/heads/{name}"
    revision = repo.resolve(ref, ctx=ctx)
    if revision is None:
        raise BranchNotFoundError(name)

    if not options.remote and repo.current_branch_name(ctx=ctx) == name:
        raise CheckedOutBranchError(name)

    args = ["branch", "-D" if options.force else "-d"]
    if options.remote:
        args.append("-r")
    args.append(name)

    result = DeleteResult(
        name=name,
        ref=ref,
        revision=revision,
        remote=options.remote,
        dry_run=options.dry_run,
        command=args,
    )
    if options.dry_run:
        logger.info("Dry run: would delete %s (%s)", ref, revision[:8])
        return result

    try:
        repo.git(args, ctx=ctx, operation="delete branch", target=name)
    except GitCommandError as e:
        if "not fully merged" in e.stderr:
            raise UnmergedBranchError(name) from e
        raise

    logger.info("Deleted %s (was %s)", ref, revision[:8])
    return result
