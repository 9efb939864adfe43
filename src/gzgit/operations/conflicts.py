"""Conflict prediction for gzgit.

Predicts what merging ``source`` into ``target`` would do without touching
refs, the index or the working tree: fast-forward eligibility, and the
paths both sides changed since their merge base.

The prediction is advisory.  Any path both sides changed to different
content is flagged; whether the hunks actually overlap is left to git's
own merge.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gzgit.exceptions import GitCommandError, RefNotFoundError
from gzgit.models.merge import (
    Conflict,
    ConflictType,
    MergeResult,
    difficulty_for,
)
from gzgit.operations.branch import require_name, require_repository

if TYPE_CHECKING:
    from gzgit.context import InvocationContext
    from gzgit.repository import Repository

logger = logging.getLogger(__name__)


def find_merge_base(
    repo: Repository,
    rev_a: str,
    rev_b: str,
    *,
    ctx: InvocationContext | None = None,
) -> str | None:
    """Best common ancestor of two revisions, or None for unrelated histories."""
    result = repo.git(
        ["merge-base", rev_a, rev_b],
        ctx=ctx,
        operation="find merge base",
        target=f"{rev_a}...{rev_b}",
        check=False,
    )
    if result.returncode == 0:
        return result.stdout.strip()
    if result.returncode == 1:
        return None
    raise GitCommandError(
        "find merge base",
        result.args,
        result.returncode,
        result.stderr,
        target=f"{rev_a}...{rev_b}",
    )


def _empty_tree(repo: Repository, ctx: InvocationContext | None) -> str:
    result = repo.git(
        ["hash-object", "-t", "tree", "--stdin"], ctx=ctx, operation="hash empty tree"
    )
    return result.stdout.strip()


def _split_z(output: str) -> list[str]:
    return [field for field in output.split("\0") if field]


def changed_paths(
    repo: Repository,
    base: str,
    revision: str,
    *,
    ctx: InvocationContext | None = None,
) -> dict[str, tuple[str, bool]]:
    """Paths changed between ``base`` and ``revision``.

    Returns:
        Mapping of path to (status letter, is_binary).  Renames are
        reported as a delete plus an add.
    """
    status = repo.git(
        ["diff", "--no-renames", "--no-color", "--name-status", "-z", base, revision],
        ctx=ctx,
        operation="diff changed paths",
        target=revision,
    )
    fields = _split_z(status.stdout)
    letters: dict[str, str] = {}
    for letter, path in zip(fields[0::2], fields[1::2]):
        letters[path] = letter[:1]

    numstat = repo.git(
        ["diff", "--no-renames", "--no-color", "--numstat", "-z", base, revision],
        ctx=ctx,
        operation="diff line counts",
        target=revision,
    )
    binary: set[str] = set()
    for record in _split_z(numstat.stdout):
        added, _, rest = record.partition("\t")
        deleted, _, path = rest.partition("\t")
        if added == "-" and deleted == "-":
            binary.add(path)

    return {path: (letter, path in binary) for path, letter in letters.items()}


def _classify(ours: tuple[str, bool], theirs: tuple[str, bool]) -> ConflictType | None:
    (ours_status, ours_binary), (theirs_status, theirs_binary) = ours, theirs
    if ours_status == "D" and theirs_status == "D":
        return None
    if ours_binary or theirs_binary:
        return ConflictType.BINARY
    if "D" in (ours_status, theirs_status):
        return ConflictType.MODIFY_DELETE
    if ours_status == "A" and theirs_status == "A":
        return ConflictType.ADD_ADD
    return ConflictType.CONTENT


def detect_conflicts(
    repo: Repository | None,
    source: str,
    target: str,
    *,
    ctx: InvocationContext | None = None,
) -> MergeResult:
    """Predict merging ``source`` into ``target``.

    Read-only: runs only rev-parse, merge-base, hash-object and diff.
    Calling it twice with no repository change in between gives equal
    results.

    Args:
        repo: Open repository.
        source: Ref being merged in.
        target: Ref being merged into.
        ctx: Invocation context.

    Returns:
        MergeResult.  Fast-forwardable (or already merged) pairs have no
        conflicts and TRIVIAL difficulty.

    Raises:
        InvalidArgumentError: If ``repo`` is None or a ref is empty.
        RefNotFoundError: If either ref does not resolve to a commit.
    """
    repo = require_repository(repo)
    require_name(source, "source ref")
    require_name(target, "target ref")

    source_rev = repo.resolve(source, ctx=ctx)
    if source_rev is None:
        raise RefNotFoundError(source)
    target_rev = repo.resolve(target, ctx=ctx)
    if target_rev is None:
        raise RefNotFoundError(target)

    base = find_merge_base(repo, source_rev, target_rev, ctx=ctx)
    fields = dict(
        source=source,
        target=target,
        source_revision=source_rev,
        target_revision=target_rev,
        merge_base=base,
    )

    if base is not None and base in (source_rev, target_rev):
        logger.debug("%s -> %s can fast-forward", source, target)
        return MergeResult(
            **fields,
            can_fast_forward=True,
            up_to_date=(base == source_rev),
            difficulty=difficulty_for([], can_fast_forward=True),
        )

    base_tree = base if base is not None else _empty_tree(repo, ctx)
    ours = changed_paths(repo, base_tree, target_rev, ctx=ctx)
    theirs = changed_paths(repo, base_tree, source_rev, ctx=ctx)
    both = ours.keys() & theirs.keys()

    conflicts: list[Conflict] = []
    if both:
        # Paths both sides changed to identical content merge cleanly.
        differing = set(
            _split_z(
                repo.git(
                    ["diff", "--no-renames", "--name-only", "-z", target_rev, source_rev],
                    ctx=ctx,
                    operation="diff branch tips",
                    target=f"{target}..{source}",
                ).stdout
            )
        )
        for path in sorted(both):
            if path not in differing:
                continue
            conflict_type = _classify(ours[path], theirs[path])
            if conflict_type is not None:
                conflicts.append(Conflict(path=path, conflict_type=conflict_type))

    logger.debug(
        "%s -> %s: %d candidate conflict(s) over %d shared path(s)",
        source,
        target,
        len(conflicts),
        len(both),
    )
    return MergeResult(
        **fields,
        conflicts=conflicts,
        difficulty=difficulty_for(conflicts, can_fast_forward=False),
    )
