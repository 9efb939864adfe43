"""Branch record parser for gzgit.

Turns lines of ``git branch -vv`` output into Branch values.  Parsing runs
as ordered stages over the line:

1. marker      -- ``*`` for the checked-out branch, ``+`` for another worktree
2. name, rev   -- required; fewer than two tokens is malformed
3. worktree    -- ``(/path)`` after a ``+`` marker, skipped
4. bracket     -- optional ``[upstream]`` or ``[upstream: ahead N, behind M]``
5. remainder   -- commit subject, discarded

Each stage is a small pure function so its failure mode can be tested on
its own.  No process is ever started here.
"""

from __future__ import annotations

from gzgit.exceptions import MalformedLineError
from gzgit.models.branch import Branch

REMOTES_PREFIX = "remotes/"

# Placeholder names git prints in place of a branch.  Branch names may
# themselves start with "(", so only these forms are treated specially.
_PLACEHOLDER_PREFIXES = ("(HEAD detached at ", "(HEAD detached from ", "(no branch")

HEAD_MARKER = "*"
WORKTREE_MARKER = "+"


def _take_marker(line: str) -> tuple[str, str]:
    """Split off the leading marker column.

    Returns (marker, rest) where marker is ``*`` for the checked-out
    branch, ``+`` for a branch checked out in another worktree, or ``""``.
    """
    stripped = line.lstrip()
    if stripped.startswith((HEAD_MARKER, WORKTREE_MARKER)):
        return stripped[0], stripped[1:]
    return "", stripped


def _take_name_and_revision(line: str, rest: str) -> tuple[str, str, str]:
    """Split the branch name and revision tokens off ``rest``.

    Placeholders such as ``(HEAD detached at abc1234)`` keep their
    parenthesised text as the name.

    Raises:
        MalformedLineError: If fewer than two tokens remain.
    """
    rest = rest.lstrip()
    if rest.startswith(_PLACEHOLDER_PREFIXES):
        close = rest.find(")")
        if close == -1:
            raise MalformedLineError(line, "unterminated parenthesised name")
        name, rest = rest[: close + 1], rest[close + 1 :]
    else:
        parts = rest.split(None, 1)
        if not parts:
            raise MalformedLineError(line, "missing branch name")
        name = parts[0]
        rest = parts[1] if len(parts) > 1 else ""

    parts = rest.split(None, 1)
    if not parts:
        raise MalformedLineError(line, "missing revision after branch name")
    revision = parts[0]
    rest = parts[1] if len(parts) > 1 else ""
    return name, revision, rest


def _take_worktree(rest: str) -> str:
    """Drop the ``(/path/to/worktree)`` segment printed for ``+`` branches."""
    stripped = rest.lstrip()
    if not stripped.startswith("("):
        return rest
    close = stripped.find(")")
    if close == -1:
        return rest
    return stripped[close + 1 :]


def _parse_count(words: list[str]) -> int:
    """Numeral following a status keyword; 0 when missing or not a number."""
    if len(words) < 2:
        return 0
    try:
        value = int(words[1])
    except ValueError:
        return 0
    return value if value >= 0 else 0


def parse_tracking_status(status: str) -> tuple[int, int]:
    """Parse ``ahead N, behind M`` in either order into (ahead, behind).

    Unknown clauses (``gone``) and bad numerals count as zero.
    """
    ahead = behind = 0
    for clause in status.split(","):
        words = clause.split()
        if not words:
            continue
        keyword = words[0].lower()
        if keyword == "ahead":
            ahead = _parse_count(words)
        elif keyword == "behind":
            behind = _parse_count(words)
    return ahead, behind


def _take_upstream(rest: str) -> tuple[str, int, int]:
    """Parse the optional bracketed upstream segment.

    Returns (upstream, ahead, behind).  No bracket, or a bracket that never
    closes, means untracked.
    """
    rest = rest.lstrip()
    if not rest.startswith("["):
        return "", 0, 0
    close = rest.find("]")
    if close == -1:
        return "", 0, 0
    body = rest[1:close]
    upstream, sep, status = body.partition(":")
    upstream = upstream.strip()
    if not sep:
        return upstream, 0, 0
    ahead, behind = parse_tracking_status(status)
    return upstream, ahead, behind


def parse_branch_line(line: str) -> Branch:
    """Parse one line of ``git branch -vv`` output.

    Example::

        b = parse_branch_line("* main  abc1234 [origin/main: ahead 1] Init")
        # name="main", revision="abc1234", is_head=True,
        # upstream="origin/main", ahead_by=1, behind_by=0

    Remote-tracking entries (``remotes/origin/x``) are returned with
    ``is_remote=True`` and the ``remotes/`` prefix removed from the name.

    Raises:
        MalformedLineError: If the name or revision token is missing.
    """
    if not line.strip():
        raise MalformedLineError(line, "empty line")

    marker, rest = _take_marker(line)
    name, revision, rest = _take_name_and_revision(line, rest)
    if marker == WORKTREE_MARKER:
        rest = _take_worktree(rest)
    upstream, ahead, behind = _take_upstream(rest)
    # Whatever is left is the commit subject.

    is_remote = name.startswith(REMOTES_PREFIX)
    if is_remote:
        name = name[len(REMOTES_PREFIX) :]
        ref = f"refs/remotes/{name}"
    else:
        ref = f"refs/heads/{name}"

    return Branch(
        name=name,
        ref=ref,
        revision=revision,
        is_head=marker == HEAD_MARKER,
        is_remote=is_remote,
        upstream=upstream,
        ahead_by=ahead,
        behind_by=behind,
    )


def is_pseudo_entry(line: str) -> bool:
    """True for listing lines that do not name a branch.

    Covers symbolic aliases (``remotes/origin/HEAD -> origin/main``) and
    detached-HEAD or in-progress-rebase placeholders
    (``(HEAD detached at abc1234)``, ``(no branch, rebasing x)``).  A real
    branch whose name starts with ``(`` is not a pseudo-entry.
    """
    _, rest = _take_marker(line)
    rest = rest.lstrip()
    if rest.startswith(_PLACEHOLDER_PREFIXES):
        return True
    parts = rest.split(None, 2)
    return len(parts) >= 2 and parts[1] == "->"


def parse_branch_list(output: str) -> list[Branch]:
    """Parse full ``git branch -vv`` output, keeping listing order.

    Blank lines and pseudo-entries are skipped; any other line that fails
    to parse fails the whole listing.

    Raises:
        MalformedLineError: On any malformed line, or when more than one
            entry carries the HEAD marker.
    """
    branches: list[Branch] = []
    head_seen = False
    for line in output.splitlines():
        if not line.strip() or is_pseudo_entry(line):
            continue
        branch = parse_branch_line(line)
        if branch.is_head:
            if head_seen:
                raise MalformedLineError(line, "more than one current-branch marker")
            head_seen = True
        branches.append(branch)
    return branches
