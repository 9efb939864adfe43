"""Open repository handle.

A Repository binds a git work tree to its metadata directory, its
configuration and a GitRunner.  It holds no cached repository state: every
query goes back to git or to the metadata directory on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from gzgit.exceptions import GitCommandError, RepositoryNotFoundError
from gzgit.models.config import GzgitConfig
from gzgit.runner import GitRunner

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gzgit.context import InvocationContext
    from gzgit.runner import GitResult

logger = logging.getLogger(__name__)


class Repository:
    """Handle on one git working copy.

    Create via :meth:`Repository.open`.  One handle per thread for mutating
    calls; read-only queries may share a handle.
    """

    def __init__(
        self,
        path: Path,
        git_dir: Path,
        *,
        config: GzgitConfig,
        runner: GitRunner,
    ) -> None:
        self._path = path
        self._git_dir = git_dir
        self._config = config
        self._runner = runner

    @classmethod
    def open(
        cls,
        path: str | Path = ".",
        *,
        config: GzgitConfig | None = None,
        ctx: InvocationContext | None = None,
    ) -> Repository:
        """Open the work tree containing ``path``.

        Raises:
            RepositoryNotFoundError: If ``path`` is not inside a git work tree.
        """
        config = config or GzgitConfig()
        start = Path(path).expanduser()
        if not start.is_dir():
            raise RepositoryNotFoundError(str(start), "no such directory")

        probe = GitRunner(start, config)
        try:
            result = probe.run(
                ["rev-parse", "--show-toplevel", "--absolute-git-dir"],
                ctx=ctx,
                operation="open repository",
            )
        except GitCommandError as e:
            raise RepositoryNotFoundError(str(start), e.stderr.strip()) from e

        lines = result.lines()
        if len(lines) != 2:
            raise RepositoryNotFoundError(str(start), "bare repositories are not supported")
        top, git_dir = Path(lines[0]), Path(lines[1])
        logger.debug("Opened repository %s (git dir %s)", top, git_dir)
        return cls(top, git_dir, config=config, runner=GitRunner(top, config))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def git_dir(self) -> Path:
        return self._git_dir

    @property
    def config(self) -> GzgitConfig:
        return self._config

    @property
    def runner(self) -> GitRunner:
        return self._runner

    # ------------------------------------------------------------------
    # Git access
    # ------------------------------------------------------------------

    def git(
        self,
        args: Sequence[str],
        *,
        ctx: InvocationContext | None = None,
        operation: str = "git",
        target: str | None = None,
        check: bool = True,
        interactive: bool = False,
    ) -> GitResult:
        """Run git in this work tree.  See :meth:`GitRunner.run`."""
        return self._runner.run(
            args,
            ctx=ctx,
            operation=operation,
            target=target,
            check=check,
            interactive=interactive,
        )

    def resolve(self, ref: str, *, ctx: InvocationContext | None = None) -> str | None:
        """Resolve a ref to a full commit hash, or None if it does not resolve."""
        result = self.git(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            ctx=ctx,
            operation="resolve ref",
            target=ref,
            check=False,
        )
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def current_branch_name(self, *, ctx: InvocationContext | None = None) -> str | None:
        """Name of the checked-out branch, or None when HEAD is detached."""
        result = self.git(
            ["symbolic-ref", "--quiet", "--short", "HEAD"],
            ctx=ctx,
            operation="read HEAD",
            check=False,
        )
        if result.returncode == 0:
            return result.stdout.strip()
        if result.returncode == 1:
            return None
        raise GitCommandError(
            "read HEAD", result.args, result.returncode, result.stderr
        )

    def has_ref(self, full_ref: str, *, ctx: InvocationContext | None = None) -> bool:
        """True when the fully-qualified ref exists."""
        result = self.git(
            ["show-ref", "--verify", "--quiet", full_ref],
            ctx=ctx,
            operation="check ref",
            target=full_ref,
            check=False,
        )
        return result.ok

    def marker_exists(self, name: str) -> bool:
        """True when ``name`` exists under the git metadata directory."""
        return (self._git_dir / name).exists()

    def __repr__(self) -> str:
        return f"Repository({self._path})"
