"""gzgit CLI -- terminal interface for branch and merge management.

This module is NEVER imported from gzgit/__init__.py.
It is only loaded via the ``gzgit`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install gzgit[cli]"
    ) from None

from gzgit.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from gzgit.workspace import Workspace


@click.group()
@click.option(
    "--repo",
    default=".",
    envvar="GZGIT_REPO",
    help="Path inside the git working copy (default: current directory).",
)
@click.option(
    "--git",
    "git_binary",
    default="git",
    envvar="GZGIT_GIT",
    help="git executable to run.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every git invocation.")
@click.pass_context
def cli(ctx: click.Context, repo: str, git_binary: str, verbose: bool) -> None:
    """gzgit: branch and merge intelligence for git working copies."""
    ctx.ensure_object(dict)
    ctx.obj["repo"] = repo
    ctx.obj["git_binary"] = git_binary
    if verbose:
        _configure_logging()


def _configure_logging() -> None:
    from rich.logging import RichHandler

    root = logging.getLogger("gzgit")
    root.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=get_console(), show_path=False))


def _get_workspace(ctx: click.Context) -> Workspace:
    """Open a Workspace from Click context."""
    from gzgit.models.config import GzgitConfig
    from gzgit.workspace import Workspace

    config = GzgitConfig(git_binary=ctx.obj["git_binary"])
    return Workspace.open(ctx.obj["repo"], config=config)


@contextmanager
def _workspace_session(ctx: click.Context) -> Iterator[tuple[Workspace, Console]]:
    """Context manager that opens a Workspace, yields (workspace, console), and handles cleanup.

    Ensures the workspace is closed on exit and formats exceptions as CLI errors.
    Commands with special exception handling can catch specific errors inside
    the ``with`` block before this context manager's generic handler runs.
    """
    console = get_console()
    try:
        ws = _get_workspace(ctx)
        try:
            yield ws, console
        finally:
            ws.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from gzgit.cli.commands.branch import branch  # noqa: E402
from gzgit.cli.commands.merge import merge  # noqa: E402

cli.add_command(branch)
cli.add_command(merge)
