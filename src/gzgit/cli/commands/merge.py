"""gzgit merge -- predict, run and abort merges and rebases."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from gzgit.cli.formatting import (
    format_merge_outcome,
    format_prediction,
    format_rebase_outcome,
    format_state,
)


_ABORTED = {"merging": "merge", "rebasing": "rebase"}


@click.group()
def merge() -> None:
    """Merge and rebase branches."""


@merge.command("do")
@click.argument("source")
@click.argument("extra", nargs=-1)
@click.option(
    "-s",
    "--strategy",
    type=click.Choice(["fast-forward", "recursive", "ours", "theirs", "octopus"], case_sensitive=False),
    default="recursive",
    help="Merge strategy (default: recursive).",
)
@click.option("--no-ff", is_flag=True, help="Always create a merge commit (no fast-forward).")
@click.option("--squash", is_flag=True, help="Stage the changes without a merge commit.")
@click.option("--no-commit", is_flag=True, help="Stop before committing the merge.")
@click.option("-m", "--message", default=None, help="Merge commit message.")
@click.option("--dry-run", is_flag=True, help="Predict only; do not merge.")
@click.pass_context
def do(
    ctx: click.Context,
    source: str,
    extra: tuple[str, ...],
    strategy: str,
    no_ff: bool,
    squash: bool,
    no_commit: bool,
    message: str | None,
    dry_run: bool,
) -> None:
    """Merge SOURCE (and, for octopus, EXTRA heads) into the current branch."""
    from gzgit.cli import _workspace_session
    from gzgit.exceptions import MergeConflictError, NothingToMergeError
    from gzgit.models.merge import ExecuteOptions, MergeStrategy

    options = ExecuteOptions(
        strategy=MergeStrategy(strategy.lower()),
        no_ff=no_ff,
        squash=squash,
        no_commit=no_commit,
        dry_run=dry_run,
        message=message,
        extra_branches=extra,
    )
    with _workspace_session(ctx) as (ws, console):
        try:
            outcome = ws.merge(source, options)
        except NothingToMergeError:
            console.print("Already up to date.")
            return
        except MergeConflictError as e:
            console.print(f"[red]Merge stopped with {e.conflict_count} conflict(s):[/red]")
            for path in e.paths:
                console.print(f"  {escape(path)}", highlight=False)
            console.print("Resolve and commit, or run 'gzgit merge abort'.")
            raise SystemExit(1) from None
        format_merge_outcome(outcome, console)


@merge.command("detect")
@click.argument("source")
@click.argument("target", default="HEAD")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
def detect(ctx: click.Context, source: str, target: str, as_json: bool) -> None:
    """Predict conflicts from merging SOURCE into TARGET (default: HEAD)."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        result = ws.detect_conflicts(source, target)
        if as_json:
            click.echo(result.model_dump_json(indent=2))
        else:
            format_prediction(result, console)


@merge.command("abort")
@click.pass_context
def abort(ctx: click.Context) -> None:
    """Abort the merge or rebase in progress."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        state = ws.abort()
        console.print(f"[green]Aborted[/green] {_ABORTED[state.value]}.")


@merge.command("rebase")
@click.argument("onto")
@click.option("-i", "--interactive", is_flag=True, help="Edit the todo list in $EDITOR.")
@click.option("--dry-run", is_flag=True, help="Predict only; do not rebase.")
@click.pass_context
def rebase(ctx: click.Context, onto: str, interactive: bool, dry_run: bool) -> None:
    """Rebase the current branch onto ONTO."""
    from gzgit.cli import _workspace_session
    from gzgit.exceptions import RebaseConflictError
    from gzgit.models.merge import RebaseOptions

    with _workspace_session(ctx) as (ws, console):
        try:
            outcome = ws.rebase(onto, RebaseOptions(interactive=interactive, dry_run=dry_run))
        except RebaseConflictError as e:
            console.print(f"[red]Rebase stopped with {len(e.paths)} conflict(s):[/red]")
            for path in e.paths:
                console.print(f"  {escape(path)}", highlight=False)
            console.print("Resolve and 'git rebase --continue', or run 'gzgit merge abort'.")
            raise SystemExit(1) from None
        format_rebase_outcome(outcome, console)


@merge.command("status")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show whether a merge or rebase is in progress."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        state = ws.state()
        paths = ws.conflicted_paths() if state.value != "none" else []
        if as_json:
            click.echo(json.dumps({"state": state.value, "conflicts": paths}, indent=2))
        else:
            format_state(state, paths, console)
