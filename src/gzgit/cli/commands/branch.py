"""gzgit branch -- list, create, delete and inspect branches."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from gzgit.cli.formatting import format_branch, format_branch_list, format_delete_result

if TYPE_CHECKING:
    from gzgit.models.branch import Branch


@click.group()
def branch() -> None:
    """Manage branches."""


@branch.command("list")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include remote-tracking branches.")
@click.option("--merged", is_flag=True, help="Only branches merged into HEAD.")
@click.option(
    "--sort",
    type=click.Choice(["name", "date", "author"], case_sensitive=False),
    default=None,
    help="Sort order (default: git's order).",
)
@click.option("-n", "--limit", type=click.IntRange(min=0), default=None, help="Show at most N branches.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table.")
@click.pass_context
def list_cmd(
    ctx: click.Context,
    show_all: bool,
    merged: bool,
    sort: str | None,
    limit: int | None,
    as_json: bool,
) -> None:
    """List branches."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        branches = ws.branches(
            all=show_all, merged=merged, sort=sort.lower() if sort else None, limit=limit
        )
        if as_json:
            click.echo(json.dumps([_branch_json(b) for b in branches], indent=2))
        else:
            format_branch_list(branches, console)


@branch.command("create")
@click.argument("name")
@click.option("--base", default=None, help="Start point (default: HEAD).")
@click.option("-c", "--checkout", is_flag=True, help="Switch to the new branch.")
@click.option("-t", "--track", is_flag=True, help="Track the base branch.")
@click.option("-f", "--force", is_flag=True, help="Reset the branch if it exists.")
@click.option("--validate/--no-validate", default=True, help="Check naming rules first (default: on).")
@click.pass_context
def create(
    ctx: click.Context,
    name: str,
    base: str | None,
    checkout: bool,
    track: bool,
    force: bool,
    validate: bool,
) -> None:
    """Create branch NAME."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        created = ws.branch(
            name, base=base, checkout=checkout, track=track, force=force, validate=validate
        )
        console.print(
            f"[green]Created[/green] branch {created.name} at [yellow]{created.revision[:8]}[/yellow]",
            highlight=False,
        )


@branch.command("delete")
@click.argument("name")
@click.option("-r", "--remote", is_flag=True, help="NAME is a remote-tracking branch.")
@click.option("-f", "--force", is_flag=True, help="Delete protected or unmerged branches.")
@click.option("--dry-run", is_flag=True, help="Check everything but do not delete.")
@click.pass_context
def delete(ctx: click.Context, name: str, remote: bool, force: bool, dry_run: bool) -> None:
    """Delete branch NAME."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        result = ws.delete_branch(name, remote=remote, force=force, dry_run=dry_run)
        format_delete_result(result, console)


@branch.command("current")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
def current(ctx: click.Context, as_json: bool) -> None:
    """Show the checked-out branch."""
    from gzgit.cli import _workspace_session

    with _workspace_session(ctx) as (ws, console):
        head = ws.current_branch()
        if as_json:
            click.echo(json.dumps(_branch_json(head), indent=2))
        else:
            format_branch(head, console)


def _branch_json(b: Branch) -> dict:
    data = b.model_dump(mode="json")
    data["type"] = b.branch_type.value
    return data
