"""Rich formatting helpers for the gzgit CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from gzgit.models.branch import Branch, DeleteResult
    from gzgit.models.merge import MergeOutcome, MergeResult, MergeState, RebaseOutcome


_DIFFICULTY_STYLES = {
    "trivial": "green",
    "clean": "green",
    "moderate": "yellow",
    "complex": "red",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _tracking(branch: Branch) -> str:
    if not branch.upstream:
        return ""
    text = escape(branch.upstream)
    counts = []
    if branch.ahead_by:
        counts.append(f"ahead {branch.ahead_by}")
    if branch.behind_by:
        counts.append(f"behind {branch.behind_by}")
    if counts:
        text += f" ({', '.join(counts)})"
    return text


def format_branch_list(branches: list[Branch], console: Console) -> None:
    """Display branches as a table, current branch first-column starred."""
    if not branches:
        console.print("[dim]No branches.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("", width=1)
    table.add_column("Branch")
    table.add_column("Revision", style="yellow")
    table.add_column("Type", style="cyan")
    table.add_column("Upstream", style="dim")
    table.add_column("Merged", justify="center")

    for branch in branches:
        name = escape(branch.name)
        if branch.is_head:
            name = f"[green]{name}[/green]"
        elif branch.is_remote:
            name = f"[red]{name}[/red]"
        table.add_row(
            "*" if branch.is_head else "",
            name,
            branch.revision[:8],
            branch.branch_type.value,
            _tracking(branch),
            "yes" if branch.is_merged else "",
        )

    console.print(table)


def format_branch(branch: Branch, console: Console) -> None:
    """Display one branch in detail."""
    console.print(f"On branch [green]{escape(branch.name)}[/green]  ([yellow]{branch.revision[:8]}[/yellow])")
    console.print(f"  Type:     {branch.branch_type.value}")
    if branch.upstream:
        console.print(f"  Upstream: {_tracking(branch)}")
    else:
        console.print("  Upstream: [dim]none[/dim]")


def format_delete_result(result: DeleteResult, console: Console) -> None:
    color = "yellow" if result.dry_run else "green"
    console.print(f"[{color}]{escape(str(result))}[/{color}]", highlight=False)


def format_prediction(result: MergeResult, console: Console) -> None:
    """Display a conflict prediction."""
    style = _DIFFICULTY_STYLES.get(result.difficulty.value, "white")
    console.print(
        f"Predicted merge of [cyan]{escape(result.source)}[/cyan] into "
        f"[cyan]{escape(result.target)}[/cyan]: "
        f"[{style}]{result.difficulty.value}[/{style}]"
    )
    if result.up_to_date:
        console.print("  Already up to date.")
        return
    if result.can_fast_forward:
        console.print("  Can fast-forward.")
        return
    if result.merge_base is None:
        console.print("  [yellow]No common ancestor (unrelated histories).[/yellow]")
    if not result.conflicts:
        console.print("  No conflicting paths.")
        return

    console.print(f"  {len(result.conflicts)} potential conflict(s):")
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Path")
    table.add_column("Type", style="red")
    for conflict in result.conflicts:
        table.add_row(f"    {escape(conflict.path)}", conflict.conflict_type.value)
    console.print(table)


def format_merge_outcome(outcome: MergeOutcome, console: Console) -> None:
    """Display the result of a merge."""
    if outcome.status == "dry_run":
        console.print(f"[yellow]{escape(str(outcome))}[/yellow]", highlight=False)
        if outcome.prediction is not None:
            format_prediction(outcome.prediction, console)
        return

    head = (outcome.head_revision or "")[:8]
    labels = {
        "fast_forward": "fast-forward",
        "merged": "merge commit",
        "squashed": "squashed, not committed",
        "staged": "staged, not committed",
    }
    console.print(
        f"[green]Merge[/green] of [cyan]{escape(outcome.branch)}[/cyan] complete "
        f"({labels[outcome.status]}), HEAD at [yellow]{head}[/yellow]"
    )


def format_rebase_outcome(outcome: RebaseOutcome, console: Console) -> None:
    """Display the result of a rebase."""
    if outcome.status == "dry_run":
        console.print(f"[yellow]{escape(str(outcome))}[/yellow]", highlight=False)
        if outcome.prediction is not None:
            format_prediction(outcome.prediction, console)
        return
    head = (outcome.head_revision or "")[:8]
    if outcome.status == "up_to_date":
        console.print(f"Rebase onto [cyan]{escape(outcome.onto)}[/cyan]: already up to date.")
    else:
        console.print(
            f"[green]Rebase[/green] onto [cyan]{escape(outcome.onto)}[/cyan] complete, "
            f"HEAD at [yellow]{head}[/yellow]"
        )


def format_state(state: MergeState, conflicts: list[str], console: Console) -> None:
    """Display the in-progress state of the working copy."""
    if state.value == "none":
        console.print("[green]Clean[/green]: no merge or rebase in progress.")
        return
    console.print(f"[yellow]{state.value.capitalize()}[/yellow] in progress.")
    if conflicts:
        console.print(f"  {len(conflicts)} unresolved conflict(s):")
        for path in conflicts:
            console.print(f"    [red]{escape(path)}[/red]")
    else:
        console.print("  No unresolved conflicts.")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
