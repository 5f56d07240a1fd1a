"""show command: display one review (request, verdict, CI and discussion)."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from revnotes_cli.errors import reported_errors
from revnotes_core import review as reviews
from revnotes_core.review import CommentThread

console = Console()

_STATE_STYLE = {"open": "yellow", "accepted": "green", "submitted": "cyan"}
_CI_STYLE = {"success": "green", "failure": "red"}


def _resolved_label(resolved: bool | None) -> str:
    if resolved is True:
        return "[green]accepted[/green]"
    if resolved is False:
        return "[red]needs work[/red]"
    return "[dim]pending[/dim]"


def _comment_label(thread: CommentThread) -> str:
    comment = thread.comment
    label = f"[bold]{escape(comment.author or 'unknown')}[/bold] [dim]{thread.hash[:12]}[/dim]"
    if comment.location is not None and comment.location.path:
        where = escape(comment.location.path)
        if comment.location.range is not None and comment.location.range.start_line:
            where += f":{comment.location.range.start_line}"
        label += f" [cyan]{where}[/cyan]"
    if comment.resolved is True:
        label += " [green]LGTM[/green]"
    elif comment.resolved is False:
        label += " [red]needs work[/red]"
    if comment.description:
        label += f"\n{escape(comment.description)}"
    return label


def _add_threads(tree: Tree, threads: list[CommentThread]) -> None:
    for thread in threads:
        _add_threads(tree.add(_comment_label(thread)), thread.children)


@click.command("show")
@click.argument("revision", default="HEAD")
@click.pass_context
def show_cmd(ctx, revision: str):
    """Show the review that REVISION belongs to (default: HEAD)."""
    repo = ctx.obj["repo"]
    with reported_errors():
        review = reviews.get(repo, ctx.obj["store"], revision)
        state = reviews.review_state(repo, review).value

    request = review.request
    style = _STATE_STYLE.get(state, "white")
    console.print(f"\n[bold]Review {review.short_id}[/bold]  [{style}]{state}[/{style}]")
    console.print(f"  {escape(request.review_ref or '(no ref)')} -> {escape(request.target_ref)}")
    console.print(f"  Requester: {escape(request.requester or 'unknown')}")
    if request.reviewers:
        console.print(f"  Reviewers: {escape(', '.join(request.reviewers))}")
    console.print(f"  Status:    {_resolved_label(review.resolved)}")
    if request.description:
        console.print(f"\n{escape(request.description)}")

    if review.ci_statuses:
        table = Table(title="CI", show_header=True, header_style="bold cyan")
        table.add_column("Agent")
        table.add_column("Status")
        table.add_column("URL")
        for agent, status in sorted(review.ci_statuses.items()):
            value = status.status or "pending"
            ci_style = _CI_STYLE.get(value, "dim")
            table.add_row(escape(agent or "-"), f"[{ci_style}]{value}[/{ci_style}]", escape(status.url))
        console.print(table)

    if review.analyses:
        console.print("\n[bold]Analyses[/bold]")
        for analysis in review.analyses:
            console.print(f"  {escape(analysis.url)}")

    if review.threads:
        tree = Tree("[bold]Discussion[/bold]")
        _add_threads(tree, review.threads)
        console.print(tree)
    else:
        console.print("\n[dim]No comments yet.[/dim]")
