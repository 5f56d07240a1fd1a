"""list command: table of reviews in the repository."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from revnotes_cli.errors import reported_errors
from revnotes_core import review as reviews

console = Console()


@click.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Include submitted reviews.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of reviews to show.")
@click.pass_context
def list_cmd(ctx, show_all: bool, limit: int):
    """List open reviews, most recent first."""
    repo = ctx.obj["repo"]
    store = ctx.obj["store"]

    with reported_errors():
        found = reviews.list_all(repo, store) if show_all else reviews.list_open(repo, store)
        rows = [(r, reviews.review_state(repo, r).value) for r in reversed(found)][:limit]

    if not rows:
        console.print("[yellow]No reviews found.[/yellow]")
        return

    table = Table(title="Reviews", show_header=True, header_style="bold cyan")
    table.add_column("Review", width=12)
    table.add_column("State", width=10)
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Description", max_width=40)

    _state_style = {"open": "yellow", "accepted": "green", "submitted": "dim"}

    for review, state in rows:
        style = _state_style.get(state, "white")
        description = review.request.description.splitlines()[0] if review.request.description else ""
        table.add_row(
            review.short_id,
            f"[{style}]{state}[/{style}]",
            escape(review.request.review_ref),
            escape(review.request.target_ref),
            escape(description[:40]),
        )

    console.print(table)
