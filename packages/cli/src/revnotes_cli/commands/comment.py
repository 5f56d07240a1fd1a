"""comment, accept and reject commands: add to a review's discussion."""

from __future__ import annotations

import click
from rich.console import Console

from revnotes_cli.errors import reported_errors
from revnotes_cli.identity import resolve_author
from revnotes_core import annotate, review as reviews
from revnotes_core.models import Location, Range

console = Console()

_review_option = click.option(
    "--review",
    "revision",
    default="HEAD",
    show_default=True,
    help="Any commit of the review (its anchor is found by walking history).",
)


def _author(ctx) -> str:
    author = resolve_author(ctx.obj["config"], ctx.obj["repo"])
    if not author:
        raise click.UsageError("No author configured. Set 'author' in .revnotes.yml or `git config user.email`.")
    return author


@click.command("comment")
@_review_option
@click.option("--message", "-m", "description", required=True, help="Comment text.")
@click.option("--parent", "-p", default=None, help="Hash (or unique prefix) of the comment to reply to.")
@click.option("--file", "path", default=None, help="File the comment refers to.")
@click.option("--line", type=int, default=None, help="Line the comment refers to (requires --file).")
@click.pass_context
def comment_cmd(ctx, revision: str, description: str, parent: str | None, path: str | None, line: int | None):
    """Comment on a review, optionally on a file and line."""
    if line is not None and path is None:
        raise click.UsageError("--line requires --file.")
    author = _author(ctx)
    repo = ctx.obj["repo"]

    with reported_errors():
        review = reviews.get(repo, ctx.obj["store"], revision)
        location = None
        if path is not None:
            location = Location(
                commit=review.source,
                path=path,
                range=Range(start_line=line) if line is not None else None,
            )
        comment = annotate.add_comment(
            repo, ctx.obj["store"], review, description, parent=parent, location=location, author=author
        )

    console.print(f"Comment [bold]{comment.hash[:12]}[/bold] added to review {review.short_id}.")


@click.command("accept")
@_review_option
@click.option("--message", "-m", "description", default="", help="Optional comment text.")
@click.pass_context
def accept_cmd(ctx, revision: str, description: str):
    """Mark a review as accepted."""
    author = _author(ctx)
    with reported_errors():
        review = reviews.get(ctx.obj["repo"], ctx.obj["store"], revision)
        annotate.accept(ctx.obj["repo"], ctx.obj["store"], review, description, author=author)
    console.print(f"[green]Accepted[/green] review {review.short_id}.")


@click.command("reject")
@_review_option
@click.option("--message", "-m", "description", default="", help="Optional comment text.")
@click.pass_context
def reject_cmd(ctx, revision: str, description: str):
    """Mark a review as needing more work."""
    author = _author(ctx)
    with reported_errors():
        review = reviews.get(ctx.obj["repo"], ctx.obj["store"], revision)
        annotate.reject(ctx.obj["repo"], ctx.obj["store"], review, description, author=author)
    console.print(f"[red]Rejected[/red] review {review.short_id}.")
