"""request command: open a review of a branch."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from revnotes_cli.errors import reported_errors
from revnotes_cli.identity import resolve_author
from revnotes_core.annotate import request_review

console = Console()


@click.command("request")
@click.option("--target", "target_ref", default=None, help="Ref to merge into. Defaults to target_ref from config.")
@click.option("--source", "review_ref", default=None, help="Ref to review. Defaults to the checked-out branch.")
@click.option("--reviewers", "-r", default="", help="Comma-separated reviewer emails.")
@click.option("--message", "-m", "description", default="", help="Description of the change.")
@click.pass_context
def request_cmd(ctx, target_ref: str | None, review_ref: str | None, reviewers: str, description: str):
    """Request a review of the commits on SOURCE that are not on TARGET."""
    config = ctx.obj["config"]
    repo = ctx.obj["repo"]

    requester = resolve_author(config, repo)
    if not requester:
        raise click.UsageError("No author configured. Set 'author' in .revnotes.yml or `git config user.email`.")

    with reported_errors():
        anchor, request = request_review(
            repo,
            ctx.obj["store"],
            target_ref=target_ref or config["target_ref"],
            review_ref=review_ref,
            reviewers=[r.strip() for r in reviewers.split(",") if r.strip()],
            description=description,
            requester=requester,
        )

    console.print(
        f"Review requested: [bold]{anchor[:12]}[/bold] "
        f"({escape(request.review_ref)} -> {escape(request.target_ref)})"
    )
