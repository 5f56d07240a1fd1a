"""submit command: fold the current review into its target ref."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from revnotes_cli.errors import reported_errors
from revnotes_core import review as reviews
from revnotes_core.submit import SubmitMode, submit, submit_mode

console = Console()


@click.command("submit")
@click.option("--merge", is_flag=True, help="Create a merge of the source and target refs.")
@click.option("--rebase", is_flag=True, help="Rebase the source ref onto the target ref.")
@click.option("--tbr", is_flag=True, help="(To be reviewed) Submit even if the review has not been accepted.")
@click.pass_context
def submit_cmd(ctx, merge: bool, rebase: bool, tbr: bool):
    """Submit the review for the checked-out commit.

    \b
    Without --merge or --rebase the target is fast-forwarded, which
    requires the target to be an ancestor of the review's source.
    """
    repo = ctx.obj["repo"]
    default_mode = SubmitMode(ctx.obj["config"]["submit_strategy"])

    with reported_errors():
        # Reject conflicting flags before touching the repository.
        mode = submit_mode(merge, rebase, default=default_mode)
        review = reviews.get_current(repo, ctx.obj["store"])
        new_head = submit(
            repo,
            review,
            merge=mode is SubmitMode.MERGE,
            rebase=mode is SubmitMode.REBASE,
            force_unresolved=tbr,
        )

    console.print(
        f"[green]Submitted[/green] review {review.short_id} to {escape(review.request.target_ref)} "
        f"({mode.value}, now at {new_head[:12]})."
    )
