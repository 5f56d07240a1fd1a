"""pull and push commands: replicate review notes through a git remote."""

from __future__ import annotations

import click
from rich.console import Console

from revnotes_cli.errors import reported_errors
from revnotes_core import sync

console = Console()


@click.command("pull")
@click.argument("remote", required=False)
@click.pass_context
def pull_cmd(ctx, remote: str | None):
    """Fetch review notes from REMOTE and merge them into the local notes."""
    config = ctx.obj["config"]
    remote = remote or config["remote"]
    with reported_errors():
        merged = sync.pull(ctx.obj["repo"], remote, notes_prefix=config["notes_ref_prefix"])
    if merged:
        console.print(f"Merged review notes from {remote}: {', '.join(merged)}")
    else:
        console.print(f"[yellow]No review notes found on {remote}.[/yellow]")


@click.command("push")
@click.argument("remote", required=False)
@click.pass_context
def push_cmd(ctx, remote: str | None):
    """Push local review notes to REMOTE. Pull first if the push is rejected."""
    config = ctx.obj["config"]
    remote = remote or config["remote"]
    with reported_errors():
        sync.push(ctx.obj["repo"], remote, notes_prefix=config["notes_ref_prefix"])
    console.print(f"Pushed review notes to {remote}.")
