"""CLI entry point for revnotes.

Commands:
  request: open a review of the current branch
  comment: comment on a review (accept / reject record a verdict)
  show: display the current state of a review
  list: list open (or all) reviews
  submit: fold an accepted review into its target ref
  pull: fetch and merge review notes from a remote
  push: publish review notes to a remote
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from revnotes_cli.commands.comment import accept_cmd, comment_cmd, reject_cmd
from revnotes_cli.commands.list import list_cmd
from revnotes_cli.commands.request import request_cmd
from revnotes_cli.commands.show import show_cmd
from revnotes_cli.commands.submit import submit_cmd
from revnotes_cli.commands.sync import pull_cmd, push_cmd

console = Console()


def _build_repo(path: str):
    """Open the repository the commands operate on.

    Lives in cli.py so tests can swap in a MockRepo in one place.
    """
    from revnotes_core.repository.git import GitRepo

    return GitRepo(path)


def _build_store(config: dict, repo):
    """Notes are kept in the repository under ``notes_ref_prefix``."""
    from revnotes_store.repo import RepoNoteStore

    return RepoNoteStore(repo, ref_prefix=config["notes_ref_prefix"])


@click.group()
@click.version_option(
    version=importlib.metadata.version("revnotes"),
    prog_name="revnotes",
)
@click.option(
    "--config",
    "config_path",
    default=".revnotes.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVNOTES_CONFIG",
)
@click.option("-C", "repo_path", default=".", show_default=True, help="Run as if started in this directory.")
@click.option("--verbose", "-v", is_flag=True, help="Log git commands and skipped records.")
@click.pass_context
def main(ctx: click.Context, config_path: str, repo_path: str, verbose: bool):
    """Distributed code review stored in git notes."""
    from revnotes_core.config import load_config

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    repo = _build_repo(repo_path)
    store = _build_store(config, repo)
    ctx.obj["config"] = config
    ctx.obj["repo"] = repo
    ctx.obj["store"] = store
    ctx.call_on_close(store.close)


main.add_command(request_cmd)
main.add_command(comment_cmd)
main.add_command(accept_cmd)
main.add_command(reject_cmd)
main.add_command(show_cmd)
main.add_command(list_cmd)
main.add_command(submit_cmd)
main.add_command(pull_cmd)
main.add_command(push_cmd)
