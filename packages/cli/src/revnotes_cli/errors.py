"""Map core errors onto click's error reporting (message + non-zero exit)."""

from __future__ import annotations

from contextlib import contextmanager

import click

from revnotes_core.errors import RevnotesError


@contextmanager
def reported_errors():
    try:
        yield
    except RevnotesError as e:
        raise click.ClickException(str(e)) from e
