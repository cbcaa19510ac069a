from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from stackboot import BootstrapError

from . import console


@contextmanager
def exit_on_bootstrap_error() -> Iterator[None]:
    """Turn library failures into an ``[ERROR]`` line and exit code 1."""
    try:
        yield
    except BootstrapError as exc:
        console.err(str(exc))
        if exc.hint:
            console.info(exc.hint)
        raise typer.Exit(code=1)
