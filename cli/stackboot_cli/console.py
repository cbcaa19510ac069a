from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console()
err_console = Console(stderr=True)

BOOTSTRAP_TAG = escape("[BOOTSTRAP]")
INFO_TAG = escape("[INFO]")
OK_TAG = escape("[OK]")
WARN_TAG = escape("[WARN]")
ERROR_TAG = escape("[ERROR]")


def step(msg: str) -> None:
    console.print(f"[bold cyan]{BOOTSTRAP_TAG}[/] {escape(msg)}")


def info(msg: str) -> None:
    console.print(f"[cyan]{INFO_TAG}[/] {escape(msg)}")


def ok(msg: str) -> None:
    console.print(f"[bold green]{OK_TAG}[/] {escape(msg)}")


def warn(msg: str) -> None:
    err_console.print(f"[bold yellow]{WARN_TAG}[/] {escape(msg)}")


def err(msg: str) -> None:
    err_console.print(f"[bold red]{ERROR_TAG}[/] {escape(msg)}")


def print(*args, **kwargs):
    """Proxy to underlying rich Console.print()."""
    console.print(*args, **kwargs)


def rule(*args, **kwargs):
    """Proxy to underlying rich Console.rule()."""
    console.rule(*args, **kwargs)


class ConsoleReporter:
    """Renders library progress with the tagged console helpers."""

    def step(self, msg: str) -> None:
        step(msg)

    def note(self, msg: str) -> None:
        info(msg)

    def ok(self, msg: str) -> None:
        ok(msg)

    def warn(self, msg: str) -> None:
        warn(msg)

    def show(self, text: str) -> None:
        console.print()
        console.print(text, markup=False, highlight=False)
        console.print()
