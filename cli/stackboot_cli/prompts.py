from __future__ import annotations

from typing import Callable

import typer

from stackboot.sshkeys import Decision

from . import console

SKIP_WORD = "skip"


def prompt_repo_url() -> str:
    console.print()
    console.print("Enter your GitHub repository URL (HTTPS or SSH).")
    console.print("Examples:")
    console.print("  HTTPS: https://github.com/owner/repo.git", highlight=False)
    console.print("  SSH:   git@github.com:owner/repo.git", highlight=False)
    return typer.prompt("Repo URL", default="", show_default=False)


def ssh_retry_decision(*, non_interactive: bool) -> Callable[[int], Decision]:
    def _non_interactive(_attempt: int) -> Decision:
        console.warn("Non-interactive mode: not waiting for the key to be registered.")
        return Decision.ABORT

    def _ask(_attempt: int) -> Decision:
        answer = typer.prompt(
            f"Press Enter to retry, or type '{SKIP_WORD}' to abort SSH setup",
            default="",
            show_default=False,
        )
        if answer.strip().lower() == SKIP_WORD:
            return Decision.ABORT
        return Decision.RETRY

    return _non_interactive if non_interactive else _ask
