from __future__ import annotations

import typer

from stackboot.environment import check_environment, resolve_invoking_user
from stackboot.session import HostSession
from stackboot.sshkeys import provision_github_ssh

from .. import console
from ..errors import exit_on_bootstrap_error
from ..prompts import ssh_retry_decision


def ssh_key(
        non_interactive: bool = typer.Option(False, "--non-interactive", help="Do not wait for key registration."),
        dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without changing it."),
):
    """Create (if needed) and register an SSH key with GitHub for the login user."""
    reporter = console.ConsoleReporter()
    session = HostSession(dry_run=dry_run, reporter=reporter)
    with exit_on_bootstrap_error():
        check_environment(session, reporter)
        user = resolve_invoking_user(session, reporter)
        key = provision_github_ssh(session, reporter, user, ssh_retry_decision(non_interactive=non_interactive))
    console.ok(f"SSH key ready: {key.private_path}")
