from __future__ import annotations

import typer

from stackboot import BootstrapContext, BootstrapOptions, BootstrapResult, parse_repo_url, run_bootstrap
from stackboot.environment import check_environment, resolve_invoking_user
from stackboot.git_repo import FetchOutcome
from stackboot.repo_url import UNRECOGNIZED_WARNING, select_repo_url
from stackboot.session import HostSession

from .. import console
from ..config import load_config
from ..errors import exit_on_bootstrap_error
from ..prompts import prompt_repo_url, ssh_retry_decision


def bootstrap(
        repo_url: str | None = typer.Argument(
            None,
            envvar="GITHUB_REPO",
            show_envvar=True,
            help="GitHub repository URL (HTTPS or SSH) to clone into ~/<repo>.",
        ),
        skip_upgrade: bool = typer.Option(False, "--skip-upgrade", help="Run apt-get update but not upgrade."),
        skip_firewall: bool = typer.Option(False, "--skip-firewall", help="Do not touch UFW."),
        skip_wireguard: bool = typer.Option(False, "--skip-wireguard", help="Do not install WireGuard tools."),
        packages: list[str] | None = typer.Option(
            None,
            "--package",
            "-p",
            help="Extra apt package to install with the core set (repeatable).",
        ),
        non_interactive: bool = typer.Option(False, "--non-interactive", help="Fail instead of prompting."),
        dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without changing it."),
):
    """Provision this host: packages, Docker, WireGuard, firewall and the repository.

    Examples:
      sudo stackboot bootstrap https://github.com/acme/widgets.git
      sudo GITHUB_REPO=git@github.com:acme/widgets.git stackboot bootstrap --non-interactive
    """
    console.rule("[bold]Stackboot Host Bootstrap[/]")
    cfg = load_config()
    reporter = console.ConsoleReporter()
    session = HostSession(dry_run=dry_run, reporter=reporter)

    with exit_on_bootstrap_error():
        check_environment(session, reporter)
        user = resolve_invoking_user(session, reporter)
        raw_url = select_repo_url(
            repo_url,
            cfg.repo_url,
            prompt=None if non_interactive else prompt_repo_url,
        )
        repo = parse_repo_url(raw_url)
        if not repo.recognized:
            console.warn(UNRECOGNIZED_WARNING)

        extra = tuple(dict.fromkeys([*cfg.extra_packages, *(packages or [])]))
        ctx = BootstrapContext(
            user=user,
            repo=repo,
            options=BootstrapOptions(
                skip_upgrade=skip_upgrade or cfg.skip_upgrade,
                skip_firewall=skip_firewall or cfg.skip_firewall,
                skip_wireguard=skip_wireguard or cfg.skip_wireguard,
                non_interactive=non_interactive,
                dry_run=dry_run,
                extra_packages=extra,
            ),
        )
        console.info(f"Target directory: {ctx.target_dir} (user: {user.name})")
        result = run_bootstrap(session, reporter, ctx, ssh_retry_decision(non_interactive=non_interactive))

    print_summary(result, dry_run=dry_run)


def print_summary(result: BootstrapResult, *, dry_run: bool = False) -> None:
    console.print()
    console.rule()
    if dry_run:
        console.ok("Dry run complete. No changes were made.")
    else:
        console.ok("Bootstrap complete.")
    if dry_run or result.fetch_outcome is None:
        label = "Repo directory"
    elif result.fetch_outcome is FetchOutcome.FETCHED:
        label = "Repo updated in"
    else:
        label = "Repo cloned to"
    console.print(f"{label}: {result.target_dir}", highlight=False)
    if result.branch:
        console.print(f"Branch: {result.branch}", highlight=False)
    console.print()
    console.print("Next steps (typical):")
    console.print(f'  cd "{result.target_dir}"', highlight=False)
    console.print("  # configure .env then start the stack")
    console.print("  docker compose up -d")
    if result.added_to_docker_group:
        console.print()
        console.warn("You were just added to the 'docker' group: re-login or re-SSH now.")
    console.rule()
