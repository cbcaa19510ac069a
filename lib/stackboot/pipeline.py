from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from . import firewall, git_repo, packages, sshkeys, verify
from .environment import InvokingUser
from .repo_url import RepoRef
from .report import Reporter
from .session import HostSession
from .sshkeys import Decision, SshKey


@dataclass(frozen=True)
class BootstrapOptions:
    skip_upgrade: bool = False
    skip_firewall: bool = False
    skip_wireguard: bool = False
    non_interactive: bool = False
    dry_run: bool = False
    extra_packages: tuple[str, ...] = ()


@dataclass(frozen=True)
class BootstrapContext:
    user: InvokingUser
    repo: RepoRef
    options: BootstrapOptions = field(default_factory=BootstrapOptions)

    @property
    def target_dir(self) -> Path:
        return self.repo.target_dir(self.user.home)


@dataclass
class BootstrapResult:
    target_dir: Path
    branch: str | None = None
    fetch_outcome: git_repo.FetchOutcome | None = None
    docker_installed: bool = False
    added_to_docker_group: bool = False
    firewall_enabled: bool = False
    ssh_key: SshKey | None = None
    versions: verify.ToolVersions | None = None


def install_packages(
        session: HostSession,
        reporter: Reporter,
        ctx: BootstrapContext,
        result: BootstrapResult,
) -> None:
    opts = ctx.options
    packages.update_system(session, reporter, upgrade=not opts.skip_upgrade)
    packages.install_core_packages(session, reporter, opts.extra_packages)
    result.docker_installed = packages.install_docker(session, reporter)
    packages.enable_docker_service(session, reporter)
    result.added_to_docker_group = packages.ensure_docker_group(session, reporter, ctx.user)
    if not opts.skip_wireguard:
        packages.install_wireguard(session, reporter)


def sync_repository(
        session: HostSession,
        reporter: Reporter,
        ctx: BootstrapContext,
        result: BootstrapResult,
        decide: Callable[[int], Decision],
) -> None:
    user = ctx.user.name

    def _setup_ssh() -> SshKey:
        result.ssh_key = sshkeys.provision_github_ssh(session, reporter, ctx.user, decide)
        return result.ssh_key

    result.fetch_outcome = git_repo.fetch_repository(
        session,
        reporter,
        ctx.repo,
        ctx.target_dir,
        user=user,
        setup_ssh=_setup_ssh,
    )
    if session.dry_run:
        reporter.note("[dry-run] skip default branch checkout")
        return
    branch = git_repo.resolve_default_branch(session, reporter, ctx.target_dir, user=user)
    git_repo.checkout_branch(session, reporter, ctx.target_dir, branch, user=user)
    result.branch = branch


def run_bootstrap(
        session: HostSession,
        reporter: Reporter,
        ctx: BootstrapContext,
        decide: Callable[[int], Decision],
) -> BootstrapResult:
    """Run every provisioning step in order, stopping at the first fatal error."""
    result = BootstrapResult(target_dir=ctx.target_dir)
    install_packages(session, reporter, ctx, result)
    if not ctx.options.skip_firewall:
        result.firewall_enabled = firewall.configure_firewall(session, reporter)
    sync_repository(session, reporter, ctx, result, decide)
    if session.dry_run:
        reporter.note("[dry-run] skip tool verification")
    else:
        result.versions = verify.verify_tools(session, reporter)
    return result
