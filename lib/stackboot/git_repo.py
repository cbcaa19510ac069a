from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Callable

from .errors import BranchResolutionError, CloneError
from .probes import Presence, repo_presence
from .report import Reporter
from .repo_url import RepoRef
from .session import HostSession, output_of, tail_lines

logger = logging.getLogger(__name__)

FALLBACK_BRANCHES = ("main", "master")

# Fail instead of stopping at a username/password prompt on private repos.
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}

_HEAD_BRANCH_RE = re.compile(r"HEAD branch:\s*(\S+)")


class FetchOutcome(str, Enum):
    CLONED = "cloned"
    FETCHED = "fetched"


def _git(target: Path, *args: str) -> list[str]:
    return ["git", "-C", str(target), *args]


def sync_attempt(
        session: HostSession,
        reporter: Reporter,
        url: str,
        target: Path,
        *,
        user: str | None,
) -> tuple[FetchOutcome, bool]:
    """Clone ``url`` into ``target``, or fetch origin if a clone is already there.

    Returns the action taken and whether it succeeded.
    """
    if repo_presence(target) is Presence.PRESENT:
        reporter.step(f"Repository already present at {target}, fetching latest from origin.")
        res = session.run(_git(target, "fetch", "--all", "--prune"), user=user, env=GIT_ENV)
        outcome = FetchOutcome.FETCHED
    else:
        reporter.step(f"Cloning repository from: {url}")
        res = session.run(["git", "clone", url, str(target)], user=user, env=GIT_ENV)
        outcome = FetchOutcome.CLONED
    if res.returncode != 0:
        logger.debug("git %s failed: %s", outcome.value, output_of(res))
    return outcome, res.returncode == 0


def point_origin(
        session: HostSession,
        reporter: Reporter,
        target: Path,
        url: str,
        *,
        user: str | None,
) -> None:
    reporter.step(f"Pointing origin at {url}")
    res = session.run(_git(target, "remote", "set-url", "origin", url), user=user)
    if res.returncode != 0:
        raise CloneError(
            f"Could not set origin of {target} to {url}.",
            hint="\n".join(tail_lines(output_of(res))) or None,
        )


def fetch_repository(
        session: HostSession,
        reporter: Reporter,
        repo: RepoRef,
        target: Path,
        *,
        user: str | None,
        setup_ssh: Callable[[], object],
) -> FetchOutcome:
    """Bring ``target`` up to date, falling back from HTTPS to SSH.

    ``setup_ssh`` runs only when the first attempt fails; it is expected to
    leave the user with a key GitHub accepts, or raise. An existing clone
    has its origin switched to the SSH URL before the second fetch.
    """
    outcome, ok = sync_attempt(session, reporter, repo.https_url, target, user=user)
    if ok:
        return outcome

    action = "clone" if outcome is FetchOutcome.CLONED else "fetch"
    reporter.warn(f"HTTPS {action} failed (private repo or perms). Switching to SSH setup.")
    setup_ssh()

    if outcome is FetchOutcome.FETCHED:
        point_origin(session, reporter, target, repo.ssh_url, user=user)
    outcome, ok = sync_attempt(session, reporter, repo.ssh_url, target, user=user)
    if not ok:
        verb = "Clone" if outcome is FetchOutcome.CLONED else "Fetch"
        raise CloneError(f"{verb} via SSH failed.")
    return outcome


def parse_head_branch(output: str) -> str | None:
    match = _HEAD_BRANCH_RE.search(output or "")
    if not match:
        return None
    branch = match.group(1).strip()
    if not branch or branch == "(unknown)":
        return None
    return branch


def remote_default_branch(session: HostSession, target: Path, *, user: str | None) -> str | None:
    res = session.query(_git(target, "remote", "show", "origin"), user=user, env=GIT_ENV)
    if res.returncode != 0:
        logger.debug("git remote show origin failed: %s", output_of(res))
        return None
    return parse_head_branch(res.stdout or "")


def local_branch_exists(session: HostSession, target: Path, branch: str, *, user: str | None) -> bool:
    res = session.query(_git(target, "rev-parse", "--verify", "--quiet", branch), user=user)
    return res.returncode == 0


def resolve_default_branch(
        session: HostSession,
        reporter: Reporter,
        target: Path,
        *,
        user: str | None,
) -> str:
    branch = remote_default_branch(session, target, user=user)
    if branch:
        return branch
    reporter.warn("Could not determine default branch. Falling back to 'main' (or 'master' if missing).")
    for candidate in FALLBACK_BRANCHES:
        if local_branch_exists(session, target, candidate, user=user):
            return candidate
    raise BranchResolutionError("No 'main' or 'master' branch found.")


def checkout_branch(
        session: HostSession,
        reporter: Reporter,
        target: Path,
        branch: str,
        *,
        user: str | None,
) -> None:
    reporter.step(f"Checking out default branch: {branch}")
    res = session.run(_git(target, "checkout", branch), user=user)
    if res.returncode != 0:
        detail = "\n".join(tail_lines(output_of(res), limit=6))
        raise BranchResolutionError(f"git checkout {branch} failed.\n{detail}".rstrip())
    res = session.run(_git(target, "pull", "--ff-only", "origin", branch), user=user, env=GIT_ENV)
    if res.returncode != 0:
        reporter.warn(f"Fast-forward pull of '{branch}' failed; local changes left for you to resolve.")
