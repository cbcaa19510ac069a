from __future__ import annotations

from dataclasses import dataclass

from .errors import VerificationError
from .report import Reporter
from .session import HostSession


@dataclass(frozen=True)
class ToolVersions:
    docker: str
    compose: str
    git: str


def _first_line(text: str | None) -> str:
    lines = (text or "").strip().splitlines()
    return lines[0].strip() if lines else ""


def verify_tools(session: HostSession, reporter: Reporter) -> ToolVersions:
    """Confirm docker, the compose plugin and git respond to a version query."""
    reporter.step("Verifying installations...")

    res = session.query(["docker", "--version"])
    if res.returncode != 0:
        raise VerificationError(
            "Docker not installed correctly.",
            hint="Re-run: apt-get install -y docker-ce docker-ce-cli containerd.io",
        )
    docker = _first_line(res.stdout)
    reporter.note(docker)

    res = session.query(["docker", "compose", "version"])
    if res.returncode != 0:
        raise VerificationError(
            "Docker Compose plugin missing.",
            hint="Re-run: apt-get install -y docker-compose-plugin",
        )
    compose = _first_line(res.stdout)

    res = session.query(["git", "--version"])
    if res.returncode != 0:
        raise VerificationError("Git not installed correctly.", hint="Re-run: apt-get install -y git")
    git = _first_line(res.stdout)

    reporter.ok("Docker, Docker Compose and git are available.")
    return ToolVersions(docker=docker, compose=compose, git=git)
