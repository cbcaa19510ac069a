from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import PreconditionError
from .report import Reporter
from .session import HostSession

SUPPORTED_DISTRO = "Ubuntu"


@dataclass(frozen=True)
class InvokingUser:
    name: str
    uid: int
    gid: int
    home: Path

    @property
    def ssh_dir(self) -> Path:
        return self.home / ".ssh"


def is_posix() -> bool:
    return os.name == "posix"


def check_environment(session: HostSession, reporter: Reporter) -> str | None:
    """Validate the host before touching it and return the detected distro."""
    if not is_posix():
        raise PreconditionError("This tool requires a POSIX environment.")
    if not session.is_root:
        reporter.warn("Run with sudo for best results. Attempting to continue, but some steps may fail.")
    distro = detect_distro(session)
    if distro is None:
        reporter.warn("lsb_release not found; skipping distro check.")
    elif distro != SUPPORTED_DISTRO:
        reporter.warn(f"This tool is optimized for {SUPPORTED_DISTRO}. Detected: {distro}")
    return distro


def detect_distro(session: HostSession) -> str | None:
    if not session.which("lsb_release"):
        return None
    res = session.query(["lsb_release", "-is"])
    if res.returncode != 0:
        return "Unknown"
    return (res.stdout or "").strip() or "Unknown"


def detect_codename(session: HostSession) -> str:
    res = session.query(["lsb_release", "-cs"])
    codename = (res.stdout or "").strip()
    if res.returncode != 0 or not codename:
        raise PreconditionError(
            "Could not determine the release codename.",
            hint="Install lsb-release and re-run.",
        )
    return codename


def user_candidates(session: HostSession, environ: Mapping[str, str] | None = None) -> list[str]:
    env = os.environ if environ is None else environ
    candidates: list[str] = []
    res = session.query(["logname"])
    if res.returncode == 0:
        candidates.append((res.stdout or "").strip())
    candidates.append((env.get("SUDO_USER") or "").strip())
    candidates.append((env.get("USER") or "").strip())
    seen: list[str] = []
    for name in candidates:
        if name and name not in seen:
            seen.append(name)
    return seen


def resolve_invoking_user(
        session: HostSession,
        reporter: Reporter,
        environ: Mapping[str, str] | None = None,
) -> InvokingUser:
    """Find the human account this run is on behalf of.

    Login records come first so that ``sudo stackboot`` still resolves to the
    person who typed it, not root. Candidates are checked against the passwd
    database; if none of them is a real account the effective uid is used.
    """
    for name in user_candidates(session, environ):
        user = _lookup_name(name)
        if user is not None:
            return user
    user = _lookup_uid(session.euid)
    if user is None:
        raise PreconditionError("Could not resolve the invoking user from login records or the current uid.")
    reporter.warn(f"Could not resolve the login user; continuing as '{user.name}'.")
    return user


def _lookup_name(name: str) -> InvokingUser | None:
    import pwd

    try:
        entry = pwd.getpwnam(name)
    except KeyError:
        return None
    return InvokingUser(name=entry.pw_name, uid=entry.pw_uid, gid=entry.pw_gid, home=Path(entry.pw_dir))


def _lookup_uid(uid: int) -> InvokingUser | None:
    import pwd

    if uid < 0:
        return None
    try:
        entry = pwd.getpwuid(uid)
    except KeyError:
        return None
    return InvokingUser(name=entry.pw_name, uid=entry.pw_uid, gid=entry.pw_gid, home=Path(entry.pw_dir))
