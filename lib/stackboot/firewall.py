from __future__ import annotations

import re

from .errors import BootstrapError
from .probes import Presence, binary_presence
from .report import Reporter
from .session import HostSession

SSH_PROFILE = "OpenSSH"

_STATUS_RE = re.compile(r"^\s*Status:\s*(active|inactive)\b", re.IGNORECASE | re.MULTILINE)


def parse_ufw_status(output: str) -> Presence:
    match = _STATUS_RE.search(output or "")
    if not match:
        return Presence.UNKNOWN
    return Presence.PRESENT if match.group(1).lower() == "active" else Presence.ABSENT


def firewall_state(session: HostSession) -> Presence:
    """PRESENT when ufw is active, ABSENT when inactive, UNKNOWN otherwise."""
    if binary_presence(session, "ufw") is not Presence.PRESENT:
        return Presence.UNKNOWN
    res = session.query(["ufw", "status"])
    if res.returncode != 0:
        return Presence.UNKNOWN
    return parse_ufw_status(res.stdout or "")


def configure_firewall(session: HostSession, reporter: Reporter) -> bool:
    """Enable ufw allowing only SSH, but only if it is currently inactive.

    An active or unreadable firewall is left exactly as it is. Returns True
    when the firewall was enabled by this call.
    """
    state = firewall_state(session)
    if state is Presence.PRESENT:
        reporter.step("UFW already active, leaving as-is.")
        return False
    if state is Presence.UNKNOWN:
        reporter.warn("Could not read UFW status; leaving firewall untouched.")
        return False

    reporter.step("UFW is inactive. Enabling only SSH for safety.")
    res = session.run(["ufw", "allow", SSH_PROFILE])
    if res.returncode != 0:
        raise BootstrapError(f"ufw allow {SSH_PROFILE} failed: {(res.stderr or res.stdout or '').strip()}")
    res = session.run(["ufw", "--force", "enable"])
    if res.returncode != 0:
        raise BootstrapError(f"ufw enable failed: {(res.stderr or res.stdout or '').strip()}")
    return True
