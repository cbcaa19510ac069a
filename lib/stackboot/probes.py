from __future__ import annotations

from enum import Enum
from pathlib import Path

from .session import HostSession


class Presence(str, Enum):
    ABSENT = "absent"
    PRESENT = "present"
    UNKNOWN = "unknown"


def binary_presence(session: HostSession, name: str) -> Presence:
    return Presence.PRESENT if session.which(name) else Presence.ABSENT


def group_membership(user: str, group: str) -> Presence:
    import grp
    import pwd

    try:
        entry = pwd.getpwnam(user)
    except KeyError:
        return Presence.UNKNOWN
    try:
        group_entry = grp.getgrnam(group)
    except KeyError:
        return Presence.ABSENT
    if entry.pw_gid == group_entry.gr_gid or user in group_entry.gr_mem:
        return Presence.PRESENT
    return Presence.ABSENT


def repo_presence(target_dir: Path) -> Presence:
    try:
        return Presence.PRESENT if (target_dir / ".git").is_dir() else Presence.ABSENT
    except PermissionError:
        return Presence.UNKNOWN
