"""GitHub repository URL normalization."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .errors import InputError

_HTTPS_RE = re.compile(r"^https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?$")
_SSH_RE = re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$")

UNRECOGNIZED_WARNING = "Unrecognized GitHub URL format. Will try to clone as-is."


@dataclass(frozen=True)
class RepoRef:
    raw: str
    owner_repo: str | None = None

    @property
    def recognized(self) -> bool:
        return self.owner_repo is not None

    @property
    def https_url(self) -> str:
        if self.owner_repo is None:
            return self.raw
        return f"https://github.com/{self.owner_repo}.git"

    @property
    def ssh_url(self) -> str:
        if self.owner_repo is None:
            return self.raw
        return f"git@github.com:{self.owner_repo}.git"

    @property
    def repo_name(self) -> str:
        source = self.owner_repo or self.raw
        name = posixpath.basename(source.rstrip("/"))
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return name

    def target_dir(self, home: Path) -> Path:
        name = self.repo_name
        if not name or name in {".", ".."}:
            raise InputError(f"Cannot derive a directory name from repository URL: {self.raw}")
        return home / name


def extract_owner_repo(url: str) -> str | None:
    """Return ``owner/repo`` for GitHub HTTPS or SSH URLs, ``None`` otherwise.

    Handles:
    - https://github.com/owner/repo
    - https://github.com/owner/repo.git
    - git@github.com:owner/repo
    - git@github.com:owner/repo.git
    """
    for pattern in (_HTTPS_RE, _SSH_RE):
        match = pattern.match(url)
        if match:
            return f"{match.group(1)}/{match.group(2)}"
    return None


def parse_repo_url(raw: str) -> RepoRef:
    value = (raw or "").strip()
    if not value:
        raise InputError("No repository URL provided.")
    return RepoRef(raw=value, owner_repo=extract_owner_repo(value))


def select_repo_url(
        *candidates: str | None,
        prompt: Callable[[], str] | None = None,
) -> str:
    """Pick the first non-empty candidate, falling back to ``prompt``."""
    for candidate in candidates:
        value = (candidate or "").strip()
        if value:
            return value
    if prompt is not None:
        value = (prompt() or "").strip()
        if value:
            return value
    raise InputError("No repository URL provided.")
