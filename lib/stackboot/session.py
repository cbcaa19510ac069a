from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .report import LogReporter, Reporter

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def _effective_uid() -> int:
    return os.geteuid() if hasattr(os, "geteuid") else -1


@dataclass
class HostSession:
    """Runs commands on the local host.

    ``query`` always executes and is meant for read-only probes. ``run``,
    ``run_input`` and ``write_file`` change the host and are skipped in
    dry-run mode, returning a successful empty result instead.
    """

    dry_run: bool = False
    reporter: Reporter = field(default_factory=LogReporter)
    euid: int = field(default_factory=_effective_uid)

    @property
    def is_root(self) -> bool:
        return self.euid == 0

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def as_user(
            self,
            user: str | None,
            command: list[str],
            env: dict[str, str] | None = None,
    ) -> list[str]:
        if not user or not self.is_root or user == "root":
            return list(command)
        # sudo resets the environment, so carry variables through env(1)
        carried = ["env", *(f"{k}={v}" for k, v in env.items())] if env else []
        return ["sudo", "-u", user, "-H", *carried, *command]

    def query(
            self,
            command: list[str],
            *,
            cwd: str | None = None,
            user: str | None = None,
            env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        cmd = self.as_user(user, command, env)
        logger.debug("query: %s", shlex.join(cmd))
        return self._exec(cmd, cwd=cwd, env=env)

    def run(
            self,
            command: list[str],
            *,
            cwd: str | None = None,
            user: str | None = None,
            env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        cmd = self.as_user(user, command, env)
        if self.dry_run:
            self.reporter.note(f"[dry-run] {shlex.join(cmd)}")
            return subprocess.CompletedProcess(cmd, 0, "", "")
        logger.debug("run: %s", shlex.join(cmd))
        return self._exec(cmd, cwd=cwd, env=env)

    def run_input(
            self,
            command: list[str],
            content: str | bytes,
            *,
            log_label: str,
            user: str | None = None,
    ) -> subprocess.CompletedProcess:
        cmd = self.as_user(user, command)
        if self.dry_run:
            self.reporter.note(f"[dry-run] {log_label}")
            return subprocess.CompletedProcess(cmd, 0, "", "")
        logger.debug("run (%s): %s", log_label, shlex.join(cmd))
        if isinstance(content, bytes):
            res = subprocess.run(cmd, input=content, capture_output=True, check=False)
            return subprocess.CompletedProcess(
                cmd,
                res.returncode,
                _decode(res.stdout),
                _decode(res.stderr),
            )
        return subprocess.run(
            cmd,
            text=True,
            input=content,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )

    def write_file(self, path: str | Path, content: str, *, mode: int | None = None) -> None:
        if self.dry_run:
            self.reporter.note(f"[dry-run] write {path}")
            return
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        if mode is not None:
            os.chmod(target, mode)

    def _exec(
            self,
            cmd: list[str],
            *,
            cwd: str | None,
            env: dict[str, str] | None,
    ) -> subprocess.CompletedProcess:
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)
        try:
            return subprocess.run(
                cmd,
                cwd=cwd,
                text=True,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                env=full_env,
                check=False,
            )
        except FileNotFoundError as exc:
            return subprocess.CompletedProcess(cmd, 127, "", str(exc))


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def tail_lines(text: str, *, limit: int = 12) -> list[str]:
    lines = [line for line in (text or "").splitlines() if line.strip()]
    return lines[-limit:] if lines else []


def output_of(res: subprocess.CompletedProcess) -> str:
    return "\n".join(part.strip() for part in (res.stdout or "", res.stderr or "") if part and part.strip())
