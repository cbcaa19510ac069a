from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest

from stackboot.environment import InvokingUser
from stackboot.session import HostSession


class RecordingReporter:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def step(self, msg: str) -> None:
        self.events.append(("step", msg))

    def note(self, msg: str) -> None:
        self.events.append(("note", msg))

    def ok(self, msg: str) -> None:
        self.events.append(("ok", msg))

    def warn(self, msg: str) -> None:
        self.events.append(("warn", msg))

    def show(self, text: str) -> None:
        self.events.append(("show", text))

    def messages(self, level: str) -> list[str]:
        return [msg for kind, msg in self.events if kind == level]


class FakeSession(HostSession):
    """HostSession that records commands and answers from scripted rules.

    ``respond(needle, *results)`` matches any command whose joined text
    contains ``needle``; results are consumed in order and the last one
    repeats. Unmatched commands succeed with empty output.
    """

    def __init__(self, *, binaries=(), dry_run: bool = False, euid: int = 0) -> None:
        super().__init__(dry_run=dry_run, reporter=RecordingReporter(), euid=euid)
        self.binaries = set(binaries)
        self.rules: list[tuple[str, list[subprocess.CompletedProcess]]] = []
        self.commands: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []
        self.inputs: list[str | bytes] = []
        self.files: dict[str, str] = {}

    def respond(self, needle: str, *results: subprocess.CompletedProcess) -> "FakeSession":
        self.rules.append((needle, list(results)))
        return self

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.binaries else None

    def _exec(self, cmd, *, cwd, env):
        self.commands.append(list(cmd))
        self.envs.append(env)
        return self._answer(cmd)

    def run_input(self, command, content, *, log_label, user=None):
        if self.dry_run:
            return super().run_input(command, content, log_label=log_label, user=user)
        cmd = self.as_user(user, command)
        self.commands.append(cmd)
        self.envs.append(None)
        self.inputs.append(content)
        return self._answer(cmd)

    def write_file(self, path, content, *, mode=None):
        if self.dry_run:
            return super().write_file(path, content, mode=mode)
        self.files[str(path)] = content

    def joined(self) -> list[str]:
        return [" ".join(cmd) for cmd in self.commands]

    def _answer(self, cmd: list[str]) -> subprocess.CompletedProcess:
        text = " ".join(cmd)
        for needle, results in self.rules:
            if needle in text:
                res = results.pop(0) if len(results) > 1 else results[0]
                return subprocess.CompletedProcess(cmd, res.returncode, res.stdout, res.stderr)
        return subprocess.CompletedProcess(cmd, 0, "", "")


def done(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def user(tmp_path: Path) -> InvokingUser:
    home = tmp_path / "home" / "alice"
    home.mkdir(parents=True)
    return InvokingUser(name="alice", uid=os.getuid(), gid=os.getgid(), home=home)
