from __future__ import annotations

import logging
import os
import socket
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable

from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat

from .environment import InvokingUser
from .errors import BootstrapError, SshSetupAborted
from .probes import Presence, binary_presence
from .report import Reporter
from .session import HostSession, output_of

logger = logging.getLogger(__name__)

ED25519_KEY_NAME = "id_ed25519"
RSA_KEY_NAME = "id_rsa"
SSH_DIR_MODE = 0o700
PRIVATE_KEY_MODE = 0o600
PUBLIC_KEY_MODE = 0o644

GITHUB_SSH_TARGET = "git@github.com"
GITHUB_KEYS_URL = "https://github.com/settings/keys"
# GitHub exits 1 on this probe even when the key works; only the text counts.
GITHUB_AUTH_OK_MARKER = "successfully authenticated"


class Decision(str, Enum):
    RETRY = "retry"
    ABORT = "abort"


@dataclass(frozen=True)
class SshKey:
    private_path: Path
    public_path: Path
    generated: bool = False


def public_key_path(private_path: Path) -> Path:
    return private_path.with_name(private_path.name + ".pub")


def find_existing_key(ssh_dir: Path) -> Path | None:
    for name in (ED25519_KEY_NAME, RSA_KEY_NAME):
        candidate = ssh_dir / name
        if candidate.is_file():
            return candidate
    return None


def key_comment(user: InvokingUser, *, today: date | None = None) -> str:
    today = today or date.today()
    return f"{user.name}@{socket.gethostname()}-{today.isoformat()}"


def generate_ed25519_key(private_path: Path, comment: str) -> SshKey:
    """Write a new passphrase-less ed25519 key pair in OpenSSH format.

    Refuses to replace existing files.
    """
    public_path = public_key_path(private_path)
    for path in (private_path, public_path):
        if path.exists():
            raise BootstrapError(f"Refusing to overwrite existing key file: {path}")

    priv = ed25519.Ed25519PrivateKey.generate()
    priv_bytes = priv.private_bytes(Encoding.PEM, PrivateFormat.OpenSSH, NoEncryption())
    pub_bytes = priv.public_key().public_bytes(Encoding.OpenSSH, PublicFormat.OpenSSH)

    _write_exclusive(private_path, priv_bytes, PRIVATE_KEY_MODE)
    _write_exclusive(public_path, pub_bytes + f" {comment}\n".encode("utf-8"), PUBLIC_KEY_MODE)
    return SshKey(private_path=private_path, public_path=public_path, generated=True)


def _write_exclusive(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    os.chmod(path, mode)


def prepare_ssh_dir(session: HostSession, reporter: Reporter, user: InvokingUser) -> Path:
    ssh_dir = user.ssh_dir
    if session.dry_run:
        reporter.note(f"[dry-run] ensure {ssh_dir} (mode 700, owner {user.name})")
        return ssh_dir
    try:
        ssh_dir.mkdir(parents=True, exist_ok=True)
        _chown(ssh_dir, user)
        os.chmod(ssh_dir, SSH_DIR_MODE)
    except OSError as exc:
        raise BootstrapError(f"Could not prepare {ssh_dir}: {exc}") from exc
    return ssh_dir


def enforce_key_permissions(reporter: Reporter, key: SshKey, user: InvokingUser) -> None:
    for path, mode in ((key.private_path, PRIVATE_KEY_MODE), (key.public_path, PUBLIC_KEY_MODE)):
        try:
            os.chmod(path, mode)
            _chown(path, user)
        except OSError as exc:
            reporter.warn(f"Could not set permissions on {path}: {exc}")


def _chown(path: Path, user: InvokingUser) -> None:
    st = path.stat()
    if st.st_uid == user.uid and st.st_gid == user.gid:
        return
    os.chown(path, user.uid, user.gid)


def ensure_key(
        session: HostSession,
        reporter: Reporter,
        user: InvokingUser,
        *,
        today: date | None = None,
) -> SshKey:
    """Return the user's SSH key, generating an ed25519 one if none exists."""
    ssh_dir = prepare_ssh_dir(session, reporter, user)
    existing = find_existing_key(ssh_dir)
    if existing is not None:
        key = SshKey(private_path=existing, public_path=public_key_path(existing))
        if not key.public_path.is_file():
            raise BootstrapError(
                f"Public key {key.public_path} is missing.",
                hint=f"Recreate it with: ssh-keygen -y -f {key.private_path} > {key.public_path}",
            )
        logger.debug("using existing key %s", existing)
    elif session.dry_run:
        private_path = ssh_dir / ED25519_KEY_NAME
        reporter.note(f"[dry-run] generate ed25519 key {private_path}")
        return SshKey(private_path=private_path, public_path=public_key_path(private_path), generated=True)
    else:
        reporter.step("Generating a new SSH key (ed25519)...")
        key = generate_ed25519_key(ssh_dir / ED25519_KEY_NAME, key_comment(user, today=today))

    if session.dry_run:
        reporter.note(
            f"[dry-run] chmod 600 {key.private_path}, chmod 644 {key.public_path}, chown {user.name}"
        )
    else:
        enforce_key_permissions(reporter, key, user)
    return key


def add_to_agent(session: HostSession, key: SshKey, user: InvokingUser) -> None:
    if binary_presence(session, "ssh-add") is not Presence.PRESENT:
        return
    res = session.run(["ssh-add", str(key.private_path)], user=user.name)
    if res.returncode != 0:
        logger.debug("ssh-add failed: %s", output_of(res))


def show_public_key(reporter: Reporter, key: SshKey) -> None:
    try:
        public = key.public_path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise BootstrapError(f"Could not read {key.public_path}: {exc}") from exc
    reporter.show(
        "\n".join(
            [
                "==> Add this SSH public key to GitHub (Settings -> SSH and GPG keys):",
                "-" * 67,
                public,
                "-" * 67,
                f"URL: {GITHUB_KEYS_URL}",
            ]
        )
    )


def github_auth_accepted(output: str) -> bool:
    return GITHUB_AUTH_OK_MARKER in (output or "").lower()


def probe_github_auth(session: HostSession, user: InvokingUser) -> bool:
    res = session.query(
        [
            "ssh",
            "-T",
            "-o",
            "StrictHostKeyChecking=accept-new",
            "-o",
            "BatchMode=yes",
            GITHUB_SSH_TARGET,
        ],
        user=user.name,
    )
    output = output_of(res)
    logger.debug("github ssh probe exit=%s output=%r", res.returncode, output)
    return github_auth_accepted(output)


def wait_for_github_acceptance(
        session: HostSession,
        reporter: Reporter,
        user: InvokingUser,
        decide: Callable[[int], Decision],
) -> int:
    """Block until GitHub accepts the user's key or ``decide`` says abort.

    ``decide`` receives the number of failed attempts so far. Returns the
    attempt number that succeeded.
    """
    attempt = 0
    while True:
        attempt += 1
        reporter.step("Testing GitHub SSH access...")
        if probe_github_auth(session, user):
            reporter.ok("GitHub SSH authentication looks good.")
            return attempt
        reporter.note("GitHub hasn't accepted the key yet.")
        if decide(attempt) is Decision.ABORT:
            raise SshSetupAborted("SSH setup aborted by user.")


def provision_github_ssh(
        session: HostSession,
        reporter: Reporter,
        user: InvokingUser,
        decide: Callable[[int], Decision],
) -> SshKey:
    key = ensure_key(session, reporter, user)
    if session.dry_run:
        reporter.note(f"[dry-run] register {key.public_path} at {GITHUB_KEYS_URL} and test ssh -T {GITHUB_SSH_TARGET}")
        return key
    add_to_agent(session, key, user)
    show_public_key(reporter, key)
    wait_for_github_acceptance(session, reporter, user, decide)
    return key
