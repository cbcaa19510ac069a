from __future__ import annotations

import logging
from typing import Callable, Iterable

import httpx

from .environment import InvokingUser, detect_codename
from .errors import PackageInstallError
from .probes import Presence, binary_presence, group_membership
from .report import Reporter
from .session import APT_ENV, HostSession, tail_lines

logger = logging.getLogger(__name__)

CORE_PACKAGES = (
    "ca-certificates",
    "curl",
    "gnupg",
    "lsb-release",
    "git",
    "unzip",
    "zip",
    "nano",
    "tree",
    "net-tools",
    "ufw",
    "wget",
    "qrencode",
    "python3",
    "python3-pip",
    "htop",
    "openssh-client",
)
# One command per core package; all present means the category is installed.
CORE_BINARIES = (
    "curl",
    "gpg",
    "lsb_release",
    "git",
    "unzip",
    "zip",
    "nano",
    "tree",
    "netstat",
    "ufw",
    "wget",
    "qrencode",
    "python3",
    "pip3",
    "htop",
    "ssh",
)
# The apt source must exist before these resolve.
DOCKER_PACKAGES = ("docker-ce", "docker-ce-cli", "containerd.io", "docker-compose-plugin")
WIREGUARD_PACKAGES = ("wireguard", "wireguard-tools")

DOCKER_GROUP = "docker"
DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_REPO_URL = "https://download.docker.com/linux/ubuntu"
KEYRING_DIR = "/etc/apt/keyrings"
DOCKER_KEYRING = f"{KEYRING_DIR}/docker.gpg"
DOCKER_SOURCES_LIST = "/etc/apt/sources.list.d/docker.list"
DEFAULT_DOWNLOAD_TIMEOUT = 30.0


def _apt_get(session: HostSession, args: list[str], *, what: str) -> None:
    res = session.run(["apt-get", *args], env=APT_ENV)
    if res.returncode != 0:
        detail = "\n".join(tail_lines(res.stderr or res.stdout or ""))
        message = f"{what} failed (apt-get {' '.join(args)})."
        if detail:
            message = f"{message}\n{detail}"
        raise PackageInstallError(message)


def update_system(session: HostSession, reporter: Reporter, *, upgrade: bool = True) -> None:
    if upgrade:
        reporter.step("Updating system packages (apt update/upgrade)...")
    else:
        reporter.step("Updating package index (apt update)...")
    _apt_get(session, ["update", "-y"], what="Package index update")
    if upgrade:
        _apt_get(session, ["upgrade", "-y"], what="System upgrade")


def install_core_packages(
        session: HostSession,
        reporter: Reporter,
        extra: Iterable[str] = (),
) -> list[str]:
    """Install the core tool set when any of its commands is missing, plus ``extra``.

    Returns the packages handed to apt, empty when nothing was needed.
    """
    missing = [name for name in CORE_BINARIES if binary_presence(session, name) is not Presence.PRESENT]
    if missing:
        logger.debug("core tools missing: %s", ", ".join(missing))
        packages = list(CORE_PACKAGES)
        reporter.step("Installing core packages (curl, git, etc.)...")
    else:
        packages = []
        reporter.note("Core tools already installed, skipping.")
    for name in extra:
        name = name.strip()
        if name and name not in packages:
            packages.append(name)
    if not packages:
        return packages
    if not missing:
        reporter.step(f"Installing extra packages: {' '.join(packages)}")
    _apt_get(session, ["install", "-y", *packages], what="Core package install")
    return packages


def fetch_docker_gpg_key(url: str = DOCKER_GPG_URL, *, timeout_s: float = DEFAULT_DOWNLOAD_TIMEOUT) -> bytes:
    try:
        response = httpx.get(url, timeout=timeout_s, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise PackageInstallError(f"Failed to download Docker signing key from {url}: {exc}") from exc
    return response.content


def docker_apt_source(arch: str, codename: str) -> str:
    return f"deb [arch={arch} signed-by={DOCKER_KEYRING}] {DOCKER_REPO_URL} {codename} stable\n"


def _dpkg_architecture(session: HostSession) -> str:
    res = session.query(["dpkg", "--print-architecture"])
    arch = (res.stdout or "").strip()
    if res.returncode != 0 or not arch:
        raise PackageInstallError("Could not determine the package architecture (dpkg --print-architecture).")
    return arch


def install_docker(
        session: HostSession,
        reporter: Reporter,
        *,
        fetch_key: Callable[[], bytes] | None = None,
) -> bool:
    """Install Docker Engine from the official apt repository.

    Returns ``False`` when a ``docker`` binary is already present.
    """
    if binary_presence(session, "docker") is Presence.PRESENT:
        reporter.step("Docker already installed, skipping.")
        return False

    reporter.step("Installing Docker from the official repository...")
    res = session.run(["install", "-m", "0755", "-d", KEYRING_DIR])
    if res.returncode != 0:
        raise PackageInstallError(f"Could not create {KEYRING_DIR}: {(res.stderr or '').strip()}")

    if session.dry_run:
        reporter.note(f"[dry-run] download {DOCKER_GPG_URL} -> {DOCKER_KEYRING}")
    else:
        key = (fetch_key or fetch_docker_gpg_key)()
        res = session.run_input(
            ["gpg", "--batch", "--yes", "--dearmor", "-o", DOCKER_KEYRING],
            key,
            log_label="dearmor docker signing key",
        )
        if res.returncode != 0:
            raise PackageInstallError(f"Failed to write {DOCKER_KEYRING}: {(res.stderr or '').strip()}")
    if session.run(["chmod", "a+r", DOCKER_KEYRING]).returncode != 0:
        reporter.warn(f"Could not make {DOCKER_KEYRING} world-readable.")

    source = docker_apt_source(_dpkg_architecture(session), detect_codename(session))
    session.write_file(DOCKER_SOURCES_LIST, source, mode=0o644)

    _apt_get(session, ["update", "-y"], what="Package index update")
    _apt_get(session, ["install", "-y", *DOCKER_PACKAGES], what="Docker install")
    reporter.ok("Docker installed.")
    return True


def enable_docker_service(session: HostSession, reporter: Reporter) -> None:
    if binary_presence(session, "systemctl") is not Presence.PRESENT:
        logger.debug("systemctl not found; not enabling docker service")
        return
    res = session.run(["systemctl", "enable", "--now", "docker"])
    if res.returncode != 0:
        reporter.warn("Could not enable/start the docker service via systemctl.")


def ensure_docker_group(
        session: HostSession,
        reporter: Reporter,
        user: InvokingUser,
        *,
        membership: Callable[[str, str], Presence] | None = None,
) -> bool:
    """Add the user to the docker group. Returns True when membership was granted."""
    if (membership or group_membership)(user.name, DOCKER_GROUP) is Presence.PRESENT:
        logger.debug("%s already in %s group", user.name, DOCKER_GROUP)
        return False
    reporter.step(f"Adding '{user.name}' to the '{DOCKER_GROUP}' group...")
    res = session.run(["usermod", "-aG", DOCKER_GROUP, user.name])
    if res.returncode != 0:
        reporter.warn(f"Could not add {user.name} to {DOCKER_GROUP} group.")
        return False
    reporter.note(
        f"'{user.name}' can now run docker without sudo. "
        "Re-login or re-SSH is required for docker group membership to take effect."
    )
    return True


def install_wireguard(session: HostSession, reporter: Reporter) -> bool:
    if binary_presence(session, "wg") is Presence.PRESENT:
        reporter.step("WireGuard tools already installed, skipping.")
        return False
    reporter.step("Installing WireGuard userland tools...")
    _apt_get(session, ["install", "-y", *WIREGUARD_PACKAGES], what="WireGuard install")
    return True
