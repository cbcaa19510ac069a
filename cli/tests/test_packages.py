import httpx
import pytest

from stackboot import packages
from stackboot.errors import PackageInstallError
from stackboot.probes import Presence

from conftest import FakeSession, done

READ_ONLY = ("dpkg --print-architecture", "lsb_release -cs")


def _docker_ready_session() -> FakeSession:
    return (
        FakeSession()
        .respond("dpkg --print-architecture", done(stdout="amd64\n"))
        .respond("lsb_release -cs", done(stdout="noble\n"))
    )


def test_docker_apt_source_line() -> None:
    assert packages.docker_apt_source("arm64", "jammy") == (
        "deb [arch=arm64 signed-by=/etc/apt/keyrings/docker.gpg] "
        "https://download.docker.com/linux/ubuntu jammy stable\n"
    )


def test_install_docker_skips_when_present() -> None:
    session = FakeSession(binaries={"docker"})

    assert packages.install_docker(session, session.reporter, fetch_key=lambda: b"unused") is False
    assert session.commands == []
    assert session.reporter.messages("step") == ["Docker already installed, skipping."]


def test_install_docker_adds_repository_before_packages() -> None:
    session = _docker_ready_session()

    installed = packages.install_docker(session, session.reporter, fetch_key=lambda: b"ARMORED KEY")

    assert installed is True
    joined = session.joined()
    assert joined == [
        "install -m 0755 -d /etc/apt/keyrings",
        "gpg --batch --yes --dearmor -o /etc/apt/keyrings/docker.gpg",
        "chmod a+r /etc/apt/keyrings/docker.gpg",
        "dpkg --print-architecture",
        "lsb_release -cs",
        "apt-get update -y",
        "apt-get install -y docker-ce docker-ce-cli containerd.io docker-compose-plugin",
    ]
    assert session.inputs == [b"ARMORED KEY"]
    assert session.files == {
        "/etc/apt/sources.list.d/docker.list": (
            "deb [arch=amd64 signed-by=/etc/apt/keyrings/docker.gpg] "
            "https://download.docker.com/linux/ubuntu noble stable\n"
        )
    }


def test_apt_commands_run_noninteractive() -> None:
    session = FakeSession()

    packages.update_system(session, session.reporter)

    assert session.joined() == ["apt-get update -y", "apt-get upgrade -y"]
    assert all(env and env["DEBIAN_FRONTEND"] == "noninteractive" for env in session.envs)


def test_update_system_can_skip_upgrade() -> None:
    session = FakeSession()

    packages.update_system(session, session.reporter, upgrade=False)

    assert session.joined() == ["apt-get update -y"]


def test_install_core_packages_appends_extras_once() -> None:
    session = FakeSession()

    installed = packages.install_core_packages(session, session.reporter, ["jq", "git", " ", "jq"])

    assert installed[-1] == "jq"
    assert installed.count("git") == 1
    assert session.commands[0][:3] == ["apt-get", "install", "-y"]
    assert session.commands[0][3:] == installed


def test_core_packages_skipped_when_every_tool_is_present() -> None:
    session = FakeSession(binaries=packages.CORE_BINARIES)

    installed = packages.install_core_packages(session, session.reporter)

    assert installed == []
    assert session.commands == []
    assert "Core tools already installed, skipping." in session.reporter.messages("note")


def test_present_core_tools_still_install_extras() -> None:
    session = FakeSession(binaries=packages.CORE_BINARIES)

    installed = packages.install_core_packages(session, session.reporter, ["jq"])

    assert installed == ["jq"]
    assert session.joined() == ["apt-get install -y jq"]


def test_one_missing_core_tool_installs_the_whole_set() -> None:
    session = FakeSession(binaries=set(packages.CORE_BINARIES) - {"qrencode"})

    installed = packages.install_core_packages(session, session.reporter)

    assert installed == list(packages.CORE_PACKAGES)


def test_failed_apt_step_reports_stderr_tail() -> None:
    session = FakeSession().respond(
        "apt-get install",
        done(100, stderr="Reading package lists...\nE: Unable to locate package docker-ce\n"),
    )

    with pytest.raises(PackageInstallError, match="Unable to locate package docker-ce"):
        packages.install_core_packages(session, session.reporter)


def test_install_docker_dry_run_changes_nothing() -> None:
    session = _docker_ready_session()
    session.dry_run = True

    def _no_fetch() -> bytes:
        raise AssertionError("download attempted in dry-run")

    packages.install_docker(session, session.reporter, fetch_key=_no_fetch)

    assert all(cmd in READ_ONLY for cmd in session.joined())
    assert session.files == {}
    assert any("[dry-run]" in msg for msg in session.reporter.messages("note"))


def test_fetch_docker_gpg_key(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    def _fake_get(url, **kwargs) -> httpx.Response:
        seen["url"] = url
        seen["kwargs"] = kwargs
        return httpx.Response(200, content=b"-----BEGIN PGP", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", _fake_get)

    assert packages.fetch_docker_gpg_key() == b"-----BEGIN PGP"
    assert seen["url"] == packages.DOCKER_GPG_URL
    assert seen["kwargs"]["follow_redirects"] is True


def test_fetch_docker_gpg_key_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_get(url, **_kwargs) -> httpx.Response:
        return httpx.Response(404, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", _fake_get)

    with pytest.raises(PackageInstallError, match="Docker signing key"):
        packages.fetch_docker_gpg_key()


def test_docker_group_already_member(user) -> None:
    session = FakeSession()

    added = packages.ensure_docker_group(session, session.reporter, user, membership=lambda *_: Presence.PRESENT)

    assert added is False
    assert session.commands == []


def test_docker_group_added_and_flagged(user) -> None:
    session = FakeSession()

    added = packages.ensure_docker_group(session, session.reporter, user, membership=lambda *_: Presence.ABSENT)

    assert added is True
    assert session.joined() == ["usermod -aG docker alice"]
    assert any("Re-login" in msg for msg in session.reporter.messages("note"))


def test_docker_group_unknown_membership_still_adds(user) -> None:
    session = FakeSession()

    assert packages.ensure_docker_group(session, session.reporter, user, membership=lambda *_: Presence.UNKNOWN)
    assert session.joined() == ["usermod -aG docker alice"]


def test_docker_group_failure_is_warning(user) -> None:
    session = FakeSession().respond("usermod", done(6, stderr="usermod: group 'docker' does not exist"))

    added = packages.ensure_docker_group(session, session.reporter, user, membership=lambda *_: Presence.ABSENT)

    assert added is False
    assert session.reporter.messages("warn") == ["Could not add alice to docker group."]


def test_enable_docker_service_is_best_effort() -> None:
    session = FakeSession(binaries={"systemctl"}).respond("systemctl", done(1))

    packages.enable_docker_service(session, session.reporter)

    assert session.joined() == ["systemctl enable --now docker"]
    assert session.reporter.messages("warn")


def test_enable_docker_service_without_systemd() -> None:
    session = FakeSession()

    packages.enable_docker_service(session, session.reporter)

    assert session.commands == []


def test_install_wireguard_only_when_missing() -> None:
    present = FakeSession(binaries={"wg"})
    missing = FakeSession()

    assert packages.install_wireguard(present, present.reporter) is False
    assert present.commands == []
    assert packages.install_wireguard(missing, missing.reporter) is True
    assert missing.joined() == ["apt-get install -y wireguard wireguard-tools"]
