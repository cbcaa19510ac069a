import pytest

from stackboot import firewall
from stackboot.probes import Presence

from conftest import FakeSession, done


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("Status: inactive\n", Presence.ABSENT),
        ("Status: active\n\nTo Action From\n-- ------ ----\nOpenSSH ALLOW Anywhere\n", Presence.PRESENT),
        ("", Presence.UNKNOWN),
        ("ERROR: You need to be root to run this script\n", Presence.UNKNOWN),
    ],
)
def test_parse_ufw_status(output: str, expected: Presence) -> None:
    assert firewall.parse_ufw_status(output) is expected


def test_inactive_firewall_is_enabled_with_ssh_allowed() -> None:
    session = FakeSession(binaries={"ufw"}).respond("ufw status", done(stdout="Status: inactive\n"))

    assert firewall.configure_firewall(session, session.reporter) is True
    assert session.joined() == ["ufw status", "ufw allow OpenSSH", "ufw --force enable"]


def test_active_firewall_is_left_alone() -> None:
    session = FakeSession(binaries={"ufw"}).respond("ufw status", done(stdout="Status: active\n"))

    assert firewall.configure_firewall(session, session.reporter) is False
    assert session.joined() == ["ufw status"]
    assert session.reporter.messages("step") == ["UFW already active, leaving as-is."]


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(),
        FakeSession(binaries={"ufw"}).respond("ufw status", done(1, stderr="permission denied")),
        FakeSession(binaries={"ufw"}).respond("ufw status", done(stdout="garbage")),
    ],
)
def test_unknown_state_never_touches_firewall(session: FakeSession) -> None:
    assert firewall.configure_firewall(session, session.reporter) is False
    assert all(cmd == "ufw status" for cmd in session.joined())
    assert session.reporter.messages("warn")


def test_firewall_never_disables_or_resets() -> None:
    for status in ("Status: active\n", "Status: inactive\n"):
        session = FakeSession(binaries={"ufw"}).respond("ufw status", done(stdout=status))
        firewall.configure_firewall(session, session.reporter)
        assert not any("disable" in cmd or "reset" in cmd for cmd in session.joined())
