from __future__ import annotations

from stackboot.session import HostSession
from stackboot.verify import verify_tools

from .. import console
from ..errors import exit_on_bootstrap_error


def verify():
    """Check that docker, docker compose and git work on this host."""
    reporter = console.ConsoleReporter()
    with exit_on_bootstrap_error():
        versions = verify_tools(HostSession(reporter=reporter), reporter)
    console.print(versions.compose, highlight=False)
    console.print(versions.git, highlight=False)
