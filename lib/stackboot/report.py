from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger("stackboot")


class Reporter(Protocol):
    def step(self, msg: str) -> None: ...

    def note(self, msg: str) -> None: ...

    def ok(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def show(self, text: str) -> None: ...


class LogReporter:
    """Reporter used when no terminal is attached; everything goes to logging."""

    def step(self, msg: str) -> None:
        logger.info(msg)

    def note(self, msg: str) -> None:
        logger.info(msg)

    def ok(self, msg: str) -> None:
        logger.info(msg)

    def warn(self, msg: str) -> None:
        logger.warning(msg)

    def show(self, text: str) -> None:
        logger.info(text)
