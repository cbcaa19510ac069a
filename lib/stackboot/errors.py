from __future__ import annotations


class BootstrapError(RuntimeError):
    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class PreconditionError(BootstrapError):
    pass


class InputError(BootstrapError):
    pass


class PackageInstallError(BootstrapError):
    pass


class CloneError(BootstrapError):
    pass


class SshSetupAborted(BootstrapError):
    pass


class BranchResolutionError(BootstrapError):
    pass


class VerificationError(BootstrapError):
    pass
