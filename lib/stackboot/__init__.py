from .errors import (
    BootstrapError,
    BranchResolutionError,
    CloneError,
    InputError,
    PackageInstallError,
    PreconditionError,
    SshSetupAborted,
    VerificationError,
)
from .pipeline import BootstrapContext, BootstrapOptions, BootstrapResult, run_bootstrap
from .repo_url import RepoRef, parse_repo_url

__all__ = [
    "BootstrapContext",
    "BootstrapError",
    "BootstrapOptions",
    "BootstrapResult",
    "BranchResolutionError",
    "CloneError",
    "InputError",
    "PackageInstallError",
    "PreconditionError",
    "RepoRef",
    "SshSetupAborted",
    "VerificationError",
    "parse_repo_url",
    "run_bootstrap",
]
