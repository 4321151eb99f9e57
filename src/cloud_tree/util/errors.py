from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    CONFIG_ERROR = 2
    SCOPE_ERROR = 3
    RUNTIME_ERROR = 5


class CloudTreeError(Exception):
    """Base error for the inventory run."""


class ConfigError(CloudTreeError):
    """Raised for configuration or argument issues."""


class ScopeResolutionError(CloudTreeError):
    """
    Raised when the top-level scope of the run cannot be resolved, e.g. no
    account identity or an ambiguous organisation.
    """


def as_exit_code(exc: BaseException) -> int:
    if isinstance(exc, ConfigError):
        return int(ExitCode.CONFIG_ERROR)
    if isinstance(exc, ScopeResolutionError):
        return int(ExitCode.SCOPE_ERROR)
    if isinstance(exc, CloudTreeError):
        return int(ExitCode.RUNTIME_ERROR)
    return 1
