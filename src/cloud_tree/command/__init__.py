from __future__ import annotations

from .adapter import (
    DEFAULT_TIMEOUT_SECONDS,
    CommandOutput,
    CommandRunner,
    run_command,
    run_lines,
    run_structured,
)
from .value import Value, ValueKind

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "CommandOutput",
    "CommandRunner",
    "Value",
    "ValueKind",
    "run_command",
    "run_lines",
    "run_structured",
]
