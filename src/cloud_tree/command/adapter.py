from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from time import perf_counter
from typing import List, Optional

from ..logging import get_logger
from .value import Value

LOG = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0


@dataclass(frozen=True)
class CommandOutput:
    command: str
    returncode: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _log_failure(output: CommandOutput, reason: str) -> None:
    LOG.debug(
        "Command degraded to empty result",
        extra={
            "command": output.command,
            "returncode": output.returncode,
            "reason": reason,
            "stderr": _first_line(output.stderr),
        },
    )


def run_command(command_line: str, *, timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS) -> CommandOutput:
    """
    Run command_line through the shell and capture its output to completion.

    Never raises for process-level failures: a missing executable, a timeout or
    a non-zero exit all come back as a CommandOutput whose ok is False.
    A timeout of None or 0 waits indefinitely.
    """
    started = perf_counter()
    try:
        proc = subprocess.run(
            command_line,
            shell=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout or None,
        )
    except subprocess.TimeoutExpired:
        output = CommandOutput(command=command_line, returncode=None, stdout="", stderr="", timed_out=True)
        _log_failure(output, f"timed out after {timeout}s")
        return output
    except OSError as e:
        output = CommandOutput(command=command_line, returncode=None, stdout="", stderr=str(e))
        _log_failure(output, "spawn failed")
        return output

    output = CommandOutput(
        command=command_line,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
    LOG.debug(
        "Command finished",
        extra={
            "command": command_line,
            "returncode": proc.returncode,
            "duration_ms": int((perf_counter() - started) * 1000),
        },
    )
    if not output.ok:
        _log_failure(output, "non-zero exit status")
    return output


def decode_structured(output: CommandOutput) -> Value:
    """JSON-decode a successful output; anything else is an empty value."""
    if not output.ok:
        return Value.empty()
    try:
        return Value(json.loads(output.stdout))
    except (ValueError, RecursionError):
        _log_failure(output, "stdout is not valid JSON")
        return Value.empty()


def decode_lines(output: CommandOutput) -> List[str]:
    if not output.ok:
        return []
    return [line for line in output.stdout.splitlines() if line.strip()]


class CommandRunner:
    """
    Executes collector command lines with a fixed timeout policy.

    Each call is independent: a failure in one never affects another and is
    observed by the caller only as an empty result.
    """

    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def run(self, command_line: str) -> CommandOutput:
        return run_command(command_line, timeout=self.timeout)

    def structured(self, command_line: str) -> Value:
        return decode_structured(self.run(command_line))

    def lines(self, command_line: str) -> List[str]:
        return decode_lines(self.run(command_line))


def run_structured(command_line: str, *, timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS) -> Value:
    return decode_structured(run_command(command_line, timeout=timeout))


def run_lines(command_line: str, *, timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS) -> List[str]:
    return decode_lines(run_command(command_line, timeout=timeout))
