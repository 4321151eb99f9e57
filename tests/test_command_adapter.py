from __future__ import annotations

import shlex
import subprocess
import sys
import types

import pytest

from cloud_tree.command import adapter
from cloud_tree.command.adapter import (
    CommandOutput,
    CommandRunner,
    decode_lines,
    decode_structured,
    run_command,
    run_lines,
    run_structured,
)
from cloud_tree.command.value import ValueKind


def _python(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


def _fake_run(returncode: int = 0, stdout: str = "", stderr: str = ""):
    calls = []

    def _run(command, **kwargs):
        calls.append((command, kwargs))
        return types.SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)

    return _run, calls


def test_run_structured_decodes_json_from_real_process() -> None:
    value = run_structured(_python('import json; print(json.dumps({"Account": "123"}))'))
    assert value.kind is ValueKind.OBJECT
    assert value.get("Account").text() == "123"


def test_run_lines_splits_output_and_drops_blank_lines() -> None:
    lines = run_lines(_python('print("2019-01-01 00:00:00 bucket-a"); print(""); print("2019-01-01 00:00:00 bucket-b")'))
    assert lines == ["2019-01-01 00:00:00 bucket-a", "2019-01-01 00:00:00 bucket-b"]


def test_non_zero_exit_degrades_to_empty() -> None:
    cmd = _python('import sys; print("[1, 2]"); sys.stderr.write("AccessDenied"); sys.exit(254)')
    output = run_command(cmd)
    assert output.returncode == 254
    assert not output.ok
    assert run_structured(cmd).is_null
    assert run_lines(cmd) == []


def test_malformed_json_degrades_to_empty() -> None:
    value = run_structured(_python('print("{not json")'))
    assert value.is_null
    assert value.get("Reservations").items() == []


def test_empty_stdout_degrades_to_empty() -> None:
    assert run_structured(_python("pass")).is_null


def test_missing_executable_degrades_to_empty() -> None:
    assert run_structured("cloud-tree-definitely-not-installed --output=json").is_null
    assert run_lines("cloud-tree-definitely-not-installed") == []


def test_timeout_degrades_to_empty() -> None:
    output = run_command(_python("import time; time.sleep(5)"), timeout=0.2)
    assert output.timed_out
    assert not output.ok
    assert run_structured(_python("import time; time.sleep(5)"), timeout=0.2).is_null


def test_spawn_error_is_captured(monkeypatch) -> None:
    def _boom(command, **kwargs):
        raise PermissionError("not allowed")

    monkeypatch.setattr(adapter.subprocess, "run", _boom)
    output = run_command("aws s3 ls")
    assert output.returncode is None
    assert output.stderr == "not allowed"
    assert run_lines("aws s3 ls") == []


def test_command_is_passed_through_shell_untouched(monkeypatch) -> None:
    fake, calls = _fake_run(stdout="[]")
    monkeypatch.setattr(adapter.subprocess, "run", fake)

    cmd = "gcloud projects list --filter 'parent.id=42' --format=json"
    CommandRunner(timeout=12).structured(cmd)

    assert len(calls) == 1
    command, kwargs = calls[0]
    assert command == cmd
    assert kwargs["shell"] is True
    assert kwargs["capture_output"] is True
    assert kwargs["timeout"] == 12


def test_zero_timeout_means_no_limit(monkeypatch) -> None:
    fake, calls = _fake_run(stdout="[]")
    monkeypatch.setattr(adapter.subprocess, "run", fake)

    CommandRunner(timeout=0).run("aws s3 ls")

    assert calls[0][1]["timeout"] is None


def test_timeout_expired_from_subprocess_is_not_raised(monkeypatch) -> None:
    def _timeout(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(adapter.subprocess, "run", _timeout)
    assert CommandRunner(timeout=1).structured("aws ec2 describe-instances").is_null


def test_decoders_ignore_stdout_of_failed_commands() -> None:
    failed = CommandOutput(command="x", returncode=1, stdout='{"a": 1}\n', stderr="")
    assert decode_structured(failed).is_null
    assert decode_lines(failed) == []

    timed_out = CommandOutput(command="x", returncode=0, stdout='{"a": 1}', stderr="", timed_out=True)
    assert decode_structured(timed_out).is_null


def test_array_output_is_preserved() -> None:
    ok = CommandOutput(command="x", returncode=0, stdout='[{"name": "a"}, {"name": "b"}]', stderr="")
    value = decode_structured(ok)
    assert [item.get("name").text() for item in value] == ["a", "b"]


def test_failures_are_logged_at_debug_only(monkeypatch, caplog) -> None:
    fake, _ = _fake_run(returncode=255, stderr="An error occurred (AccessDenied)\nmore")
    monkeypatch.setattr(adapter.subprocess, "run", fake)

    with caplog.at_level("DEBUG", logger="cloud_tree.command.adapter"):
        assert run_structured("aws rds describe-db-instances").is_null

    failures = [r for r in caplog.records if r.getMessage() == "Command degraded to empty result"]
    assert len(failures) == 1
    assert failures[0].levelname == "DEBUG"
    assert failures[0].stderr == "An error occurred (AccessDenied)"
    assert all(r.levelno <= 10 for r in caplog.records)


@pytest.mark.parametrize("stdout", ["", "null", "   "])
def test_blank_or_null_json_is_empty(monkeypatch, stdout: str) -> None:
    fake, _ = _fake_run(stdout=stdout)
    monkeypatch.setattr(adapter.subprocess, "run", fake)
    assert not run_structured("gcloud organizations list --format=json")


def test_deeply_nested_json_degrades_to_empty() -> None:
    depth = 200000
    output = CommandOutput("aws ec2 describe-instances", 0, "[" * depth + "]" * depth, "")
    assert decode_structured(output).is_null
