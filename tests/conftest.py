from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

import pytest

from cloud_tree.command.adapter import CommandOutput, CommandRunner
from cloud_tree.logging import setup_logging


class FakeRunner(CommandRunner):
    """
    CommandRunner serving canned outputs keyed by the exact command line.

    dict/list payloads are served as JSON, strings verbatim. Unknown commands
    (or a None payload) fail with a non-zero exit status like a denied call.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(timeout=5)
        self.responses: Dict[str, Any] = dict(responses or {})
        self.calls: List[str] = []

    def run(self, command_line: str) -> CommandOutput:
        self.calls.append(command_line)
        payload = self.responses.get(command_line)
        if payload is None:
            return CommandOutput(command=command_line, returncode=254, stdout="", stderr="AccessDenied")
        stdout = payload if isinstance(payload, str) else json.dumps(payload)
        return CommandOutput(command=command_line, returncode=0, stdout=stdout, stderr="")


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture(autouse=True)
def _isolate_env_and_logging(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CLOUD_TREE_"):
            monkeypatch.delenv(key, raising=False)
    yield
    setattr(setup_logging, "_configured", False)
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.handlers = []
