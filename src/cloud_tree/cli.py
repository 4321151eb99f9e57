from __future__ import annotations

import logging
import sys
from time import perf_counter
from typing import Any, Dict, List, Optional

from .command.adapter import CommandRunner
from .config import RunConfig, dump_config, load_run_config
from .logging import LogConfig, add_run_log_file, get_logger, setup_logging
from .providers import get_collector, list_providers
from .tree.node import TreeNode
from .tree.render import iter_lines, print_tree
from .util.errors import CloudTreeError, ConfigError, as_exit_code
from .util.rich_progress import CollectProgress

LOG = get_logger(__name__)


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    timer_key: Optional[str] = None,
    **extra: Any,
) -> None:
    key = timer_key or step
    duration_ms = None
    if timers is not None:
        if phase == "start":
            timers.start(key)
        elif phase in {"complete", "error"}:
            duration_ms = timers.finish(key)
    payload: Dict[str, Any] = {"step": step, "phase": phase, "event": f"{step}.{phase}"}
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    payload.update(extra)
    logger.log(level, message, extra=payload)


def _count_nodes(root: TreeNode) -> int:
    return sum(1 for _ in iter_lines(root))


def collect_tree(command: str, cfg: RunConfig, *, progress: Optional[CollectProgress] = None) -> TreeNode:
    """Run the collector registered for command and return the root node."""
    if command not in list_providers():
        raise ConfigError(f"Unknown command: {command}")
    collector = get_collector(command)
    runner = CommandRunner(timeout=cfg.timeout)
    return collector.collect(runner, cfg, progress=progress)


def cmd_collect(command: str, cfg: RunConfig) -> int:
    timers = _StepTimers()
    _log_event(
        LOG,
        logging.INFO,
        "Collection started",
        step="collect",
        phase="start",
        timers=timers,
        provider=command,
        regions=cfg.regions,
        workers=cfg.workers,
    )
    with CollectProgress(enabled=cfg.progress) as progress:
        root = collect_tree(command, cfg, progress=progress)
    _log_event(
        LOG,
        logging.INFO,
        "Collection complete",
        step="collect",
        phase="complete",
        timers=timers,
        provider=command,
        nodes=_count_nodes(root),
    )

    _log_event(LOG, logging.DEBUG, "Render started", step="render", phase="start", timers=timers)
    print_tree(root)
    _log_event(LOG, logging.DEBUG, "Render complete", step="render", phase="complete", timers=timers)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    try:
        try:
            command, cfg = load_run_config(argv=argv)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))
        if cfg.log_file is not None:
            add_run_log_file(cfg.log_file)
        LOG.debug("Resolved configuration", extra={"command": command, "config": dump_config(cfg)})

        sys.exit(cmd_collect(command, cfg))
    except SystemExit:
        raise
    except BrokenPipeError:
        # Common when users pipe to `head` or similar tools.
        # Treat as a normal early-exit and avoid logging after stdout is closed.
        sys.exit(0)
    except CloudTreeError as e:
        # Precondition failures: one message on stderr, nothing rendered
        print(str(e), file=sys.stderr)
        sys.exit(as_exit_code(e))
    except Exception as e:
        setup_logging(LogConfig())  # ensure something is configured
        LOG.error("Execution failed", exc_info=True, extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
