from __future__ import annotations

from typing import Any, Optional, Sequence

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn


class CollectProgress:
    """
    Transient progress bar for sub-scope collection.

    Renders on stderr so it never mixes with the tree on stdout. All methods
    are no-ops when disabled.
    """

    def __init__(self, *, enabled: Optional[bool], console: Optional[Console] = None) -> None:
        self._console = console or Console(stderr=True)
        # None means "auto": only draw when stderr is an interactive terminal
        self._enabled = bool(self._console.is_terminal if enabled is None else enabled)
        self._progress: Optional[Progress] = None
        self._task: Optional[Any] = None
        self._started = False
        if self._enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TextColumn("{task.fields[scope]}", justify="left"),
                TimeElapsedColumn(),
                console=self._console,
                transient=True,
            )

    def __enter__(self) -> CollectProgress:
        if self._progress is not None and not self._started:
            self._progress.start()
            self._started = True
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        if self._progress is not None and self._started:
            self._progress.stop()
            self._started = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_scopes(self, description: str, scopes: Sequence[str]) -> None:
        if self._progress is None:
            return
        self._task = self._progress.add_task(description, total=len(scopes), scope="")

    def advance(self, scope: str) -> None:
        if self._progress is None or self._task is None:
            return
        self._progress.update(self._task, advance=1, scope=scope)
