"""Progress reporting and cooperative cancellation for explain requests."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from llmexplain.errors import ExplanationCancelled

if TYPE_CHECKING:
    from rich.console import Console
    from rich.status import Status


class Stage(str, Enum):
    """Coarse-grained pipeline stages."""

    COLLECTING = "collecting references"
    ESTIMATING = "estimating context size"
    SUMMARIZING = "summarizing references"
    EXPLAINING = "requesting explanation"
    DONE = "done"


class ProgressSink(Protocol):
    """Receives best-effort progress updates."""

    def update(self, stage: Stage, message: str) -> None: ...

    def advance(self, completed: int, total: int) -> None: ...


class NullProgress:
    """Discards all progress updates."""

    def update(self, stage: Stage, message: str) -> None:
        pass

    def advance(self, completed: int, total: int) -> None:
        pass


@dataclass
class RecordingProgress:
    """Keeps every update in memory; handy for tests and embedding hosts."""

    stages: list[Stage] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    steps: list[tuple[int, int]] = field(default_factory=list)

    def update(self, stage: Stage, message: str) -> None:
        self.stages.append(stage)
        self.messages.append(message)

    def advance(self, completed: int, total: int) -> None:
        self.steps.append((completed, total))


class RichProgress:
    """Spinner on stderr showing the current stage."""

    def __init__(self, console: Console | None = None) -> None:
        from llmexplain.logging import err_console

        self.console = console or err_console
        self._status: Status | None = None
        self._message = ""

    def __enter__(self) -> RichProgress:
        self._status = self.console.status("Starting...")
        self._status.start()
        return self

    def __exit__(self, *exc: object) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def update(self, stage: Stage, message: str) -> None:
        self._message = message
        if self._status is not None:
            self._status.update(message)

    def advance(self, completed: int, total: int) -> None:
        if self._status is not None:
            self._status.update(f"{self._message} ({completed}/{total})")


class CancellationToken:
    """Thread-safe flag polled by the pipeline between stages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: Stage) -> None:
        """Raise ExplanationCancelled if cancellation was requested."""
        if self._event.is_set():
            raise ExplanationCancelled(stage.value)
