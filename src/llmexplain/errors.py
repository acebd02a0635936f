"""Error handling framework for llmexplain."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any


class ExitCode(IntEnum):
    """llmexplain CLI exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1  # Missing credential / bad config (user fixable)
    UPSTREAM_ERROR = 2  # Completion call returned nothing usable
    FATAL_ERROR = 3  # Unexpected crash
    CANCELLED = 130


class FailureStage(str, Enum):
    """Pipeline stage in which a completion call failed."""

    SUMMARIZATION = "reference summarization"
    EXPLANATION = "final explanation"


class ExplainError(Exception):
    """Base exception for llmexplain errors."""

    exit_code: ExitCode = ExitCode.FATAL_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON output."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": int(self.exit_code),
            **self.context,
        }


class ConfigurationMissing(ExplainError):
    """Required configuration (e.g. an API credential) is absent or invalid."""

    exit_code = ExitCode.CONFIG_ERROR


class UpstreamFailure(ExplainError):
    """A completion call yielded no usable text."""

    exit_code = ExitCode.UPSTREAM_ERROR

    def __init__(
        self,
        stage: FailureStage,
        identifier: str | None = None,
        detail: str | None = None,
    ) -> None:
        message = f"Completion failed during {stage.value}"
        if identifier:
            message += f" of '{identifier}'"
        if detail:
            message += f": {detail}"
        super().__init__(message, stage=stage.value, identifier=identifier)
        self.stage = stage
        self.identifier = identifier


class ExplanationCancelled(ExplainError):
    """The caller cancelled the request between stages."""

    exit_code = ExitCode.CANCELLED

    def __init__(self, stage: str) -> None:
        super().__init__(f"Explanation cancelled before {stage}", stage=stage)
        self.stage = stage


class FunctionNotFound(ExplainError):
    """The requested function could not be located in the source."""

    exit_code = ExitCode.CONFIG_ERROR

    def __init__(self, name: str, file_path: str | None = None) -> None:
        where = f" in {file_path}" if file_path else ""
        super().__init__(f"Function '{name}' not found{where}", name=name, file_path=file_path)
        self.name = name
        self.file_path = file_path


class DuplicateReferenceWarning(UserWarning):
    """A reference identifier was resolved more than once; the first one wins.

    Never raised. Used to format the diagnostic logged by the collector.
    """

    def __init__(self, identifier: str, target: str) -> None:
        super().__init__(f"Duplicate reference key '{identifier}' in '{target}', keeping first")
        self.identifier = identifier
        self.target = target
