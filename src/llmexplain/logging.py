"""Logging and console output for llmexplain."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel

if TYPE_CHECKING:
    from llmexplain.models import ExplanationResult

console = Console()
err_console = Console(stderr=True)

Verbosity = Literal["quiet", "normal", "verbose"]

LOGGER_NAME = "llmexplain"

_LEVELS: dict[Verbosity, int] = {
    "quiet": logging.ERROR,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}

# Third-party loggers kept at WARNING unless verbose
_NOISY_LOGGERS = ("LiteLLM", "httpx", "openai._base_client")


def setup_logging(verbosity: Verbosity = "normal") -> logging.Logger:
    """Route the package logger through a RichHandler on stderr."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(_LEVELS[verbosity])

    verbose = verbosity == "verbose"
    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=verbose,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    if not verbose:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def print_explanation(result: ExplanationResult, title: str) -> None:
    """Render an explanation as Markdown inside a panel on stdout."""
    mode = "summarized references" if result.summarized else "raw references"
    console.print(
        Panel(
            Markdown(result.text),
            title=title,
            subtitle=f"{result.model} | {result.reference_count} {mode}",
        )
    )


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    console.print(message)
