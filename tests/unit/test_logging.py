"""Tests for logging setup and console helpers."""

import io
import logging
from unittest.mock import patch

from rich.console import Console
from rich.logging import RichHandler

from llmexplain.logging import (
    LOGGER_NAME,
    print_explanation,
    print_warning,
    setup_logging,
)
from llmexplain.models import ExplanationResult


def capture_console() -> Console:
    return Console(file=io.StringIO(), width=100, force_terminal=False)


class TestSetupLogging:
    """Tests for logger configuration."""

    def test_verbosity_levels(self):
        """Test each verbosity maps to a logging level."""
        assert setup_logging("quiet").level == logging.ERROR
        assert setup_logging("normal").level == logging.INFO
        assert setup_logging("verbose").level == logging.DEBUG

    def test_single_rich_handler(self):
        """Test repeated setup does not stack handlers."""
        setup_logging()
        logger = setup_logging()
        assert logger.name == LOGGER_NAME
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_quiets_third_party_loggers(self):
        """Test LiteLLM logging is held at WARNING outside verbose mode."""
        logging.getLogger("LiteLLM").setLevel(logging.DEBUG)
        setup_logging("normal")
        assert logging.getLogger("LiteLLM").level == logging.WARNING


class TestConsoleHelpers:
    """Tests for the print helpers."""

    def test_print_warning_goes_to_stderr_console(self):
        """Test warnings are written to the error console."""
        err = capture_console()
        with patch("llmexplain.logging.err_console", err):
            print_warning("Duplicate reference a.py#g skipped")
        assert "Warning: Duplicate reference a.py#g skipped" in err.file.getvalue()

    def test_print_explanation_panel(self):
        """Test the explanation panel shows text, model and reference mode."""
        out = capture_console()
        result = ExplanationResult(
            text="Adds one to x.",
            summarized=True,
            estimated_tokens=12,
            reference_count=2,
            model="gpt-4-1106-preview",
        )
        with patch("llmexplain.logging.console", out):
            print_explanation(result, title="inc")

        rendered = out.file.getvalue()
        assert "Adds one to x." in rendered
        assert "inc" in rendered
        assert "gpt-4-1106-preview | 2 summarized references" in rendered
