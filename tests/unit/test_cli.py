"""Tests for the llmexplain CLI."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from llmexplain.cli import cli

SAMPLE = textwrap.dedent(
    """\
    def g():
        return 1


    def f():
        return g()
    """
)


class FakeCounter:
    """Word-count stand-in for TokenCounter."""

    def __init__(self, encoding: str = "cl100k_base") -> None:
        self.encoding_name = encoding

    def count_tokens(self, text: str) -> int:
        return len(text.split())

    def __call__(self, text: str) -> int:
        return self.count_tokens(text)


def mock_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workdir(runner, monkeypatch):
    """Isolated cwd holding sample.py, no config files, a test API key."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with runner.isolated_filesystem() as tmp:
        monkeypatch.setenv("HOME", tmp)
        Path("sample.py").write_text(SAMPLE)
        with patch("llmexplain.tokens.TokenCounter", FakeCounter):
            yield Path(tmp)


class TestCLIHelp:
    def test_main_help(self, runner: CliRunner) -> None:
        """Test main help lists every command."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Explain Python functions" in result.output
        for command in ("explain", "estimate", "prompt", "init"):
            assert command in result.output

    def test_version(self, runner: CliRunner) -> None:
        """Test --version names the program."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "llmexplain" in result.output


class TestExplainCommand:
    def test_explain_json(self, runner, workdir) -> None:
        """Test explain prints the stripped explanation as JSON."""
        with patch("llmexplain.completion.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = mock_response("```\nf returns g().\n```")
            result = runner.invoke(cli, ["-q", "explain", "sample.py", "f", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["text"] == "\nf returns g().\n"
        assert data["summarized"] is False
        assert data["reference_count"] == 1
        assert mock_call.call_count == 1

    def test_explain_forced_summary(self, runner, workdir) -> None:
        """Test a zero budget summarizes with the fast model first."""
        with patch("llmexplain.completion.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = mock_response("Short text.")
            result = runner.invoke(
                cli,
                ["-q", "explain", "sample.py", "f", "--max-context-tokens", "0", "--json"],
            )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["summarized"] is True
        models = [c.kwargs["model"] for c in mock_call.call_args_list]
        assert models == ["gpt-3.5-turbo", "gpt-4-1106-preview"]

    def test_explain_panel(self, runner, workdir) -> None:
        """Test explain renders the explanation in a panel."""
        with patch("llmexplain.completion.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = mock_response("Calls g and returns its value.")
            result = runner.invoke(cli, ["explain", "sample.py", "f"])

        assert result.exit_code == 0, result.output
        assert "Calls g and returns its value." in result.output

    def test_explain_upstream_failure(self, runner, workdir) -> None:
        """Test an empty completion exits with the upstream error code."""
        with patch("llmexplain.completion.acompletion", new_callable=AsyncMock) as mock_call:
            mock_call.return_value = mock_response(None)
            result = runner.invoke(cli, ["-q", "explain", "sample.py", "f", "--json"])

        assert result.exit_code == 2
        assert json.loads(result.output)["error"] == "UpstreamFailure"

    def test_explain_missing_key(self, runner, workdir, monkeypatch) -> None:
        """Test a missing API key fails before any request."""
        monkeypatch.delenv("OPENAI_API_KEY")
        with patch("llmexplain.completion.acompletion", new_callable=AsyncMock) as mock_call:
            result = runner.invoke(cli, ["-q", "explain", "sample.py", "f", "--json"])

        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "ConfigurationMissing"
        mock_call.assert_not_called()

    def test_explain_interrupted(self, runner, workdir) -> None:
        """Test Ctrl-C exits with the cancelled exit code."""
        with patch("llmexplain.service.explain_function", side_effect=KeyboardInterrupt):
            result = runner.invoke(cli, ["-q", "explain", "sample.py", "f", "--json"])

        assert result.exit_code == 130
        assert json.loads(result.output)["error"] == "ExplanationCancelled"

    def test_explain_unknown_function(self, runner, workdir) -> None:
        """Test an unknown function exits with a config error."""
        result = runner.invoke(cli, ["-q", "explain", "sample.py", "nope", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "FunctionNotFound"


class TestOfflineCommands:
    def test_estimate_json(self, runner, workdir) -> None:
        """Test estimate reports references and budget as JSON."""
        result = runner.invoke(cli, ["-q", "estimate", "sample.py", "f", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["references"] == ["sample.py#g"]
        assert data["summarize"] is False
        assert data["estimated_tokens"] > 0

    def test_estimate_over_budget(self, runner, workdir) -> None:
        """Test estimate flags summarization when over budget."""
        Path(".llmexplain.toml").write_text("[llmexplain]\nmax_context_tokens = 1\n")
        result = runner.invoke(cli, ["-q", "estimate", "sample.py", "f", "--json"])
        assert json.loads(result.output)["summarize"] is True

    def test_prompt(self, runner, workdir) -> None:
        """Test prompt prints the raw-reference prompt."""
        result = runner.invoke(cli, ["prompt", "sample.py", "f"])
        assert result.exit_code == 0
        assert "### `sample.py#g`" in result.output
        assert "## Code to Explain:" in result.output
        assert "Summary of method" not in result.output

    def test_init(self, runner, workdir) -> None:
        """Test init writes a config file once."""
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert Path(".llmexplain.toml").exists()

        again = runner.invoke(cli, ["init"])
        assert again.exit_code == 1

    def test_estimate_reports_duplicates(self, runner, workdir) -> None:
        """Test estimate warns about dropped duplicate references."""
        Path("dup.py").write_text("def g():\n    return 1\n\n\ndef f():\n    return g() + g()\n")
        result = runner.invoke(cli, ["estimate", "dup.py", "f"])
        assert result.exit_code == 0, result.output
        assert "Duplicate reference dup.py#g skipped" in result.output

    def test_undecodable_source(self, runner, workdir) -> None:
        """Test a non-UTF-8 source file is reported, not raised."""
        Path("bad.py").write_bytes(b"def f():\n    return '\xff'\n")
        result = runner.invoke(cli, ["estimate", "bad.py", "f"])
        assert result.exit_code == 1
        assert "Cannot parse bad.py" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)

    def test_syntax_error_source(self, runner, workdir) -> None:
        """Test a source file with a syntax error is reported."""
        Path("broken.py").write_text("def f(:\n")
        result = runner.invoke(cli, ["prompt", "broken.py", "f"])
        assert result.exit_code == 1
        assert "Cannot parse broken.py" in result.output
