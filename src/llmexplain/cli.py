"""llmexplain CLI - explain a Python function with an LLM."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from dotenv import load_dotenv

# Load .env file before any other imports that might use env vars
load_dotenv()

import click  # noqa: E402

from llmexplain import __version__  # noqa: E402

if TYPE_CHECKING:
    from llmexplain.config import ExplainConfig
    from llmexplain.sources import PythonModuleSource

VerbosityLevel = Literal["quiet", "normal", "verbose"]


class ExplainContext:
    """Shared context for CLI commands."""

    def __init__(self) -> None:
        self.config: ExplainConfig | None = None
        self.verbosity: VerbosityLevel = "normal"


pass_context = click.make_pass_decorator(ExplainContext, ensure=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.version_option(version=__version__, prog_name="llmexplain")
@pass_context
def cli(ctx: ExplainContext, verbose: bool, quiet: bool, config: Path | None) -> None:
    """llmexplain - Explain Python functions with an LLM.

    \b
    References the function calls are embedded as context. When they do not
    fit the model's budget, each one is summarized by a cheaper model first.
    """
    from llmexplain.config import ExplainConfig
    from llmexplain.errors import ExplainError
    from llmexplain.logging import print_error, setup_logging

    if verbose:
        ctx.verbosity = "verbose"
    elif quiet:
        ctx.verbosity = "quiet"
    setup_logging(ctx.verbosity)

    try:
        ctx.config = ExplainConfig.load(config)
    except ExplainError as e:
        print_error(e.message)
        sys.exit(e.exit_code)


def _load_source(path: Path) -> PythonModuleSource:
    from llmexplain.errors import ExitCode
    from llmexplain.logging import print_error
    from llmexplain.sources import PythonModuleSource

    try:
        return PythonModuleSource(path)
    except (SyntaxError, UnicodeDecodeError, ValueError) as e:
        print_error(f"Cannot parse {path}: {e}")
        sys.exit(ExitCode.CONFIG_ERROR)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("function")
@click.option("--fast-model", help="Model used to summarize references")
@click.option("--capable-model", help="Model used for the final explanation")
@click.option("--max-context-tokens", type=click.IntRange(min=0), help="Token budget")
@click.option("--concurrency", type=click.IntRange(min=1), help="Parallel summaries")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def explain(
    ctx: ExplainContext,
    path: Path,
    function: str,
    fast_model: str | None,
    capable_model: str | None,
    max_context_tokens: int | None,
    concurrency: int | None,
    as_json: bool,
) -> None:
    """Explain FUNCTION (name or Class.method) defined in PATH.

    \b
    Examples:
        llmexplain explain app.py handle_request
        llmexplain explain app.py Server.start --json
        llmexplain explain app.py main --max-context-tokens 0  # force summaries
    """
    import asyncio
    import json
    from contextlib import nullcontext

    from llmexplain.errors import ExplainError, ExplanationCancelled
    from llmexplain.logging import print_error, print_explanation
    from llmexplain.progress import NullProgress, RichProgress
    from llmexplain.service import explain_function

    assert ctx.config is not None
    overrides = {
        "fast_model": fast_model,
        "capable_model": capable_model,
        "max_context_tokens": max_context_tokens,
        "concurrency": concurrency,
    }
    config = ctx.config.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    config.check_budget()

    source = _load_source(path)

    try:
        # Keep stdout clean for --json
        spinner = nullcontext(NullProgress()) if as_json else RichProgress()
        with spinner as progress:
            try:
                result = asyncio.run(explain_function(source, function, config, progress=progress))
            except KeyboardInterrupt:
                raise ExplanationCancelled("completion") from None
    except ExplainError as e:
        if as_json:
            click.echo(json.dumps(e.to_dict(), indent=2))
        else:
            print_error(e.message)
        sys.exit(e.exit_code)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    print_explanation(result, title=function)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("function")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@pass_context
def estimate(ctx: ExplainContext, path: Path, function: str, as_json: bool) -> None:
    """Show the token estimate for FUNCTION without calling any model."""
    import json

    from llmexplain.errors import ExplainError
    from llmexplain.logging import print_error, print_info, print_warning
    from llmexplain.models import BudgetDecision
    from llmexplain.planner import estimate_method_tokens
    from llmexplain.service import prepare_method
    from llmexplain.tokens import TokenCounter

    assert ctx.config is not None
    source = _load_source(path)
    try:
        method = prepare_method(source, function)
    except ExplainError as e:
        print_error(e.message)
        sys.exit(e.exit_code)

    decision = BudgetDecision(
        estimated_tokens=estimate_method_tokens(method, TokenCounter(ctx.config.encoding)),
        max_context_tokens=ctx.config.max_context_tokens,
    )
    data = {
        "function": method.name,
        "references": list(method.references),
        "duplicates": list(method.duplicates),
        "estimated_tokens": decision.estimated_tokens,
        "max_context_tokens": decision.max_context_tokens,
        "summarize": decision.over_budget,
    }
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    print_info(f"[bold]{method.name}[/bold]")
    print_info(f"  References: {len(method.references)}")
    for identifier in method.references:
        print_info(f"    {identifier}")
    for identifier in method.duplicates:
        print_warning(f"Duplicate reference {identifier} skipped")
    print_info(f"  Estimated tokens: {decision.estimated_tokens:,} / {decision.max_context_tokens:,}")
    if decision.over_budget:
        print_info(f"  References would be summarized with {ctx.config.fast_model}")
    else:
        print_info("  References fit the budget and would be sent verbatim")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("function")
@pass_context
def prompt(ctx: ExplainContext, path: Path, function: str) -> None:
    """Print the prompt FUNCTION would be explained with (raw references)."""
    from llmexplain.errors import ExplainError
    from llmexplain.logging import print_error
    from llmexplain.planner import raw_materials
    from llmexplain.prompts import format_explain_prompt
    from llmexplain.service import prepare_method

    source = _load_source(path)
    try:
        method = prepare_method(source, function)
    except ExplainError as e:
        print_error(e.message)
        sys.exit(e.exit_code)

    click.echo(format_explain_prompt(method.name, method.body, raw_materials(method)))


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file")
def init(force: bool) -> None:
    """Write a default .llmexplain.toml in the current directory."""
    from llmexplain.config import CONFIG_FILENAME, get_default_config_toml
    from llmexplain.errors import ExitCode
    from llmexplain.logging import print_error, print_success

    config_path = Path.cwd() / CONFIG_FILENAME
    if config_path.exists() and not force:
        print_error(f"{config_path} already exists (use --force to overwrite)")
        sys.exit(ExitCode.CONFIG_ERROR)
    config_path.write_text(get_default_config_toml())
    print_success(f"Created {config_path}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
