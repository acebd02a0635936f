"""Explain-request facade: collect references, then plan and explain."""

from __future__ import annotations

import logging

from llmexplain.collector import ReferenceCollector
from llmexplain.completion import CompletionClient, LiteLLMCompletionClient
from llmexplain.config import ExplainConfig
from llmexplain.models import ExplanationResult, PreparedMethod
from llmexplain.planner import ContextBudgetPlanner, TokenCountFn
from llmexplain.progress import CancellationToken, NullProgress, ProgressSink, Stage
from llmexplain.sources import FunctionSource

logger = logging.getLogger(__name__)


def prepare_method(
    source: FunctionSource,
    name: str,
    progress: ProgressSink | None = None,
) -> PreparedMethod:
    """Resolve a function and collect its deduplicated references."""
    progress = progress or NullProgress()
    progress.update(Stage.COLLECTING, "Collecting references...")
    target = source.get_function(name)
    return ReferenceCollector().collect(target, source.get_references(name))


async def explain_function(
    source: FunctionSource,
    name: str,
    config: ExplainConfig,
    completion: CompletionClient | None = None,
    progress: ProgressSink | None = None,
    cancel_token: CancellationToken | None = None,
    token_counter: TokenCountFn | None = None,
) -> ExplanationResult:
    """Explain one function end to end.

    Each call is independent: nothing is cached or shared between requests.

    Args:
        source: Where the function and its references come from
        name: Function to explain
        config: Loaded configuration
        completion: Completion client (default: LiteLLM, validated from config)
        progress: Optional progress sink
        cancel_token: Optional cancellation token polled between stages
        token_counter: Optional token count function

    Raises:
        ConfigurationMissing: No credential for the default client
        FunctionNotFound: ``name`` is not in ``source``
        UpstreamFailure: A completion call returned no usable text
        ExplanationCancelled: Cancelled between stages
    """
    cancel_token = cancel_token or CancellationToken()
    if completion is None:
        # Fail on a missing key before doing any work
        completion = LiteLLMCompletionClient(config)

    cancel_token.raise_if_cancelled(Stage.COLLECTING)
    method = prepare_method(source, name, progress)

    planner = ContextBudgetPlanner(
        config,
        completion,
        token_counter=token_counter,
        progress=progress,
        cancel_token=cancel_token,
    )
    return await planner.explain(method)
