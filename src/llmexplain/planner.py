"""Context budgeting and explanation for a prepared method.

Decides whether a method's references fit the capable model's context budget.
When they fit, each reference is embedded verbatim; when they do not, every
reference is replaced by an independently generated fast-tier summary. The
decision is all-or-nothing: there is no chunked fallback if the summaries
themselves still overflow.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from llmexplain.errors import FailureStage, UpstreamFailure
from llmexplain.models import (
    BudgetDecision,
    ExplanationResult,
    PreparedMethod,
    Reference,
    ReferenceKind,
    ReferenceMaterial,
)
from llmexplain.progress import CancellationToken, NullProgress, ProgressSink, Stage
from llmexplain.prompts import format_explain_prompt, format_summarize_prompt, strip_code_fence

if TYPE_CHECKING:
    from llmexplain.completion import CompletionClient
    from llmexplain.config import ExplainConfig

logger = logging.getLogger(__name__)

TokenCountFn = Callable[[str], int]


def estimate_method_tokens(method: PreparedMethod, count_tokens: TokenCountFn) -> int:
    """Worst-case token estimate: body plus every reference, no template."""
    return count_tokens(method.body + "".join(method.references.values()))


def raw_materials(method: PreparedMethod) -> list[ReferenceMaterial]:
    """Every reference embedded verbatim, in insertion order."""
    return [
        ReferenceMaterial(kind=ReferenceKind.RAW, content=ref.source_text, identifier=ref.identifier)
        for ref in method.iter_references()
    ]


class ContextBudgetPlanner:
    """Plans reference material for a method and requests its explanation."""

    def __init__(
        self,
        config: ExplainConfig,
        completion: CompletionClient,
        token_counter: TokenCountFn | None = None,
        progress: ProgressSink | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Initialize the planner.

        Args:
            config: Models, temperature, budget and concurrency settings
            completion: Client used for every completion call
            token_counter: Token count function (default: tiktoken with config.encoding)
            progress: Sink for stage updates
            cancel_token: Polled before each stage and completion call
        """
        self.config = config
        self.completion = completion
        if token_counter is None:
            from llmexplain.tokens import TokenCounter

            token_counter = TokenCounter(config.encoding)
        self.count_tokens = token_counter
        self.progress = progress or NullProgress()
        self.cancel_token = cancel_token or CancellationToken()

    def estimate_tokens(self, method: PreparedMethod) -> int:
        return estimate_method_tokens(method, self.count_tokens)

    def decide(self, method: PreparedMethod) -> BudgetDecision:
        decision = BudgetDecision(
            estimated_tokens=self.estimate_tokens(method),
            max_context_tokens=self.config.max_context_tokens,
        )
        if decision.over_budget:
            logger.warning(
                f"Too many tokens for {method.name}: {decision.estimated_tokens} "
                f"> {decision.max_context_tokens}, summarizing references"
            )
        else:
            logger.debug(f"Tokens for {method.name}: {decision.estimated_tokens}")
        return decision

    async def summarize_reference(self, identifier: str, source_text: str) -> ReferenceMaterial:
        """Summarize one reference with the fast-tier model."""
        self.cancel_token.raise_if_cancelled(Stage.SUMMARIZING)
        logger.debug(f"Summarizing {identifier} with {self.config.fast_model}")
        prompt = format_summarize_prompt(identifier, source_text)
        text = await self.completion.complete(
            self.config.fast_model, self.config.temperature, prompt
        )
        if text is None or not text.strip():
            raise UpstreamFailure(FailureStage.SUMMARIZATION, identifier=identifier)
        return ReferenceMaterial(
            kind=ReferenceKind.SUMMARY,
            content=text.strip(),
            identifier=identifier,
        )

    async def prepare_materials(
        self,
        method: PreparedMethod,
        decision: BudgetDecision,
    ) -> list[ReferenceMaterial]:
        """Build reference material in insertion order.

        Raw source when within budget; otherwise one fast-tier summary per
        reference, at most ``config.concurrency`` in flight at once.
        """
        if not decision.over_budget:
            return raw_materials(method)

        references = method.iter_references()
        total = len(references)
        self.progress.update(Stage.SUMMARIZING, f"Summarizing {total} references...")

        semaphore = asyncio.Semaphore(self.config.concurrency)
        completed = 0

        async def summarize_one(ref: Reference) -> ReferenceMaterial:
            nonlocal completed
            async with semaphore:
                material = await self.summarize_reference(ref.identifier, ref.source_text)
            completed += 1
            self.progress.advance(completed, total)
            return material

        tasks = [asyncio.ensure_future(summarize_one(ref)) for ref in references]
        try:
            # gather keeps input order
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def build_prompt(self, method: PreparedMethod, materials: list[ReferenceMaterial]) -> str:
        return format_explain_prompt(method.name, method.body, materials)

    async def explain(self, method: PreparedMethod) -> ExplanationResult:
        """Run budgeting, optional summarization and the final explanation.

        Raises:
            UpstreamFailure: If any completion call yields no usable text
            ExplanationCancelled: If cancellation was requested between stages
        """
        self.cancel_token.raise_if_cancelled(Stage.ESTIMATING)
        self.progress.update(Stage.ESTIMATING, "Estimating context size...")
        decision = self.decide(method)

        materials = await self.prepare_materials(method, decision)

        self.cancel_token.raise_if_cancelled(Stage.EXPLAINING)
        self.progress.update(Stage.EXPLAINING, "Requesting explanation...")
        prompt = self.build_prompt(method, materials)
        logger.debug(f"Prompt: {prompt}")

        response = await self.completion.complete(
            self.config.capable_model, self.config.temperature, prompt
        )
        if response is None or not response.strip():
            raise UpstreamFailure(FailureStage.EXPLANATION, identifier=method.name)

        text = strip_code_fence(response)
        if not text.strip():
            raise UpstreamFailure(FailureStage.EXPLANATION, identifier=method.name)
        self.progress.update(Stage.DONE, "Done")
        logger.debug(f"Explanation: {text}")

        return ExplanationResult(
            text=text,
            summarized=decision.over_budget,
            estimated_tokens=decision.estimated_tokens,
            reference_count=len(materials),
            model=self.config.capable_model,
        )

    def explain_sync(self, method: PreparedMethod) -> ExplanationResult:
        """Blocking wrapper around explain() for callers without an event loop."""
        return asyncio.run(self.explain(method))
