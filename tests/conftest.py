"""Shared fixtures for llmexplain tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from llmexplain.config import ExplainConfig


@dataclass
class FakeCompletion:
    """Scripted completion client recording every call.

    ``replies`` maps a model id to the text it returns; a model missing from
    the mapping returns ``default``. A reply of ``None`` simulates an empty
    upstream response.
    """

    replies: dict[str, str | None] = field(default_factory=dict)
    default: str | None = "An explanation."
    calls: list[tuple[str, float, str]] = field(default_factory=list)

    async def complete(self, model: str, temperature: float, prompt: str) -> str | None:
        self.calls.append((model, temperature, prompt))
        return self.replies.get(model, self.default)

    def calls_for(self, model: str) -> list[str]:
        return [prompt for m, _, prompt in self.calls if m == model]


@pytest.fixture
def config() -> ExplainConfig:
    """Config with placeholder model ids and a budget nothing will exceed."""
    return ExplainConfig(
        fast_model="fast-model",
        capable_model="capable-model",
        max_context_tokens=1_000_000,
        api_key="test-key",
    )


@pytest.fixture
def make_completion() -> Callable[..., FakeCompletion]:
    """Factory for scripted completion clients."""
    return FakeCompletion


@pytest.fixture
def fake_completion() -> FakeCompletion:
    return FakeCompletion(replies={"fast-model": "Returns the constant 1."})


@pytest.fixture
def token_counter() -> Callable[[str], int]:
    """Whitespace word count; keeps tests independent of tiktoken data files."""
    return lambda text: len(text.split())
