"""LLM provider configurations and context windows."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"


@dataclass(frozen=True)
class ModelConfig:
    """Configuration for a specific model."""

    provider: LLMProvider
    model_id: str
    litellm_model: str  # Format for LiteLLM (e.g., "anthropic/claude-3-haiku")
    context_window: int | None = None  # Input tokens; None when unknown


MODELS: dict[str, ModelConfig] = {
    # OpenAI
    "gpt-3.5-turbo": ModelConfig(
        provider=LLMProvider.OPENAI,
        model_id="gpt-3.5-turbo",
        litellm_model="gpt-3.5-turbo",
        context_window=16_385,
    ),
    "gpt-4-1106-preview": ModelConfig(
        provider=LLMProvider.OPENAI,
        model_id="gpt-4-1106-preview",
        litellm_model="gpt-4-1106-preview",
        context_window=128_000,
    ),
    "gpt-4-turbo": ModelConfig(
        provider=LLMProvider.OPENAI,
        model_id="gpt-4-turbo",
        litellm_model="gpt-4-turbo",
        context_window=128_000,
    ),
    "gpt-4o-mini": ModelConfig(
        provider=LLMProvider.OPENAI,
        model_id="gpt-4o-mini",
        litellm_model="gpt-4o-mini",
        context_window=128_000,
    ),
    "gpt-4o": ModelConfig(
        provider=LLMProvider.OPENAI,
        model_id="gpt-4o",
        litellm_model="gpt-4o",
        context_window=128_000,
    ),
    # Anthropic
    "claude-3-haiku-20240307": ModelConfig(
        provider=LLMProvider.ANTHROPIC,
        model_id="claude-3-haiku-20240307",
        litellm_model="anthropic/claude-3-haiku-20240307",
        context_window=200_000,
    ),
    "claude-3-5-sonnet-20241022": ModelConfig(
        provider=LLMProvider.ANTHROPIC,
        model_id="claude-3-5-sonnet-20241022",
        litellm_model="anthropic/claude-3-5-sonnet-20241022",
        context_window=200_000,
    ),
    # Ollama (local)
    "codellama": ModelConfig(
        provider=LLMProvider.OLLAMA,
        model_id="codellama",
        litellm_model="ollama/codellama",
        context_window=16_384,
    ),
    "qwen2.5-coder": ModelConfig(
        provider=LLMProvider.OLLAMA,
        model_id="qwen2.5-coder",
        litellm_model="ollama/qwen2.5-coder",
        context_window=32_768,
    ),
}


def get_model_config(model_id: str, provider: LLMProvider | None = None) -> ModelConfig:
    """Get configuration for a model.

    Args:
        model_id: The model identifier
        provider: Optional provider hint for unknown models

    Returns:
        ModelConfig for the model

    Raises:
        ValueError: If model is unknown and no provider given
    """
    if model_id in MODELS:
        return MODELS[model_id]

    if provider is None:
        raise ValueError(
            f"Unknown model '{model_id}'. Either use a known model or specify a provider."
        )

    return ModelConfig(
        provider=provider,
        model_id=model_id,
        litellm_model=_build_litellm_model(model_id, provider),
    )


def _build_litellm_model(model_id: str, provider: LLMProvider) -> str:
    """Build LiteLLM model string for a provider."""
    if "/" in model_id:
        return model_id  # Already provider-qualified
    if provider == LLMProvider.ANTHROPIC:
        return f"anthropic/{model_id}"
    elif provider == LLMProvider.OPENAI:
        return model_id  # OpenAI models don't need prefix
    elif provider == LLMProvider.OLLAMA:
        return f"ollama/{model_id}"
    elif provider == LLMProvider.OPENROUTER:
        return f"openrouter/{model_id}"
    return model_id

