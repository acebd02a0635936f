"""Completion client - thin LiteLLM adapter used by the planner."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import litellm
from litellm import acompletion

from llmexplain.config import ExplainConfig
from llmexplain.providers import LLMProvider, get_model_config

logger = logging.getLogger(__name__)

# Disable LiteLLM's verbose logging
litellm.suppress_debug_info = True


class CompletionClient(Protocol):
    """Anything that can turn a prompt into text."""

    async def complete(self, model: str, temperature: float, prompt: str) -> str | None:
        """Return generated text, or None when nothing usable came back."""
        ...


class LiteLLMCompletionClient:
    """Completion client over LiteLLM.

    The credential is validated once at construction, so a missing key is
    reported before any network call. Rate limits and timeouts are retried
    with exponential backoff; authentication errors are not.
    """

    def __init__(self, config: ExplainConfig) -> None:
        self.config = config
        self.provider = LLMProvider(config.provider)
        # Raises ConfigurationMissing
        self._api_key = config.resolve_api_key()
        self.requests = 0

    def _litellm_model(self, model: str) -> str:
        return get_model_config(model, self.provider).litellm_model

    async def complete(self, model: str, temperature: float, prompt: str) -> str | None:
        """Send a single user message and return the response text."""
        kwargs: dict[str, Any] = {
            "model": self._litellm_model(model),
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "timeout": self.config.timeout_seconds,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self.provider == LLMProvider.OLLAMA:
            kwargs["api_base"] = self.config.ollama_base_url

        last_error: str | None = None
        for attempt in range(self.config.max_retries + 1):
            self.requests += 1
            try:
                response = await acompletion(**kwargs)
                if not response.choices:
                    logger.warning(f"{model} returned no choices")
                    return None
                content = response.choices[0].message.content
                if content is None:
                    logger.warning(f"{model} response is null")
                    return None
                return str(content)

            except litellm.exceptions.RateLimitError as e:
                last_error = f"Rate limited: {e}"
                if attempt < self.config.max_retries:
                    wait_time = min(60, 2 ** (attempt + 1))  # Exponential backoff, max 60s
                    logger.warning(f"Rate limited, waiting {wait_time}s before retry")
                    await asyncio.sleep(wait_time)

            except litellm.exceptions.AuthenticationError as e:
                logger.error(f"Authentication failed for {model}: {e}")
                return None

            except (asyncio.TimeoutError, litellm.exceptions.Timeout):
                last_error = f"Timeout after {self.config.timeout_seconds}s"
                if attempt < self.config.max_retries:
                    logger.warning(f"Timeout, retrying ({attempt + 1}/{self.config.max_retries})")

            except Exception as e:
                last_error = str(e)
                if attempt < self.config.max_retries:
                    logger.warning(f"Error: {e}, retrying ({attempt + 1}/{self.config.max_retries})")

        logger.error(f"Completion with {model} failed: {last_error or 'Unknown error'}")
        return None
