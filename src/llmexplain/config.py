"""Configuration models for llmexplain."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from llmexplain.errors import ConfigurationMissing

logger = logging.getLogger(__name__)

ENV_PREFIX = "LLMEXPLAIN_"
CONFIG_FILENAME = ".llmexplain.toml"


class ExplainConfig(BaseSettings):
    """Main llmexplain configuration."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
    )

    provider: Literal["openai", "anthropic", "ollama", "openrouter"] = Field(
        default="openai",
        description="LLM provider serving both model tiers",
    )
    fast_model: str = Field(
        default="gpt-3.5-turbo",
        description="Cheap model used to summarize references",
    )
    capable_model: str = Field(
        default="gpt-4-1106-preview",
        description="Large-context model used for the final explanation",
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for every completion call",
    )
    max_context_tokens: int = Field(
        default=100_000,
        ge=0,
        description="Token estimate above which references are summarized",
    )
    encoding: str = Field(
        default="cl100k_base",
        description="Tiktoken encoding used for the token estimate",
    )
    api_key_env: str = Field(
        default="OPENAI_API_KEY",
        description="Environment variable containing the provider API key",
    )
    api_key: str | None = Field(
        default=None,
        description="Explicit API key (takes precedence over api_key_env)",
    )
    timeout_seconds: int = Field(
        default=120,
        gt=0,
        description="Timeout for a single completion call",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Retries for rate-limited or timed-out completion calls",
    )
    concurrency: int = Field(
        default=1,
        ge=1,
        description="Maximum reference summaries requested at once",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL",
    )

    @classmethod
    def load(cls, config_path: Path | None = None) -> ExplainConfig:
        """Load configuration from file and environment.

        Resolution order (highest to lowest priority):
        1. Environment variables (LLMEXPLAIN_*)
        2. Provided config file path
        3. .llmexplain.toml in current directory
        4. .llmexplain.toml in home directory
        5. Built-in defaults
        """
        config_data: dict[str, Any] = {}

        locations = []
        if config_path:
            if not config_path.exists():
                raise ConfigurationMissing(
                    f"Config file not found: {config_path}", path=str(config_path)
                )
            locations.append(config_path)
        locations.extend(
            [
                Path.cwd() / CONFIG_FILENAME,
                Path.home() / CONFIG_FILENAME,
            ]
        )

        for loc in locations:
            if loc.exists():
                with open(loc, "rb") as f:
                    raw = tomllib.load(f)
                config_data = raw.get("llmexplain", raw)
                logger.debug(f"Loaded config from {loc}")
                break

        # Environment wins over file values
        config_data = {
            key: value
            for key, value in config_data.items()
            if f"{ENV_PREFIX}{key.upper()}" not in os.environ
        }
        return cls(**config_data)

    def resolve_api_key(self) -> str | None:
        """Return the provider credential.

        Raises:
            ConfigurationMissing: If the provider needs a key and none is set
        """
        if self.api_key:
            return self.api_key
        if self.provider == "ollama":
            return None
        value = os.environ.get(self.api_key_env)
        if not value:
            raise ConfigurationMissing(
                f"Please specify your API key in the environment variable {self.api_key_env}",
                api_key_env=self.api_key_env,
                provider=self.provider,
            )
        return value

    def check_budget(self) -> bool:
        """Warn when the budget exceeds the capable model's context window.

        Returns:
            True if the budget fits (or the window is unknown)
        """
        from llmexplain.providers import MODELS

        model = MODELS.get(self.capable_model)
        if model is None or model.context_window is None:
            return True
        if self.max_context_tokens > model.context_window:
            logger.warning(
                f"max_context_tokens={self.max_context_tokens} exceeds the "
                f"{model.context_window}-token window of {self.capable_model}"
            )
            return False
        return True


def get_default_config_toml() -> str:
    """Generate default .llmexplain.toml content."""
    return """# llmexplain configuration
# Environment variables (LLMEXPLAIN_<KEY>) override values set here.

[llmexplain]
provider = "openai"  # openai | anthropic | ollama | openrouter
fast_model = "gpt-3.5-turbo"  # Summarizes references when over budget
capable_model = "gpt-4-1106-preview"  # Writes the final explanation
temperature = 0.1
max_context_tokens = 100000  # Context window minus template/output headroom
encoding = "cl100k_base"
api_key_env = "OPENAI_API_KEY"
timeout_seconds = 120
max_retries = 2
concurrency = 1  # Parallel reference summaries
ollama_base_url = "http://localhost:11434"
"""
