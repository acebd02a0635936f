"""Token counting for the context budget."""

from __future__ import annotations

import tiktoken


class TokenCounter:
    """Count tokens with a fixed tiktoken encoding.

    The encoding should match the completion model family; cl100k_base covers
    the GPT-3.5/GPT-4 models used by default.
    """

    def __init__(self, encoding: str = "cl100k_base") -> None:
        self.encoding_name = encoding
        self.encoding = tiktoken.get_encoding(encoding)

    def count_tokens(self, text: str) -> int:
        """Count tokens in a text string."""
        # Special-token text in user code must not raise
        return len(self.encoding.encode(text, disallowed_special=()))

    def __call__(self, text: str) -> int:
        return self.count_tokens(text)
