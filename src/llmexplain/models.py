"""Value objects passed between reference collection and explanation."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


def reference_key(file_name: str, callee_name: str) -> str:
    """Build the dedup key for a reference: ``<file name>#<callee name>``."""
    return f"{file_name}#{callee_name}"


@dataclass(frozen=True)
class TargetFunction:
    """The function selected for explanation."""

    name: str
    source_text: str


@dataclass(frozen=True)
class ResolvedReference:
    """One call-site target as resolved by a function source.

    ``source`` may be a zero-argument callable; it is only invoked when the
    identifier is seen for the first time.
    """

    identifier: str
    source: str | Callable[[], str]

    def read_source(self) -> str:
        if callable(self.source):
            return self.source()
        return self.source


@dataclass(frozen=True)
class Reference:
    """A distinct call-site target with its source text."""

    identifier: str
    source_text: str


class ReferenceKind(str, Enum):
    """How a reference is represented in the final prompt."""

    RAW = "raw"
    SUMMARY = "summary"


@dataclass(frozen=True)
class ReferenceMaterial:
    """A reference rebound to either its raw source or a short summary."""

    kind: ReferenceKind
    content: str
    identifier: str


@dataclass(frozen=True)
class PreparedMethod:
    """Target body plus its deduplicated references, in insertion order."""

    name: str
    body: str
    references: Mapping[str, str] = field(default_factory=dict)
    duplicates: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Freeze the mapping; insertion order is preserved
        object.__setattr__(self, "references", MappingProxyType(dict(self.references)))

    def iter_references(self) -> list[Reference]:
        return [Reference(identifier, text) for identifier, text in self.references.items()]


@dataclass(frozen=True)
class BudgetDecision:
    """Outcome of comparing the token estimate to the context budget."""

    estimated_tokens: int
    max_context_tokens: int

    @property
    def over_budget(self) -> bool:
        return self.estimated_tokens > self.max_context_tokens


@dataclass(frozen=True)
class ExplanationResult:
    """Final explanation handed back to the caller."""

    text: str
    summarized: bool = False
    estimated_tokens: int = 0
    reference_count: int = 0
    model: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "text": self.text,
            "summarized": self.summarized,
            "estimated_tokens": self.estimated_tokens,
            "reference_count": self.reference_count,
            "model": self.model,
        }
