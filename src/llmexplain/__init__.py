"""llmexplain - Explain Python functions with an LLM, within a context budget."""

__version__ = "0.1.0"

from llmexplain.collector import ReferenceCollector  # noqa: E402
from llmexplain.config import ExplainConfig  # noqa: E402
from llmexplain.errors import (  # noqa: E402
    ConfigurationMissing,
    DuplicateReferenceWarning,
    ExplainError,
    ExplanationCancelled,
    FailureStage,
    UpstreamFailure,
)
from llmexplain.models import (  # noqa: E402
    ExplanationResult,
    PreparedMethod,
    ReferenceKind,
    ReferenceMaterial,
    ResolvedReference,
    TargetFunction,
)
from llmexplain.planner import ContextBudgetPlanner  # noqa: E402

__all__ = [
    "__version__",
    # Pipeline
    "ReferenceCollector",
    "ContextBudgetPlanner",
    "ExplainConfig",
    # Types
    "TargetFunction",
    "ResolvedReference",
    "PreparedMethod",
    "ReferenceKind",
    "ReferenceMaterial",
    "ExplanationResult",
    # Errors
    "ExplainError",
    "ConfigurationMissing",
    "UpstreamFailure",
    "ExplanationCancelled",
    "FailureStage",
    "DuplicateReferenceWarning",
]
