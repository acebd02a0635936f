"""Prompt templates for reference summarization and function explanation."""

from __future__ import annotations

import re
from collections.abc import Sequence

from llmexplain.models import ReferenceKind, ReferenceMaterial

SUMMARY_LABEL = "Summary of method:"

# Fast-tier prompt used when references do not fit the budget
SUMMARIZE_REFERENCE_PROMPT = """\
You are SummaryExplainGPT, an excellent code summarizer of Python code. \
Output ONLY short, 1-3 line summary of the code provided. \
It is important you keep the description short and succinct, i.e. a summary.
#### Name:
{name}
#### Source code:
```python
{source}
```
"""

EXPLAIN_PREAMBLE = """\
You are ExplainPythonGPT, an expert at explaining Python code, even if the code is incomplete.
You will first be provided with the method the code to explain references \
(either as code or a summary of the code), then the code itself to explain.

Explain ONLY the code we ask to explain (denoted as "Code to Explain:"), \
noting however to always be honest with the user: if you do not know what part of a method does, say this.
Explanations should be clear and concise and targeted at professional coders \
who want to quickly know what the code does.
Not every line needs explaining in detail, we are interested more in what a method does and how it achieves that.
Remember, if the method is extremely long you will need to be succinct in your explanation \
as you only have so much output tokens available!
"""

EXPLAIN_CLOSING = "Please provide the explanation of ONLY the Code to Explain.\n"

RAW_REFERENCE_TEMPLATE = "### `{name}`\n```python\n{content}\n```\n"
SUMMARY_REFERENCE_TEMPLATE = "### `{name}`\n" + SUMMARY_LABEL + " {content}\n"

# Whole response wrapped in a single triple-backtick fence
_FENCED_RESPONSE = re.compile(r"^\s*```(.*)```\s*$", re.DOTALL)


def format_summarize_prompt(name: str, source: str) -> str:
    """Format the fast-tier summarization prompt for one reference."""
    return SUMMARIZE_REFERENCE_PROMPT.format(name=name, source=source)


def render_reference(material: ReferenceMaterial) -> str:
    """Render one reference block for the final prompt."""
    if material.kind == ReferenceKind.RAW:
        template = RAW_REFERENCE_TEMPLATE
    else:
        template = SUMMARY_REFERENCE_TEMPLATE
    return template.format(name=material.identifier, content=material.content)


def format_explain_prompt(
    name: str,
    body: str,
    materials: Sequence[ReferenceMaterial],
) -> str:
    """Assemble the final explanation prompt.

    Args:
        name: Target function name
        body: Target function source, embedded verbatim
        materials: Rendered references, raw or summarized

    Returns:
        Prompt for the capable-tier model
    """
    parts = [
        EXPLAIN_PREAMBLE,
        "\n",
        "## Method Metadata:\n",
        f"Method Name: {name}\n",
        f"Number of references: {len(materials)}\n",
        "## References\n",
        "\n",
    ]
    parts.extend(render_reference(material) for material in materials)
    parts.append("\n## Code to Explain:\n")
    parts.append("```python\n")
    parts.append(body)
    parts.append("\n```\n")
    parts.append(EXPLAIN_CLOSING)
    return "".join(parts)


def strip_code_fence(response: str) -> str:
    """Remove a triple-backtick fence wrapping the entire response.

    Only the outermost fence is removed; any language tag after the opening
    backticks is left in place. Text without an enclosing fence is returned
    unchanged.
    """
    if _FENCED_RESPONSE.match(response):
        return response.strip()[3:-3]
    return response
