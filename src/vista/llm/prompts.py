"""Prompt templates for image description and result summarization."""

from dataclasses import dataclass
from typing import Any

from vista.models import QueryResult


@dataclass
class PromptTemplate:
    """A template for generating prompts with variable substitution."""

    template: str

    def render(self, **kwargs: Any) -> str:
        """Render the template with the given variables.

        Raises:
            KeyError: If a required variable is missing.
        """
        return self.template.format(**kwargs)


# =============================================================================
# Image Description
# =============================================================================

DESCRIBE_IMAGE_PROMPT = (
    "Describe this image in detail, focusing on objects, people, activities, colors, "
    "and setting. Be specific and descriptive."
)


# =============================================================================
# Summary
# =============================================================================

RESULT_ENTRY_TEMPLATE = PromptTemplate(
    """{rank}. **{id}** (Similarity: {similarity:.3f})
   Description: {description}
"""
)

SUMMARY_TEMPLATE = PromptTemplate(
    """Here are descriptions of relevant images:

{entries}
Based on these images and the user's query: "{query}", provide a comprehensive answer \
describing the most relevant images and how they relate to the query. \
Be specific about which images match best and explain why."""
)


def format_summary_prompt(query: str, results: list[QueryResult]) -> str:
    """Build the summarization prompt for the selected results, in order."""
    entries = "\n".join(
        RESULT_ENTRY_TEMPLATE.render(
            rank=i,
            id=result.id,
            similarity=result.similarity,
            description=result.description,
        )
        for i, result in enumerate(results, start=1)
    )
    return SUMMARY_TEMPLATE.render(entries=entries, query=query)
