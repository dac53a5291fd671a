"""Query-time retrieval, context budgeting and summarization."""

from vista.search.budget import ContextBudgetOptimizer, estimate_tokens
from vista.search.pipeline import SearchPipeline

__all__ = ["ContextBudgetOptimizer", "SearchPipeline", "estimate_tokens"]
