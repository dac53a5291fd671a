"""Token budgeting for the summarization context."""

import math
from typing import Callable

from vista.constants.search import (
    BASE_PROMPT_TOKENS,
    CHARS_PER_TOKEN,
    MAX_CONTEXT_TOKENS,
    PER_ITEM_OVERHEAD_TOKENS,
)
from vista.models import QueryResult


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters, never less than one."""
    return max(1, len(text) // CHARS_PER_TOKEN)


class ContextBudgetOptimizer:
    """Greedy selection of search results that fit a token budget.

    Results are taken in descending similarity order (ties keep their input
    order). Each costs ``estimate_tokens(description) + per_item_overhead``
    on top of a fixed ``base_prompt_tokens``. Selection stops at the first
    result that does not fit, so the output is always a prefix of the sorted
    input even when a later, shorter result would still fit.
    """

    def __init__(
        self,
        budget: float = MAX_CONTEXT_TOKENS,
        base_prompt_tokens: int = BASE_PROMPT_TOKENS,
        per_item_overhead: int = PER_ITEM_OVERHEAD_TOKENS,
        estimate: Callable[[str], int] = estimate_tokens,
    ) -> None:
        """Initialize the optimizer.

        Args:
            budget: Maximum tokens for the whole prompt; ``math.inf`` disables the cap.
            base_prompt_tokens: Tokens reserved for instructions and the query.
            per_item_overhead: Formatting tokens added per selected result.
            estimate: Token estimator applied to each description.
        """
        self.budget = budget
        self.base_prompt_tokens = base_prompt_tokens
        self.per_item_overhead = per_item_overhead
        self.estimate = estimate

    def item_cost(self, result: QueryResult) -> int:
        return self.estimate(result.description) + self.per_item_overhead

    def select(self, results: list[QueryResult]) -> list[QueryResult]:
        """Return the longest similarity-ordered prefix of ``results`` within budget."""
        if math.isinf(self.budget) and self.budget > 0:
            return sorted(results, key=lambda r: r.similarity, reverse=True)

        used = self.base_prompt_tokens
        if used > self.budget:
            return []

        selected = []
        for result in sorted(results, key=lambda r: r.similarity, reverse=True):
            cost = self.item_cost(result)
            if used + cost > self.budget:
                break
            selected.append(result)
            used += cost
        return selected

    def estimate_cost(self, results: list[QueryResult]) -> int:
        """Tokens a prompt built from ``results`` would use, base included."""
        return self.base_prompt_tokens + sum(self.item_cost(r) for r in results)
