"""Context budget optimizer tests."""

import math

from hypothesis import given
from hypothesis import strategies as st

from conftest import make_result
from vista.search.budget import ContextBudgetOptimizer, estimate_tokens


def test_estimate_tokens_is_a_quarter_of_length():
    assert estimate_tokens("a" * 400) == 100
    assert estimate_tokens("abcdefg") == 1


def test_estimate_tokens_never_returns_zero():
    assert estimate_tokens("") == 1
    assert estimate_tokens("abc") == 1


def test_selects_in_similarity_order():
    optimizer = ContextBudgetOptimizer(budget=10_000)
    results = [make_result("b", 0.4), make_result("a", 0.9), make_result("c", 0.7)]

    assert [r.id for r in optimizer.select(results)] == ["a", "c", "b"]


def test_equal_similarities_keep_input_order():
    optimizer = ContextBudgetOptimizer(budget=10_000)
    results = [make_result("first", 0.5), make_result("second", 0.5)]

    assert [r.id for r in optimizer.select(results)] == ["first", "second"]


def test_stops_at_first_result_that_does_not_fit():
    """A cheaper result after an over-budget one is not picked up."""
    optimizer = ContextBudgetOptimizer(budget=420, base_prompt_tokens=200, per_item_overhead=50)
    results = [
        make_result("fits", 0.9, "x" * 400),  # 100 + 50 -> 350 used
        make_result("too_long", 0.8, "x" * 800),  # 200 + 50 -> over
        make_result("short", 0.7, "x" * 4),  # 1 + 50 would fit
    ]

    assert [r.id for r in optimizer.select(results)] == ["fits"]


def test_item_exactly_filling_budget_is_selected():
    optimizer = ContextBudgetOptimizer(budget=350, base_prompt_tokens=200, per_item_overhead=50)

    assert len(optimizer.select([make_result("exact", 0.9, "x" * 400)])) == 1


def test_zero_budget_selects_nothing():
    optimizer = ContextBudgetOptimizer(budget=0)

    assert optimizer.select([make_result("a", 0.9, "tiny")]) == []


def test_budget_below_base_selects_nothing():
    optimizer = ContextBudgetOptimizer(budget=150, base_prompt_tokens=200)

    assert optimizer.select([make_result("a", 0.9, "tiny")]) == []


def test_infinite_budget_selects_everything():
    optimizer = ContextBudgetOptimizer(budget=math.inf)
    results = [make_result(str(i), i / 10, "x" * 100_000) for i in range(5)]

    assert len(optimizer.select(results)) == 5


def test_custom_estimator_is_used():
    optimizer = ContextBudgetOptimizer(
        budget=300, base_prompt_tokens=0, per_item_overhead=0, estimate=lambda text: 100
    )
    results = [make_result(str(i), 1 - i / 10) for i in range(5)]

    assert len(optimizer.select(results)) == 3


def test_estimate_cost_includes_base_and_overhead():
    optimizer = ContextBudgetOptimizer(base_prompt_tokens=200, per_item_overhead=50)
    results = [make_result("a", 0.9, "x" * 40), make_result("b", 0.8, "x" * 80)]

    assert optimizer.estimate_cost(results) == 200 + (10 + 50) + (20 + 50)
    assert optimizer.estimate_cost([]) == 200


similarities = st.floats(min_value=-1.0, max_value=1.0, allow_nan=False)
descriptions = st.text(max_size=2000)
result_lists = st.lists(
    st.tuples(similarities, descriptions).map(
        lambda pair: make_result("id", pair[0], pair[1])
    ),
    max_size=30,
)


@given(results=result_lists, budget=st.integers(min_value=0, max_value=8000))
def test_selection_is_a_prefix_of_the_sorted_input(results, budget):
    optimizer = ContextBudgetOptimizer(budget=budget)

    selected = optimizer.select(results)

    ordered = sorted(results, key=lambda r: r.similarity, reverse=True)
    assert selected == ordered[: len(selected)]


@given(results=result_lists, budget=st.integers(min_value=0, max_value=8000))
def test_selection_never_exceeds_budget(results, budget):
    optimizer = ContextBudgetOptimizer(budget=budget)

    selected = optimizer.select(results)

    if selected:
        assert optimizer.estimate_cost(selected) <= budget


@given(results=result_lists, budget=st.integers(min_value=0, max_value=8000))
def test_next_item_would_overflow(results, budget):
    """Selection only stops early because the next item does not fit."""
    optimizer = ContextBudgetOptimizer(budget=budget)

    selected = optimizer.select(results)

    ordered = sorted(results, key=lambda r: r.similarity, reverse=True)
    if len(selected) < len(ordered) and budget >= optimizer.base_prompt_tokens:
        with_next = ordered[: len(selected) + 1]
        assert optimizer.estimate_cost(with_next) > budget
