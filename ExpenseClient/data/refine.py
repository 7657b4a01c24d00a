"""Client-side refinement of fetched expenses.

The backend filters by category and date only; free-text search and amount bounds are applied
here. All functions are pure and keep the input order.
"""
import datetime
from typing import Iterable, List, Optional

from .model import Expense, FilterSet, amount_text


def matches_search(expense: Expense, term: str) -> bool:
    """Case-insensitive containment of term in the description, category or amount text."""
    term = term.lower()
    return (
            term in expense.description.lower()
            or term in expense.category.value.lower()
            or term in amount_text(expense.amount)
    )


def refine(expenses: Iterable[Expense], filters: FilterSet) -> List[Expense]:
    """Apply the search term and the inclusive amount bounds of filters.

    Args:
        expenses: The fetched expenses.
        filters (FilterSet): The active filters. Only search, min_amount and max_amount are used.

    Returns:
        list[Expense]: The matching expenses in their original order.
    """
    term = filters.search.strip() if filters.search else ''
    lo, hi = filters.min_amount, filters.max_amount

    result = []
    for expense in expenses:
        if term and not matches_search(expense, term):
            continue
        if lo is not None and expense.amount < lo:
            continue
        if hi is not None and expense.amount > hi:
            continue
        result.append(expense)
    return result


def filter_by_date_range(expenses: Iterable[Expense],
                         start: Optional[datetime.date],
                         end: Optional[datetime.date]) -> List[Expense]:
    """Keep expenses created between the start of ``start`` and the end of ``end``.

    Expenses without a creation timestamp never match a bounded range.
    """
    lo = datetime.datetime.combine(start, datetime.time.min) if start else None
    hi = datetime.datetime.combine(end, datetime.time.max) if end else None

    result = []
    for expense in expenses:
        if lo is None and hi is None:
            result.append(expense)
            continue
        if expense.created_at is None:
            continue
        if lo is not None and expense.created_at < lo:
            continue
        if hi is not None and expense.created_at > hi:
            continue
        result.append(expense)
    return result
