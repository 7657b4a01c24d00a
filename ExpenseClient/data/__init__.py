"""
ExpenseClient data package: models, refinement and analytics.

This package provides:

- :mod:`ExpenseClient.data.model` – Expense, draft and filter records parsed from API payloads and form input.
- :mod:`ExpenseClient.data.refine` – Client-side search, amount and date narrowing of fetched expenses.
- :mod:`ExpenseClient.data.data` – Category breakdowns, statistics, period ranges and monthly trends (via :func:`ExpenseClient.data.data.category_breakdown`, :func:`ExpenseClient.data.data.monthly_trend`).
"""
