"""
Core package for ExpenseClient providing transport, planning and caching.

This package includes:

- :mod:`ExpenseClient.core.service` – HTTP access to the remote expense API with status-driven error translation.
- :mod:`ExpenseClient.core.planner` – Chooses the backend endpoint for a set of filters.
- :mod:`ExpenseClient.core.cache` – Time-expiring memoization of fetched expense lists.
"""
