"""
Views package: orchestrators driving the expense list and the dashboard.

- :mod:`ExpenseClient.views.context` – Shared, explicitly created and disposed collaborators.
- :mod:`ExpenseClient.views.expense` – Filtered expense listing and expense submission.
- :mod:`ExpenseClient.views.dashboard` – Period statistics, breakdowns and trends with auto refresh.
"""
