"""Settings package: client configuration, locale formatting and persisted preferences.

Modules:

- :mod:`ExpenseClient.settings.lib` – Schema-validated client.json access and ini-backed user preferences.
- :mod:`ExpenseClient.settings.locale` – Babel-based currency, decimal and month formatting.
"""
