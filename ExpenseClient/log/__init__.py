"""
Logging subsystem: handlers for application logging.

Modules:

- :mod:`ExpenseClient.log.log` – Root logger setup, an in-memory log tank, and the Qt message bridge.
"""
