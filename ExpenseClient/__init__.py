"""
ExpenseClient: client for the personal expense-tracking web application.

This package provides:

- :mod:`ExpenseClient.core` – Transport, query planning and result caching for the remote expense API.
- :mod:`ExpenseClient.data` – Expense and filter models, client-side refinement and aggregate derivation
  (:func:`ExpenseClient.data.data.category_breakdown`, :func:`ExpenseClient.data.data.stats`,
  :func:`ExpenseClient.data.data.monthly_trend`).
- :mod:`ExpenseClient.views` – The expense-listing and dashboard orchestrators and their shared context.
- :mod:`ExpenseClient.settings` – Settings management, schema validation and persisted preferences.
- :mod:`ExpenseClient.log` – In-app logging.

Use :func:`ExpenseClient.exec_` to run the dashboard headless inside a Qt event loop.
"""

import sys

from PySide6 import QtCore

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('ExpenseClient requires Python 3.11 or higher.')

__version__ = '0.1.0'
__license__ = 'GPL-3.0'
__description__ = 'ExpenseClient: query, cache and aggregate expenses served by a remote expense-tracking API.'

from .log import log

log.setup_logging()


def exec_() -> None:
    """Run the dashboard in a headless Qt event loop.

    Creates the view context, loads the dashboard once, and keeps it refreshed on the configured
    interval until the application quits.
    """
    import logging
    from .views.context import ViewContext
    from .views.dashboard import DashboardView

    app = QtCore.QCoreApplication(sys.argv)
    context = ViewContext.create()

    context.signals.error.connect(lambda msg: logging.error(msg))
    context.signals.success.connect(lambda msg: logging.info(msg))
    context.signals.dashboardChanged.connect(
        lambda data: logging.info(
            f'{data.period}: {data.stats.transaction_count} transactions, '
            f'{context.format_currency(data.stats.total_amount)} total'
        )
    )

    view = DashboardView(context)
    app.aboutToQuit.connect(context.dispose)

    # Ask the dashboard to load once the event loop is running
    QtCore.QTimer.singleShot(100, view.load)
    view.start_auto_refresh()

    sys.exit(app.exec())


if __name__ == '__main__':
    exec_()
