"""Presentation signals the views report through.

A :class:`Signals` instance is owned by each :class:`ExpenseClient.views.context.ViewContext`;
renderers and notification surfaces connect to it.
"""
import logging

from PySide6 import QtCore


class Signals(QtCore.QObject):
    """Qt signals for notifications, data changes and loading state."""
    # Transient notifications
    error = QtCore.Signal(str)
    success = QtCore.Signal(str)

    # Expense list
    expensesChanged = QtCore.Signal(list)
    summaryChanged = QtCore.Signal(str)
    filtersChanged = QtCore.Signal(object)

    # Dashboard
    dashboardChanged = QtCore.Signal(object)
    periodChanged = QtCore.Signal(str)

    loadingChanged = QtCore.Signal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._connect_signals()

    def _connect_signals(self):
        @QtCore.Slot(str)
        def period_changed(period: str) -> None:
            logging.debug(f'Dashboard period changed to "{period}"')

        self.periodChanged.connect(period_changed)

        @QtCore.Slot(object)
        def filters_changed(filters: object) -> None:
            logging.debug(f'Filters changed: {filters}')

        self.filtersChanged.connect(filters_changed)
