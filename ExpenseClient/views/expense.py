"""Expense listing orchestrator.

Drives one load cycle per filter change:

    filter state -> query plan -> result cache -> remote API -> client refinement -> signals

Fetch failures never escape :meth:`ExpenseView.load`: the list degrades to empty and a retryable
error notification is emitted.
"""
import logging
from typing import Any, List, Mapping, Optional

from PySide6 import QtCore

from .context import ViewContext
from ..core import planner
from ..data import refine
from ..data.model import Expense, ExpenseDraft, FilterSet, QuickFilter
from ..status import status

DEBOUNCE_MS: int = 300

LOAD_FAILED = 'Failed to load expenses. Please try again.'
SAVE_FAILED = 'Failed to save expense. Please try again.'
DELETE_FAILED = 'Failed to delete expense. Please try again.'


def summary_text(count: int) -> str:
    return f'Showing {count} expense{"" if count == 1 else "s"}'


class ExpenseView:
    """Filtered expense listing.

    Args:
        context (ViewContext): Shared collaborators.
    """

    def __init__(self, context: ViewContext) -> None:
        self.context = context
        self.signals = context.signals
        self.cache = context.new_cache()
        self.filters: FilterSet = FilterSet()
        self.expenses: List[Expense] = []

        self._pending_form: Optional[Mapping[str, Any]] = None
        self._debounce_timer = QtCore.QTimer()
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(DEBOUNCE_MS)
        self._debounce_timer.timeout.connect(self._apply_pending_filters)

        context.register(self)

    # Filter state

    def apply_filters(self, form: Mapping[str, Any]) -> bool:
        """Replace the filters with the parsed form input and reload.

        Manual filters clear any active quick filter. Invalid input keeps the current filters and
        emits an error notification.

        Returns:
            bool: True if the filters were applied.
        """
        form = {k: v for k, v in form.items() if k != 'quickFilter'}
        try:
            filters = FilterSet.parse(form)
        except status.FilterInvalidException as ex:
            self.signals.error.emit(str(ex))
            return False

        self._set_filters(filters)
        self.load()
        return True

    def schedule_filters(self, form: Mapping[str, Any]) -> None:
        """Apply form input after a short quiet period, e.g. while the user is typing a search."""
        self._pending_form = dict(form)
        self._debounce_timer.start()

    @QtCore.Slot()
    def _apply_pending_filters(self) -> None:
        if self._pending_form is None:
            return
        form, self._pending_form = self._pending_form, None
        self.apply_filters(form)

    def apply_quick_filter(self, quick_filter: str) -> bool:
        """Switch to a quick filter, keeping only the current search term, and reload.

        Returns:
            bool: False if quick_filter is not a known quick filter.
        """
        try:
            quick_filter = QuickFilter(quick_filter)
        except ValueError:
            logging.warning(f'Unknown quick filter "{quick_filter}"')
            return False

        self._set_filters(self.filters.with_quick_filter(quick_filter))
        self.load()
        return True

    def clear_filters(self) -> None:
        """Drop all filters and every cached result, then reload."""
        self._set_filters(FilterSet())
        self.cache.invalidate()
        self.load()

    def _set_filters(self, filters: FilterSet) -> None:
        self.filters = filters
        self.signals.filtersChanged.emit(filters)

    # Loading

    def fetch(self) -> List[Expense]:
        """Return the server-filtered expenses for the current filters, using the cache.

        Raises:
            status.BaseStatusException: If the fetch fails.
        """
        strategy = planner.plan(self.filters)
        return self.cache.get(self.filters.fetch_key(), lambda: self.context.api.fetch(strategy))

    def load(self) -> List[Expense]:
        """Run one load cycle and emit the refined expenses.

        Returns:
            list[Expense]: The refined expenses, or an empty list on failure.
        """
        self.signals.loadingChanged.emit(True)
        try:
            try:
                fetched = self.fetch()
            except status.EmptyResultException:
                fetched = []
            except status.BaseStatusException as ex:
                logging.error(f'Loading expenses failed: {ex}')
                self.signals.error.emit(LOAD_FAILED)
                fetched = []
            except Exception:
                logging.exception('Loading expenses failed unexpectedly')
                self.signals.error.emit(LOAD_FAILED)
                fetched = []

            self.expenses = refine.refine(fetched, self.filters)
            self.signals.expensesChanged.emit(self.expenses)
            self.signals.summaryChanged.emit(summary_text(len(self.expenses)))
            return self.expenses
        finally:
            self.signals.loadingChanged.emit(False)

    # Mutations

    def submit_expense(self, form: Mapping[str, Any], expense_id: Any = None) -> bool:
        """Create an expense, or update it when an id is given, then reload.

        The id may also be passed in the form under ``id``.

        Returns:
            bool: True on success.
        """
        expense_id = expense_id if expense_id is not None else (form.get('id') or None)
        try:
            draft = ExpenseDraft.parse(form)
        except status.ExpenseInvalidException as ex:
            self.signals.error.emit(str(ex))
            return False

        try:
            if expense_id is None:
                self.context.api.add_expense(draft)
            else:
                self.context.api.update_expense(expense_id, draft)
        except status.BaseStatusException as ex:
            logging.error(f'Saving expense failed: {ex}')
            self.signals.error.emit(SAVE_FAILED)
            return False

        self.cache.invalidate()
        self.signals.success.emit(
            'Expense added successfully!' if expense_id is None else 'Expense updated successfully!'
        )
        self.load()
        return True

    def delete_expense(self, expense_id: Any) -> bool:
        """Delete an expense, then reload.

        Returns:
            bool: True on success.
        """
        try:
            self.context.api.delete_expense(expense_id)
        except status.BaseStatusException as ex:
            logging.error(f'Deleting expense {expense_id} failed: {ex}')
            self.signals.error.emit(DELETE_FAILED)
            return False

        self.cache.invalidate()
        self.signals.success.emit('Expense deleted successfully!')
        self.load()
        return True

    def dispose(self) -> None:
        """Stop pending work and release the view from its context."""
        self._debounce_timer.stop()
        self._pending_form = None
        self.cache.invalidate()
        self.context.unregister(self)
