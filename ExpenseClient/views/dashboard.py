"""Dashboard orchestrator.

Each load cycle runs four independent branches on worker threads:

    - statistics of the selected period
    - the most recent expenses
    - the category breakdown of the selected period
    - the monthly trend over the configured number of months

and joins them. A failing branch substitutes its default (zero stats, empty lists) without
affecting the others; failures are reported once, after the join. The selected period is
persisted in the user preferences and the cycle re-runs on an owned, cancelable timer.
"""
import dataclasses
import datetime
import functools
import json
import logging
from typing import Any, Callable, List, Optional, Tuple

from PySide6 import QtCore

from .context import ViewContext
from ..core import service
from ..data import data
from ..data.model import Expense, Period, parse_date
from ..status import status

PERIOD_KEY: str = 'dashboard/period'
DEFAULT_PERIOD: Period = Period.Month

LOAD_FAILED = 'Failed to load dashboard data. Please try again.'


@dataclasses.dataclass(frozen=True)
class DashboardData:
    """Everything one dashboard cycle renders.

    ``start`` and ``end`` are None for the all-time period.
    """
    period: Period
    start: Optional[str]
    end: Optional[str]
    stats: data.DashboardStats
    recent: List[Expense]
    breakdown: List[data.CategoryShare]
    trend: List[data.MonthlyTotal]
    refreshed_at: datetime.datetime


def validate_period(value: Any) -> Period:
    """Return value as a Period, or the default period when it is missing or unknown."""
    try:
        return Period(str(value))
    except ValueError:
        if value is not None:
            logging.warning(f'Invalid saved dashboard period "{value}", using "{DEFAULT_PERIOD}"')
        return DEFAULT_PERIOD


def _range_key(start: str, end: str) -> str:
    return json.dumps({'endDate': end, 'startDate': start}, sort_keys=True, separators=(',', ':'))


class DashboardView:
    """Period dashboard with automatic refresh.

    Args:
        context (ViewContext): Shared collaborators.
    """

    def __init__(self, context: ViewContext) -> None:
        self.context = context
        self.signals = context.signals
        self.cache = context.new_cache()
        self.period: Period = validate_period(context.preferences.value(PERIOD_KEY))
        self.data: Optional[DashboardData] = None
        self._disposed = False
        self._loading = False

        self.refresh_timer = QtCore.QTimer()
        self.refresh_timer.setInterval(context.settings.get_section('refresh')['interval'] * 1000)
        self.refresh_timer.timeout.connect(self.refresh)

        context.register(self)

    # Period

    def set_period(self, period: str) -> bool:
        """Select, persist and load a period.

        Returns:
            bool: False if period is not a known period.
        """
        try:
            period = Period(period)
        except ValueError:
            logging.warning(f'Unknown dashboard period "{period}"')
            return False

        self.period = period
        self.context.preferences.set_value(PERIOD_KEY, period.value)
        self.signals.periodChanged.emit(period.value)
        self.load()
        return True

    # Branches

    def _expenses_between(self, start: str, end: str) -> List[Expense]:
        return self.cache.get(
            _range_key(start, end),
            lambda: self.context.api.fetch_by_date_range(parse_date(start), parse_date(end)),
        )

    def _load_stats(self, start: Optional[str], end: Optional[str]) -> data.DashboardStats:
        if start is None:
            payload = self.cache.get('statistics', self.context.api.fetch_statistics)
            return data.parse_stats(payload)
        return data.stats(self._expenses_between(start, end))

    def _load_recent(self) -> List[Expense]:
        expenses = self.cache.get('recent-expenses', self.context.api.fetch_recent)
        return data.recent(expenses, self.context.settings['recent_limit'])

    def _load_breakdown(self, start: Optional[str], end: Optional[str]) -> List[data.CategoryShare]:
        if start is None:
            payload = self.cache.get('category-breakdown', self.context.api.fetch_category_breakdown)
            return data.parse_breakdown(payload)
        return data.category_breakdown(self._expenses_between(start, end))

    def _load_trend(self, today: datetime.date) -> List[data.MonthlyTotal]:
        months = self.context.settings['trend_months']
        start, end = data.trend_range(months, today)
        expenses = self._expenses_between(start.isoformat(), end.isoformat())
        return data.monthly_trend(
            expenses,
            months=months,
            today=today,
            loess_fraction=self.context.settings['loess_fraction'],
            locale_name=self.context.locale,
        )

    @staticmethod
    def _guarded(name: str, func: Callable[[], Any], default: Any) -> Tuple[Any, Optional[Exception]]:
        try:
            return func(), None
        except status.EmptyResultException:
            return default, None
        except status.BaseStatusException as ex:
            logging.error(f'Dashboard {name} failed: {ex}')
            return default, ex
        except Exception as ex:
            logging.exception(f'Dashboard {name} failed unexpectedly')
            return default, ex

    # Loading

    @QtCore.Slot()
    def load(self) -> Optional[DashboardData]:
        """Run one dashboard cycle and emit its data.

        Returns:
            DashboardData: The rendered data, or None when the view is disposed. A call made while
                a cycle is running returns the previous data.
        """
        if self._disposed:
            return None
        if self._loading:
            # A timer fired while this view waits on its branches
            logging.debug('Dashboard is already loading')
            return self.data

        self._loading = True
        self.signals.loadingChanged.emit(True)
        try:
            today = datetime.date.today()
            period = self.period
            if period == Period.All:
                start, end = None, None
            else:
                start, end = data.date_range(period, today)
            logging.debug(f'Loading dashboard for {period}: {start}..{end}')

            branches = (
                ('statistics', lambda: self._load_stats(start, end), data.DashboardStats()),
                ('recent expenses', self._load_recent, []),
                ('category breakdown', lambda: self._load_breakdown(start, end), []),
                ('monthly trend', lambda: self._load_trend(today), []),
            )
            workers = service.start_asynchronous([
                functools.partial(self._guarded, name, func, default)
                for name, func, default in branches
            ])
            results = [
                worker.result if worker.error is None else (default, worker.error)
                for worker, (_, _, default) in zip(workers, branches)
            ]

            errors = [ex for _, ex in results if ex is not None]
            (stats, _), (recent, _), (breakdown, _), (trend, _) = results

            self.data = DashboardData(
                period=period,
                start=start,
                end=end,
                stats=stats,
                recent=recent,
                breakdown=breakdown,
                trend=trend,
                refreshed_at=datetime.datetime.now(),
            )
            if errors:
                self.signals.error.emit(LOAD_FAILED)
            self.signals.dashboardChanged.emit(self.data)
            return self.data
        finally:
            self._loading = False
            self.signals.loadingChanged.emit(False)

    def refresh(self) -> Optional[DashboardData]:
        """Drop cached results and reload."""
        self.cache.invalidate()
        return self.load()

    # Auto refresh

    def start_auto_refresh(self) -> None:
        if self._disposed:
            raise RuntimeError('Cannot start auto refresh on a disposed view.')
        self.refresh_timer.start()
        logging.debug(f'Dashboard auto refresh every {self.refresh_timer.interval()} ms')

    def stop_auto_refresh(self) -> None:
        self.refresh_timer.stop()

    @property
    def auto_refresh_active(self) -> bool:
        return self.refresh_timer.isActive()

    def dispose(self) -> None:
        """Cancel the auto refresh and release the view from its context."""
        if self._disposed:
            return
        self._disposed = True
        self.stop_auto_refresh()
        self.cache.invalidate()
        self.context.unregister(self)
