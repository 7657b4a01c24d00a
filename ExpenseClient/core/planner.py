"""Decides which backend endpoint serves a set of filters.

Only the category and the date range decide the endpoint. Search and amount bounds are always
resolved client-side after the fetch.
"""
import dataclasses
import datetime
import enum
import logging
from typing import Dict, Optional

from ..data.model import FilterSet, QuickFilter, format_date


class Endpoint(enum.StrEnum):
    """Expense listing endpoints of the remote API."""
    All = '/api/expense/get'
    Category = '/api/expense/CategoryFilter'
    DateRange = '/api/expense/DateRange'
    Week = '/api/expense/week'


@dataclasses.dataclass(frozen=True)
class FetchStrategy:
    """A planned fetch.

    Attributes:
        endpoint (Endpoint): The endpoint to call.
        params (dict): Query parameters for the endpoint.
        narrow_from (datetime.date): When set, the fetched list is narrowed client-side to
            ``narrow_from .. narrow_to`` (inclusive, whole days).
        narrow_to (datetime.date): See narrow_from.
    """
    endpoint: Endpoint
    params: Dict[str, str] = dataclasses.field(default_factory=dict)
    narrow_from: Optional[datetime.date] = None
    narrow_to: Optional[datetime.date] = None

    @property
    def narrows(self) -> bool:
        return self.narrow_from is not None and self.narrow_to is not None


def quick_filter_range(quick_filter: QuickFilter, today: Optional[datetime.date] = None):
    """Return the (start, end) dates a month or 30-day quick filter stands for.

    The week quick filter has no client-side range: the server resolves it.
    """
    today = today or datetime.date.today()
    if quick_filter == QuickFilter.Month:
        return today.replace(day=1), today
    if quick_filter == QuickFilter.Last30Days:
        return today - datetime.timedelta(days=30), today
    raise ValueError(f'No date range for quick filter "{quick_filter}".')


def plan(filters: FilterSet, today: Optional[datetime.date] = None) -> FetchStrategy:
    """Choose the endpoint and query parameters for filters.

    Args:
        filters (FilterSet): The active filters.
        today (datetime.date, optional): Reference day for quick filters.

    Returns:
        FetchStrategy: The planned fetch.
    """
    category = filters.category
    date_from, date_to = filters.date_from, filters.date_to

    # Quick filters only apply when no manual range was given
    if filters.quick_filter and date_from is None and date_to is None:
        if filters.quick_filter == QuickFilter.Week:
            if category is None:
                logging.debug('Planning week endpoint')
                return FetchStrategy(Endpoint.Week)
            # The week endpoint cannot filter by category, narrow the category instead
            today = today or datetime.date.today()
            date_from, date_to = today - datetime.timedelta(days=7), today
        else:
            date_from, date_to = quick_filter_range(filters.quick_filter, today)

    if category is not None and date_from is not None and date_to is not None:
        logging.debug(f'Planning category endpoint for {category}, narrowed to {date_from}..{date_to}')
        return FetchStrategy(
            Endpoint.Category,
            {'category': category.value},
            narrow_from=date_from,
            narrow_to=date_to,
        )
    if category is not None:
        logging.debug(f'Planning category endpoint for {category}')
        return FetchStrategy(Endpoint.Category, {'category': category.value})
    if date_from is not None and date_to is not None:
        logging.debug(f'Planning date range endpoint for {date_from}..{date_to}')
        return FetchStrategy(
            Endpoint.DateRange,
            {'startDate': format_date(date_from), 'endDate': format_date(date_to)},
        )

    logging.debug('Planning all-expenses endpoint')
    return FetchStrategy(Endpoint.All)
