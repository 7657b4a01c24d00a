"""Aggregate derivation for the dashboard and the expense summary.

This module turns fetched (and refined) expense lists into display aggregates: a per-category
breakdown, totals and averages, period date ranges, and smoothed monthly totals. It also parses
the pre-aggregated payloads of the dashboard endpoints into the same records.
"""
import dataclasses
import datetime
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta
from statsmodels.nonparametric.smoothers_lowess import lowess

from .model import Category, Expense, Period, format_date, parse_decimal
from ..settings import locale

CENT = Decimal('0.01')
TENTH = Decimal('0.1')

EXPENSE_COLUMNS = ['category', 'amount', 'created_at']


@dataclasses.dataclass(frozen=True)
class CategoryShare:
    """One category's share of a set of expenses."""
    category: Category
    name: str
    amount: Decimal
    percentage: float


@dataclasses.dataclass(frozen=True)
class DashboardStats:
    """Totals of a set of expenses."""
    total_amount: Decimal = Decimal(0)
    transaction_count: int = 0
    average_transaction: Decimal = Decimal(0)


@dataclasses.dataclass(frozen=True)
class MonthlyTotal:
    """Spending of one calendar month.

    Attributes:
        month (datetime.date): First day of the month.
        label (str): Localized month label, e.g. 'Jan 2026'.
        amount (Decimal): Sum of the month's expenses.
        transactions (int): Number of the month's expenses.
        loess (float): LOWESS-smoothed amount.
    """
    month: datetime.date
    label: str
    amount: Decimal
    transactions: int
    loess: float


def _to_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Build a DataFrame with category, amount and created_at columns, keeping input order."""
    rows = [(e.category, e.amount, e.created_at) for e in expenses]
    return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, Decimal(0))


def _percentage(part: Decimal, total: Decimal) -> float:
    if total == 0:
        return 0.0
    return float((part * 100 / total).quantize(TENTH, rounding=ROUND_HALF_UP))


def _sort_shares(shares: List[CategoryShare]) -> List[CategoryShare]:
    # sorted() is stable: equal amounts keep their first-encountered order
    return sorted(shares, key=lambda s: s.amount, reverse=True)


def category_breakdown(expenses: Iterable[Expense]) -> List[CategoryShare]:
    """Group expenses by category and compute each category's share of the total.

    Args:
        expenses: The expenses to group.

    Returns:
        list[CategoryShare]: Sorted by amount, largest first. Categories with equal amounts keep
            the order they were first encountered in. All percentages are 0 when the total is 0.
    """
    df = _to_frame(expenses)
    if df.empty:
        return []

    grouped = df.groupby('category', sort=False)['amount'].agg(_sum)
    total = _sum(grouped.values)

    shares = [
        CategoryShare(
            category=Category(category),
            name=Category(category).display_name,
            amount=amount,
            percentage=_percentage(amount, total),
        )
        for category, amount in grouped.items()
    ]
    return _sort_shares(shares)


def stats(expenses: Iterable[Expense]) -> DashboardStats:
    """Total, count and average of expenses.

    The average is rounded to cents and is 0 for an empty set.
    """
    df = _to_frame(expenses)
    count = len(df)
    if not count:
        return DashboardStats()

    total = _sum(df['amount'])
    average = (total / count).quantize(CENT, rounding=ROUND_HALF_UP)
    return DashboardStats(total_amount=total, transaction_count=count, average_transaction=average)


def recent(expenses: Iterable[Expense], limit: int = 5) -> List[Expense]:
    """Most recently created expenses first, at most limit of them."""
    dated = sorted(
        expenses,
        key=lambda e: e.created_at or datetime.datetime.min,
        reverse=True,
    )
    return dated[:max(int(limit), 0)]


def period_start(period: str, today: Optional[datetime.date] = None) -> datetime.date:
    """First day covered by period.

    Unrecognized periods cover the last 30 days.
    """
    today = today or datetime.date.today()
    if period == Period.Week:
        return today - datetime.timedelta(days=7)
    if period == Period.Month:
        return today.replace(day=1)
    if period == Period.Quarter:
        return today.replace(month=(today.month - 1) // 3 * 3 + 1, day=1)
    if period == Period.Year:
        return today.replace(month=1, day=1)
    logging.debug(f'Unrecognized period "{period}", using the last 30 days')
    return today - datetime.timedelta(days=30)


def date_range(period: str, today: Optional[datetime.date] = None) -> Tuple[str, str]:
    """Start and end dates of period, serialized as YYYY-MM-DD.

    Args:
        period (str): One of week, month, quarter or year.
        today (datetime.date, optional): The reference day. Defaults to the local current date.

    Returns:
        tuple[str, str]: The inclusive start and end dates.
    """
    today = today or datetime.date.today()
    return format_date(period_start(period, today)), format_date(today)


def trend_range(months: int, today: Optional[datetime.date] = None) -> Tuple[datetime.date, datetime.date]:
    """First day of the earliest of the last ``months`` calendar months, and today."""
    today = today or datetime.date.today()
    start = today.replace(day=1) - relativedelta(months=max(int(months), 1) - 1)
    return start, today


def monthly_trend(
        expenses: Iterable[Expense],
        months: int = 6,
        today: Optional[datetime.date] = None,
        loess_fraction: float = 0.5,
        locale_name: str = locale.DEFAULT_LOCALE,
) -> List[MonthlyTotal]:
    """Compute per-month totals over the last ``months`` calendar months with LOWESS smoothing.

    Months without expenses are reported with zero totals. Expenses outside the window or without a
    creation timestamp are ignored.

    Args:
        expenses: The expenses to aggregate.
        months (int): Number of calendar months ending with the current one.
        today (datetime.date, optional): The reference day.
        loess_fraction (float): Fraction of the data used for each local regression (0 < f <= 1).
        locale_name (str): Locale of the month labels.

    Returns:
        list[MonthlyTotal]: One entry per month, oldest first.
    """
    today = today or datetime.date.today()
    months = max(int(months), 1)
    end = pd.Period(today, freq='M')
    periods = pd.period_range(end=end, periods=months, freq='M')

    df = _to_frame(expenses).dropna(subset=['created_at'])
    if not df.empty:
        df['period'] = pd.to_datetime(df['created_at']).dt.to_period('M')
        df = df[df['period'].isin(periods)]

    if df.empty:
        totals = pd.Series([Decimal(0)] * months, index=periods, dtype=object)
        counts = pd.Series([0] * months, index=periods)
    else:
        grp = df.groupby('period')['amount']
        totals = grp.agg(_sum).reindex(periods, fill_value=Decimal(0))
        counts = grp.size().reindex(periods, fill_value=0)

    vals = totals.astype(float).values
    if len(vals) < 3:
        loess_vals = vals.copy()
    else:
        x = pd.RangeIndex(stop=len(vals))
        loess_vals = lowess(vals, x, frac=loess_fraction, return_sorted=False)

    return [
        MonthlyTotal(
            month=period.start_time.date(),
            label=locale.format_month(period.start_time.date(), locale_name),
            amount=totals[period],
            transactions=int(counts[period]),
            loess=float(loess_vals[i]),
        )
        for i, period in enumerate(periods)
    ]


def parse_stats(payload: Mapping[str, Any]) -> DashboardStats:
    """Build stats from the pre-aggregated statistics payload."""
    def _decimal(key: str) -> Decimal:
        try:
            return parse_decimal(payload.get(key, 0))
        except ValueError:
            logging.warning(f'Invalid "{key}" in statistics: {payload.get(key)}')
            return Decimal(0)

    try:
        count = int(payload.get('totalTransactions', 0))
    except (TypeError, ValueError):
        logging.warning(f'Invalid "totalTransactions" in statistics: {payload.get("totalTransactions")}')
        count = 0

    return DashboardStats(
        total_amount=_decimal('totalExpenses'),
        transaction_count=count,
        average_transaction=_decimal('averageTransaction') if count else Decimal(0),
    )


def parse_breakdown(payload: Iterable[Mapping[str, Any]]) -> List[CategoryShare]:
    """Build a sorted breakdown from the pre-aggregated category payload.

    Percentages are recomputed from the amounts so that they agree with :func:`category_breakdown`.
    """
    amounts: Dict[Category, Decimal] = {}
    for item in payload:
        if not isinstance(item, Mapping):
            logging.warning(f'Invalid category breakdown item: {item!r}')
            continue
        try:
            category = Category.parse(item.get('category') or Category.Other)
        except ValueError:
            category = Category.Other
        try:
            amount = parse_decimal(item.get('amount', 0))
        except ValueError:
            logging.warning(f'Invalid amount in category breakdown: {item.get("amount")}')
            continue
        amounts[category] = amounts.get(category, Decimal(0)) + amount

    total = _sum(amounts.values())
    shares = [
        CategoryShare(
            category=category,
            name=category.display_name,
            amount=amount,
            percentage=_percentage(amount, total),
        )
        for category, amount in amounts.items()
    ]
    return _sort_shares(shares)
