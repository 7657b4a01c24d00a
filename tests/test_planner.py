# tests/test_planner.py
"""
Unit tests for ExpenseClient.core.planner.

Run:
    python -m unittest tests.test_planner
"""
import datetime
import unittest
from decimal import Decimal

from ExpenseClient.core.planner import Endpoint, FetchStrategy, plan, quick_filter_range
from ExpenseClient.data.model import Category, FilterSet, QuickFilter

TODAY = datetime.date(2024, 5, 20)


class PlannerTests(unittest.TestCase):

    def test_no_filters_fetches_all(self):
        self.assertEqual(plan(FilterSet()), FetchStrategy(Endpoint.All))

    def test_category_only(self):
        strategy = plan(FilterSet(category=Category.Food))
        self.assertEqual(strategy.endpoint, Endpoint.Category)
        self.assertEqual(strategy.params, {'category': 'FOOD'})
        self.assertFalse(strategy.narrows)

    def test_date_range_only(self):
        strategy = plan(FilterSet(date_from=datetime.date(2024, 1, 1), date_to=datetime.date(2024, 1, 31)))
        self.assertEqual(strategy.endpoint, Endpoint.DateRange)
        self.assertEqual(strategy.params, {'startDate': '2024-01-01', 'endDate': '2024-01-31'})
        self.assertFalse(strategy.narrows)

    def test_category_and_range_fetches_category_then_narrows(self):
        filters = FilterSet(
            category=Category.Food,
            date_from=datetime.date(2024, 1, 1),
            date_to=datetime.date(2024, 1, 31),
        )
        strategy = plan(filters)
        self.assertEqual(strategy.endpoint, Endpoint.Category)
        self.assertEqual(strategy.params, {'category': 'FOOD'})
        self.assertTrue(strategy.narrows)
        self.assertEqual(strategy.narrow_from, datetime.date(2024, 1, 1))
        self.assertEqual(strategy.narrow_to, datetime.date(2024, 1, 31))

    def test_half_open_range_is_ignored(self):
        self.assertEqual(plan(FilterSet(date_from=datetime.date(2024, 1, 1))).endpoint, Endpoint.All)
        strategy = plan(FilterSet(category=Category.Other, date_to=datetime.date(2024, 1, 1)))
        self.assertEqual(strategy.endpoint, Endpoint.Category)
        self.assertFalse(strategy.narrows)

    def test_search_and_amounts_never_change_the_endpoint(self):
        base = [
            FilterSet(),
            FilterSet(category=Category.Shopping),
            FilterSet(date_from=datetime.date(2024, 1, 1), date_to=datetime.date(2024, 2, 1)),
        ]
        for filters in base:
            refined = FilterSet(
                category=filters.category,
                date_from=filters.date_from,
                date_to=filters.date_to,
                search='coffee',
                min_amount=Decimal('1'),
                max_amount=Decimal('99'),
            )
            self.assertEqual(plan(refined), plan(filters))

    def test_week_quick_filter_uses_week_endpoint(self):
        strategy = plan(FilterSet(quick_filter=QuickFilter.Week), today=TODAY)
        self.assertEqual(strategy, FetchStrategy(Endpoint.Week))

    def test_month_quick_filter_uses_date_range(self):
        strategy = plan(FilterSet(quick_filter=QuickFilter.Month), today=TODAY)
        self.assertEqual(strategy.endpoint, Endpoint.DateRange)
        self.assertEqual(strategy.params, {'startDate': '2024-05-01', 'endDate': '2024-05-20'})

    def test_thirty_days_quick_filter_uses_date_range(self):
        strategy = plan(FilterSet(quick_filter=QuickFilter.Last30Days), today=TODAY)
        self.assertEqual(strategy.params, {'startDate': '2024-04-20', 'endDate': '2024-05-20'})

    def test_quick_filter_with_category_narrows(self):
        strategy = plan(FilterSet(category=Category.Food, quick_filter=QuickFilter.Week), today=TODAY)
        self.assertEqual(strategy.endpoint, Endpoint.Category)
        self.assertEqual(strategy.narrow_from, datetime.date(2024, 5, 13))
        self.assertEqual(strategy.narrow_to, TODAY)

    def test_manual_range_wins_over_quick_filter(self):
        filters = FilterSet(
            date_from=datetime.date(2024, 1, 1),
            date_to=datetime.date(2024, 1, 31),
            quick_filter=QuickFilter.Week,
        )
        self.assertEqual(plan(filters, today=TODAY).endpoint, Endpoint.DateRange)

    def test_quick_filter_range_rejects_week(self):
        with self.assertRaises(ValueError):
            quick_filter_range(QuickFilter.Week, TODAY)


if __name__ == '__main__':
    unittest.main()
