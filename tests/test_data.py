# tests/test_data.py
"""
Unit tests for ExpenseClient.data.data (breakdown, stats, period ranges and monthly trends).

Run:
    python -m unittest tests.test_data
"""
import datetime
import unittest
from decimal import Decimal

from ExpenseClient.data import data
from ExpenseClient.data.model import Category, Expense
from tests.base import expense_json


def expenses(*rows):
    return [Expense.from_json(expense_json(i, amount, category, created))
            for i, (amount, category, created) in enumerate(rows)]


class BreakdownTests(unittest.TestCase):

    def test_breakdown_scenario(self):
        result = data.category_breakdown(expenses(
            (100, 'FOOD', '2024-01-01T10:00:00'),
            (50, 'FOOD', '2024-01-02T10:00:00'),
            (50, 'OTHER', '2024-01-03T10:00:00'),
        ))
        self.assertEqual(
            [(s.category, s.amount, s.percentage) for s in result],
            [(Category.Food, Decimal(150), 75.0), (Category.Other, Decimal(50), 25.0)],
        )
        self.assertEqual(result[0].name, 'Food')

    def test_ties_keep_first_encountered_order(self):
        result = data.category_breakdown(expenses(
            (10, 'SHOPPING', '2024-01-01T10:00:00'),
            (30, 'FOOD', '2024-01-01T10:00:00'),
            (10, 'EDUCATION', '2024-01-01T10:00:00'),
        ))
        self.assertEqual([s.category for s in result], [Category.Food, Category.Shopping, Category.Education])

    def test_missing_category_counts_as_other(self):
        result = data.category_breakdown(expenses((5, None, '2024-01-01T10:00:00')))
        self.assertEqual(result[0].category, Category.Other)
        self.assertEqual(result[0].percentage, 100.0)

    def test_percentages_sum_to_100(self):
        result = data.category_breakdown(expenses(
            (1, 'FOOD', '2024-01-01T10:00:00'),
            (1, 'OTHER', '2024-01-01T10:00:00'),
            (1, 'SHOPPING', '2024-01-01T10:00:00'),
        ))
        self.assertAlmostEqual(sum(s.percentage for s in result), 100.0, delta=0.5)

    def test_zero_total_gives_zero_percentages(self):
        result = data.category_breakdown([
            Expense(1, 'refund', Decimal(0), Category.Food, None),
            Expense(2, 'free', Decimal(0), Category.Other, None),
        ])
        self.assertEqual([s.percentage for s in result], [0.0, 0.0])

    def test_empty_breakdown(self):
        self.assertEqual(data.category_breakdown([]), [])

    def test_parse_breakdown_sorts_and_recomputes(self):
        result = data.parse_breakdown([
            {'name': 'Other', 'category': 'OTHER', 'amount': 50, 'total': 200, 'percentage': 25.0},
            {'name': 'Food', 'category': 'FOOD', 'amount': 150, 'total': 200, 'percentage': 75.0},
        ])
        self.assertEqual([(s.category, s.percentage) for s in result],
                         [(Category.Food, 75.0), (Category.Other, 25.0)])


    def test_parse_breakdown_skips_malformed_items(self):
        result = data.parse_breakdown([
            ['FOOD', 10],
            'OTHER',
            {'category': 'FOOD', 'amount': 40},
        ])
        self.assertEqual([(s.category, s.amount, s.percentage) for s in result],
                         [(Category.Food, Decimal(40), 100.0)])

class StatsTests(unittest.TestCase):

    def test_empty_stats(self):
        result = data.stats([])
        self.assertEqual(
            (result.total_amount, result.transaction_count, result.average_transaction),
            (0, 0, 0),
        )

    def test_stats(self):
        result = data.stats(expenses(
            (100, 'FOOD', '2024-01-01T10:00:00'),
            (50, 'FOOD', '2024-01-02T10:00:00'),
            (50, 'OTHER', '2024-01-03T10:00:00'),
        ))
        self.assertEqual(result.total_amount, Decimal(200))
        self.assertEqual(result.transaction_count, 3)
        self.assertEqual(result.average_transaction, Decimal('66.67'))

    def test_parse_stats(self):
        result = data.parse_stats({
            'totalExpenses': 200,
            'monthlyExpenses': 20,
            'totalTransactions': 4,
            'averageTransaction': '50.00',
        })
        self.assertEqual(result, data.DashboardStats(Decimal(200), 4, Decimal('50.00')))

    def test_recent(self):
        result = data.recent(expenses(
            (1, 'FOOD', '2024-01-01T10:00:00'),
            (2, 'FOOD', '2024-03-01T10:00:00'),
            (3, 'FOOD', '2024-02-01T10:00:00'),
        ), limit=2)
        self.assertEqual([e.amount for e in result], [Decimal(2), Decimal(3)])


class DateRangeTests(unittest.TestCase):

    def test_periods(self):
        today = datetime.date(2024, 8, 20)
        self.assertEqual(data.date_range('week', today), ('2024-08-13', '2024-08-20'))
        self.assertEqual(data.date_range('month', today), ('2024-08-01', '2024-08-20'))
        self.assertEqual(data.date_range('quarter', today), ('2024-07-01', '2024-08-20'))
        self.assertEqual(data.date_range('year', today), ('2024-01-01', '2024-08-20'))
        self.assertEqual(data.date_range('decade', today), ('2024-07-21', '2024-08-20'))

    def test_month_and_year_start_for_every_day_of_a_year(self):
        day = datetime.date(2024, 1, 1)
        while day.year == 2024:
            self.assertTrue(data.date_range('month', day)[0].endswith('-01'))
            self.assertEqual(data.date_range('year', day)[0], '2024-01-01')
            day += datetime.timedelta(days=1)

    def test_quarter_starts(self):
        for month, start in ((1, 1), (3, 1), (4, 4), (6, 4), (9, 7), (12, 10)):
            self.assertEqual(data.period_start('quarter', datetime.date(2024, month, 15)).month, start)


class MonthlyTrendTests(unittest.TestCase):

    def test_zero_filled_months(self):
        today = datetime.date(2024, 6, 15)
        result = data.monthly_trend(expenses(
            (10, 'FOOD', '2024-01-05T10:00:00'),
            (20, 'FOOD', '2024-03-05T10:00:00'),
            (5, 'OTHER', '2024-03-20T10:00:00'),
            (99, 'FOOD', '2023-12-31T10:00:00'),
        ), months=6, today=today)

        self.assertEqual([m.month for m in result], [datetime.date(2024, m, 1) for m in range(1, 7)])
        self.assertEqual([m.amount for m in result], [Decimal(10), 0, Decimal(25), 0, 0, 0])
        self.assertEqual([m.transactions for m in result], [1, 0, 2, 0, 0, 0])
        self.assertEqual(result[0].label, 'Jan 2024')
        self.assertEqual(len([m.loess for m in result]), 6)

    def test_short_window_is_not_smoothed(self):
        today = datetime.date(2024, 6, 15)
        result = data.monthly_trend(expenses((10, 'FOOD', '2024-06-01T10:00:00')), months=2, today=today)
        self.assertEqual([m.loess for m in result], [0.0, 10.0])

    def test_empty_trend(self):
        result = data.monthly_trend([], months=3, today=datetime.date(2024, 3, 1))
        self.assertEqual([m.amount for m in result], [0, 0, 0])

    def test_trend_range(self):
        self.assertEqual(
            data.trend_range(6, datetime.date(2024, 2, 10)),
            (datetime.date(2023, 9, 1), datetime.date(2024, 2, 10)),
        )


if __name__ == '__main__':
    unittest.main()
