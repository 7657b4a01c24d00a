# tests/test_service.py
"""
Tests for ExpenseClient.core.service.ApiClient with a mocked requests.Session.

Run:
    python -m unittest tests.test_service
"""
import datetime
import threading
import unittest
from decimal import Decimal
from unittest import mock

import requests

from ExpenseClient.core import planner
from ExpenseClient.core.service import ApiClient, start_asynchronous
from ExpenseClient.data.model import Category, ExpenseDraft, FilterSet
from ExpenseClient.status import status
from tests.base import BaseTestCase, expense_json, make_response


class ApiClientTests(unittest.TestCase):

    def setUp(self) -> None:
        self.session = mock.MagicMock()
        self.api = ApiClient('http://localhost:8080/', timeout=5, session=self.session)

    def answer(self, *args, **kwargs):
        self.session.request.return_value = make_response(*args, **kwargs)

    def test_fetch_all(self):
        self.answer(200, [expense_json(1, 9.99), expense_json(2, 20, 'OTHER')])
        result = self.api.fetch_all()

        self.session.request.assert_called_once_with(
            'GET', 'http://localhost:8080/api/expense/get', params=None, json=None, timeout=5,
        )
        self.assertEqual([e.amount for e in result], [Decimal('9.99'), Decimal(20)])
        self.assertIsInstance(result[0].amount, Decimal)

    def test_fetch_by_category_and_range_parameters(self):
        self.answer(200, [])
        self.api.fetch_by_category(Category.Food)
        self.assertEqual(self.session.request.call_args.kwargs['params'], {'category': 'FOOD'})

        self.api.fetch_by_date_range(datetime.date(2024, 1, 1), datetime.date(2024, 1, 31))
        args = self.session.request.call_args
        self.assertEqual(args.args[1], 'http://localhost:8080/api/expense/DateRange')
        self.assertEqual(args.kwargs['params'], {'startDate': '2024-01-01', 'endDate': '2024-01-31'})

    def test_fetch_strategy_narrows_category_results(self):
        self.answer(200, [
            expense_json(1, 10, 'FOOD', '2023-12-31T23:59:59'),
            expense_json(2, 10, 'FOOD', '2024-01-01T00:00:00'),
            expense_json(3, 10, 'FOOD', '2024-01-15T12:00:00'),
            expense_json(4, 10, 'FOOD', '2024-01-31T23:59:59'),
            expense_json(5, 10, 'FOOD', '2024-02-01T00:00:00'),
        ])
        filters = FilterSet.parse({'category': 'FOOD', 'dateFrom': '2024-01-01', 'dateTo': '2024-01-31'})
        result = self.api.fetch(planner.plan(filters))
        self.assertEqual([e.id for e in result], [2, 3, 4])
        self.assertEqual(self.session.request.call_args.args[1], 'http://localhost:8080/api/expense/CategoryFilter')

    def test_connection_error_is_transport_failure(self):
        self.session.request.side_effect = requests.ConnectionError('refused')
        with self.assertRaises(status.TransportFailureException):
            self.api.fetch_all()

    def test_timeout_is_transport_failure(self):
        self.session.request.side_effect = requests.Timeout()
        with self.assertRaises(status.TransportFailureException):
            self.api.fetch_week()

    def test_server_error_is_transport_failure(self):
        self.answer(500, {'error': 'boom'})
        with self.assertRaises(status.TransportFailureException) as ctx:
            self.api.fetch_all()
        self.assertNotIsInstance(ctx.exception, status.NotAuthenticatedException)

    def test_unauthorized_is_not_authenticated(self):
        for code in (401, 403):
            self.answer(code, {})
            with self.assertRaises(status.NotAuthenticatedException):
                self.api.fetch_all()

    def test_empty_body_is_empty_result(self):
        self.answer(200, content=b'')
        with self.assertRaises(status.EmptyResultException):
            self.api.fetch_all()

    def test_empty_result_is_not_a_transport_failure(self):
        self.assertFalse(issubclass(status.EmptyResultException, status.TransportFailureException))

    def test_invalid_json_is_transport_failure(self):
        self.answer(200, content=b'<html>login</html>')
        with self.assertRaises(status.TransportFailureException):
            self.api.fetch_all()

    def test_add_and_update_send_draft(self):
        draft = ExpenseDraft.parse({'description': 'Taxi', 'amount': '18', 'category': 'TRANSPORTATION',
                                    'createdAt': '2024-02-02'})
        self.answer(200, {'id': 3})
        self.api.add_expense(draft)
        args = self.session.request.call_args
        self.assertEqual(args.args, ('POST', 'http://localhost:8080/api/expense/add'))
        self.assertEqual(args.kwargs['json']['createdAt'], '2024-02-02T00:00:00')

        self.api.update_expense(3, draft)
        self.assertEqual(self.session.request.call_args.args,
                         ('PUT', 'http://localhost:8080/api/expense/update/3'))

    def test_write_without_body_is_fine(self):
        self.answer(200, content=b'')
        self.assertIsNone(self.api.delete_expense(3))
        self.assertEqual(self.session.request.call_args.args,
                         ('DELETE', 'http://localhost:8080/api/expense/3'))

    def test_rejected_write_raises(self):
        self.answer(400, content=b'')
        draft = ExpenseDraft.parse({'description': 'Taxi', 'amount': '18', 'category': 'OTHER'})
        with self.assertRaises(status.TransportFailureException):
            self.api.add_expense(draft)

    def test_dashboard_payloads(self):
        self.answer(200, {'totalExpenses': 1, 'totalTransactions': 1, 'averageTransaction': 1})
        self.assertEqual(self.api.fetch_statistics()['totalTransactions'], 1)

        self.answer(200, [{'category': 'FOOD', 'amount': 1}])
        self.assertEqual(len(self.api.fetch_category_breakdown()), 1)

        self.answer(200, {'unexpected': 'object'})
        with self.assertRaises(status.TransportFailureException):
            self.api.fetch_recent()


class ApiClientSettingsTests(BaseTestCase):

    def test_from_settings(self):
        api = ApiClient.from_settings(self.settings, session=mock.MagicMock())
        self.assertEqual(api.base_url, 'http://localhost:8080')
        self.assertEqual(api.timeout, 30)


class StartAsynchronousTests(BaseTestCase):

    def test_functions_overlap_and_keep_order(self):
        barrier = threading.Barrier(2, timeout=5)

        def branch(value):
            barrier.wait()
            return value, threading.get_ident()

        workers = start_asynchronous([lambda: branch('stats'), lambda: branch('trend')])

        self.assertEqual([w.result[0] for w in workers], ['stats', 'trend'])
        self.assertNotIn(threading.get_ident(), [w.result[1] for w in workers])
        self.assertTrue(all(w.done and w.isFinished() for w in workers))

    def test_errors_are_kept_per_worker(self):
        def failing():
            raise ValueError('bad payload')

        workers = start_asynchronous([failing, lambda: 42])

        self.assertIsInstance(workers[0].error, ValueError)
        self.assertIsNone(workers[0].result)
        self.assertEqual(workers[1].result, 42)
        self.assertIsNone(workers[1].error)

    def test_no_functions(self):
        self.assertEqual(start_asynchronous([]), [])


if __name__ == '__main__':
    unittest.main()
