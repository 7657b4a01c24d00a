# tests/test_log.py
"""
Tests for ExpenseClient.log.log: level handling, the in-memory tank and the Qt bridge.

Run:
    python -m unittest tests.test_log
"""
import logging
import os
from typing import List
from unittest import mock

from PySide6.QtCore import QtMsgType

from ExpenseClient.log.log import (
    LOG_LEVEL,
    LOG_LEVEL_ENV,
    TankHandler,
    get_tank,
    qt_message_handler,
    resolve_level,
    set_logging_level,
    setup_logging,
)
from ExpenseClient.status import status
from tests.base import BaseTestCase


class LogModuleTests(BaseTestCase):
    """
    Each test starts with a root logger configured by
    setup_logging(enable_stream_handler=False, enable_qt_handler=False).
    """

    def setUp(self) -> None:
        super().setUp()
        logging.disable(logging.NOTSET)

        setup_logging(enable_stream_handler=False,
                      enable_qt_handler=False,
                      log_level=logging.DEBUG)

        self.root_logger = logging.getLogger()
        self.tank: TankHandler = get_tank()

    def test_resolve_level_accepts_numbers_and_names(self):
        self.assertEqual(resolve_level(logging.WARNING), logging.WARNING)
        self.assertEqual(resolve_level('info'), logging.INFO)
        self.assertEqual(resolve_level(' ERROR '), logging.ERROR)

    def test_resolve_level_rejects_unknown(self):
        for value in (1234, 'verbose', True, 2.5, None):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    resolve_level(value)

    def test_set_logging_level_updates_handlers(self):
        set_logging_level('ERROR')
        self.assertEqual(self.root_logger.level, logging.ERROR)
        for h in self.root_logger.handlers:
            self.assertEqual(h.level, logging.ERROR)

    def test_environment_level_applies_without_explicit_level(self):
        with mock.patch.dict(os.environ, {LOG_LEVEL_ENV: 'warning'}):
            setup_logging(enable_stream_handler=False, enable_qt_handler=False)
        self.assertEqual(logging.getLogger().level, logging.WARNING)

    def test_explicit_level_wins_over_environment(self):
        with mock.patch.dict(os.environ, {LOG_LEVEL_ENV: 'critical'}):
            setup_logging(enable_stream_handler=False, enable_qt_handler=False, log_level='INFO')
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_invalid_environment_level_is_reported(self):
        with mock.patch.dict(os.environ, {LOG_LEVEL_ENV: 'chatty'}):
            setup_logging(enable_stream_handler=False, enable_qt_handler=False)
        self.assertEqual(logging.getLogger().level, LOG_LEVEL)
        warnings = get_tank().get_logs(logging.WARNING)
        self.assertTrue(any('chatty' in m for m in warnings))

    def test_tank_keeps_newest_records(self):
        tank = TankHandler(max_records=3)
        for i in range(5):
            tank.emit(logging.makeLogRecord({'msg': f'record {i}', 'levelno': logging.INFO}))
        self.assertEqual(tank.max_records, 3)
        self.assertEqual(tank.get_logs(), ['record 2', 'record 3', 'record 4'])

    def test_tank_stores_and_filters(self):
        self.tank.clear_logs()
        logging.debug("dbg message")
        logging.error("err message")
        self.assertEqual(len(self.tank.tank), 2)
        errs: List[str] = self.tank.get_logs(logging.ERROR)
        self.assertEqual(len(errs), 1)
        self.assertIn("err message", errs[0])
        self.tank.clear_logs()
        self.assertEqual(len(self.tank.tank), 0)

    def test_status_exceptions_log_on_construction(self):
        self.tank.clear_logs()
        status.TransportFailureException('GET /api/expense/get failed')
        errs = self.tank.get_logs(logging.ERROR)
        self.assertTrue(any('GET /api/expense/get failed' in m for m in errs))

    def test_empty_result_is_not_logged_as_error(self):
        self.tank.clear_logs()
        status.EmptyResultException('GET /api/expense/week')
        self.assertEqual(self.tank.get_logs(logging.ERROR), [])
        self.assertTrue(self.tank.get_logs(logging.DEBUG))

    def test_qt_messages_map_to_levels(self):
        self.tank.clear_logs()
        qt_message_handler(QtMsgType.QtInfoMsg, None, "Qt info\n")
        qt_message_handler(QtMsgType.QtCriticalMsg, None, "Qt critical")
        self.assertTrue(any(m.endswith("Qt info") for m in self.tank.get_logs()))
        errs = self.tank.get_logs(logging.ERROR)
        self.assertEqual(len(errs), 1)
        self.assertIn("Qt critical", errs[0])

    def test_qt_fatal_message_exits(self):
        with self.assertRaises(SystemExit):
            qt_message_handler(QtMsgType.QtFatalMsg, None, "fatal")

    def test_setup_logging_installs_tank_handler_only(self):
        self.assertEqual(
            [type(h) for h in self.root_logger.handlers],
            [TankHandler],
        )
