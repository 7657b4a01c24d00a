import collections
import logging
import os
import sys

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

LOG_LEVEL = logging.DEBUG
LOG_FORMAT = '[%(asctime)s] <%(module)s> %(levelname)s:  %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

#: Environment variable overriding the level passed to :func:`setup_logging`.
LOG_LEVEL_ENV = 'EXPENSECLIENT_LOG_LEVEL'

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}


def resolve_level(level):
    """
    Returns the numeric logging level for a level number or a level name.

    Args:
        level (int | str): A standard logging level, e.g. ``logging.INFO`` or ``'info'``.

    Raises:
        ValueError: If the level is not one of the standard levels.
    """
    if isinstance(level, str):
        name = level.strip().upper()
        if name not in LEVELS:
            raise ValueError(f'Invalid logging level "{level}". Use one of {", ".join(LEVELS)}.')
        return LEVELS[name]

    if isinstance(level, bool) or not isinstance(level, int):
        raise ValueError('Logging level must be an integer or a level name.')
    if level not in LEVELS.values():
        raise ValueError('Invalid logging level. Use one of the standard logging levels, e.g., logging.DEBUG.')
    return level


def set_logging_level(level):
    """
    Sets the level of the root logger and every handler attached to it.

    Args:
        level (int | str): A standard logging level or its name.
    """
    level = resolve_level(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def qt_message_handler(mode, context, message):
    """
    Routes Qt messages into the 'Qt' logger. A fatal Qt message exits the process.
    """
    level = QT_LEVELS.get(mode, logging.WARNING)
    logging.getLogger('Qt').log(level, message.strip())
    if mode == QtMsgType.QtFatalMsg:
        sys.exit(1)


def setup_logging(enable_stream_handler=True, enable_qt_handler=True, log_level=None):
    """
    Configures the root logger with a stdout handler and an in-memory tank.

    The level is taken from ``log_level``, then from the ``EXPENSECLIENT_LOG_LEVEL`` environment
    variable, and falls back to :data:`LOG_LEVEL`. An invalid environment value is reported and
    ignored.

    Args:
        enable_stream_handler (bool): Attach a stdout stream handler.
        enable_qt_handler (bool): Route Qt messages through Python logging.
        log_level (int | str, optional): Level for the root logger and its handlers.
    """
    env_level = os.environ.get(LOG_LEVEL_ENV)
    invalid_env = None
    if log_level is not None:
        level = resolve_level(log_level)
    elif env_level:
        try:
            level = resolve_level(env_level)
        except ValueError:
            level, invalid_env = LOG_LEVEL, env_level
    else:
        level = LOG_LEVEL

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Replace handlers left over from a previous setup
    root_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if enable_stream_handler:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(level)
        root_logger.addHandler(stream_handler)

    tank_handler = TankHandler()
    tank_handler.setFormatter(formatter)
    tank_handler.setLevel(level)
    root_logger.addHandler(tank_handler)

    if enable_qt_handler:
        qInstallMessageHandler(qt_message_handler)

    if invalid_env:
        logging.warning(f'Ignoring invalid {LOG_LEVEL_ENV}="{invalid_env}"')


def get_tank():
    """Returns the TankHandler attached to the root logger, or None."""
    return next(
        (h for h in logging.getLogger().handlers if isinstance(h, TankHandler)),
        None
    )


class TankHandler(logging.Handler):
    """
    Keeps the most recent formatted log records in memory so they can be browsed later,
    e.g. to show what the client did before a failed dashboard load.

    Attributes:
        tank (collections.deque[tuple[int, str]]): (level, formatted message) pairs, oldest first.
    """

    def __init__(self, max_records=10_000):
        super().__init__()
        self.tank = collections.deque(maxlen=max_records)

    @property
    def max_records(self):
        return self.tank.maxlen

    def emit(self, record):
        try:
            self.tank.append((record.levelno, self.format(record)))
        except Exception:
            self.handleError(record)

    def get_logs(self, level=logging.NOTSET):
        """
        Returns the stored messages whose level is at least ``level``.

        Args:
            level (int, optional): The minimum logging level. Defaults to logging.NOTSET.

        Returns:
            list[str]: Formatted messages, oldest first.
        """
        return [msg for lvl, msg in self.tank if lvl >= level]

    def clear_logs(self):
        self.tank.clear()
