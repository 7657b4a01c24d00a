"""Status definitions and exceptions for ExpenseClient.

This module provides:
    - Status: enumeration of possible application states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions (e.g., TransportFailureException) for error handling in services and views
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()

    # Config status
    ConfigNotFound = enum.auto()
    ConfigInvalid = enum.auto()

    # Remote API status
    TransportFailure = enum.auto()
    EmptyResult = enum.auto()
    NotAuthenticated = enum.auto()

    # Input status
    FilterInvalid = enum.auto()
    ExpenseInvalid = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status. Please check the settings.',

    Status.ConfigNotFound: 'Could not find the client config.',
    Status.ConfigInvalid: 'The client config seems to be incomplete, or contains invalid values.',

    Status.TransportFailure: 'The expense service is unavailable. Please check your connection and try again.',
    Status.EmptyResult: 'The expense service returned no data.',
    Status.NotAuthenticated: 'Your session has expired. Please sign in again.',

    Status.FilterInvalid: 'The filter values are invalid.',
    Status.ExpenseInvalid: 'The expense is incomplete, or contains invalid values.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in ExpenseClient.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.
        message (str): Additional context, if any.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        self.message = message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.error(exception_message)


class ConfigNotFoundException(BaseStatusException):
    """Exception raised when the client configuration file cannot be found."""
    status = Status.ConfigNotFound


class ConfigInvalidException(BaseStatusException):
    """Exception raised when the client configuration is invalid or malformed."""
    status = Status.ConfigInvalid


class TransportFailureException(BaseStatusException):
    """Exception raised when the API is unreachable or answers with a non-success status."""
    status = Status.TransportFailure


class EmptyResultException(BaseStatusException):
    """Exception raised when the API answers successfully but without a body."""
    status = Status.EmptyResult

    def __init__(self, message: str = None):
        # An empty answer is not an error condition, keep it out of the error log
        self.status_message = get_message(self.status)
        self.message = message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        Exception.__init__(self, exception_message)

        logging.debug(exception_message)


class NotAuthenticatedException(TransportFailureException):
    """Exception raised when the API rejects the session (HTTP 401 or 403)."""
    status = Status.NotAuthenticated


class FilterInvalidException(BaseStatusException):
    """Exception raised when filter form input cannot be parsed."""
    status = Status.FilterInvalid


class ExpenseInvalidException(BaseStatusException):
    """Exception raised when an expense draft fails validation."""
    status = Status.ExpenseInvalid
