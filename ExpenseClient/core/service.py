"""Remote expense API access over HTTP.

Wraps a :class:`requests.Session` and translates transport problems into status exceptions:

    - unreachable host, timeout or non-2xx answer: :class:`status.TransportFailureException`
    - 401 and 403 answers: :class:`status.NotAuthenticatedException`
    - a successful answer without a body: :class:`status.EmptyResultException`

Session cookies set by the server are carried by the session, authentication itself is handled
elsewhere.

Blocking calls that should overlap, like the dashboard branches, run on :class:`AsyncWorker` threads
started and joined by :func:`start_asynchronous`.
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests
from PySide6 import QtCore

from .planner import Endpoint, FetchStrategy
from ..data import refine
from ..data.model import Expense, ExpenseDraft, format_date
from ..status import status

DEFAULT_TIMEOUT: float = 30.0

DASHBOARD_STATISTICS = '/api/dashboard/statistics'
DASHBOARD_RECENT = '/api/dashboard/recent-expenses'
DASHBOARD_BREAKDOWN = '/api/dashboard/category-breakdown'

EXPENSE_ADD = '/api/expense/add'
EXPENSE_UPDATE = '/api/expense/update/{id}'
EXPENSE_ITEM = '/api/expense/{id}'


class AsyncWorker(QtCore.QThread):
    """
    Worker thread running one blocking function.

    The outcome is stored on the worker before the matching signal is emitted, so it can be read
    once ``done`` is set.

    Signals:
        resultReady (object): Emitted with the function's result on success.
        errorOccurred (object): Emitted with the raised exception on failure.
    """
    resultReady = QtCore.Signal(object)
    errorOccurred = QtCore.Signal(object)

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.func = func
        self.args = args
        self.kwargs = kwargs

        self.result: Any = None
        self.error: Optional[Exception] = None
        self.done: bool = False

    def run(self) -> None:
        try:
            result = self.func(*self.args, **self.kwargs)
        except Exception as ex:
            logging.exception(f'Worker {getattr(self.func, "__name__", self.func)} failed')
            self.error = ex
            self.done = True
            self.errorOccurred.emit(ex)
            return
        self.result = result
        self.done = True
        self.resultReady.emit(result)


def start_asynchronous(funcs: Sequence[Callable[[], Any]]) -> List[AsyncWorker]:
    """
    Run each function on its own worker thread and wait until all of them finished.

    The calling thread waits in a local event loop that quits whenever a worker reports, so
    queued events keep being processed meanwhile. Without a Qt application instance the workers
    are joined directly.

    Args:
        funcs: Zero-argument callables to run concurrently.

    Returns:
        list[AsyncWorker]: The finished workers, in the order of ``funcs``. Each holds either a
            ``result`` or an ``error``.
    """
    workers = [AsyncWorker(func) for func in funcs]

    if QtCore.QCoreApplication.instance() is None:
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.wait()
        return workers

    loop = QtCore.QEventLoop()
    for worker in workers:
        # Queued, so a report sent before loop.exec() still quits the loop once it runs
        worker.resultReady.connect(loop.quit, QtCore.Qt.QueuedConnection)
        worker.errorOccurred.connect(loop.quit, QtCore.Qt.QueuedConnection)
        worker.start()

    while not all(worker.done for worker in workers):
        loop.exec()

    for worker in workers:
        worker.wait()
    return workers


class ApiClient:
    """HTTP client of the remote expense API.

    Args:
        base_url (str): Server root, e.g. ``http://localhost:8080``.
        timeout (float): Per-request timeout in seconds.
        session (requests.Session, optional): Session to use, a new one is created when omitted.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url: str = base_url.rstrip('/')
        self.timeout: float = timeout
        self.session: requests.Session = session or requests.Session()
        self.session.headers.setdefault('Accept', 'application/json')

    @classmethod
    def from_settings(cls, settings, session: Optional[requests.Session] = None) -> 'ApiClient':
        """Create a client from the ``server`` section of the client config."""
        config = settings.get_section('server')
        return cls(config['base_url'], timeout=config['timeout'], session=session)

    def close(self) -> None:
        self.session.close()

    def _url(self, path: str) -> str:
        return f'{self.base_url}{path}'

    def request(self, method: str, path: str, params: Optional[Mapping[str, str]] = None,
                body: Optional[Dict[str, Any]] = None) -> Any:
        """Send a request and decode its JSON answer.

        Numbers with a fractional part are decoded as :class:`decimal.Decimal`.

        Returns:
            The decoded body, or None for a successful answer without a body when
            the method is not GET.

        Raises:
            status.TransportFailureException: If the server is unreachable or answers with an error.
            status.NotAuthenticatedException: If the server rejects the session.
            status.EmptyResultException: If a GET answer has no body.
        """
        url = self._url(path)
        logging.debug(f'{method} {url} params={dict(params or {})}')
        try:
            response = self.session.request(method, url, params=params, json=body, timeout=self.timeout)
        except requests.Timeout as ex:
            raise status.TransportFailureException(f'{method} {path} timed out after {self.timeout}s.') from ex
        except requests.RequestException as ex:
            raise status.TransportFailureException(f'{method} {path} failed: {ex}') from ex

        if response.status_code in (401, 403):
            raise status.NotAuthenticatedException(f'{method} {path} answered {response.status_code}.')
        try:
            response.raise_for_status()
        except requests.HTTPError as ex:
            raise status.TransportFailureException(f'{method} {path} answered {response.status_code}.') from ex

        if not response.content or not response.content.strip():
            if method == 'GET':
                raise status.EmptyResultException(f'{method} {path}')
            return None

        try:
            return response.json(parse_float=Decimal)
        except ValueError as ex:
            if method != 'GET':
                # Some write endpoints answer with plain text
                logging.debug(f'{method} {path} answered non-JSON body')
                return response.text
            raise status.TransportFailureException(f'{method} {path} answered invalid JSON.') from ex

    def get_json(self, path: str, params: Optional[Mapping[str, str]] = None) -> Any:
        data = self.request('GET', path, params=params)
        if data is None:
            raise status.EmptyResultException(f'GET {path}')
        return data

    def get_expenses(self, path: str, params: Optional[Mapping[str, str]] = None) -> List[Expense]:
        """GET an endpoint answering with a list of expenses."""
        data = self.get_json(path, params=params)
        if not isinstance(data, list):
            raise status.TransportFailureException(f'GET {path} answered {type(data).__name__}, expected a list.')
        return [Expense.from_json(item) for item in data if isinstance(item, dict)]

    # Expense listing

    def fetch(self, strategy: FetchStrategy) -> List[Expense]:
        """Run a planned fetch, including its client-side date narrowing."""
        expenses = self.get_expenses(strategy.endpoint.value, params=strategy.params or None)
        if strategy.narrows:
            expenses = refine.filter_by_date_range(expenses, strategy.narrow_from, strategy.narrow_to)
        return expenses

    def fetch_all(self) -> List[Expense]:
        return self.get_expenses(Endpoint.All.value)

    def fetch_by_category(self, category) -> List[Expense]:
        return self.get_expenses(Endpoint.Category.value, params={'category': str(category)})

    def fetch_by_date_range(self, start, end) -> List[Expense]:
        return self.get_expenses(
            Endpoint.DateRange.value,
            params={'startDate': format_date(start), 'endDate': format_date(end)},
        )

    def fetch_week(self) -> List[Expense]:
        return self.get_expenses(Endpoint.Week.value)

    # Pre-aggregated dashboard data

    def fetch_statistics(self) -> Dict[str, Any]:
        data = self.get_json(DASHBOARD_STATISTICS)
        if not isinstance(data, dict):
            raise status.TransportFailureException(f'GET {DASHBOARD_STATISTICS} answered {type(data).__name__}.')
        return data

    def fetch_recent(self) -> List[Expense]:
        return self.get_expenses(DASHBOARD_RECENT)

    def fetch_category_breakdown(self) -> List[Dict[str, Any]]:
        data = self.get_json(DASHBOARD_BREAKDOWN)
        if not isinstance(data, list):
            raise status.TransportFailureException(f'GET {DASHBOARD_BREAKDOWN} answered {type(data).__name__}.')
        return data

    # Mutations

    def add_expense(self, draft: ExpenseDraft) -> Any:
        return self.request('POST', EXPENSE_ADD, body=draft.to_json())

    def update_expense(self, expense_id, draft: ExpenseDraft) -> Any:
        return self.request('PUT', EXPENSE_UPDATE.format(id=expense_id), body=draft.to_json())

    def delete_expense(self, expense_id) -> None:
        self.request('DELETE', EXPENSE_ITEM.format(id=expense_id))
