"""Shared collaborators of the views.

A :class:`ViewContext` is created explicitly, handed to every view constructor, and disposed when
the views are no longer needed. Several contexts can coexist, e.g. one per test.

Example:

    with ViewContext.create(config_dir=tmp) as context:
        view = ExpenseView(context)
        view.load()
"""
import logging
from typing import Any, List, Optional

import requests

from ..core.cache import ResultCache
from ..core.service import ApiClient
from ..settings import lib
from ..settings import locale
from ..ui.actions import Signals


class ViewContext:
    """Holds the settings, API client, signals and preferences shared by views.

    Args:
        settings (lib.SettingsAPI): Loaded client configuration.
        api (ApiClient): Client of the remote expense API.
        signals (Signals, optional): Presentation signals. A new instance is created when omitted.
        preferences (lib.Preferences, optional): Persisted user preferences. Defaults to the
            usersettings.ini file of the config directory.
    """

    def __init__(self,
                 settings: lib.SettingsAPI,
                 api: ApiClient,
                 signals: Optional[Signals] = None,
                 preferences: Optional[lib.Preferences] = None) -> None:
        self.settings = settings
        self.api = api
        self.signals = signals or Signals()
        self.preferences = preferences or lib.Preferences(settings.usersettings_path)
        self._views: List[Any] = []
        self._disposed = False

    @classmethod
    def create(cls,
               config_dir: Optional[str] = None,
               session: Optional[requests.Session] = None,
               api: Optional[ApiClient] = None,
               signals: Optional[Signals] = None) -> 'ViewContext':
        """Load the configuration and build a context.

        Args:
            config_dir (str, optional): Config directory override.
            session (requests.Session, optional): HTTP session for the default API client.
            api (ApiClient, optional): API client to use instead of one built from the config.
            signals (Signals, optional): Presentation signals to use.

        Raises:
            status.ConfigNotFoundException, status.ConfigInvalidException: If the config is unusable.
        """
        settings = lib.SettingsAPI(config_dir=config_dir)
        if api is None:
            api = ApiClient.from_settings(settings, session=session)
        logging.debug(f'Creating view context for {api.base_url}')
        return cls(settings, api, signals=signals)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def locale(self) -> str:
        return self.settings['locale'] or locale.DEFAULT_LOCALE

    def new_cache(self) -> ResultCache:
        """Return an empty result cache using the configured timeout."""
        return ResultCache(timeout=self.settings.get_section('cache')['timeout'])

    def register(self, view: Any) -> None:
        """Track a view so that it is disposed together with the context."""
        if self._disposed:
            raise RuntimeError('Cannot register a view on a disposed context.')
        if view not in self._views:
            self._views.append(view)

    def unregister(self, view: Any) -> None:
        if view in self._views:
            self._views.remove(view)

    def format_currency(self, value) -> str:
        return locale.format_currency_value(value, self.locale)

    def dispose(self) -> None:
        """Dispose all registered views and close the HTTP session."""
        if self._disposed:
            return
        self._disposed = True

        for view in list(self._views):
            view.dispose()
        self._views.clear()

        self.api.close()
        logging.debug('View context disposed')

    def __enter__(self) -> 'ViewContext':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()
