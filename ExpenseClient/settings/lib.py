"""Settings library for the client configuration and persisted user preferences.

Provides:
    - Schema validation and enforcement for the client.json structure.
    - Loading, saving, reverting, and managing application settings.
    - Durable key-value user preferences backed by an ini file.
    - Constants for configuration defaults.
"""

import json
import logging
import pathlib
import shutil
from typing import Dict, Any, Optional, List

from PySide6 import QtCore

from ..status import status

app_name: str = 'ExpenseClient'

SECTION_KEYS: Dict[str, List[str]] = {
    'server': ['base_url', 'timeout'],
    'cache': ['timeout'],
    'refresh': ['interval'],
    'metadata': ['locale', 'recent_limit', 'trend_months', 'loess_fraction'],
}

METADATA_KEYS: List[str] = SECTION_KEYS['metadata']

CLIENT_SCHEMA: Dict[str, Any] = {
    'server': {
        'type': dict,
        'required': True,
        'item_schema': {
            'base_url': {'type': str, 'required': True, 'format': 'url'},
            'timeout': {'type': (int, float), 'required': True, 'min': 1},
        }
    },
    'cache': {
        'type': dict,
        'required': True,
        'item_schema': {
            'timeout': {'type': int, 'required': True, 'min': 0},
        }
    },
    'refresh': {
        'type': dict,
        'required': True,
        'item_schema': {
            'interval': {'type': int, 'required': True, 'min': 1},
        }
    },
    'metadata': {
        'type': dict,
        'required': True,
        'item_schema': {
            'locale': {'type': str, 'required': True},
            'recent_limit': {'type': int, 'required': True, 'min': 1},
            'trend_months': {'type': int, 'required': True, 'min': 1},
            'loess_fraction': {'type': float, 'required': True, 'min': 0.01},
        }
    },
}


def _validate_section(section_name: str, section: Any, item_schema: Dict[str, Any]) -> None:
    """Validate a single configuration section against its item schema.

    Args:
        section_name: Name of the section, used in error messages.
        section: The section data.
        item_schema: Dict describing required fields, types, bounds and formats.

    Raises:
        TypeError: If the section is not a dict or a field has the wrong type.
        ValueError: If a required field is missing, unknown, or fails a bound or format check.
    """
    logging.debug(f'Validating "{section_name}" section.')
    if not isinstance(section, dict):
        msg: str = f'"{section_name}" must be a dict.'
        logging.error(msg)
        raise TypeError(msg)

    unknown = set(section.keys()) - set(item_schema.keys())
    if unknown:
        msg = f'"{section_name}" has unknown keys: {sorted(unknown)}.'
        logging.error(msg)
        raise ValueError(msg)

    for field, specs in item_schema.items():
        if specs['required'] and field not in section:
            msg = f'"{section_name}" missing "{field}".'
            logging.error(msg)
            raise ValueError(msg)
        if field not in section:
            continue

        value = section[field]

        # bool is an int subclass, never accept it for numeric fields
        if isinstance(value, bool) or not isinstance(value, specs['type']):
            msg = f'"{section_name}.{field}" must be {specs["type"]}, got {type(value)}.'
            logging.error(msg)
            raise TypeError(msg)

        if 'min' in specs and value < specs['min']:
            msg = f'"{section_name}.{field}" must be >= {specs["min"]}, got {value}.'
            logging.error(msg)
            raise ValueError(msg)

        if specs.get('format') == 'url' and not value.startswith(('http://', 'https://')):
            msg = f'"{section_name}.{field}" must be an http(s) URL, got "{value}".'
            logging.error(msg)
            raise ValueError(msg)


class ConfigPaths:
    """Manage application file paths and ensure the default template and directories exist.

    Args:
        config_dir: Optional directory overriding the platform app-data location.
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        if config_dir:
            self.config_dir: pathlib.Path = pathlib.Path(config_dir)
        else:
            # Set the application name and organization
            QtCore.QCoreApplication.setApplicationName(app_name)
            QtCore.QCoreApplication.setOrganizationName('')
            logging.debug(f'Setting application name: {app_name}')

            p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
            self.config_dir = pathlib.Path(p) / 'config'
        logging.debug(f'Using config directory: {self.config_dir}')

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.client_template: pathlib.Path = self.template_dir / 'client.json.template'

        self.client_path: pathlib.Path = self.config_dir / 'client.json'
        self.usersettings_path: pathlib.Path = self.config_dir / 'usersettings.ini'

        self._verify_and_prepare()

    def _verify_and_prepare(self) -> None:
        """Verify the template exists, create the config directory and seed client.json.

        Raises:
            FileNotFoundError: If the packaged template is missing.
        """
        logging.debug(f'Verifying required templates in {self.template_dir}')
        if not self.client_template.exists():
            msg: str = f'Missing client template: {self.client_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)

        if not self.config_dir.exists():
            logging.debug(f'Creating config directory: {self.config_dir}')
            self.config_dir.mkdir(parents=True, exist_ok=True)

        # Ensure a valid config exists even if we haven't yet set it up
        if not self.client_path.exists():
            logging.debug(f'Copying default client config from template to {self.client_path}')
            shutil.copy(self.client_template, self.client_path)

    def revert_client_to_template(self) -> None:
        """Restore client.json from the default template file."""
        logging.debug(f'Reverting client config to template: {self.client_template}')
        shutil.copy(self.client_template, self.client_path)


class SettingsAPI(ConfigPaths):
    """
    Provides an interface to get/set/revert/save client.json sections.
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        super().__init__(config_dir=config_dir)

        self.client_data: Dict[str, Any] = {k: {} for k in CLIENT_SCHEMA}
        self.load_client()

    def __getitem__(self, key: str) -> Any:
        """Retrieve a metadata value using dictionary-style access.

        Raises:
            KeyError: If key is not in METADATA_KEYS.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')
        return self.client_data['metadata'].get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        """Assign a metadata value using dictionary-style access and persist it.

        Raises:
            KeyError: If key is not in METADATA_KEYS.
        """
        if key not in METADATA_KEYS:
            raise KeyError(f'Invalid metadata key: {key}, must be one of {METADATA_KEYS}')

        section = self.get_section('metadata')
        section[key] = value
        self.set_section('metadata', section)

    def load_client(self) -> Dict[str, Any]:
        """Load client.json from disk and validate against schema.

        Returns:
            The loaded client data dictionary.

        Raises:
            status.ConfigNotFoundException: If client.json file is missing.
            status.ConfigInvalidException: If JSON parsing or validation fails.
        """
        logging.debug(f'Loading client config from "{self.client_path}"')
        if not self.client_path.exists():
            raise status.ConfigNotFoundException(str(self.client_path))

        try:
            with self.client_path.open('r', encoding='utf-8') as f:
                data: Dict[str, Any] = json.load(f)
            self.validate_client_data(data)
        except (ValueError, TypeError) as ex:
            raise status.ConfigInvalidException(str(ex)) from ex

        self.client_data = data
        return self.client_data

    def validate_client_data(self, data: Dict[str, Any] = None) -> None:
        """Validate client data against CLIENT_SCHEMA.

        Args:
            data (dict, optional): Data to validate. Defaults to self.client_data.

        Raises:
            TypeError, ValueError: If a section is missing or fails validation.
        """
        if data is None:
            data = self.client_data
        if not isinstance(data, dict):
            raise TypeError('Client config must be a JSON object.')

        for field, specs in CLIENT_SCHEMA.items():
            if specs.get('required') and field not in data:
                msg: str = f'Missing required section: {field}'
                logging.error(msg)
                raise ValueError(msg)
            _validate_section(field, data[field], specs['item_schema'])

        logging.debug('Client config is valid.')

    def get_section(self, section_name: str) -> Dict[str, Any]:
        """Retrieve a copy of a configuration section.

        Raises:
            KeyError: If section_name is not a known section.
        """
        return self.client_data[section_name].copy()

    def set_section(self, section_name: str, new_data: Dict[str, Any]) -> None:
        """Replace, validate and persist a configuration section.

        The previous section is restored when validation fails.

        Raises:
            ValueError: If section_name is unrecognized or new_data is invalid.
            TypeError: If new_data has values of the wrong type.
        """
        if section_name not in CLIENT_SCHEMA:
            msg: str = f'Unknown section_name for set: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        current_section_data: Dict[str, Any] = self.client_data[section_name]
        self.client_data[section_name] = new_data
        try:
            self.validate_client_data()
        except (ValueError, TypeError) as e:
            logging.error(f'Validation error on set_section("{section_name}"): {e}')
            self.client_data[section_name] = current_section_data
            raise
        self.save_section(section_name)

    def revert_section(self, section_name: str) -> None:
        """Revert a configuration section to its template default and save.

        Raises:
            ValueError: If section_name is unrecognized.
        """
        if section_name not in CLIENT_SCHEMA:
            msg: str = f'Unknown section_name for revert: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        with self.client_template.open('r', encoding='utf-8') as f:
            template_data: Dict[str, Any] = json.load(f)

        self.client_data[section_name] = template_data[section_name]
        self.save_section(section_name)

    def save_section(self, section_name: str) -> None:
        """Persist a single configuration section to client.json.

        Raises:
            ValueError: If section_name is not recognized.
        """
        if section_name not in CLIENT_SCHEMA:
            msg: str = f'Unknown section_name for save: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        with self.client_path.open('r', encoding='utf-8') as f:
            original_data: Dict[str, Any] = json.load(f)

        new_data: Dict[str, Any] = original_data.copy()
        new_data[section_name] = self.client_data[section_name]

        logging.debug(f'Saving section "{section_name}" to "{self.client_path}"')
        with self.client_path.open('w', encoding='utf-8') as f:
            json.dump(new_data, f, indent=4, ensure_ascii=False)


class Preferences:
    """Durable key-value user preferences stored in an ini file.

    Args:
        path: Location of the ini file.
    """

    def __init__(self, path: pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        self._settings = QtCore.QSettings(str(self.path), QtCore.QSettings.IniFormat)

    def value(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default when missing."""
        return self._settings.value(key, default)

    def set_value(self, key: str, value: Any) -> None:
        """Store a value and flush it to disk."""
        self._settings.setValue(key, value)
        self._settings.sync()
        if self._settings.status() != QtCore.QSettings.NoError:
            logging.warning(f'Could not save preference "{key}" to {self.path}')

    def remove(self, key: str) -> None:
        self._settings.remove(key)
        self._settings.sync()
