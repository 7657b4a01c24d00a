"""
Locale-aware display of expense amounts and month labels using Babel.

The configured ``metadata.locale`` decides both the number format and the currency. The currency
is the one currently in use in the locale's territory, so 'fr_FR' renders euros and 'hu_HU'
forints. Unknown or malformed locales fall back to :data:`DEFAULT_LOCALE`.
"""
import datetime
import functools
import logging
from decimal import Decimal
from typing import Union

from babel import Locale, UnknownLocaleError, numbers
from babel.dates import format_date

DEFAULT_LOCALE: str = 'en_US'
DEFAULT_CURRENCY: str = 'USD'

Number = Union[int, float, Decimal]


@functools.lru_cache(maxsize=None)
def get_locale(locale: str) -> Locale:
    """Parse a locale string, falling back to the default locale when it cannot be parsed."""
    try:
        return Locale.parse(locale)
    except (ValueError, TypeError, UnknownLocaleError) as ex:
        logging.warning(f'Invalid locale "{locale}", using {DEFAULT_LOCALE}: {ex}')
        return Locale.parse(DEFAULT_LOCALE)


@functools.lru_cache(maxsize=None)
def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the currency in use in the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: Currency code such as 'EUR'. Defaults to 'USD' when the locale names no territory.
    """
    territory = locale.split('_')[1] if '_' in locale else None
    if not territory:
        return DEFAULT_CURRENCY
    currencies = numbers.get_territory_currencies(territory, tender=True)
    return currencies[0] if currencies else DEFAULT_CURRENCY


def format_currency_value(value: Number, locale: str) -> str:
    """
    Format an amount in the currency of the locale's territory, e.g. '$12.50' for 'en_US'.

    Args:
        value: The amount to format.
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: The formatted currency string, or ``str(value)`` if Babel cannot format it.
    """
    try:
        return numbers.format_currency(
            value,
            currency=get_currency_from_locale(locale),
            locale=get_locale(locale),
        )
    except (ValueError, TypeError, ArithmeticError) as ex:
        logging.debug(f'Error formatting currency: {ex}')
        return str(value)


def format_month(value: datetime.date, locale: str) -> str:
    """
    Format the month of a date as an abbreviated month and year label, e.g. 'Jan 2026'.

    Args:
        value (datetime.date): Any day of the month to format.
        locale (str): Locale string, e.g. 'en_US'.
    """
    return format_date(value, 'MMM y', locale=get_locale(locale))
