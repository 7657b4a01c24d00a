"""Expense and filter records exchanged with the remote API and the views.

Provides:
    - Category, QuickFilter, Period: fixed enumerations used on the wire and in the views.
    - Expense: a read-mostly copy of a backend expense.
    - ExpenseDraft: a validated create/update payload parsed from form input.
    - FilterSet: the typed filter record parsed from filter form input.
"""
import dataclasses
import datetime
import enum
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from ..status import status

DATE_FORMAT = '%Y-%m-%d'
DATETIME_FORMAT = '%Y-%m-%dT%H:%M:%S'


class Category(enum.StrEnum):
    """Expense categories as the backend names them."""
    Food = 'FOOD'
    Transportation = 'TRANSPORTATION'
    Entertainment = 'ENTERTAINMENT'
    Utilities = 'UTILITIES'
    Healthcare = 'HEALTHCARE'
    Shopping = 'SHOPPING'
    Education = 'EDUCATION'
    Other = 'OTHER'

    @property
    def display_name(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value: Any) -> 'Category':
        """Return the category for a wire value or display name, case-insensitively.

        Raises:
            ValueError: If value names no category.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        for category in cls:
            if text in (category.value, category.name.upper()):
                return category
        raise ValueError(f'Unknown category "{value}".')


class QuickFilter(enum.StrEnum):
    """Preset date filters of the expense list."""
    Week = 'week'
    Month = 'month'
    Last30Days = '30days'


class Period(enum.StrEnum):
    """Dashboard time periods."""
    Week = 'week'
    Month = 'month'
    Quarter = 'quarter'
    Year = 'year'
    All = 'all'


def format_date(value: datetime.date) -> str:
    """Serialize a date to the fixed YYYY-MM-DD form used on the wire."""
    return value.strftime(DATE_FORMAT)


def parse_date(value: Any) -> datetime.date:
    """Parse a YYYY-MM-DD date.

    Raises:
        ValueError: If value is not a valid date.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.datetime.strptime(str(value).strip(), DATE_FORMAT).date()


def parse_datetime(value: Any) -> Optional[datetime.datetime]:
    """Parse an ISO 8601 timestamp into a naive local datetime. Returns None when unparsable."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    else:
        try:
            dt = datetime.datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
        except ValueError:
            logging.debug(f'Unparsable timestamp "{value}".')
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def parse_decimal(value: Any) -> Decimal:
    """Parse a decimal amount.

    Raises:
        ValueError: If value is not a finite number.
    """
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation as ex:
        raise ValueError(f'"{value}" is not a number.') from ex
    if not d.is_finite():
        raise ValueError(f'"{value}" is not a finite number.')
    return d


def amount_text(amount: Decimal) -> str:
    """Plain decimal rendering of an amount without trailing zeros, e.g. 12.5 or 100."""
    text = format(amount, 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


@dataclasses.dataclass(frozen=True)
class Expense:
    """A client-side copy of a backend expense."""
    id: Any
    description: str
    amount: Decimal
    category: Category
    created_at: Optional[datetime.datetime]

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> 'Expense':
        """Build an expense from its JSON representation.

        Missing or unknown categories fall back to Category.Other.
        """
        try:
            category = Category.parse(data.get('category') or Category.Other)
        except ValueError:
            logging.warning(f'Unknown category "{data.get("category")}", using {Category.Other}.')
            category = Category.Other

        try:
            amount = parse_decimal(data.get('amount', 0))
        except ValueError:
            logging.warning(f'Invalid amount "{data.get("amount")}" for expense {data.get("id")}, using 0.')
            amount = Decimal(0)

        return cls(
            id=data.get('id'),
            description=str(data.get('description') or ''),
            amount=amount,
            category=category,
            created_at=parse_datetime(data.get('createdAt')),
        )


@dataclasses.dataclass(frozen=True)
class ExpenseDraft:
    """A create/update payload: an expense without its identifier."""
    description: str
    amount: Decimal
    category: Category
    created_at: Optional[datetime.date] = None

    FIELDS = ('description', 'amount', 'category', 'createdAt')

    @classmethod
    def parse(cls, form: Mapping[str, Any]) -> 'ExpenseDraft':
        """Validate expense form input.

        Raises:
            status.ExpenseInvalidException: If a field is missing or invalid.
        """
        unknown = set(form.keys()) - set(cls.FIELDS) - {'id'}
        if unknown:
            raise status.ExpenseInvalidException(f'Unknown fields: {", ".join(sorted(unknown))}.')

        description = str(form.get('description') or '').strip()
        if not description:
            raise status.ExpenseInvalidException('Description is required.')

        try:
            amount = parse_decimal(form.get('amount', ''))
        except ValueError as ex:
            raise status.ExpenseInvalidException('Amount must be a number.') from ex
        if amount <= 0:
            raise status.ExpenseInvalidException('Amount must be a positive number.')

        try:
            category = Category.parse(form.get('category', ''))
        except ValueError as ex:
            raise status.ExpenseInvalidException(str(ex)) from ex

        created_at = None
        if str(form.get('createdAt') or '').strip():
            try:
                created_at = parse_date(form['createdAt'])
            except ValueError as ex:
                raise status.ExpenseInvalidException('Date must be formatted as YYYY-MM-DD.') from ex

        return cls(description=description, amount=amount, category=category, created_at=created_at)

    def to_json(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'amount': float(self.amount),
            'category': self.category.value,
            'createdAt': f'{format_date(self.created_at)}T00:00:00' if self.created_at else None,
        }


@dataclasses.dataclass(frozen=True)
class FilterSet:
    """The active filter criteria of an expense listing.

    A quick filter and a manual date range are never both authoritative: see
    :meth:`parse` and :meth:`with_quick_filter`.
    """
    category: Optional[Category] = None
    date_from: Optional[datetime.date] = None
    date_to: Optional[datetime.date] = None
    search: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    quick_filter: Optional[QuickFilter] = None

    # form key -> attribute
    FORM_KEYS = {
        'category': 'category',
        'dateFrom': 'date_from',
        'dateTo': 'date_to',
        'search': 'search',
        'minAmount': 'min_amount',
        'maxAmount': 'max_amount',
        'quickFilter': 'quick_filter',
    }

    @classmethod
    def parse(cls, form: Mapping[str, Any]) -> 'FilterSet':
        """Parse filter form input.

        Blank values are ignored. A manual date range takes precedence over a quick filter.

        Raises:
            status.FilterInvalidException: On unrecognized keys or malformed values.
        """
        unknown = set(form.keys()) - set(cls.FORM_KEYS)
        if unknown:
            raise status.FilterInvalidException(f'Unrecognized filters: {", ".join(sorted(unknown))}.')

        values: Dict[str, Any] = {}
        for key, value in form.items():
            if value is None or not str(value).strip():
                continue
            attr = cls.FORM_KEYS[key]
            try:
                if attr == 'category':
                    values[attr] = Category.parse(value)
                elif attr in ('date_from', 'date_to'):
                    values[attr] = parse_date(value)
                elif attr in ('min_amount', 'max_amount'):
                    values[attr] = parse_decimal(value)
                elif attr == 'quick_filter':
                    values[attr] = QuickFilter(str(value).strip())
                else:
                    values[attr] = str(value).strip()
            except ValueError as ex:
                raise status.FilterInvalidException(f'Invalid value for "{key}": {value}.') from ex

        date_from, date_to = values.get('date_from'), values.get('date_to')
        if date_from and date_to and date_from > date_to:
            raise status.FilterInvalidException('"dateFrom" must not be after "dateTo".')

        min_amount, max_amount = values.get('min_amount'), values.get('max_amount')
        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise status.FilterInvalidException('"minAmount" must not be greater than "maxAmount".')

        if (date_from or date_to) and values.get('quick_filter'):
            logging.debug('Manual date range given, ignoring quick filter.')
            values.pop('quick_filter')

        return cls(**values)

    def with_quick_filter(self, quick_filter: QuickFilter) -> 'FilterSet':
        """Return a filter set holding only the quick filter and the current search term."""
        return FilterSet(search=self.search, quick_filter=QuickFilter(quick_filter))

    @property
    def has_date_range(self) -> bool:
        return self.date_from is not None and self.date_to is not None

    def to_form(self) -> Dict[str, str]:
        """Serialize the active filters back into form keys."""
        form: Dict[str, str] = {}
        for key, attr in self.FORM_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if isinstance(value, datetime.date):
                form[key] = format_date(value)
            elif isinstance(value, Decimal):
                form[key] = amount_text(value)
            else:
                form[key] = str(value)
        return form

    def fetch_key(self) -> str:
        """Deterministic serialization of the filters that decide what is fetched.

        Search and amount bounds are resolved after the fetch and are left out.
        """
        form = self.to_form()
        relevant = {k: form[k] for k in ('category', 'dateFrom', 'dateTo', 'quickFilter') if k in form}
        return json.dumps(relevant, sort_keys=True, separators=(',', ':'))
