# ledger/query.py
# Ledger query engine: filters, sorting and pagination for expense listings

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc

from . import models
from .config import CALENDAR_MONTH, LEGACY_31_DAY
from .errors import ClientValidationError
from .stores import ExpenseStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 1000
# Keeps offset = (page - 1) * limit within a 64-bit integer
MAX_PAGE = 10 ** 9
# The window end (next January, or start + 31 days) must still be a valid datetime
MAX_YEAR = 9998
DEFAULT_SORT_FIELD = "dateTime"

SORTABLE_FIELDS = {
    "dateTime": models.Expense.date_time,
    "amount": models.Expense.amount,
    "title": models.Expense.title,
    "category": models.Expense.category,
    "type": models.Expense.type,
    "currency": models.Expense.currency,
    "createdAt": models.Expense.created_at,
}

DESCENDING = ("desc", "descending", "-1")


def month_window(year: int, month: int, policy: str = CALENDAR_MONTH) -> Tuple[datetime, datetime]:
    """Return the [start, end) window covering ``month`` of ``year``.

    The legacy policy ends the window 31 days after the first of the month,
    which spills into the next month for short months.
    """
    if not 1 <= month <= 12:
        raise ClientValidationError("month must be between 1 and 12")
    if not 1 <= year <= MAX_YEAR:
        raise ClientValidationError("year is out of range")

    start = datetime(year, month, 1)
    if policy == LEGACY_31_DAY:
        return start, start + timedelta(days=31)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)


def total_pages(total_items: int, limit: int) -> int:
    return math.ceil(total_items / limit) if total_items else 0


@dataclass
class ExpenseQuery:
    """Listing request for one owner's expenses."""
    owner_id: str
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_field: Optional[str] = None
    sort_order: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    category: Optional[str] = None
    type: Optional[str] = None

    def __post_init__(self):
        if not self.owner_id:
            raise ClientValidationError("An owner is required to list expenses")
        # Clamp rather than reject, mirroring the pagination defaults
        if self.page is None or self.page < 1:
            self.page = DEFAULT_PAGE
        if self.limit is None or self.limit < 1:
            self.limit = DEFAULT_LIMIT
        if self.limit > MAX_LIMIT:
            self.limit = MAX_LIMIT
        if self.page > MAX_PAGE:
            raise ClientValidationError(f"page must be at most {MAX_PAGE}")
        if (self.month is None) != (self.year is None):
            raise ClientValidationError("month and year must be supplied together")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ExpensePage:
    items: List[models.Expense]
    page: int
    limit: int
    total_pages: int
    total_items: int


class ExpenseQueryEngine:
    """Turns an ExpenseQuery into store calls and a page envelope."""

    def __init__(self, store: ExpenseStore, month_policy: str = CALENDAR_MONTH):
        self.store = store
        self.month_policy = month_policy

    def build_criteria(self, query: ExpenseQuery) -> list:
        # The owner predicate is added by the store itself, never here
        criteria = []
        if query.month is not None:
            start, end = month_window(query.year, query.month, self.month_policy)
            criteria.append(models.Expense.date_time >= start)
            criteria.append(models.Expense.date_time < end)
        if query.category:
            criteria.append(models.Expense.category == query.category)
        if query.type:
            criteria.append(models.Expense.type == query.type)
        return criteria

    def build_ordering(self, query: ExpenseQuery) -> list:
        column = SORTABLE_FIELDS.get(query.sort_field or DEFAULT_SORT_FIELD)
        if column is None:
            logger.debug("Unknown sort field %r, falling back to %s", query.sort_field, DEFAULT_SORT_FIELD)
            column = SORTABLE_FIELDS[DEFAULT_SORT_FIELD]

        if query.sort_order is None:
            descending = query.sort_field is None
        else:
            descending = str(query.sort_order).lower() in DESCENDING

        direction = desc if descending else asc
        return [direction(column), direction(models.Expense.id)]

    def run(self, query: ExpenseQuery) -> ExpensePage:
        criteria = self.build_criteria(query)
        total_items = self.store.count(query.owner_id, criteria)
        items = self.store.find_many(
            query.owner_id,
            criteria,
            order_by=self.build_ordering(query),
            offset=query.offset,
            limit=query.limit,
        )
        return ExpensePage(
            items=items,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total_items, query.limit),
            total_items=total_items,
        )
