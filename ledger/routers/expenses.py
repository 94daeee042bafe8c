# ledger/routers/expenses.py
# Expense CRUD and listing endpoints

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from .. import schemas
from ..dependencies import (
    AuthContext,
    expense_auth,
    get_expense_store,
    get_query_engine,
    require_auth,
)
from ..errors import AccessDeniedError, InternalError, NotFoundError
from ..query import DEFAULT_LIMIT, DEFAULT_PAGE, ExpenseQuery, ExpenseQueryEngine
from ..stores import ExpenseStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _scope(auth: Optional[AuthContext]) -> Optional[str]:
    return auth.user_id if auth else None


def _parse_expense(payload: Dict[str, Any], auth: Optional[AuthContext]) -> schemas.ExpenseIn:
    required = schemas.EXPENSE_REQUIRED_FIELDS
    if auth is None:
        required = ("ownerId",) + required
    expense_in = schemas.parse_payload(schemas.ExpenseIn, payload, required)
    if auth is not None:
        # The token decides ownership, whatever the body claims
        expense_in.owner_id = auth.user_id
    return expense_in


def _list(
    engine: ExpenseQueryEngine,
    owner_id: str,
    page: int,
    limit: int,
    sort_field: Optional[str],
    sort_order: Optional[str],
    month: Optional[int],
    year: Optional[int],
    category: Optional[str],
    type_: Optional[str],
):
    query = ExpenseQuery(
        owner_id=owner_id,
        page=page,
        limit=limit,
        sort_field=sort_field,
        sort_order=sort_order,
        month=month,
        year=year,
        category=category,
        type=type_,
    )
    result = engine.run(query)
    return {
        "items": result.items,
        "page": result.page,
        "limit": result.limit,
        "total_pages": result.total_pages,
        "total_items": result.total_items,
    }


# ===== EXPENSE CRUD =====

@router.post(
    "/expenses",
    response_model=schemas.ExpenseOut,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=schemas.json_body(schemas.ExpenseIn),
)
def add_expense(
    payload: Dict[str, Any] = Body(...),
    auth: Optional[AuthContext] = Depends(expense_auth),
    store: ExpenseStore = Depends(get_expense_store),
):
    """Create a new expense and return it as stored."""
    expense_in = _parse_expense(payload, auth)
    expense_id = store.insert(expense_in.owner_id, expense_in.column_values())

    expense = store.find_one(expense_id)
    if expense is None:
        raise InternalError(f"Expense {expense_id} missing right after insert")
    logger.info("Expense %s created for owner %s", expense_id, expense_in.owner_id)
    return expense


@router.put("/expenses/{expense_id}", response_model=schemas.ExpenseOut, openapi_extra=schemas.json_body(schemas.ExpenseIn))
def edit_expense(
    expense_id: str,
    payload: Dict[str, Any] = Body(...),
    auth: Optional[AuthContext] = Depends(expense_auth),
    store: ExpenseStore = Depends(get_expense_store),
):
    """Replace every mutable field of an expense."""
    expense_in = _parse_expense(payload, auth)

    # Without a token the body's ownerId is the scope
    matched = store.replace(expense_id, expense_in.column_values(), owner_id=expense_in.owner_id)
    if not matched:
        raise NotFoundError("Expense not found")
    return store.find_one(expense_id, owner_id=expense_in.owner_id)


@router.delete("/expenses/{expense_id}", response_model=schemas.MessageResponse)
def delete_expense(
    expense_id: str,
    auth: Optional[AuthContext] = Depends(expense_auth),
    store: ExpenseStore = Depends(get_expense_store),
):
    """Delete an expense. Deleting an id that does not exist also succeeds."""
    removed = store.delete(expense_id, owner_id=_scope(auth))
    logger.info("Delete expense %s: %d row(s) removed", expense_id, removed)
    return {"message": "Expense deleted"}


@router.get("/expense/{expense_id}", response_model=schemas.ExpenseOut)
def get_expense(
    expense_id: str,
    auth: Optional[AuthContext] = Depends(expense_auth),
    store: ExpenseStore = Depends(get_expense_store),
):
    """Get a specific expense by ID."""
    expense = store.find_one(expense_id, owner_id=_scope(auth))
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


# ===== LISTING =====

@router.get("/expenses", response_model=schemas.ExpensePageOut)
def list_my_expenses(
    page: int = Query(DEFAULT_PAGE, description="1-indexed page number"),
    limit: int = Query(DEFAULT_LIMIT, description="Items per page"),
    sort_field: Optional[str] = Query(None, alias="sortField", description="dateTime, amount, title, category, type, currency, createdAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
    month: Optional[int] = Query(None, description="Month 1-12, requires year"),
    year: Optional[int] = Query(None, description="Year, requires month"),
    category: Optional[str] = Query(None, description="Filter by category"),
    type_: Optional[str] = Query(None, alias="type", description="Filter by type"),
    auth: AuthContext = Depends(require_auth),
    engine: ExpenseQueryEngine = Depends(get_query_engine),
):
    """List the caller's expenses with filtering, sorting and pagination."""
    return _list(engine, auth.user_id, page, limit, sort_field, sort_order, month, year, category, type_)


@router.get("/expenses/{owner_id}", response_model=schemas.ExpensePageOut)
def list_owner_expenses(
    owner_id: str,
    page: int = Query(DEFAULT_PAGE, description="1-indexed page number"),
    limit: int = Query(DEFAULT_LIMIT, description="Items per page"),
    sort_field: Optional[str] = Query(None, alias="sortField"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    type_: Optional[str] = Query(None, alias="type"),
    auth: Optional[AuthContext] = Depends(expense_auth),
    engine: ExpenseQueryEngine = Depends(get_query_engine),
):
    """List one owner's expenses. Authenticated callers may only list their own."""
    if auth is not None and auth.user_id != owner_id:
        logger.warning("User %s tried to list expenses of %s", auth.user_id, owner_id)
        raise AccessDeniedError("Cannot list another user's expenses")
    return _list(engine, owner_id, page, limit, sort_field, sort_order, month, year, category, type_)
