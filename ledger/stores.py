# ledger/stores.py
# Persistence adapters for users and expenses

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .errors import ConflictError, InternalError

logger = logging.getLogger(__name__)


class _Store:
    """Shared session handling: database failures surface as InternalError."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, error: Exception):
        self.db.rollback()
        logger.exception("Database error while trying to %s", action)
        raise InternalError(f"Failed to {action}") from error


class UserStore(_Store):
    """Credential store."""

    def insert(self, email: str, hashed_password: str, first_name: str = None, last_name: str = None) -> models.User:
        user = models.User(
            email=email,
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
        )
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Signup rejected: email already registered")
            raise ConflictError("Email already registered") from e
        except SQLAlchemyError as e:
            self._fail("create user", e)
        return user

    def find_by_email(self, email: str) -> Optional[models.User]:
        try:
            return self.db.query(models.User).filter(models.User.email == email).first()
        except SQLAlchemyError as e:
            self._fail("look up user", e)

    def find_by_id(self, user_id: str) -> Optional[models.User]:
        try:
            return self.db.query(models.User).filter(models.User.id == user_id).first()
        except SQLAlchemyError as e:
            self._fail("look up user", e)


class ExpenseStore(_Store):
    """Ledger store.

    Every read and write takes an optional ``owner_id``. When given, the
    owner predicate is added to the statement so no row outside that scope
    can be returned, replaced or deleted.
    """

    def _scoped(self, owner_id: Optional[str]):
        query = self.db.query(models.Expense)
        if owner_id is not None:
            query = query.filter(models.Expense.owner_id == owner_id)
        return query

    def insert(self, owner_id: str, fields: Dict[str, Any]) -> str:
        expense = models.Expense(owner_id=owner_id, **fields)
        try:
            self.db.add(expense)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("create expense", e)
        return expense.id

    def find_one(self, expense_id: str, owner_id: Optional[str] = None) -> Optional[models.Expense]:
        try:
            return self._scoped(owner_id).filter(models.Expense.id == expense_id).first()
        except SQLAlchemyError as e:
            self._fail("fetch expense", e)

    def find_many(
        self,
        owner_id: str,
        criteria: Sequence = (),
        order_by: Sequence = (),
        offset: int = 0,
        limit: int = 10,
    ) -> List[models.Expense]:
        try:
            query = self._scoped(owner_id).filter(*criteria)
            return query.order_by(*order_by).offset(offset).limit(limit).all()
        except SQLAlchemyError as e:
            self._fail("list expenses", e)

    def count(self, owner_id: str, criteria: Sequence = ()) -> int:
        try:
            return self._scoped(owner_id).filter(*criteria).count()
        except SQLAlchemyError as e:
            self._fail("count expenses", e)

    def replace(self, expense_id: str, fields: Dict[str, Any], owner_id: Optional[str] = None) -> int:
        """Overwrite every mutable field. Returns the number of matched rows."""
        values = {name: fields.get(name) for name in models.EXPENSE_MUTABLE_FIELDS}
        values["updated_at"] = models.utcnow()
        try:
            matched = (
                self._scoped(owner_id)
                .filter(models.Expense.id == expense_id)
                .update(values, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("update expense", e)
        return matched

    def delete(self, expense_id: str, owner_id: Optional[str] = None) -> int:
        """Delete by id. Returns the number of removed rows (0 is not an error)."""
        try:
            removed = (
                self._scoped(owner_id)
                .filter(models.Expense.id == expense_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("delete expense", e)
        return removed
