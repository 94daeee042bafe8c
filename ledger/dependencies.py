# ledger/dependencies.py
# Shared FastAPI dependencies for authentication and database

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .auth import PasswordHasher, TokenService
from .config import Settings
from .errors import AuthMissingError
from .query import ExpenseQueryEngine
from .stores import ExpenseStore, UserStore

logger = logging.getLogger(__name__)

# auto_error is off so a missing credential maps to our own 401
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity proven by a verified bearer token."""
    user_id: str


# ===== APPLICATION STATE =====
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


# ===== DATABASE DEPENDENCY =====
def get_db(request: Request):
    """Database session dependency."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_expense_store(db: Session = Depends(get_db)) -> ExpenseStore:
    return ExpenseStore(db)


def get_query_engine(
    store: ExpenseStore = Depends(get_expense_store),
    settings: Settings = Depends(get_app_settings),
) -> ExpenseQueryEngine:
    return ExpenseQueryEngine(store, settings.month_window_policy)


# ===== AUTHENTICATION DEPENDENCIES =====
def optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[AuthContext]:
    """Verified identity if a bearer token was sent, None if not.

    A token that is present but fails verification is still rejected.
    """
    if credentials is None or not credentials.credentials:
        return None
    return AuthContext(user_id=tokens.verify(credentials.credentials))


def require_auth(auth: Optional[AuthContext] = Depends(optional_auth)) -> AuthContext:
    """Reject the request unless it carries a valid bearer token."""
    if auth is None:
        raise AuthMissingError()
    return auth


def expense_auth(
    auth: Optional[AuthContext] = Depends(optional_auth),
    settings: Settings = Depends(get_app_settings),
) -> Optional[AuthContext]:
    """Identity for expense routes; mandatory unless the deployment opens them."""
    if auth is None and settings.expenses_require_auth:
        raise AuthMissingError()
    return auth
