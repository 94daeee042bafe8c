# ledger/routers/auth.py
# Signup, login and current-identity endpoints

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from .. import schemas
from ..auth import PasswordHasher, TokenService
from ..config import Settings
from ..dependencies import (
    AuthContext,
    get_app_settings,
    get_password_hasher,
    get_token_service,
    get_user_store,
    require_auth,
)
from ..errors import InvalidCredentialsError, NotFoundError
from ..stores import UserStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Handlers are sync so bcrypt runs in the worker threadpool, off the event loop


@router.post(
    "/signup",
    response_model=schemas.TokenResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=schemas.json_body(schemas.SignupRequest),
)
def signup(
    payload: Dict[str, Any] = Body(...),
    users: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """Create a user and return a token for it."""
    required = ["email", "password"] + [f for f in settings.extra_signup_fields if f not in ("email", "password")]
    user_in = schemas.parse_payload(schemas.SignupRequest, payload, required)

    user = users.insert(
        email=user_in.email,
        hashed_password=hasher.hash(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
    )
    logger.info("User %s signed up", user.id)
    return {"token": tokens.issue(user.id)}


@router.post("/login", response_model=schemas.TokenResponse, openapi_extra=schemas.json_body(schemas.LoginRequest))
def login(
    payload: Dict[str, Any] = Body(...),
    users: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    """Authenticate user and return access token."""
    credentials = schemas.parse_payload(schemas.LoginRequest, payload, ("email", "password"))

    user = users.find_by_email(credentials.email)
    if user is None:
        logger.info("Login rejected: unknown email")
        raise InvalidCredentialsError()

    if not hasher.verify(credentials.password, user.hashed_password):
        logger.info("Login rejected: password mismatch for user %s", user.id)
        raise InvalidCredentialsError()

    logger.info("User %s logged in", user.id)
    return {"token": tokens.issue(user.id)}


@router.get("/current", response_model=schemas.UserOut)
def current_user(
    auth: AuthContext = Depends(require_auth),
    users: UserStore = Depends(get_user_store),
):
    """Get current user information."""
    user = users.find_by_id(auth.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
