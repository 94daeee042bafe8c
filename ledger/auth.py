# ledger/auth.py
# Password hashing and JWT token issuance/verification

import logging
from datetime import datetime, timedelta, timezone
from typing import Union

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .errors import AuthInvalidError, ConfigurationError, InternalError

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


class PasswordHasher:
    """Salted bcrypt hashing with a fixed cost factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        """Hash a password for storing."""
        try:
            return self.pwd_context.hash(password)
        except (ValueError, TypeError, RuntimeError) as e:
            # RuntimeError covers passlib.exc.MissingBackendError
            logger.exception("Password hashing failed")
            raise InternalError("Password hashing failed") from e

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a plaintext password against its hash. A mismatch is False, not an error."""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            # Unrecognised or corrupt stored hash
            logger.warning("Stored password hash could not be parsed")
            return False


class TokenService:
    """Issues and verifies signed, time-limited identity tokens.

    Verification needs nothing but the token, the secret and the clock, so
    any number of processes sharing the secret can verify independently.
    """

    def __init__(self, secret_key: str, ttl: Union[timedelta, int], algorithm: str = ALGORITHM):
        if not secret_key:
            raise ConfigurationError("JWT_SECRET is not set")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl if isinstance(ttl, timedelta) else timedelta(minutes=ttl)

    def issue(self, subject: str) -> str:
        """Create a signed access token for ``subject``."""
        issued_at = datetime.now(timezone.utc)
        claims = {
            "sub": str(subject),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
            "type": ACCESS_TOKEN_TYPE,
        }
        try:
            return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            logger.exception("Token signing failed")
            raise InternalError("Token signing failed") from e

    def verify(self, token: str) -> str:
        """Return the token's subject, or raise AuthInvalidError."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise AuthInvalidError("Token has expired")
        except JWTError:
            logger.info("Rejected token with invalid signature or format")
            raise AuthInvalidError("Could not validate credentials")

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise AuthInvalidError("Invalid token type")
        if payload.get("exp") is None:
            raise AuthInvalidError("Token missing expiration")

        subject = payload.get("sub")
        if not subject:
            raise AuthInvalidError("Token missing subject")
        return subject
