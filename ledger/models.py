# ledger/models.py
# Database handle and table definitions

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Numeric, String, Text, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ===== DATABASE HANDLE =====

class Database:
    """Owns the engine and session factory for the lifetime of the process.

    Built once by the app factory and shared by every request; sessions are
    handed out per request through ``ledger.dependencies.get_db``.
    """

    def __init__(self, url: str, echo: bool = False):
        if not url:
            raise ConfigurationError("DATABASE_URL is not set")
        self.url = url
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise each thread sees its own empty database
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def connect(self):
        """Verify connectivity and create tables. Raises if the database is unreachable."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.critical("Database connection failed: %s", e)
            raise ConfigurationError(f"Could not connect to database: {e}") from e
        logger.info("Database ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def session(self):
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()


# ===== USERS =====

class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    # Profile fields
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)


# ===== EXPENSES =====

class Expense(Base):
    """A ledger entry. ``owner_id`` is trusted at the application level, no foreign key."""
    __tablename__ = "expenses"

    id = Column(String(32), primary_key=True, default=new_id)
    owner_id = Column(String(32), nullable=False, index=True)

    date_time = Column(DateTime, nullable=False)
    amount = Column(Numeric(precision=12, scale=2), nullable=False)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    title = Column(String, nullable=False)
    currency = Column(String, nullable=False)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_expenses_owner_date", "owner_id", "date_time"),
        Index("idx_expenses_owner_category", "owner_id", "category"),
    )


# Columns a caller may replace through an edit
EXPENSE_MUTABLE_FIELDS = ("date_time", "amount", "type", "category", "title", "currency", "note")
