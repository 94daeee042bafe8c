# ledger/schemas.py
# Data validation schemas (Pydantic)

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Dict, Iterable, List, Optional, Type

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from .errors import ClientValidationError

EXPENSE_REQUIRED_FIELDS = ("dateTime", "amount", "type", "category", "title", "currency")

# Numeric(12, 2) holds at most ten integer digits
MAX_ABS_AMOUNT = Decimal("10") ** 10


def missing_fields(payload: Dict[str, Any], required: Iterable[str]) -> List[str]:
    """Names from ``required`` that are absent, null or blank in ``payload``."""
    missing = []
    for name in required:
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def parse_payload(schema, payload: Any, required: Iterable[str] = ()):
    """Check required fields, then validate ``payload`` into ``schema``.

    Everything is reported as ClientValidationError so callers see a 400
    before any storage call is made.
    """
    if not isinstance(payload, dict):
        raise ClientValidationError("Request body must be a JSON object")
    missing = missing_fields(payload, required)
    if missing:
        raise ClientValidationError.missing(missing)
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "body" for err in e.errors()})
        raise ClientValidationError(f"Invalid fields: {', '.join(fields)}") from e


def json_body(schema: Type[BaseModel]) -> Dict[str, Any]:
    """``openapi_extra`` documenting a route whose body is parsed by ``parse_payload``."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema.model_json_schema(by_alias=True)}},
        }
    }


def check_email(value: str) -> str:
    """Validate address syntax but keep the address exactly as submitted."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(str(e)) from e
    return value


SubmittedEmail = Annotated[str, AfterValidator(check_email)]


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(tzinfo=None).isoformat() + "Z"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Auth ---
class SignupRequest(CamelModel):
    email: SubmittedEmail
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(CamelModel):
    email: SubmittedEmail
    password: str


class TokenResponse(CamelModel):
    token: str


class UserOut(CamelModel):
    """Public view of a user. The password hash is deliberately not a field."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer("created_at")
    def serialize_created_at(self, value: Optional[datetime]):
        return to_iso(value)


# --- Expenses ---
class ExpenseIn(CamelModel):
    """Body of an add or edit request."""
    owner_id: Optional[str] = None
    date_time: datetime
    amount: Decimal = Field(gt=-MAX_ABS_AMOUNT, lt=MAX_ABS_AMOUNT)
    type: str
    category: str
    title: str
    currency: str
    note: Optional[str] = None

    @field_validator("date_time")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @field_validator("type", "category", "title", "currency")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    def column_values(self) -> Dict[str, Any]:
        """Column values for the store, without the owner."""
        return self.model_dump(exclude={"owner_id"})


class ExpenseOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    date_time: datetime
    amount: Decimal
    type: str
    category: str
    title: str
    currency: str
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)

    @field_serializer("date_time", "created_at", "updated_at")
    def serialize_timestamps(self, value: Optional[datetime]):
        return to_iso(value)


class ExpensePageOut(CamelModel):
    """Envelope returned by every listing route."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    items: List[ExpenseOut]
    page: int
    limit: int
    total_pages: int
    total_items: int


class MessageResponse(CamelModel):
    message: str
