# ledger/config.py
# Process configuration loaded once at startup

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CALENDAR_MONTH = "calendar"
LEGACY_31_DAY = "legacy_31_day"


class Settings(BaseSettings):
    """Typed settings read from the environment (or a .env file).

    ``jwt_secret`` and ``database_url`` have no defaults: constructing
    Settings without them raises, which aborts startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    jwt_secret: str = Field(..., min_length=1, description="Token signing key")
    database_url: str = Field(..., min_length=1, description="SQLAlchemy database URL")

    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = Field(60, gt=0)
    bcrypt_rounds: int = Field(10, ge=4, le=31)

    # Comma separated, camelCase body keys, e.g. "firstName,lastName"
    signup_required_fields: str = ""

    expenses_require_auth: bool = True
    month_window_policy: Literal["calendar", "legacy_31_day"] = CALENDAR_MONTH

    cors_origins: str = "*"
    log_level: str = "INFO"
    sql_echo: bool = False

    @property
    def extra_signup_fields(self) -> List[str]:
        return _split_csv(self.signup_required_fields)

    @property
    def allowed_origins(self) -> List[str]:
        return _split_csv(self.cors_origins)


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
