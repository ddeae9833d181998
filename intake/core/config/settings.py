"""Application settings with Pydantic validation."""

from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...constants import DEFAULT_PRACTICE_ID, Scheduling, Timeouts


class IntakeSettings(BaseSettings):
    """Intake settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production", description="Environment (production, development, testing)"
    )

    # Portal API
    api_base_url: str = Field(
        default="http://localhost:3000", description="Base URL of the practice portal API"
    )
    api_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token for authenticated (logged-in) requests"
    )
    request_timeout_seconds: float = Field(
        default=Timeouts.HTTP_REQUEST_SECONDS, gt=0, description="Total HTTP request timeout"
    )
    practice_id: int = Field(default=DEFAULT_PRACTICE_ID, ge=1, description="Practice identifier")

    # Wizard behaviour
    email_check_debounce_seconds: float = Field(
        default=Timeouts.EMAIL_CHECK_DEBOUNCE_SECONDS,
        ge=0,
        description="Input inactivity before the email-existence check fires",
    )
    slot_search_days: int = Field(
        default=Scheduling.SEARCH_DAYS, ge=1, le=365, description="Days searched for availability"
    )
    max_candidate_slots: int = Field(
        default=Scheduling.MAX_CANDIDATE_SLOTS,
        ge=0,
        le=3,
        description="Maximum recommended slots offered to the client",
    )
    address_min_match_level: str = Field(
        default=Scheduling.ADDRESS_MIN_MATCH_LEVEL,
        description="Minimum geocoder match level accepted for routing (street, partial, city)",
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=False, description="Write a serialized JSONL log file")
    log_dir: Optional[str] = Field(default=None, description="Directory for file log sinks")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "development", "testing", "staging"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("address_min_match_level")
    @classmethod
    def validate_match_level(cls, v: str) -> str:
        """Validate geocoder match level."""
        allowed = ["street", "partial", "city"]
        if v.lower() not in allowed:
            raise ValueError(f'ADDRESS_MIN_MATCH_LEVEL must be one of: {", ".join(allowed)}')
        return v.lower()

    @model_validator(mode="after")
    def validate_production_url(self) -> "IntakeSettings":
        """Production deployments must talk to the portal over TLS."""
        if self.env == "production" and not self.api_base_url.startswith("https://"):
            if "localhost" not in self.api_base_url and "127.0.0.1" not in self.api_base_url:
                raise ValueError("Production API_BASE_URL must use https://")
        return self

    def is_development(self) -> bool:
        """
        Check if running in development mode.

        Returns:
            True if development environment
        """
        return self.env == "development"

    def is_production(self) -> bool:
        """
        Check if running in production mode.

        Returns:
            True if production environment
        """
        return self.env == "production"


# Singleton instance
_settings: Optional[IntakeSettings] = None


def get_settings() -> IntakeSettings:
    """
    Get application settings singleton.

    Returns:
        IntakeSettings instance

    Raises:
        ValidationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = IntakeSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
