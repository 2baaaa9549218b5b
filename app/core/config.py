"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (Twilio credentials, limits, TTLs)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    SERVICE_NAME: str = Field(
        default="SMS Verification API",
        description="Human readable service name (used in SMS body and health output)"
    )

    # Twilio SMS
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_FROM_NUMBER: Optional[str] = Field(
        default=None,
        description="Sender number in E.164 format"
    )
    TWILIO_BASE_URL: str = Field(
        default="https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL"
    )
    SMS_SEND_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Maximum time to wait for the SMS provider before falling back"
    )
    DEMO_DELIVERY_DELAY_SECONDS: float = Field(
        default=1.0,
        description="Simulated delivery delay when no SMS provider is used"
    )

    # Verification codes
    CODE_TTL_MINUTES: int = Field(
        default=5,
        description="Verification code lifetime in minutes"
    )
    MAX_VERIFY_ATTEMPTS: int = Field(
        default=3,
        description="Failed attempts allowed before a code is invalidated"
    )
    EXPOSE_CODE_IN_RESPONSE: Optional[bool] = Field(
        default=None,
        description="Echo the code in the issuance response (defaults to on outside production)"
    )

    # Rate Limiting
    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=60,
        description="Length of the per-destination rate limit window"
    )
    RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=3,
        description="Maximum code requests per destination per window"
    )
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS: int = Field(
        default=300,
        description="How often stale rate limit records are purged (0 disables)"
    )
    RATE_LIMIT_RETENTION_WINDOWS: int = Field(
        default=10,
        description="Windows a rate limit record is kept after its window ends"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("EXPOSE_CODE_IN_RESPONSE")
    def validate_code_exposure(cls, v, values):
        """Never echo codes back to callers in production."""
        if values.get("ENVIRONMENT") == "production" and v:
            raise ValueError("EXPOSE_CODE_IN_RESPONSE must be disabled in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def expose_code(self) -> bool:
        """Whether issued codes are returned to the caller."""
        if self.EXPOSE_CODE_IN_RESPONSE is None:
            return not self.is_production
        return self.EXPOSE_CODE_IN_RESPONSE

    @property
    def twilio_configured(self) -> bool:
        """Check if all Twilio credentials are present."""
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_FROM_NUMBER
        )

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    config = config or settings
    errors = []

    twilio_values = [
        config.TWILIO_ACCOUNT_SID,
        config.TWILIO_AUTH_TOKEN,
        config.TWILIO_FROM_NUMBER,
    ]
    if any(twilio_values) and not all(twilio_values):
        errors.append(
            "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER must be set together"
        )

    if config.CODE_TTL_MINUTES <= 0:
        errors.append("CODE_TTL_MINUTES must be positive")
    if config.MAX_VERIFY_ATTEMPTS <= 0:
        errors.append("MAX_VERIFY_ATTEMPTS must be positive")
    if config.RATE_LIMIT_WINDOW_SECONDS <= 0:
        errors.append("RATE_LIMIT_WINDOW_SECONDS must be positive")
    if config.RATE_LIMIT_MAX_REQUESTS <= 0:
        errors.append("RATE_LIMIT_MAX_REQUESTS must be positive")
    if config.SMS_SEND_TIMEOUT_SECONDS <= 0:
        errors.append("SMS_SEND_TIMEOUT_SECONDS must be positive")

    if config.DEMO_DELIVERY_DELAY_SECONDS >= config.SMS_SEND_TIMEOUT_SECONDS:
        errors.append("DEMO_DELIVERY_DELAY_SECONDS must be shorter than SMS_SEND_TIMEOUT_SECONDS")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
