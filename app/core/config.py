"""
Configuration management for the Leave Engine backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator
from typing import Optional, List
import re


_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    DATABASE_URL: str = Field(
        default="sqlite:///./leave_engine.db",
        description="SQLAlchemy database URL"
    )

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    # Leave engine business parameters
    LEAVE_APPROVAL_MAX_DEPTH: int = Field(
        default=3,
        ge=1,
        description="Maximum number of supervisors walked up the reports-to chain"
    )
    LUNCH_BREAK_START: str = Field(default="12:00", description="Meal break start (HH:MM)")
    LUNCH_BREAK_END: str = Field(default="13:00", description="Meal break end (HH:MM)")
    DEFAULT_DAILY_WORK_HOURS: float = Field(
        default=8.0,
        gt=0,
        le=24,
        description="Per-day cap used by the approximate (no schedule) hours calculation"
    )
    HOURS_PER_LEAVE_DAY: float = Field(
        default=8.0,
        gt=0,
        le=24,
        description="Hours that make up one day of leave quota"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("LUNCH_BREAK_START", "LUNCH_BREAK_END")
    @classmethod
    def validate_clock(cls, v: str) -> str:
        if not _CLOCK_RE.match(v):
            raise ValueError("Lunch break times must use HH:MM (24h)")
        return v

    @model_validator(mode="after")
    def validate_lunch_window(self) -> "Settings":
        # zero-padded HH:MM strings compare chronologically
        if self.LUNCH_BREAK_START >= self.LUNCH_BREAK_END:
            raise ValueError("LUNCH_BREAK_START must be earlier than LUNCH_BREAK_END")
        return self

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )
            if self.DATABASE_URL.startswith("sqlite"):
                raise ValueError(
                    "DATABASE_URL must point to a server database in production environment"
                )

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
