"""
Configuration management using Pydantic Settings
Handles environment variables and validation
"""
from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings

from core.utils import mask_sensitive_data

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    testing: bool = Field(default=False)

    # Application
    app_name: str = "CarLeads"
    app_version: str = "0.1.0"
    base_url: str = Field(default="http://localhost:8000")
    secret_key: str = Field(default=DEFAULT_SECRET_KEY)

    # Database
    database_url: str = Field(default="sqlite:///./carleads.db")
    database_pool_size: int = Field(default=10)
    database_echo: bool = Field(default=False)

    # Session cookie
    session_cookie_name: str = Field(default="carleads_session")
    session_ttl_hours: int = Field(default=24, ge=1)
    session_cookie_secure: bool = Field(default=False)

    # Authentication
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    magic_link_expiry_minutes: int = Field(default=15, ge=1)
    invite_expiry_days: int = Field(default=7, ge=1)

    # Seeding
    admin_email: Optional[str] = Field(default=None)
    admin_password: Optional[SecretStr] = Field(default=None)

    # Leads & commissions
    default_commission_percent: float = Field(default=0.10, ge=0.0, le=1.0)
    lead_transition_policy: str = Field(default="permissive", description="permissive or strict")
    duplicate_window_days: int = Field(default=30, ge=1)
    duplicate_price_tolerance: float = Field(default=0.05, ge=0.0, le=1.0)

    # Preview image scraping
    enable_preview_fetch: bool = Field(default=True)
    preview_fetch_timeout_seconds: float = Field(default=2.0, gt=0)

    # Email settings
    enable_emails: bool = Field(default=False)
    from_email: str = Field(default="noreply@carleads.local")
    from_name: str = Field(default="Car Lead Management")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_anonymous: str = Field(default="60/minute")
    rate_limit_authenticated: str = Field(default="120/minute")
    rate_limit_login: str = Field(default="5/15minute")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("lead_transition_policy")
    @classmethod
    def validate_transition_policy(cls, v):
        v = v.lower()
        if v not in ("permissive", "strict"):
            raise ValueError("Lead transition policy must be 'permissive' or 'strict'")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Validate production-specific settings after all fields are set"""
        if self.environment == "production":
            if self.secret_key == DEFAULT_SECRET_KEY:
                raise ValueError("Secret key must be changed for production")
            if not self.session_cookie_secure:
                raise ValueError("Session cookie must be secure in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    def model_dump(self, **kwargs):
        """Override to mask sensitive fields when serializing"""
        data = super().model_dump(**kwargs)

        for field in ("secret_key", "admin_password"):
            if field in data and data[field]:
                if hasattr(data[field], "get_secret_value"):
                    value = data[field].get_secret_value()
                else:
                    value = str(data[field])

                data[field] = mask_sensitive_data(value)

        return data


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
