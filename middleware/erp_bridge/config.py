"""
Application Configuration Management

Loads configuration from environment variables (and an optional .env file).
Every value has a default so the service starts with no configuration at all.
Auto-detects the DigitalOcean App Platform runtime.
"""

import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ERP_ENDPOINT = "https://httpbin.org/post"
DEFAULT_SOAP_ACTION = "http://tempuri.org/CreateOrder"


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")

    # Application
    app_name: str = Field(default="Shopify to ERP Middleware")
    service_name: str = Field(default="shopify-erp-middleware")
    app_version: str = Field(default="1.0.0")
    log_level: str = Field(default="INFO")

    # FastAPI
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    # ERP SOAP endpoint
    erp_endpoint: str = Field(
        default=DEFAULT_ERP_ENDPOINT, description="Dynamics AX SOAP service URL"
    )
    soap_action: str = Field(
        default=DEFAULT_SOAP_ACTION, description="SOAPAction for the CreateOrder operation"
    )
    user_agent: str = Field(default="Shopify-ERP-Middleware/1.0")
    http_timeout: float = Field(default=30.0, description="Per-attempt timeout in seconds")

    # Retry Configuration
    max_retry_attempts: int = Field(default=3)
    retry_delay_seconds: float = Field(
        default=2.0, description="Base delay, multiplied by the attempt number"
    )

    # Audit log
    log_dir: str = Field(default="./logs")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment"""
        valid_envs = ["development", "test", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v_lower

    @field_validator("max_retry_attempts")
    @classmethod
    def validate_max_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_retry_attempts must be at least 1")
        return v

    @field_validator("retry_delay_seconds", "http_timeout")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delays and timeouts must not be negative")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == "development"

    @property
    def is_digital_ocean(self) -> bool:
        """Check if running on DigitalOcean App Platform"""
        return bool(os.getenv("DIGITAL_OCEAN_APP"))


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    Loads from environment variables and the .env file.
    """
    return Settings()


# Export singleton instance
settings = get_settings()
