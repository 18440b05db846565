"""Configuration management for the link shortener."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

from .common.validators import is_valid_marker


class Config(BaseSettings):
    """Link shortener configuration."""

    # Trigger settings
    shortening_function: str = Field(
        default="tinyurl",
        description="Backend that shortens URLs (tinyurl, isgd, self-hosted; append '-async' to defer)"
    )

    trigger_char: str = Field(
        default="]",
        description="Character whose insertion may trigger shortening"
    )

    opening_marker: str = Field(
        default="[[",
        description="Two-character sequence that must precede the URL"
    )

    # Backend settings
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for shortener HTTP requests"
    )

    tinyurl_api_url: str = Field(
        default="https://tinyurl.com/api-create.php",
        description="TinyURL creation endpoint"
    )

    isgd_api_url: str = Field(
        default="https://is.gd/create.php",
        description="is.gd creation endpoint"
    )

    self_hosted_base_url: str = Field(
        default="http://localhost:9200",
        description="Base URL of a self-hosted shortener service"
    )

    self_hosted_path_prefix: str = Field(
        default="",
        description="Path prefix the self-hosted service is mounted under (e.g., '/u_s')"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_prefix": "LINK_SHORTENER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("trigger_char")
    @classmethod
    def validate_trigger_char(cls, v: str) -> str:
        """Validate the trigger is a single character."""
        is_valid, error = is_valid_marker(v, 1)
        if not is_valid:
            raise ValueError(f"Invalid trigger_char: {error}")
        return v

    @field_validator("opening_marker")
    @classmethod
    def validate_opening_marker(cls, v: str) -> str:
        """Validate the opening marker is exactly two characters."""
        is_valid, error = is_valid_marker(v, 2)
        if not is_valid:
            raise ValueError(f"Invalid opening_marker: {error}")
        return v

    @field_validator("shortening_function")
    @classmethod
    def validate_shortening_function(cls, v: str) -> str:
        """Normalize the backend name."""
        v = v.strip().lower()
        if not v:
            raise ValueError("shortening_function is required")
        return v


def load_config(**overrides) -> Config:
    """Load configuration from environment."""
    return Config(**overrides)
