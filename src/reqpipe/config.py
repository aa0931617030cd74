# reqpipe/config.py
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT_MS = 10000
DEFAULT_ERROR_SUPPRESSION_SECONDS = 3.0
TOKEN_KEY = "@auth_token"


class ClientSettings(BaseSettings):
    """
    Manages user-configurable settings for an HttpClient, loaded from
    environment variables (prefixed with ``REQPIPE_``) or a .env file.

    A client owns its settings; only ``show_error_alert`` is expected to
    change after construction, through ``HttpClient.set_show_error_alert``.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="REQPIPE_",
        extra="ignore",
        case_sensitive=False,
    )

    # --- Request Settings ---
    base_url: str = Field(
        default="", description="Prefix for request URLs that carry no scheme"
    )
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS, description="Default request timeout in milliseconds"
    )
    default_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent with every request; per-call headers override them",
    )
    user_agent: str = Field(
        default="reqpipe/0.1.0", description="User-Agent header for requests"
    )

    # --- Error Alert Settings ---
    show_error_alert: bool = Field(
        default=True, description="Show a user-facing alert when a request fails"
    )
    error_suppression_seconds: float = Field(
        default=DEFAULT_ERROR_SUPPRESSION_SECONDS,
        description="Window during which repeated alerts of one category are dropped",
    )

    # --- Credential Settings ---
    token_key: str = Field(
        default=TOKEN_KEY, description="Storage key under which the bearer token lives"
    )

    @field_validator("error_suppression_seconds")
    @classmethod
    def _positive_window(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("error_suppression_seconds must be > 0")
        return value


@lru_cache
def get_settings() -> ClientSettings:
    """
    Provides access to the client settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached for performance.

    Returns:
        ClientSettings: The settings instance.
    """
    return ClientSettings()
