# coinloom/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .endpoints import API_BASE_URL, OAUTH_TOKEN_URL

DEFAULT_USER_AGENT = "coinloom/0.1.0"


class CoinloomSettings(BaseSettings):
    """
    Manages user-configurable settings for the coinloom client, primarily
    loaded from environment variables or a .env file.

    Settings are loaded from environment variables prefixed with 'COINLOOM_'
    (e.g. COINLOOM_CLIENT_ID) or from .env/secrets.env files.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="COINLOOM_",
        extra="ignore",
        case_sensitive=False,
    )

    # --- Endpoints ---
    base_url: str = Field(
        default=API_BASE_URL, description="Base URL of the Coinbase REST API"
    )
    token_url: str = Field(
        default=OAUTH_TOKEN_URL, description="OAuth2 token endpoint URL"
    )

    # --- Client Behavior Settings ---
    request_timeout: float | None = Field(
        default=None,
        description="Request timeout in seconds; None keeps the httpx default",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header for requests",
    )
    refresh_margin_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Refresh tokens this many seconds before they expire",
    )
    default_results_per_page: int | None = Field(
        default=None,
        gt=0,
        description="Page size used by list operations when none is given",
    )

    # --- OAuth2 Application Credentials ---
    client_id: str | None = Field(
        default=None, description="OAuth2 application client ID"
    )
    client_secret: str | None = Field(
        default=None, description="OAuth2 application client secret"
    )


@lru_cache
def get_settings() -> CoinloomSettings:
    """
    Provides access to the coinloom settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached for performance.

    Returns:
        CoinloomSettings: The settings instance.
    """
    return CoinloomSettings()
