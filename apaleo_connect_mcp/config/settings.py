"""
Settings and configuration management for the apaleo connector.

Provides environment-based configuration management using Pydantic settings
for OAuth credentials, API endpoints, token storage and logging.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from apaleo_connect_mcp.models.common import Credentials, TokenPair


class Settings(BaseSettings):
    """
    Configuration settings for the apaleo connector.

    Uses environment variables with APALEO_ prefix for configuration.
    """

    # OAuth Configuration
    client_id: str | None = Field(None, description="OAuth2 client ID for apaleo")
    client_secret: str | None = Field(
        None, description="OAuth2 client secret for apaleo"
    )
    redirect_uri: str | None = Field(
        None, description="Redirect URI registered for the OAuth2 client"
    )
    refresh_token: str | None = Field(
        None, description="Refresh token granted to the client (offline_access)"
    )
    access_token: str | None = Field(
        None, description="Optional access token to use before the first refresh"
    )
    token_url: str = Field(
        "https://identity.apaleo.com/connect/token",
        description="OAuth2 token endpoint URL",
    )
    authorize_url: str = Field(
        "https://identity.apaleo.com/connect/authorize",
        description="OAuth2 authorization endpoint URL",
    )

    # API Configuration
    api_base_url: str = Field(
        "https://api.apaleo.com", description="Base URL for the apaleo API"
    )

    # Default Property Configuration
    default_property_id: str | None = Field(
        None, description="Default property ID for scoped operations"
    )

    # Client Configuration
    request_timeout: int = Field(
        30, description="HTTP request timeout in seconds", ge=5, le=300
    )
    token_expiry_skew: int = Field(
        60,
        description="Refresh the access token this many seconds before it expires",
        ge=0,
        le=600,
    )

    # Token Storage Configuration
    token_store_path: str | None = Field(
        None, description="JSON file used to persist refreshed tokens"
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Logging format string",
    )
    enable_structured_logging: bool = Field(
        False, description="Enable structured logging with JSON format"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="APALEO_", case_sensitive=False, extra="ignore"
    )

    def get_credentials(self) -> Credentials:
        """
        Get the OAuth client credentials.

        Returns:
            Credentials built from the configured client settings
        """
        return Credentials(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
        )

    def get_initial_tokens(self) -> TokenPair | None:
        """
        Get the token pair configured through the environment.

        Returns:
            TokenPair, or None when no refresh token is configured
        """
        if not self.refresh_token:
            return None
        return TokenPair(
            access_token=self.access_token or "",
            refresh_token=self.refresh_token,
        )

    def validate_required_settings(self) -> list[str]:
        """
        Validate that all required settings are present.

        Returns:
            List of missing settings (empty if all present)
        """
        missing = []

        if not self.client_id:
            missing.append("APALEO_CLIENT_ID")

        if not self.client_secret:
            missing.append("APALEO_CLIENT_SECRET")

        if not self.refresh_token and not self.token_store_path:
            missing.append("APALEO_REFRESH_TOKEN")

        return missing


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
