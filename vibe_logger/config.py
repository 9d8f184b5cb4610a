"""Application configuration using pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service settings
    service_host: str = Field(default="127.0.0.1", description="Host to bind the service")
    service_port: int = Field(default=8765, description="Port to bind the service")
    log_level: str = Field(default="info", description="Logging level")

    # Credential storage
    config_dir: Path = Field(
        default=Path.home() / ".config" / "claude",
        description="Directory holding the OAuth client file and the token file",
    )
    credentials_filename: str = Field(
        default="google-credentials.json",
        description="OAuth client credentials file name (downloaded from Google Cloud Console)",
    )
    tokens_filename: str = Field(
        default="google-tokens.json",
        description="Token file name (written by this service)",
    )

    # OAuth
    oauth_scopes: str = Field(
        default="https://www.googleapis.com/auth/documents",
        description="OAuth scopes (comma-separated)",
    )
    google_auth_uri: str = Field(
        default="https://accounts.google.com/o/oauth2/v2/auth",
        description="Authorization endpoint used when the client file does not name one",
    )
    google_token_uri: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Token endpoint used when the client file does not name one",
    )

    # Google Docs
    google_docs_api_url: str = Field(
        default="https://docs.googleapis.com/v1/documents",
        description="Base URL of the Google Docs documents resource",
    )
    http_timeout_seconds: float = Field(default=30.0, description="Timeout for outbound HTTP calls")

    # Sessions
    operator_name: str | None = Field(
        default=None,
        description="Operator name used in document titles (defaults to git user.name, then $USER)",
    )
    default_template: str = Field(default="project_log", description="Template for new sessions")

    def get_credentials_path(self) -> Path:
        """Get the full path of the OAuth client credentials file."""
        return self.config_dir.expanduser() / self.credentials_filename

    def get_tokens_path(self) -> Path:
        """Get the full path of the token file."""
        return self.config_dir.expanduser() / self.tokens_filename

    def get_oauth_scopes(self) -> list[str]:
        """Get OAuth scopes as a list."""
        return [scope.strip() for scope in self.oauth_scopes.split(",") if scope.strip()]


# Global settings instance
settings = Settings()
