"""OAuth client credential and token set models."""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Wrapper keys used by Google Cloud Console client downloads
CREDENTIAL_WRAPPER_KEYS = ("installed", "web")


class Credential(BaseModel):
    """OAuth client identity. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    client_id: str = Field(..., min_length=1, description="OAuth client ID")
    client_secret: str = Field(..., min_length=1, description="OAuth client secret")
    redirect_uris: list[Annotated[str, Field(min_length=1)]] = Field(
        ..., min_length=1, description="Redirect targets; the first one is used"
    )
    auth_uri: str | None = Field(default=None, description="Authorization endpoint")
    token_uri: str | None = Field(default=None, description="Token endpoint")

    @classmethod
    def from_file_data(cls, data: Any) -> "Credential":
        """Validate a parsed credential file, unwrapping ``{"installed": {...}}``."""
        if isinstance(data, dict):
            for key in CREDENTIAL_WRAPPER_KEYS:
                if isinstance(data.get(key), dict):
                    data = data[key]
                    break
        return cls.model_validate(data)


class TokenSet(BaseModel):
    """Bearer access/refresh token pair with its absolute expiry.

    ``expiry_date`` is epoch milliseconds. A token set without one is always
    treated as expired.
    """

    access_token: str = ""
    refresh_token: str | None = None
    scope: str = ""
    token_type: str = "Bearer"
    expiry_date: int | None = None
    id_token: str | None = None

    @field_validator("access_token", "scope", mode="before")
    @classmethod
    def empty_when_null(cls, v: Any) -> Any:
        """Normalise null strings to empty."""
        return "" if v is None else v

    @field_validator("token_type", mode="before")
    @classmethod
    def bearer_when_empty(cls, v: Any) -> Any:
        """Default the token type to Bearer."""
        return v or "Bearer"

    @field_validator("refresh_token", "id_token", "expiry_date", mode="before")
    @classmethod
    def none_when_empty(cls, v: Any) -> Any:
        """Treat empty optional values as absent."""
        return v or None

    @property
    def expiry(self) -> datetime | None:
        """Expiry as an aware UTC datetime."""
        if self.expiry_date is None:
            return None
        return datetime.fromtimestamp(self.expiry_date / 1000, UTC)

    @classmethod
    def from_token_response(
        cls,
        payload: dict[str, Any],
        issued_at: datetime,
        previous: "TokenSet | None" = None,
    ) -> "TokenSet":
        """Build a token set from an OAuth token endpoint response.

        Args:
            payload: Decoded JSON body of the token endpoint
            issued_at: When the response was received, used to anchor ``expires_in``
            previous: Token set being replaced; its refresh token is kept when the
                endpoint does not issue a new one

        Returns:
            Validated token set
        """
        expires_in = payload.get("expires_in")
        expiry_date = None
        if expires_in is not None:
            expiry_date = int(issued_at.timestamp() * 1000) + int(expires_in) * 1000

        refresh_token = payload.get("refresh_token")
        if not refresh_token and previous is not None:
            refresh_token = previous.refresh_token

        return cls.model_validate(
            {
                "access_token": payload.get("access_token"),
                "refresh_token": refresh_token,
                "scope": payload.get("scope"),
                "token_type": payload.get("token_type"),
                "expiry_date": expiry_date,
                "id_token": payload.get("id_token"),
            }
        )

    def to_file_data(self) -> dict[str, Any]:
        """Serialize for the token file, omitting absent fields."""
        return self.model_dump(exclude_none=True)
