"""OAuth token lifecycle: expiry detection, refresh and authorization-code exchange."""

import asyncio
import logging
from enum import Enum
from typing import Any
from urllib.parse import urlencode

import httpx

from ..config import settings
from ..models import Credential, TokenSet
from .clock import Clock, epoch_millis, utcnow
from .credential_store import RESET_COMMAND, SETUP_COMMAND, CredentialStore
from .errors import AuthError, AuthErrorKind, ConfigError

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    """Authentication state of a TokenLifecycleManager."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    REFRESH_FAILED = "refresh_failed"


def _describe_http_error(error: Exception) -> str:
    """Summarize a token endpoint failure without echoing request secrets."""
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        try:
            body = response.json()
        except ValueError:
            body = {}
        reason = ""
        if isinstance(body, dict):
            reason = body.get("error_description") or body.get("error") or ""
        return f"HTTP {response.status_code}" + (f" ({reason})" if reason else "")
    return str(error) or type(error).__name__


class TokenLifecycleManager:
    """Owns the OAuth client credential and the current token set.

    States move Unauthenticated -> Authenticated -> Expired -> Refreshing ->
    Authenticated or RefreshFailed. Refresh is single flight: concurrent
    callers that find the token expired share one token endpoint round trip.
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        scopes: list[str] | None = None,
        now: Clock | None = None,
    ):
        """Initialize the manager.

        Args:
            store: Credential and token persistence
            http_client: Client for the token endpoint (created lazily if omitted)
            scopes: OAuth scopes requested during authorization
            now: Clock returning an aware UTC datetime
        """
        self.store = store or CredentialStore()
        self.scopes = scopes or settings.get_oauth_scopes()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._now = now or utcnow

        self.credential: Credential | None = None
        self.token_set: TokenSet | None = None

        self._refresh_lock = asyncio.Lock()
        self._refresh_attempts = 0
        self._refreshing = False
        self._refresh_failed = False

    # ----- State -----

    @property
    def state(self) -> AuthState:
        if self._refreshing:
            return AuthState.REFRESHING
        if self._refresh_failed:
            return AuthState.REFRESH_FAILED
        if self.token_set is None or not self.token_set.access_token:
            return AuthState.UNAUTHENTICATED
        if self.is_expired(self.token_set):
            return AuthState.EXPIRED
        return AuthState.AUTHENTICATED

    def is_expired(self, token_set: TokenSet) -> bool:
        """True if the expiry is unknown or the current instant is at or past it."""
        if token_set.expiry_date is None:
            return True
        return epoch_millis(self._now()) >= token_set.expiry_date

    def is_authenticated(self) -> bool:
        """True if an unexpired access token is held. Never raises."""
        token_set = self.token_set
        return bool(token_set and token_set.access_token and not self.is_expired(token_set))

    # ----- Lifecycle -----

    async def initialize(self) -> None:
        """Load the credential and any stored tokens, refreshing expired ones now.

        Raises:
            ConfigError: If the credential file is missing or malformed
            AuthError: REFRESH_FAILED if stored tokens are expired and cannot be refreshed
        """
        self.load_credential()

        try:
            token_set = self.store.load_token()
        except ConfigError as e:
            logger.warning(f"{e.message}. Re-authentication required.")
            token_set = None

        self.token_set = token_set
        self._refresh_failed = False

        if token_set is None:
            logger.info("No stored tokens found. Authentication required.")
            return

        if self.is_expired(token_set):
            logger.info("Stored access token is expired, refreshing before first use")
            await self.refresh()
        else:
            logger.info("Loaded valid access token from storage")

    def load_credential(self) -> Credential:
        """Load the OAuth client credential without touching tokens.

        Raises:
            ConfigError: If the credential file is missing or malformed
        """
        self.credential = self.store.load()
        return self.credential

    def build_authorization_url(self) -> str:
        """Build the consent-screen URL.

        Always requests offline access and forces the consent prompt so that a
        refresh token is issued.
        """
        credential = self._require_credential()
        params = {
            "client_id": credential.client_id,
            "redirect_uri": self._redirect_uri(credential),
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
        }
        auth_uri = credential.auth_uri or settings.google_auth_uri
        return f"{auth_uri}?{urlencode(params)}"

    async def refresh(self) -> TokenSet:
        """Exchange the refresh token for a new access token.

        Returns:
            The new token set, already persisted

        Raises:
            AuthError: REFRESH_FAILED if there is no refresh token or the exchange fails
        """
        async with self._refresh_lock:
            return await self._refresh_locked()

    async def get_valid_credential(self) -> str:
        """Return a usable access token, refreshing it first if it has expired.

        Raises:
            AuthError: NOT_AUTHENTICATED if no access token exists (no network call
                is made), REFRESH_FAILED if the expired token cannot be refreshed
        """
        token_set = self._require_access_token()
        if not self.is_expired(token_set):
            return token_set.access_token

        # Attempt number that covers this call: the one in flight, or the next one
        covering_attempt = self._refresh_attempts + (0 if self._refreshing else 1)
        async with self._refresh_lock:
            token_set = self._require_access_token()
            if not self.is_expired(token_set):
                return token_set.access_token
            if self._refresh_attempts >= covering_attempt:
                raise self._refresh_failed_error("Token refresh failed.")
            token_set = await self._refresh_locked()

        return token_set.access_token

    async def exchange_authorization_code(self, code: str) -> TokenSet:
        """Exchange a one-time authorization code for the first token set.

        Args:
            code: Code shown after granting consent

        Returns:
            The new token set, already persisted

        Raises:
            AuthError: INVALID_CODE for empty or malformed input, EXCHANGE_FAILED if
                the token endpoint rejects the code
        """
        credential = self._require_credential()
        code = (code or "").strip()
        if not code or any(ch.isspace() for ch in code):
            raise AuthError(
                AuthErrorKind.INVALID_CODE,
                "Invalid authorization code format",
                authorization_url=self.build_authorization_url(),
                remediation="Copy the full code shown after granting access and try again.",
            )

        async with self._refresh_lock:
            try:
                payload = await self._post_token_endpoint(
                    credential,
                    {
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self._redirect_uri(credential),
                    },
                )
                token_set = TokenSet.from_token_response(payload, self._now())
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Authorization code exchange failed: {_describe_http_error(e)}")
                raise AuthError(
                    AuthErrorKind.EXCHANGE_FAILED,
                    f"Failed to exchange auth code: {_describe_http_error(e)}",
                    authorization_url=self.build_authorization_url(),
                    remediation="Authorization codes are single-use; request a new one.",
                ) from e

            self._install(token_set)

        logger.info("Authorization code exchanged, tokens stored")
        return token_set

    def clear_tokens(self) -> bool:
        """Forget the token set in memory and on disk.

        Returns:
            True if a token file was removed
        """
        removed = self.store.clear()
        self.token_set = None
        self._refresh_failed = False
        return removed

    async def aclose(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    # ----- Internals -----

    async def _refresh_locked(self) -> TokenSet:
        self._refresh_attempts += 1
        credential = self._require_credential()

        if self.token_set is None or not self.token_set.refresh_token:
            self._refresh_failed = True
            raise self._refresh_failed_error("No refresh token available.")

        self._refreshing = True
        try:
            payload = await self._post_token_endpoint(
                credential,
                {
                    "grant_type": "refresh_token",
                    "refresh_token": self.token_set.refresh_token,
                },
            )
            token_set = TokenSet.from_token_response(
                payload, self._now(), previous=self.token_set
            )
        except (httpx.HTTPError, ValueError) as e:
            self._refresh_failed = True
            logger.warning(f"Token refresh failed: {_describe_http_error(e)}")
            raise self._refresh_failed_error(
                f"Token refresh failed ({_describe_http_error(e)})."
            ) from e
        finally:
            self._refreshing = False

        self._install(token_set)
        logger.info(f"Access token refreshed, valid until {token_set.expiry}")
        return token_set

    async def _post_token_endpoint(
        self, credential: Credential, form: dict[str, str]
    ) -> dict[str, Any]:
        """POST to the token endpoint and return the decoded payload.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
            ValueError: If the body is not JSON or carries no access token
        """
        token_uri = credential.token_uri or settings.google_token_uri
        response = await self._client().post(
            token_uri,
            data={
                "client_id": credential.client_id,
                "client_secret": credential.client_secret,
                **form,
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise ValueError("Token endpoint response has no access_token")
        return payload

    def _install(self, token_set: TokenSet) -> None:
        """Replace the in-memory token set, then persist it."""
        self.token_set = token_set
        self._refresh_failed = False
        self.store.save_token(token_set)

    def _refresh_failed_error(self, message: str) -> AuthError:
        return AuthError(
            AuthErrorKind.REFRESH_FAILED,
            f"{message} Re-authentication required.",
            authorization_url=self._authorization_url_or_none(),
            remediation=f"Run '{RESET_COMMAND}' and then '{SETUP_COMMAND}'.",
        )

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
            self._owns_http_client = True
        return self._http_client

    def _require_access_token(self) -> TokenSet:
        token_set = self.token_set
        if token_set is None or not token_set.access_token:
            raise AuthError(
                AuthErrorKind.NOT_AUTHENTICATED,
                "No access token available. Authentication required.",
                authorization_url=self._authorization_url_or_none(),
                remediation=f"Run '{SETUP_COMMAND}' or submit an authorization code.",
            )
        return token_set

    def _require_credential(self) -> Credential:
        if self.credential is None:
            raise RuntimeError("Token manager not initialized")
        return self.credential

    def _authorization_url_or_none(self) -> str | None:
        if self.credential is None:
            return None
        return self.build_authorization_url()

    @staticmethod
    def _redirect_uri(credential: Credential) -> str:
        return credential.redirect_uris[0]
