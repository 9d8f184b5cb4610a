"""Tests for the OAuth token lifecycle."""

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from vibe_logger.core.errors import AuthError, AuthErrorKind, ConfigError
from vibe_logger.core.token_manager import AuthState, TokenLifecycleManager
from vibe_logger.models import TokenSet


@pytest.mark.asyncio
class TestInitialize:
    """Test loading stored state."""

    async def test_no_tokens(self, token_manager, token_endpoint):
        await token_manager.initialize()
        assert token_manager.state == AuthState.UNAUTHENTICATED
        assert not token_manager.is_authenticated()
        assert token_endpoint.calls == 0

    async def test_valid_tokens_loaded(self, store, token_manager, make_token_set, token_endpoint):
        store.save_token(make_token_set())
        await token_manager.initialize()
        assert token_manager.state == AuthState.AUTHENTICATED
        assert token_endpoint.calls == 0

    async def test_expired_tokens_refreshed_eagerly(
        self, store, token_manager, make_token_set, token_endpoint
    ):
        store.save_token(make_token_set(expires_in=-60))
        await token_manager.initialize()

        assert token_endpoint.calls == 1
        assert token_endpoint.requests[0]["grant_type"] == "refresh_token"
        assert token_manager.token_set.access_token == "new-access-token"
        assert store.load_token().access_token == "new-access-token"

    async def test_expired_tokens_refresh_failure(
        self, store, token_manager, make_token_set, token_endpoint
    ):
        store.save_token(make_token_set(expires_in=-60))
        token_endpoint.status_code = 400
        token_endpoint.payload = {"error": "invalid_grant"}

        with pytest.raises(AuthError) as exc_info:
            await token_manager.initialize()
        assert exc_info.value.kind == AuthErrorKind.REFRESH_FAILED
        assert token_manager.credential is not None

    async def test_malformed_token_file_treated_as_absent(self, store, token_manager):
        store.tokens_path.write_text("not json")
        await token_manager.initialize()
        assert token_manager.state == AuthState.UNAUTHENTICATED

    async def test_missing_credentials(self, credentials_path, store, token_http_client):
        credentials_path.unlink()
        manager = TokenLifecycleManager(store, http_client=token_http_client)
        with pytest.raises(ConfigError):
            await manager.initialize()


class TestExpiry:
    """Test expiry detection against the clock."""

    def test_expiry_boundary(self, token_manager, clock):
        token_set = TokenSet(access_token="a", expiry_date=clock.millis() + 1)
        assert not token_manager.is_expired(token_set)

        clock.advance(milliseconds=1)
        assert token_manager.is_expired(token_set)

    def test_missing_expiry_is_expired(self, token_manager):
        assert token_manager.is_expired(TokenSet(access_token="a"))

    def test_state_transitions(self, token_manager, make_token_set, clock):
        token_manager.token_set = make_token_set(expires_in=60)
        assert token_manager.state == AuthState.AUTHENTICATED

        clock.advance(seconds=60)
        assert token_manager.state == AuthState.EXPIRED
        assert not token_manager.is_authenticated()


class TestAuthorizationUrl:
    """Test consent URL construction."""

    def test_requests_offline_access(self, token_manager):
        url = urlparse(token_manager.build_authorization_url())
        params = {k: v[0] for k, v in parse_qs(url.query).items()}

        assert url.netloc == "accounts.google.com"
        assert params["client_id"] == "test-client-id.apps.googleusercontent.com"
        assert params["redirect_uri"] == "urn:ietf:wg:oauth:2.0:oob"
        assert params["response_type"] == "code"
        assert params["access_type"] == "offline"
        assert params["prompt"] == "consent"
        assert params["scope"] == "https://www.googleapis.com/auth/documents"


@pytest.mark.asyncio
class TestGetValidCredential:
    """Test token retrieval with refresh."""

    async def test_not_authenticated_without_network(self, token_manager, token_endpoint):
        with pytest.raises(AuthError) as exc_info:
            await token_manager.get_valid_credential()

        assert exc_info.value.kind == AuthErrorKind.NOT_AUTHENTICATED
        assert exc_info.value.authorization_url.startswith("https://accounts.google.com/")
        assert token_endpoint.calls == 0

    async def test_valid_token_returned(self, token_manager, make_token_set, token_endpoint):
        token_manager.token_set = make_token_set()
        assert await token_manager.get_valid_credential() == "access-token"
        assert token_endpoint.calls == 0

    async def test_expired_token_refreshed(
        self, store, token_manager, make_token_set, token_endpoint, clock
    ):
        token_manager.token_set = make_token_set(expires_in=0)

        assert await token_manager.get_valid_credential() == "new-access-token"
        assert token_endpoint.requests[0]["refresh_token"] == "refresh-token"
        assert token_endpoint.requests[0]["client_secret"] == "test-client-secret"

        refreshed = store.load_token()
        assert refreshed.expiry_date == clock.millis() + 3600 * 1000
        # Google omits the refresh token on refresh; the old one is kept
        assert refreshed.refresh_token == "refresh-token"

    async def test_token_expired_five_minutes_ago(
        self, token_manager, make_token_set, token_endpoint
    ):
        token_manager.token_set = make_token_set(expires_in=-300)

        await token_manager.get_valid_credential()

        assert token_endpoint.calls == 1
        assert not token_manager.is_expired(token_manager.token_set)

    async def test_new_refresh_token_replaces_old(
        self, token_manager, make_token_set, token_endpoint
    ):
        token_manager.token_set = make_token_set(expires_in=0)
        token_endpoint.payload["refresh_token"] = "rotated"

        await token_manager.get_valid_credential()
        assert token_manager.token_set.refresh_token == "rotated"

    async def test_concurrent_callers_share_one_refresh(
        self, token_manager, make_token_set, token_endpoint
    ):
        token_manager.token_set = make_token_set(expires_in=-1)

        tokens = await asyncio.gather(*(token_manager.get_valid_credential() for _ in range(5)))

        assert tokens == ["new-access-token"] * 5
        assert token_endpoint.calls == 1

    async def test_no_refresh_token(self, token_manager, make_token_set, token_endpoint):
        token_manager.token_set = make_token_set(expires_in=-1, refresh_token=None)

        with pytest.raises(AuthError) as exc_info:
            await token_manager.get_valid_credential()

        assert exc_info.value.kind == AuthErrorKind.REFRESH_FAILED
        assert exc_info.value.authorization_url is not None
        assert token_endpoint.calls == 0
        assert token_manager.state == AuthState.REFRESH_FAILED

    async def test_refresh_rejected(self, token_manager, make_token_set, token_endpoint):
        token_manager.token_set = make_token_set(expires_in=-1)
        token_endpoint.status_code = 400
        token_endpoint.payload = {"error": "invalid_grant", "error_description": "Token revoked"}

        with pytest.raises(AuthError) as exc_info:
            await token_manager.get_valid_credential()

        assert exc_info.value.kind == AuthErrorKind.REFRESH_FAILED
        assert "Token revoked" in exc_info.value.message
        assert token_manager.state == AuthState.REFRESH_FAILED

    async def test_waiters_share_failed_refresh(self, store, make_token_set, clock):
        calls = 0
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            await release.wait()
            return httpx.Response(400, json={"error": "invalid_grant"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            manager = TokenLifecycleManager(store, http_client=http_client, now=clock)
            manager.load_credential()
            manager.token_set = make_token_set(expires_in=-1)

            tasks = [asyncio.create_task(manager.get_valid_credential()) for _ in range(3)]
            await asyncio.sleep(0)
            release.set()
            results = await asyncio.gather(*tasks, return_exceptions=True)

        assert calls == 1
        assert all(isinstance(r, AuthError) for r in results)
        assert all(r.kind == AuthErrorKind.REFRESH_FAILED for r in results)

    async def test_transport_error_during_refresh(self, store, make_token_set, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            manager = TokenLifecycleManager(store, http_client=http_client, now=clock)
            manager.load_credential()
            manager.token_set = make_token_set(expires_in=-1)

            with pytest.raises(AuthError) as exc_info:
                await manager.get_valid_credential()

        assert exc_info.value.kind == AuthErrorKind.REFRESH_FAILED


@pytest.mark.asyncio
class TestExchangeAuthorizationCode:
    """Test the first-time code exchange."""

    @pytest.mark.parametrize("code", ["", "   ", "abc def"])
    async def test_invalid_code(self, token_manager, token_endpoint, code):
        with pytest.raises(AuthError) as exc_info:
            await token_manager.exchange_authorization_code(code)

        assert exc_info.value.kind == AuthErrorKind.INVALID_CODE
        assert token_endpoint.calls == 0

    async def test_exchange_persists_tokens(self, store, token_manager, token_endpoint):
        token_endpoint.payload["refresh_token"] = "first-refresh"

        token_set = await token_manager.exchange_authorization_code("  4/0AX-code  ")

        form = token_endpoint.requests[0]
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "4/0AX-code"
        assert form["redirect_uri"] == "urn:ietf:wg:oauth:2.0:oob"
        assert token_set.refresh_token == "first-refresh"
        assert store.load_token() == token_set
        assert token_manager.state == AuthState.AUTHENTICATED

    async def test_exchange_rejected(self, store, token_manager, token_endpoint):
        token_endpoint.status_code = 400
        token_endpoint.payload = {"error": "invalid_grant"}

        with pytest.raises(AuthError) as exc_info:
            await token_manager.exchange_authorization_code("used-code")

        assert exc_info.value.kind == AuthErrorKind.EXCHANGE_FAILED
        assert exc_info.value.authorization_url is not None
        assert store.load_token() is None

    async def test_response_without_access_token(self, token_manager, token_endpoint):
        token_endpoint.payload = {"token_type": "Bearer"}

        with pytest.raises(AuthError) as exc_info:
            await token_manager.exchange_authorization_code("code")
        assert exc_info.value.kind == AuthErrorKind.EXCHANGE_FAILED

    async def test_clear_tokens(self, store, token_manager):
        await token_manager.exchange_authorization_code("code")

        assert token_manager.clear_tokens() is True
        assert token_manager.state == AuthState.UNAUTHENTICATED
        assert store.load_token() is None
