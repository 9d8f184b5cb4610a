"""Pytest configuration and fixtures."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vibe_logger.core.clock import epoch_millis
from vibe_logger.core.credential_store import CredentialStore
from vibe_logger.core.document_index import ProjectDocumentIndex
from vibe_logger.core.errors import DocumentError
from vibe_logger.core.session_registry import SessionRegistry
from vibe_logger.core.token_manager import TokenLifecycleManager
from vibe_logger.core.vibe_logger import VibeLoggerService
from vibe_logger.models import DocumentInfo, TokenSet

START = datetime(2025, 1, 15, 9, 30, tzinfo=UTC)

CLIENT_FILE = {
    "installed": {
        "client_id": "test-client-id.apps.googleusercontent.com",
        "client_secret": "test-client-secret",
        "redirect_uris": ["urn:ietf:wg:oauth:2.0:oob"],
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
    }
}


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current

    def millis(self) -> int:
        return epoch_millis(self.current)


class TokenEndpoint:
    """MockTransport handler standing in for the OAuth token endpoint."""

    def __init__(self):
        self.requests: list[dict[str, str]] = []
        self.status_code = 200
        self.payload: dict = {
            "access_token": "new-access-token",
            "expires_in": 3600,
            "scope": "https://www.googleapis.com/auth/documents",
            "token_type": "Bearer",
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append(form)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def calls(self) -> int:
        return len(self.requests)


class FakeDocsClient:
    """In-memory document store with the GoogleDocsClient interface."""

    def __init__(self):
        self.documents: dict[str, DocumentInfo] = {}
        self.contents: dict[str, list[str]] = {}
        self.created: list[str] = []
        self.fail_appends = False
        self.failing_appends = 0
        self.fail_creates = False
        self._counter = 0

    async def create_document(self, title: str) -> DocumentInfo:
        if self.fail_creates:
            raise DocumentError("Google Docs request failed with HTTP 503", status_code=503)
        self._counter += 1
        document = DocumentInfo(id=f"doc-{self._counter}", title=title)
        self.documents[document.id] = document
        self.contents[document.id] = []
        self.created.append(title)
        return document

    async def get_document(self, document_id: str) -> DocumentInfo:
        document = self.documents.get(document_id)
        if document is None:
            raise DocumentError(
                f"Document not found: {document_id}", document_id=document_id, status_code=404
            )
        return document

    async def append_content(
        self, document_id: str, content: str, insert_index: int | None = None
    ) -> None:
        if self.failing_appends:
            self.failing_appends -= 1
            raise DocumentError("Google Docs request failed with HTTP 500", status_code=500)
        if self.fail_appends:
            raise DocumentError("Google Docs request failed with HTTP 500", status_code=500)
        await self.get_document(document_id)
        self.contents[document_id].append(content)

    def delete(self, document_id: str) -> None:
        self.documents.pop(document_id, None)

    def text(self, document_id: str) -> str:
        return "".join(self.contents.get(document_id, []))

    async def aclose(self) -> None:
        pass


@pytest.fixture
def anyio_backend():
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def credentials_path(tmp_path: Path) -> Path:
    """A valid OAuth client file in a temporary config directory."""
    path = tmp_path / "google-credentials.json"
    path.write_text(json.dumps(CLIENT_FILE))
    return path


@pytest.fixture
def store(tmp_path: Path, credentials_path: Path) -> CredentialStore:
    return CredentialStore(
        credentials_path=credentials_path, tokens_path=tmp_path / "google-tokens.json"
    )


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint()


@pytest_asyncio.fixture
async def token_http_client(token_endpoint: TokenEndpoint):
    async with httpx.AsyncClient(transport=httpx.MockTransport(token_endpoint)) as client:
        yield client


@pytest.fixture
def token_manager(store, token_http_client, clock) -> TokenLifecycleManager:
    """A manager with the client credential loaded and no tokens."""
    manager = TokenLifecycleManager(store, http_client=token_http_client, now=clock)
    manager.load_credential()
    return manager


@pytest.fixture
def make_token_set(clock):
    """Build a token set expiring ``expires_in`` seconds from the clock's now."""

    def _make(expires_in: int = 3600, refresh_token: str | None = "refresh-token") -> TokenSet:
        return TokenSet(
            access_token="access-token",
            refresh_token=refresh_token,
            expiry_date=clock.millis() + expires_in * 1000,
        )

    return _make


@pytest.fixture
def docs_client() -> FakeDocsClient:
    return FakeDocsClient()


@pytest.fixture
def registry(clock) -> SessionRegistry:
    return SessionRegistry(ProjectDocumentIndex(now=clock), operator="alice", now=clock)


@pytest.fixture
def service(token_manager, docs_client, registry, clock) -> VibeLoggerService:
    return VibeLoggerService(token_manager, docs_client, registry=registry, now=clock)


@pytest_asyncio.fixture
async def client(service):
    """Test client against the real app with the service dependencies overridden."""
    from vibe_logger.api.tools import get_ready_service
    from vibe_logger.core.vibe_logger import get_service
    from vibe_logger.main import app

    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_ready_service] = lambda: service

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://localhost"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
