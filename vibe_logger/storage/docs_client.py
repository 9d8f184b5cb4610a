"""Google Docs REST client used as the session document store."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import settings
from ..core.errors import AuthError, AuthErrorKind, DocumentError
from ..core.token_manager import TokenLifecycleManager
from ..models import AppendContentOptions, CreateDocumentOptions, DocumentInfo, GoogleDocument

logger = logging.getLogger(__name__)


class GoogleDocsClient:
    """Creates, reads and appends to Google Docs documents.

    Every call obtains a valid access token from the token manager first, so
    an expired token is refreshed transparently. Failed calls are not retried.
    """

    def __init__(
        self,
        token_manager: TokenLifecycleManager,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
    ):
        """Initialize the client.

        Args:
            token_manager: Source of access tokens
            http_client: HTTP client (created lazily if omitted)
            base_url: Documents resource URL (defaults to settings)
        """
        self.token_manager = token_manager
        self.base_url = (base_url or settings.google_docs_api_url).rstrip("/")
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def create_document(self, title: str) -> DocumentInfo:
        """Create an empty document.

        Raises:
            ValidationError: If the title is empty or longer than 255 characters
            DocumentError: If the API call fails
        """
        options = CreateDocumentOptions(title=title)
        data = await self._request("POST", self.base_url, json={"title": options.title})
        document = self._parse_document(data, None)
        logger.info(f"Created document {document.id}: {document.title}")
        return document

    async def get_document(self, document_id: str) -> DocumentInfo:
        """Fetch a document's title and end index.

        Raises:
            DocumentError: With status 404 if the document no longer exists
        """
        data = await self._request("GET", f"{self.base_url}/{document_id}", document_id)
        return self._parse_document(data, document_id)

    async def append_content(
        self, document_id: str, content: str, insert_index: int | None = None
    ) -> None:
        """Insert plain text at ``insert_index`` or at the end of the body.

        Raises:
            ValidationError: If the document id or content is empty
            DocumentError: If the document cannot be read or updated
        """
        options = AppendContentOptions(
            document_id=document_id, content=content, insert_index=insert_index
        )

        index = options.insert_index
        if index is None:
            document = await self.get_document(options.document_id)
            # Text cannot be inserted after the final newline of the body
            index = max(document.end_index - 1, 1)

        await self._request(
            "POST",
            f"{self.base_url}/{options.document_id}:batchUpdate",
            options.document_id,
            json={
                "requests": [
                    {"insertText": {"location": {"index": index}, "text": options.content}}
                ]
            },
        )
        logger.debug(f"Appended {len(options.content)} characters to {options.document_id}")

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(
        self,
        method: str,
        url: str,
        document_id: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        access_token = await self.token_manager.get_valid_credential()

        try:
            response = await self._client().request(
                method,
                url,
                json=json,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            logger.error(f"Google Docs request failed: {method} {url}: {e}")
            raise DocumentError(
                f"Google Docs request failed: {e}", document_id=document_id
            ) from e

        if response.status_code == 401:
            raise AuthError(
                AuthErrorKind.NOT_AUTHENTICATED,
                "Google rejected the access token. Authentication required.",
                authorization_url=self._authorization_url_or_none(),
            )
        if response.status_code == 404:
            raise DocumentError(
                f"Document not found: {document_id}",
                document_id=document_id,
                status_code=404,
                remediation="The document may have been deleted. Start a new session.",
            )
        if response.is_error:
            logger.error(f"Google Docs returned HTTP {response.status_code} for {method} {url}")
            raise DocumentError(
                f"Google Docs request failed with HTTP {response.status_code}",
                document_id=document_id,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise DocumentError(
                "Invalid response from Google Docs API",
                document_id=document_id,
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _parse_document(data: dict[str, Any], document_id: str | None) -> DocumentInfo:
        try:
            return GoogleDocument.model_validate(data).to_info()
        except ValidationError as e:
            raise DocumentError(
                "Invalid document data received from Google Docs API", document_id=document_id
            ) from e

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
            self._owns_http_client = True
        return self._http_client

    def _authorization_url_or_none(self) -> str | None:
        if self.token_manager.credential is None:
            return None
        return self.token_manager.build_authorization_url()
