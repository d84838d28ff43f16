"""Document operations over the JSON request layer."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from raven_client.auth.api_key import ApiKeyAuthenticator, set_bearer_token
from raven_client.config.conventions import DocumentConventions
from raven_client.connection.errors import ConcurrencyError, DocumentConflictError
from raven_client.connection.json_request import HttpJsonRequest
from raven_client.connection.request import Credentials
from raven_client.schemas.models import JsonDocument, PutResult

LOGGER = logging.getLogger(__name__)

# Response headers that describe the transfer rather than the document.
_TRANSPORT_HEADERS = frozenset(
    {"content-length", "content-type", "content-encoding", "transfer-encoding", "date", "server", "connection"},
)


def _first_header(headers: Mapping[str, list[str]], name: str) -> str | None:
    for key, values in headers.items():
        if key.lower() == name.lower() and values:
            return values[0]
    return None


def _document_metadata(headers: Mapping[str, list[str]]) -> dict[str, Any]:
    return {key: values[0] for key, values in headers.items() if values and key.lower() not in _TRANSPORT_HEADERS}


class AsyncServerClient:
    """Read and write documents of one database."""

    def __init__(
        self,
        server_url: str,
        client: httpx.AsyncClient,
        conventions: DocumentConventions,
        database: str | None = None,
        credentials: Credentials = None,
        authenticator: ApiKeyAuthenticator | None = None,
    ) -> None:
        base = server_url.rstrip("/")
        self._url = f"{base}/databases/{database}" if database else base
        self._client = client
        self._conventions = conventions
        self._credentials = credentials
        self._authenticator = authenticator

    @property
    def url(self) -> str:
        return self._url

    @property
    def conventions(self) -> DocumentConventions:
        return self._conventions

    def create_request(
        self,
        relative_url: str,
        method: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> HttpJsonRequest:
        """Build a request carrying the conventions' headers and the current token."""

        request = HttpJsonRequest(
            f"{self._url}{relative_url}",
            method,
            metadata,
            self._conventions,
            self._client,
            credentials=self._credentials,
        )
        request.add_operation_headers(self._conventions.operation_headers)
        if self._authenticator is not None and self._authenticator.current_token:
            set_bearer_token(request.request, self._authenticator.current_token)
        return request

    async def get(self, key: str) -> JsonDocument | None:
        """Load a document; ``None`` when it does not exist."""

        request = self.create_request(f"/docs/{quote(key, safe='/')}", "GET")
        try:
            text = await request.read_response_string()
        except httpx.HTTPStatusError as error:
            if error.response.status_code == httpx.codes.NOT_FOUND:
                return None
            raise DocumentConflictError(f"Conflict detected on document {key}") from error

        headers = request.response_headers
        return JsonDocument(
            key=key,
            etag=_first_header(headers, "ETag"),
            data=json.loads(text) if text else {},
            metadata=_document_metadata(headers),
            last_modified=_first_header(headers, "Last-Modified"),
        )

    async def put(
        self,
        key: str,
        etag: str | None,
        document: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> PutResult:
        """Store a document, conditional on ``etag`` when one is given."""

        request_metadata = dict(metadata or {})
        if etag is not None:
            request_metadata["ETag"] = etag
        request = self.create_request(f"/docs/{quote(key, safe='/')}", "PUT", request_metadata)
        await request.write(json.dumps(document))
        try:
            text = await request.read_response_string()
        except httpx.HTTPStatusError as error:
            if error.response.status_code == httpx.codes.CONFLICT:
                raise ConcurrencyError(f"PUT attempted on document '{key}' using a non current etag") from error
            raise
        result = PutResult.model_validate_json(text)
        LOGGER.debug("Document stored", extra={"key": result.key, "etag": result.etag})
        return result

    async def delete(self, key: str, etag: str | None = None) -> None:
        """Delete a document, conditional on ``etag`` when one is given."""

        metadata = {"ETag": etag} if etag is not None else None
        request = self.create_request(f"/docs/{quote(key, safe='/')}", "DELETE", metadata)
        try:
            await request.read_response_string()
        except httpx.HTTPStatusError as error:
            if error.response.status_code == httpx.codes.CONFLICT:
                raise ConcurrencyError(f"DELETE attempted on document '{key}' using a non current etag") from error
            raise

    async def get_attachment(self, key: str) -> bytes | None:
        """Download an attachment; ``None`` when it does not exist."""

        request = self.create_request(f"/static/{quote(key, safe='/')}", "GET")
        try:
            return await request.read_response_bytes()
        except httpx.HTTPStatusError as error:
            if error.response.status_code == httpx.codes.NOT_FOUND:
                return None
            raise
