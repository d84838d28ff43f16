"""MCP tool registration for document access."""

from __future__ import annotations

import json

from mcp.server.fastmcp import FastMCP

from raven_client.client.server_client import AsyncServerClient
from raven_client.connection.errors import ConcurrencyError, DocumentConflictError, RequestFailedError


def _server_error(key: str, error: RequestFailedError) -> str:
    return json.dumps({"key": key, "error": "server_error", "status": error.status_code, "detail": str(error)})


def register_document_tools(mcp: FastMCP, client: AsyncServerClient) -> None:
    """Register document tools."""

    @mcp.tool(name="get_document")
    async def get_document(key: str) -> str:
        try:
            document = await client.get(key)
        except DocumentConflictError as error:
            return json.dumps({"key": key, "error": "conflict", "detail": str(error)})
        except RequestFailedError as error:
            return _server_error(key, error)
        if document is None:
            return json.dumps({"key": key, "error": "not_found"})
        return json.dumps(document.model_dump(mode="json"), default=str)

    @mcp.tool(name="put_document")
    async def put_document(key: str, document_json: str, etag: str | None = None) -> str:
        try:
            document = json.loads(document_json)
        except json.JSONDecodeError as error:
            return json.dumps({"key": key, "error": "invalid_json", "detail": str(error)})
        if not isinstance(document, dict):
            return json.dumps({"key": key, "error": "invalid_json", "detail": "document must be a JSON object"})
        try:
            result = await client.put(key, etag, document)
        except ConcurrencyError as error:
            return json.dumps({"key": key, "error": "concurrency", "detail": str(error)})
        except RequestFailedError as error:
            return _server_error(key, error)
        return json.dumps(result.model_dump(mode="json"))

    @mcp.tool(name="delete_document")
    async def delete_document(key: str, etag: str | None = None) -> str:
        try:
            await client.delete(key, etag)
        except ConcurrencyError as error:
            return json.dumps({"key": key, "error": "concurrency", "detail": str(error)})
        except RequestFailedError as error:
            return _server_error(key, error)
        return json.dumps({"key": key, "deleted": True})
