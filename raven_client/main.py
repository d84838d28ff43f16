"""Application entrypoint for the document MCP server."""

from __future__ import annotations

import asyncio
import logging
import os

import httpx
from mcp.server.fastmcp import FastMCP
from starlette.responses import JSONResponse, Response

from raven_client.auth.api_key import ApiKeyAuthenticator
from raven_client.client.server_client import AsyncServerClient
from raven_client.config.conventions import DocumentConventions
from raven_client.config.settings import Settings, get_settings
from raven_client.connection.request import Credentials
from raven_client.tools.document_tools import register_document_tools
from raven_client.utils.logging import configure_logging

LOGGER = logging.getLogger(__name__)


def resolve_transport_mode(configured_mode: str) -> str:
    """Resolve effective transport mode for local vs hosted environments."""

    # Render web services must bind an HTTP port. Force HTTP if stdio is configured.
    if os.getenv("RENDER") and configured_mode == "stdio":
        return "http"
    if configured_mode in {"stdio", "http"}:
        return configured_mode
    if os.getenv("RENDER") or os.getenv("PORT"):
        return "http"
    return "stdio"


def resolve_http_transport(configured_transport: str) -> str:
    """Resolve effective HTTP transport mode for MCP over HTTP."""

    if configured_transport in {"sse", "streamable"}:
        return configured_transport
    return "sse"


def resolve_credentials(settings: Settings) -> Credentials:
    """Basic credentials when both username and password are configured."""

    if settings.username and settings.password:
        return httpx.BasicAuth(settings.username, settings.password)
    return None


def build_server_client(settings: Settings, http_client: httpx.AsyncClient) -> AsyncServerClient:
    """Wire conventions, authenticator and client from settings.

    Basic credentials set ``Authorization`` on every send and would replace a
    bearer token, so the API-key authenticator is only wired without them.
    """

    credentials = resolve_credentials(settings)
    authenticator: ApiKeyAuthenticator | None = None
    if credentials is None:
        authenticator = ApiKeyAuthenticator(
            server_url=settings.server_url,
            api_key=settings.api_key,
            client=http_client,
            retry_config=settings.retry,
        )
    elif settings.api_key:
        LOGGER.warning(
            "Both basic credentials and an API key are configured; using basic credentials",
            extra={"server": settings.server_url},
        )
    conventions = DocumentConventions(
        handle_unauthorized_response=authenticator,
        operation_headers={"Raven-Client-Version": settings.app_version},
    )
    return AsyncServerClient(
        server_url=settings.server_url,
        client=http_client,
        conventions=conventions,
        database=settings.database,
        credentials=credentials,
        authenticator=authenticator,
    )


async def run() -> None:
    """Initialize services and run MCP server."""

    settings = get_settings()
    configure_logging(settings.log_level)

    http_client = httpx.AsyncClient(timeout=settings.request_timeout_seconds)
    server_client = build_server_client(settings, http_client)

    mcp = FastMCP(
        name=settings.app_name,
        log_level=settings.log_level,
        host=settings.host,
        port=settings.port,
        streamable_http_path=settings.mcp_path,
    )
    register_document_tools(mcp, server_client)

    @mcp.custom_route(settings.health_path, methods=["GET"])
    async def health_check(_: object) -> Response:
        return JSONResponse({"status": "ok", "service": settings.app_name, "server": server_client.url})

    resolved_mode = resolve_transport_mode(settings.transport_mode)
    resolved_http_transport = resolve_http_transport(settings.http_transport)
    LOGGER.info(
        "Starting MCP server",
        extra={"transport_mode": resolved_mode, "http_transport": resolved_http_transport, "server": server_client.url},
    )
    try:
        if resolved_mode == "stdio":
            await mcp.run_stdio_async()
        elif resolved_http_transport == "streamable":
            await mcp.run_streamable_http_async()
        else:
            await mcp.run_sse_async()
    finally:
        await http_client.aclose()


def main() -> None:
    """Synchronous entrypoint."""

    asyncio.run(run())


if __name__ == "__main__":
    main()
