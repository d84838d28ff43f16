"""API-key authentication against the server's OAuth endpoint."""

from __future__ import annotations

import logging
from collections.abc import Awaitable

import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from raven_client.config.conventions import RequestConfigurator
from raven_client.config.settings import RetryConfig
from raven_client.connection.errors import AuthenticationError
from raven_client.connection.request import OutgoingRequest

LOGGER = logging.getLogger(__name__)

OAUTH_SOURCE_HEADER = "OAuth-Source"
DEFAULT_OAUTH_PATH = "/OAuth/API-Key"


class ApiKeyAuthenticator:
    """Exchange an API key for a bearer token whenever the server answers 401."""

    def __init__(
        self,
        server_url: str,
        api_key: str | None,
        client: httpx.AsyncClient,
        retry_config: RetryConfig,
    ) -> None:
        self._server_url = server_url.rstrip("/")
        self._api_key = api_key
        self._client = client
        self._retry_config = retry_config
        self.current_token: str | None = None

    def __call__(self, unauthorized_response: httpx.Response) -> Awaitable[RequestConfigurator] | None:
        """Return an awaitable configurator, or ``None`` when no key is configured."""

        if not self._api_key:
            return None
        return self._authenticate(self._token_url(unauthorized_response))

    def _token_url(self, unauthorized_response: httpx.Response) -> str:
        source = unauthorized_response.headers.get(OAUTH_SOURCE_HEADER)
        if source:
            return source
        return f"{self._server_url}{DEFAULT_OAUTH_PATH}"

    async def _authenticate(self, token_url: str) -> RequestConfigurator:
        token = await self.fetch_token(token_url)

        def configure(request: OutgoingRequest) -> None:
            set_bearer_token(request, token)

        return configure

    async def fetch_token(self, token_url: str) -> str:
        """Request a fresh token, retrying transient transport failures."""

        LOGGER.info("Requesting API-key token", extra={"token_url": token_url})
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_config.attempts),
                wait=wait_exponential(
                    min=self._retry_config.min_seconds,
                    max=self._retry_config.max_seconds,
                ),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.post(
                        token_url,
                        headers={"Api-Key": self._api_key, "grant_type": "client_credentials"},
                    )
        except RetryError as error:
            raise AuthenticationError(f"Token retries exhausted for URL: {token_url}") from error
        except httpx.TransportError as error:
            raise AuthenticationError(f"Token request failed for URL: {token_url}") from error

        if response.is_error:
            raise AuthenticationError(
                f"Token request to {token_url} was rejected with status {response.status_code}: {response.text}",
            )
        token = response.text.strip()
        if not token:
            raise AuthenticationError(f"Empty token returned by {token_url}")
        self.current_token = token
        return token


def set_bearer_token(request: OutgoingRequest, token: str) -> None:
    request.headers["Authorization"] = f"Bearer {token}"
