"""JSON request against the database server with transparent reauthentication."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any, TypeVar

import httpx

from raven_client.config.conventions import DocumentConventions, RequestConfigurator
from raven_client.connection.errors import RequestFailedError, response_of, status_code_of
from raven_client.connection.metadata import write_metadata
from raven_client.connection.request import JSON_CONTENT_TYPE, Credentials, OutgoingRequest, rebuild_request

LOGGER = logging.getLogger(__name__)
T = TypeVar("T")

MAX_AUTH_RETRIES = 3
PASSTHROUGH_STATUS_CODES = frozenset({httpx.codes.NOT_FOUND, httpx.codes.CONFLICT})

BodyReader = Callable[[httpx.Response], Awaitable[T]]


class RequestState(Enum):
    """Steps of a logical request, from first send to a terminal outcome."""

    EXECUTING = "executing"
    UNAUTHORIZED = "unauthorized"
    RECOVERING = "recovering"
    REBUILDING = "rebuilding"
    FAILED = "failed"


async def _read_bytes(response: httpx.Response) -> bytes:
    return b"".join([chunk async for chunk in response.aiter_bytes()])


async def _read_text(response: httpx.Response) -> str:
    return "".join([chunk async for chunk in response.aiter_text()])


def _write_body(request: OutgoingRequest, data: bytes) -> None:
    request.body = data


def _snapshot_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    snapshot: dict[str, list[str]] = {}
    for raw_key, raw_value in headers.raw:
        key = raw_key.decode(headers.encoding)
        snapshot.setdefault(key, []).append(raw_value.decode(headers.encoding))
    return snapshot


class HttpJsonRequest:
    """A single logical JSON request to the server.

    Owns the outgoing request, the bytes last written to it and the count of
    reauthentication cycles. On a 401 the configured unauthorized handler is
    asked for a configurator; the request is then rebuilt, the body replayed
    and the same read operation issued again, at most ``MAX_AUTH_RETRIES``
    times per instance. Instances are not safe for overlapping calls.
    """

    def __init__(
        self,
        url: str,
        method: str,
        metadata: Mapping[str, Any] | None,
        conventions: DocumentConventions,
        client: httpx.AsyncClient,
        credentials: Credentials = None,
    ) -> None:
        self._url = url
        self._conventions = conventions
        self._client = client
        self._posted_data: bytes | None = None
        self._retries = 0

        self._request = OutgoingRequest(url=url, method=method, credentials=credentials)
        if method != "GET":
            self._request.content_type = JSON_CONTENT_TYPE
        write_metadata(self._request, metadata)

        self.response_headers: dict[str, list[str]] = {}
        self.response_status_code: int | None = None

    @property
    def request(self) -> OutgoingRequest:
        return self._request

    @property
    def retries(self) -> int:
        return self._retries

    @property
    def posted_data(self) -> bytes | None:
        return self._posted_data

    def add_operation_headers(self, headers: Mapping[str, str]) -> HttpJsonRequest:
        for key, value in headers.items():
            self._request.headers[key] = value
        return self

    def add_operation_header(self, key: str, value: str) -> HttpJsonRequest:
        self._request.headers[key] = value
        return self

    async def write(self, data: bytes | str) -> None:
        """Attach ``data`` as the request body and keep it for replay."""

        if isinstance(data, str):
            data = data.encode("utf-8")
        self._posted_data = data
        _write_body(self._request, data)
        LOGGER.debug("Request body written", extra={"url": self._url, "size": len(data)})

    async def read_response_string(self) -> str:
        """Send the request and return the response body as text."""

        return await self._execute(_read_text)

    async def read_response_bytes(self) -> bytes:
        """Send the request and return the raw response body."""

        return await self._execute(_read_bytes)

    def handle_unauthorized_response(
        self,
        unauthorized_response: httpx.Response,
    ) -> Awaitable[RequestConfigurator | None] | None:
        """Ask the conventions for a way to recover from a 401; ``None`` declines."""

        handler = self._conventions.handle_unauthorized_response
        if handler is None:
            return None
        return handler(unauthorized_response)

    async def _execute(self, read_body: BodyReader[T]) -> T:
        state = RequestState.EXECUTING
        failure: Exception | None = None
        recovery: Awaitable[RequestConfigurator | None] | None = None
        configure: RequestConfigurator | None = None

        while True:
            LOGGER.debug("Request state", extra={"url": self._url, "state": state.value, "retries": self._retries})
            if state is RequestState.EXECUTING:
                try:
                    return await self._read_response(read_body)
                except (httpx.HTTPStatusError, RequestFailedError) as error:
                    failure = error
                state = self._classify(failure)

            elif state is RequestState.UNAUTHORIZED:
                unauthorized_response = response_of(failure)
                recovery = self.handle_unauthorized_response(unauthorized_response)
                state = RequestState.FAILED if recovery is None else RequestState.RECOVERING

            elif state is RequestState.RECOVERING:
                configure = await recovery
                state = RequestState.FAILED if configure is None else RequestState.REBUILDING

            elif state is RequestState.REBUILDING:
                await self._recreate_request(configure)
                state = RequestState.EXECUTING

            else:
                raise failure

    def _classify(self, failure: Exception) -> RequestState:
        if status_code_of(failure) != httpx.codes.UNAUTHORIZED:
            return RequestState.FAILED
        if self._retries >= MAX_AUTH_RETRIES:
            LOGGER.warning(
                "Reauthentication attempts exhausted",
                extra={"url": self._url, "retries": self._retries},
            )
            return RequestState.FAILED
        return RequestState.UNAUTHORIZED

    async def _recreate_request(self, configure: RequestConfigurator) -> None:
        self._retries += 1
        LOGGER.info(
            "Reissuing request after reauthentication",
            extra={"url": self._url, "method": self._request.method, "retries": self._retries},
        )
        new_request = rebuild_request(self._request)
        configure(new_request)
        if self._posted_data is not None:
            _write_body(new_request, self._posted_data)
        self._request = new_request

    async def _read_response(self, read_body: BodyReader[T]) -> T:
        request = self._request.build(self._client)
        auth = {} if self._request.credentials is None else {"auth": self._request.credentials}
        response = await self._client.send(request, stream=True, **auth)
        try:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as error:
                await response.aread()
                if response.status_code in PASSTHROUGH_STATUS_CODES:
                    raise
                raise RequestFailedError(response.text, response) from error

            self.response_headers = _snapshot_headers(response.headers)
            self.response_status_code = response.status_code
            return await read_body(response)
        finally:
            await response.aclose()
