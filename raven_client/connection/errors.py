"""Error types raised by the request layer and the document client."""

from __future__ import annotations

import httpx


class RequestFailedError(RuntimeError):
    """Non-success response whose body text explains the failure."""

    def __init__(self, message: str, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code


class AuthenticationError(RuntimeError):
    """Token endpoint refused or failed to issue a token."""


class ConcurrencyError(RuntimeError):
    """Write rejected because the supplied etag did not match."""


class DocumentConflictError(RuntimeError):
    """Document exists in a conflicted state on the server."""


def response_of(error: Exception) -> httpx.Response | None:
    """Return the HTTP response carried by a request failure, if any."""

    if isinstance(error, (httpx.HTTPStatusError, RequestFailedError)):
        return error.response
    return None


def status_code_of(error: Exception) -> int | None:
    response = response_of(error)
    return response.status_code if response is not None else None
