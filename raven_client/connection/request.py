"""Outgoing request state and its rebuild for replay."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

import httpx

Credentials = Union[httpx.Auth, tuple[str, str], None]

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class OutgoingRequest:
    """Everything needed to put one request on the wire."""

    url: str
    method: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content_type: str | None = None
    credentials: Credentials = None
    body: bytes | None = None

    def build(self, client: httpx.AsyncClient) -> httpx.Request:
        """Materialize the transport request on the given client."""

        headers = httpx.Headers(self.headers)
        if self.content_type is not None:
            headers["Content-Type"] = self.content_type
        return client.build_request(self.method, self.url, headers=headers, content=self.body)


def rebuild_request(old: OutgoingRequest) -> OutgoingRequest:
    """Return a fresh request targeting the same url with method, headers and credentials copied.

    The body is not copied; replay writes it again.
    """

    return OutgoingRequest(
        url=old.url,
        method=old.method,
        headers=httpx.Headers(old.headers),
        content_type=old.content_type,
        credentials=old.credentials,
    )
