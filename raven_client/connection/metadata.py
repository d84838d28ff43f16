"""Projection of document metadata onto request headers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from raven_client.connection.request import OutgoingRequest

LAST_MODIFIED = "Last-Modified"


def _header_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def write_metadata(request: OutgoingRequest, metadata: Mapping[str, Any] | None) -> None:
    """Copy scalar metadata entries onto the request as headers.

    ``ETag`` becomes ``If-Match`` so writes are conditional on the version the
    caller last saw. Internal ``@`` keys, ``Last-Modified`` and ``Content-Length``
    never reach the wire, and ``Content-Type`` sets the request content type.
    """

    if not metadata:
        return
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (dict, list, tuple)):
            continue

        header_name = "If-Match" if key == "ETag" else key
        if header_name.startswith("@") or header_name == LAST_MODIFIED:
            continue
        if header_name == "Content-Length":
            continue
        if header_name == "Content-Type":
            request.content_type = _header_value(value)
            continue
        request.headers[header_name] = _header_value(value)
