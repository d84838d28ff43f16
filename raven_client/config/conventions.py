"""Client conventions shared by every request."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from raven_client.connection.request import OutgoingRequest

RequestConfigurator = Callable[[OutgoingRequest], None]
UnauthorizedHandler = Callable[[httpx.Response], Awaitable[RequestConfigurator | None] | None]


@dataclass
class DocumentConventions:
    """Behavior hooks applied to requests created by the client."""

    handle_unauthorized_response: UnauthorizedHandler | None = None
    operation_headers: dict[str, str] = field(default_factory=dict)
