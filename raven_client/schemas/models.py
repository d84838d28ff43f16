"""Document models exchanged with the server."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JsonDocument(BaseModel):
    """A stored document with its server metadata."""

    key: str
    etag: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    last_modified: str | None = None


class PutResult(BaseModel):
    """Server acknowledgement of a document write."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias="Key")
    etag: str = Field(alias="ETag")
