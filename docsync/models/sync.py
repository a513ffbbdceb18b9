"""Wire models for the ``/sync`` endpoint.

Field names on the wire are camelCase (``documentId``, ``fileContent``)
to match the editor client; attributes are snake_case.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BlobContent(BaseModel):
    """Structured blob payload carrying base64 content."""

    content: str


class SyncRequest(BaseModel):
    """A document plus its attachments, as sent by the client."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    file_content: str = Field(alias="fileContent")
    file_name: str | None = Field(default=None, alias="fileName")
    blobs: dict[str, str | BlobContent] | None = None


class SyncResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_content: str = Field(alias="fileContent")


class ErrorResponse(BaseModel):
    error: str
