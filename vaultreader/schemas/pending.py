"""Pending operation payload schemas."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter


class UploadPayload(BaseModel):
    """Create a new file under *parent_path*."""

    kind: Literal["upload"] = "upload"
    name: str = Field(min_length=1)
    parent_path: str = ""
    content: str = ""


class DeletePayload(BaseModel):
    """Delete the remote item."""

    kind: Literal["delete"] = "delete"


class UpdatePayload(BaseModel):
    """Replace the remote item's content."""

    kind: Literal["update"] = "update"
    content: str
    if_match: str | None = None  # freshness tag the edit was based on


PendingPayload = Annotated[
    UploadPayload | DeletePayload | UpdatePayload,
    Field(discriminator="kind"),
]

pending_payload_adapter: TypeAdapter[UploadPayload | DeletePayload | UpdatePayload] = TypeAdapter(
    PendingPayload
)
