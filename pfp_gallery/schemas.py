"""
Pydantic schemas for request and response data validation.
Every response is an envelope with an `ok` flag; failures carry `error`.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import Any, List, Optional


class PfpResponse(BaseModel):
    """
    Response schema for a gallery entry.
    Serialized with the wire names used by the frontend (cat, createdAt).
    """
    id: str
    title: str
    author: str
    url: str
    cat: str
    tags: List[str] = []
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
    )

    model_config = ConfigDict(
        from_attributes=True,  # Enable conversion from SQLAlchemy models
    )

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite returns naive datetimes; stored values are always UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class PfpCreate(BaseModel):
    """
    Request schema for creating a gallery entry.
    Used by POST /api/pfps. Required fields are checked by the handler so a
    missing title/url yields the "title and url required" message.
    """
    title: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    cat: Optional[str] = Field(default=None, validation_alias=AliasChoices("cat", "category"))
    tags: Optional[Any] = None


class PfpUpdate(PfpCreate):
    """
    Request schema for partial updates.
    Used by PUT /api/pfps/{id}. Only non-empty scalars and list-valued tags apply.
    """

    def to_updates(self) -> dict:
        updates = {}
        for field in ("title", "author", "url", "cat"):
            value = getattr(self, field)
            if value:
                updates[field] = value
        # An explicit empty list is applied and clears the tags
        if isinstance(self.tags, list):
            updates["tags"] = [str(tag) for tag in self.tags]
        return updates


class OkResponse(BaseModel):
    """Bare success acknowledgment."""
    ok: bool = True


class ErrorResponse(BaseModel):
    """Failure envelope returned by the exception handlers."""
    ok: bool = False
    error: str


class PfpListResponse(OkResponse):
    items: List[PfpResponse]


class PfpItemResponse(OkResponse):
    item: Optional[PfpResponse] = None


class UploadResponse(OkResponse):
    """Response for POST /api/upload."""
    url: str
    filename: str


class GalleryItem(BaseModel):
    url: str
    name: str


class GalleryListResponse(OkResponse):
    items: List[GalleryItem]
