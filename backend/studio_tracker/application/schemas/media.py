"""Pydantic DTOs for hosted media."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None
    bytes: int | None = None

    model_config = {"from_attributes": True}


class TransformedUrlResponse(BaseModel):
    url: str | None = None
    optimized_url: str | None = None
    thumbnail_url: str | None = None
