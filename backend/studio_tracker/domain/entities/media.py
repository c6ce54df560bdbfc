"""Domain entity for hosted media uploads."""

from dataclasses import dataclass


@dataclass
class UploadResult:
    """What the media host returns for a stored image."""

    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None
    bytes: int | None = None
