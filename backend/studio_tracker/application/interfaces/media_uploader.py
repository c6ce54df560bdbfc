"""Abstract media upload interface (port) for the image hosting service."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable

from studio_tracker.domain.entities import UploadResult

ProgressCallback = Callable[[int], None]


class MediaUploader(ABC):
    """Port — uploads images and returns their hosted URLs."""

    @abstractmethod
    async def upload(
        self,
        content: bytes,
        filename: str,
        *,
        folder: str = "uploads",
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload one file.

        Args:
            content: Raw file bytes.
            filename: Original file name (used for the multipart part).
            folder: Destination folder on the media host.
            on_progress: Receives integer percentages (0–100) as bytes are sent.

        Raises:
            MediaUploadError: If the host is not configured or rejects the upload.
        """
        ...

    async def upload_many(
        self,
        files: list[tuple[bytes, str]],
        *,
        folder: str = "uploads",
    ) -> list[UploadResult]:
        """Upload several ``(content, filename)`` pairs concurrently.

        Fails as a whole when any single upload fails.
        """
        return list(
            await asyncio.gather(
                *(self.upload(content, filename, folder=folder) for content, filename in files)
            )
        )
