"""Cloudinary image uploader — implements the MediaUploader interface.

Uses the unsigned upload endpoint
(``https://api.cloudinary.com/v1_1/<cloud>/image/upload``) with an upload
preset, so no API secret is needed. The multipart body is streamed in
chunks to report upload progress.
"""

import logging
from collections.abc import AsyncIterator

import httpx

from studio_tracker.application.interfaces import MediaUploader, ProgressCallback
from studio_tracker.domain.entities import UploadResult
from studio_tracker.domain.exceptions import MediaUploadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class CloudinaryUploader(MediaUploader):
    """Infrastructure adapter — uploads images to Cloudinary over httpx."""

    def __init__(
        self,
        cloud_name: str,
        upload_preset: str,
        api_base: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._cloud_name = cloud_name
        self._upload_preset = upload_preset
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self._cloud_name and self._upload_preset)

    @property
    def upload_url(self) -> str:
        return f"{self._api_base}/{self._cloud_name}/image/upload"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def upload(
        self,
        content: bytes,
        filename: str,
        *,
        folder: str = "uploads",
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        if not self.configured:
            raise MediaUploadError("Cloudinary configuration is missing. Check your .env file.")

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            # Encode the multipart form once, then re-send it as a chunked stream.
            prepared = client.build_request(
                "POST",
                self.upload_url,
                data={"upload_preset": self._upload_preset, "folder": folder},
                files={"file": (filename, content)},
            )
            body = prepared.read()
            request = client.build_request(
                "POST",
                self.upload_url,
                content=_stream_with_progress(body, on_progress),
                headers={
                    "Content-Type": prepared.headers["Content-Type"],
                    "Content-Length": str(len(body)),
                },
            )

            logger.info("Uploading %s (%d bytes) to folder '%s'", filename, len(content), folder)
            try:
                response = await client.send(request)
            except httpx.HTTPError as exc:
                raise MediaUploadError(f"Network error during upload: {exc}") from exc

            if not 200 <= response.status_code < 300:
                raise MediaUploadError(_error_message(response), status_code=response.status_code)

            data = response.json()
            result = UploadResult(
                url=data.get("secure_url", ""),
                public_id=data.get("public_id", ""),
                width=data.get("width"),
                height=data.get("height"),
                format=data.get("format"),
                bytes=data.get("bytes"),
            )
            logger.info("Uploaded %s → %s", filename, result.public_id)
            return result

        finally:
            if should_close:
                await client.aclose()


async def _stream_with_progress(
    body: bytes, on_progress: ProgressCallback | None
) -> AsyncIterator[bytes]:
    total = len(body)
    last_reported = -1
    for offset in range(0, total, CHUNK_SIZE):
        chunk = body[offset:offset + CHUNK_SIZE]
        yield chunk
        if on_progress is not None and total:
            percent = round((offset + len(chunk)) / total * 100)
            if percent != last_reported:
                last_reported = percent
                on_progress(percent)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


# ── Delivery URL transformations ─────────────────────────────────────


def optimized_url(
    url: str | None,
    width: int | None = None,
    height: int | None = None,
    crop: str | None = "fill",
    quality: str | None = "auto",
    format: str | None = "auto",
) -> str | None:
    """Insert resize/quality/format transformations into a Cloudinary delivery URL.

    URLs not hosted on Cloudinary are returned unchanged.
    """
    if not url or "cloudinary.com" not in url:
        return url

    parts: list[str] = []
    if width:
        parts.append(f"w_{width}")
    if height:
        parts.append(f"h_{height}")
    if crop:
        parts.append(f"c_{crop}")
    if quality:
        parts.append(f"q_{quality}")
    if format:
        parts.append(f"f_{format}")
    if not parts:
        return url

    return url.replace("/upload/", f"/upload/{','.join(parts)}/", 1)


def thumbnail_url(url: str | None, size: int = 150) -> str | None:
    return optimized_url(url, width=size, height=size, crop="fill", quality="auto:low")
