"""Media endpoints — image uploads to the hosting service and delivery URL helpers."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from studio_tracker.application.interfaces import MediaUploader
from studio_tracker.application.schemas import TransformedUrlResponse, UploadResponse
from studio_tracker.domain.exceptions import MediaUploadError
from studio_tracker.infrastructure.cloudinary.cloudinary_uploader import (
    optimized_url,
    thumbnail_url,
)
from studio_tracker.infrastructure.dependencies import get_current_session, get_media_uploader

router = APIRouter(prefix="/media", tags=["Media"])


def _upload_failure(exc: MediaUploadError) -> HTTPException:
    code = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
    return HTTPException(status_code=code, detail=str(exc))


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_session)],
)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("uploads"),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> UploadResponse:
    """Upload one image and return its hosted URL and metadata."""
    content = await file.read()
    try:
        result = await uploader.upload(content, file.filename or "upload", folder=folder)
    except MediaUploadError as e:
        raise _upload_failure(e)
    return UploadResponse.model_validate(result, from_attributes=True)


@router.post(
    "/upload-many",
    response_model=list[UploadResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_session)],
)
async def upload_images(
    files: list[UploadFile] = File(...),
    folder: str = Form("uploads"),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> list[UploadResponse]:
    payloads = [(await f.read(), f.filename or "upload") for f in files]
    try:
        results = await uploader.upload_many(payloads, folder=folder)
    except MediaUploadError as e:
        raise _upload_failure(e)
    return [UploadResponse.model_validate(r, from_attributes=True) for r in results]


@router.get("/transform", response_model=TransformedUrlResponse)
async def transform_url(
    url: str,
    width: int | None = Query(None, gt=0),
    height: int | None = Query(None, gt=0),
    crop: str = "fill",
    quality: str = "auto",
    format: str = "auto",
    thumbnail_size: int = Query(150, gt=0),
) -> TransformedUrlResponse:
    """Optimized and thumbnail delivery URLs. Non-Cloudinary URLs come back unchanged."""
    return TransformedUrlResponse(
        url=url,
        optimized_url=optimized_url(url, width, height, crop, quality, format),
        thumbnail_url=thumbnail_url(url, thumbnail_size),
    )
