"""Validation helpers for uploaded label images."""

from typing import Iterable, Tuple

from fastapi import HTTPException, UploadFile

from services.analysis.extract_stage import SUPPORTED_IMAGE_TYPES, normalize_media_type


def validate_image_file(image_file: UploadFile, allowed_types: Iterable[str] = SUPPORTED_IMAGE_TYPES) -> str:
    """Return the normalized content type of an upload, rejecting unsupported images."""
    content_type = normalize_media_type(image_file.content_type)
    if not content_type:
        raise HTTPException(status_code=400, detail="No file uploaded or unsupported file type.")
    if content_type not in set(allowed_types):
        raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
    return content_type


async def read_image_upload(
    image_file: UploadFile,
    *,
    max_bytes: int,
    allowed_types: Iterable[str] = SUPPORTED_IMAGE_TYPES,
) -> Tuple[bytes, str]:
    """Read validated image bytes, ensuring the upload is neither empty nor too large."""
    content_type = validate_image_file(image_file, allowed_types)
    try:
        image_bytes = await image_file.read(max_bytes + 1)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=400, detail="Unable to read uploaded image.") from exc
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    if len(image_bytes) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Image exceeds the {max_bytes} byte upload limit.")
    return image_bytes, content_type
