"""
Utility module for image storage operations.
Product images are stored on Cloudinary; uploads start tagged as temporary
and are marked permanent once a product references them.
"""
import logging
import os
import uuid
from typing import Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import HTTPException, UploadFile
from starlette import status

from api.common.config import CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET
from api.common.utils import now_local

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
MAX_IMAGE_SIZE = 5 * 1024 * 1024


def configure_cloudinary():
    """Configure Cloudinary with environment variables."""
    cloudinary.config(
        cloud_name=CLOUDINARY_CLOUD_NAME,
        api_key=CLOUDINARY_API_KEY,
        api_secret=CLOUDINARY_API_SECRET,
        secure=True
    )


def extract_public_id(url: str) -> Optional[str]:
    """
    Extract the Cloudinary public id from a delivery URL.

    URL format: https://res.cloudinary.com/CLOUD_NAME/image/upload/v1234567890/folder/file_id.ext

    Returns:
        The public id (folder/file_id), or None when the URL is not a Cloudinary URL
    """
    if not url or "cloudinary.com" not in url:
        return None

    url_parts = url.split("/")
    version_index = -1
    for i, part in enumerate(url_parts):
        if part.startswith("v") and part[1:].isdigit():
            version_index = i
            break

    if version_index == -1 or version_index == len(url_parts) - 1:
        return None

    public_id_with_ext = "/".join(url_parts[version_index + 1:])
    return os.path.splitext(public_id_with_ext)[0]


async def upload_image(
    file: UploadFile,
    folder: str = "products",
    file_id: Optional[str] = None,
    is_temporary: bool = True
) -> str:
    """
    Upload an image file to Cloudinary.

    Args:
        file: The file to upload
        folder: The folder path within Cloudinary
        file_id: Optional custom ID for the file (will generate UUID if not provided)
        is_temporary: Whether this is a temporary upload (tagged for potential cleanup)

    Returns:
        The public URL of the uploaded file

    Raises:
        HTTPException: If upload fails or file is not valid
    """
    if not file:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )

    content_type = file.content_type or ""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed!"
        )

    try:
        contents = await file.read()
        if len(contents) > MAX_IMAGE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Image exceeds the 5MB size limit"
            )

        configure_cloudinary()

        if not file_id:
            file_id = f"{uuid.uuid4()}"

        timestamp = now_local().strftime("%Y%m%d%H%M%S")
        upload_options = {
            "public_id": f"{file_id}_{timestamp}",
            "folder": folder,
            "resource_type": "image",
            "quality": "auto:eco",
        }

        if is_temporary:
            upload_options["tags"] = ["temporary", f"uploaded_{timestamp}"]

        result = cloudinary.uploader.upload(contents, **upload_options)
        logger.info("Uploaded image %s to folder %s", result.get("public_id"), folder)
        return result.get("secure_url")

    except HTTPException:
        raise
    except CloudinaryError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to upload image: {str(e)}"
        )
    finally:
        # Reset file cursor for potential future reads
        await file.seek(0)


async def delete_image_by_url(url: str) -> bool:
    """
    Delete an image from Cloudinary using its public URL.

    Returns:
        True if deletion was successful, False otherwise
    """
    public_id = extract_public_id(url)
    if not public_id:
        return False

    try:
        configure_cloudinary()
        result = cloudinary.uploader.destroy(public_id)
        return result.get("result") == "ok"
    except CloudinaryError as e:
        logger.error("Error deleting image %s: %s", public_id, e)
        return False


async def mark_image_permanent(url: str) -> bool:
    """
    Mark an uploaded image as permanent by removing its temporary tag.

    Returns:
        True if marking was successful, False otherwise
    """
    public_id = extract_public_id(url)
    if not public_id:
        return False

    try:
        configure_cloudinary()
        result = cloudinary.uploader.remove_tag("temporary", [public_id])
        return result.get("public_ids", []) != []
    except CloudinaryError as e:
        logger.error("Error marking image %s as permanent: %s", public_id, e)
        return False
