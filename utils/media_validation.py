"""Validation helpers for uploaded label images and data URLs."""

import base64
import binascii
import re
from typing import Optional, Tuple

from starlette.datastructures import UploadFile

DEFAULT_IMAGE_TYPE = "image/jpeg"
ALLOWED_IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*),(?P<payload>.*)$", re.DOTALL)


def clean_content_type(content_type: Optional[str]) -> str:
    """Return the lowercase MIME type without parameters, or an empty string."""
    if not content_type:
        return ""
    return content_type.lower().split(";", 1)[0].strip()


def model_image_type(content_type: Optional[str]) -> str:
    """Return a MIME type the vision model accepts, relabelling anything else as JPEG."""
    cleaned = clean_content_type(content_type)
    if cleaned in ALLOWED_IMAGE_TYPES:
        return cleaned
    return DEFAULT_IMAGE_TYPE


def to_data_url(image_bytes: bytes, mime_type: Optional[str] = None) -> str:
    """Encode raw image bytes as a base64 data URL."""
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type or DEFAULT_IMAGE_TYPE};base64,{encoded}"


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """Split a data URL into its raw bytes and MIME type.

    Raises:
        ValueError: If the string is not a data URL or its payload cannot be decoded.
    """
    match = DATA_URL_PATTERN.match(data_url or "")
    if match is None:
        raise ValueError("Not a data URL.")
    mime_type = match.group("mime") or DEFAULT_IMAGE_TYPE
    payload = match.group("payload")
    if ";base64" in match.group("params"):
        try:
            return base64.b64decode(payload, validate=False), mime_type
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Data URL payload is not valid base64.") from exc
    return payload.encode("utf-8"), mime_type


async def read_image_upload(upload: Optional[UploadFile]) -> Optional[Tuple[bytes, str]]:
    """Read an uploaded image, returning ``None`` when nothing usable was sent."""
    if upload is None:
        return None
    image_bytes = await upload.read()
    if not image_bytes:
        return None
    return image_bytes, clean_content_type(upload.content_type) or DEFAULT_IMAGE_TYPE
