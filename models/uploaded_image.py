from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from utils.expiry_status import VALID


@dataclass(frozen=True)
class LocalFile:
    """Image bytes held by the client, either picked from disk or relayed from a phone."""

    name: str
    content: bytes
    content_type: str = "image/jpeg"


@dataclass
class UploadedImage:
    """A row of the results board.

    Attributes:
        id: Unique within one board.
        file: The image that is sent for extraction.
        preview_url: ``file://`` URL of the generated thumbnail, or None if the image could not be decoded.
        product: Placeholder name until extraction returns, then the read name or an em dash.
        expiry_date: ``YYYY-MM-DD`` when known, otherwise whatever the model returned (possibly empty).
        status: Valid, Expiring Soon or Expired.
    """

    id: str
    file: LocalFile
    preview_url: Optional[str]
    product: str
    expiry_date: str = ""
    status: str = VALID
