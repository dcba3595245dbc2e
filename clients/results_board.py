"""In-memory results board: the list of label photos and their extracted fields."""

from __future__ import annotations

import csv
import io
import logging
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from models.uploaded_image import LocalFile, UploadedImage
from services.thumbnail_generator import ThumbnailGenerator
from utils.expiry_status import EXPIRED, EXPIRING_SOON, VALID
from utils.media_validation import decode_data_url
from utils.product_names import placeholder_name

LOGGER = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10
EMPTY_CELL = "—"
CSV_HEADER = ("Image", "Product", "Expiry Date", "Status")
RELAYED_FILE_NAME = "mobile.jpg"


class ResultsBoard:
    """Authoritative list of uploaded images, in upload order.

    Every image gets a PNG thumbnail in a temporary directory owned by the
    board; removing the image deletes its thumbnail and ``close()`` deletes
    the directory.
    """

    def __init__(self, thumbnails: Optional[ThumbnailGenerator] = None, preview_dir: Optional[str] = None) -> None:
        self.images: List[UploadedImage] = []
        self.thumbnails = thumbnails or ThumbnailGenerator()
        self._preview_dir = Path(preview_dir) if preview_dir else None
        self._owns_preview_dir = preview_dir is None
        self._sequence = 0
        self._placeholder_count = 0
        self._seen_relay_ids: set[str] = set()
        self._preview_paths: Dict[str, Path] = {}

    def _next_id(self) -> str:
        self._sequence += 1
        return f"{int(time.time() * 1000)}-{self._sequence}"

    def _next_placeholder(self) -> str:
        self._placeholder_count += 1
        return placeholder_name(self._placeholder_count)

    def _ensure_preview_dir(self) -> Path:
        if self._preview_dir is None:
            self._preview_dir = Path(tempfile.mkdtemp(prefix="expiry-previews-"))
        self._preview_dir.mkdir(parents=True, exist_ok=True)
        return self._preview_dir

    def _create_preview(self, image_id: str, file: LocalFile) -> Optional[str]:
        try:
            png = self.thumbnails.create_thumbnail(file.content)
        except ValueError as exc:
            LOGGER.warning("No preview for %s: %s", file.name, exc)
            return None
        path = self._ensure_preview_dir() / f"{image_id}.png"
        path.write_bytes(png)
        self._preview_paths[image_id] = path
        return path.as_uri()

    def _release_preview(self, image: UploadedImage) -> None:
        path = self._preview_paths.pop(image.id, None)
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def _append(self, image_id: str, file: LocalFile) -> UploadedImage:
        item = UploadedImage(
            id=image_id,
            file=file,
            preview_url=self._create_preview(image_id, file),
            product=self._next_placeholder(),
        )
        self.images.append(item)
        return item

    def add_files(self, files: Iterable[LocalFile]) -> List[UploadedImage]:
        """Add up to ten files from one selection and return the new entries."""
        incoming = list(files)
        if len(incoming) > MAX_BATCH_SIZE:
            LOGGER.info("Only the first %d of %d files are added", MAX_BATCH_SIZE, len(incoming))
        return [self._append(self._next_id(), file) for file in incoming[:MAX_BATCH_SIZE]]

    def add_relayed(self, session_images: Iterable[Mapping[str, Any]]) -> List[UploadedImage]:
        """Convert relayed session images that have not been seen before.

        Relay ids are remembered even after the entry is removed so a polled
        image is never converted twice.
        """
        added: List[UploadedImage] = []
        for session_image in session_images:
            image_id = str(session_image.get("id") or "")
            if not image_id or image_id in self._seen_relay_ids:
                continue
            self._seen_relay_ids.add(image_id)
            try:
                content, content_type = decode_data_url(str(session_image.get("dataUrl") or ""))
            except ValueError as exc:
                LOGGER.warning("Skipping relayed image %s: %s", image_id, exc)
                continue
            added.append(self._append(image_id, LocalFile(RELAYED_FILE_NAME, content, content_type)))
        return added

    def get(self, image_id: str) -> Optional[UploadedImage]:
        return next((image for image in self.images if image.id == image_id), None)

    def apply_result(self, image_id: str, product: str, expiry_date: str, status: str) -> bool:
        """Update one entry in place; returns False when the entry no longer exists."""
        image = self.get(image_id)
        if image is None:
            return False
        image.product = product
        image.expiry_date = expiry_date
        image.status = status
        return True

    def remove(self, image_id: str) -> bool:
        image = self.get(image_id)
        if image is None:
            return False
        self._release_preview(image)
        self.images.remove(image)
        return True

    def search(self, term: str) -> List[UploadedImage]:
        """Case-insensitive match on product name or expiry date."""
        needle = (term or "").strip().lower()
        if not needle:
            return list(self.images)
        return [
            image
            for image in self.images
            if needle in image.product.lower() or needle in image.expiry_date.lower()
        ]

    def counts(self) -> Dict[str, int]:
        statuses = [image.status for image in self.images]
        return {
            "total": len(statuses),
            "expiring": statuses.count(EXPIRING_SOON),
            "valid": statuses.count(VALID),
            "expired": statuses.count(EXPIRED),
        }

    def summary(self) -> str:
        counts = self.counts()
        text = f"{counts['total']} images {EMPTY_CELL} {counts['expiring']} expiring soon, {counts['valid']} valid"
        if counts["expired"]:
            text += f", {counts['expired']} expired"
        return text

    def to_csv(self) -> str:
        """Export every held image, ignoring any search filter."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for image in self.images:
            writer.writerow((image.file.name, image.product, image.expiry_date, image.status))
        return buffer.getvalue()[:-1]

    def close(self) -> None:
        """Release every preview and the temporary directory the board created."""
        for image in self.images:
            self._release_preview(image)
        if self._owns_preview_dir and self._preview_dir is not None:
            shutil.rmtree(self._preview_dir, ignore_errors=True)
            self._preview_dir = None


def render_table(images: Iterable[UploadedImage]) -> str:
    """Render rows as a fixed-width text table."""
    rows = [
        (image.file.name, image.product or EMPTY_CELL, image.expiry_date or EMPTY_CELL, image.status)
        for image in images
    ]
    if not rows:
        return "No items yet. Upload images to see results."
    widths = [max(len(str(cell)) for cell in column) for column in zip(CSV_HEADER, *rows)]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(CSV_HEADER, widths))]
    lines.append("  ".join("-" * width for width in widths))
    lines.extend("  ".join(cell.ljust(width) for cell, width in zip(row, widths)) for row in rows)
    return "\n".join(lines)
