"""Controller for label extraction requests."""

import asyncio
import logging
from typing import Dict, Optional

from openai import AsyncOpenAI

from services.openai.label_reader import LabelReader

LOGGER = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Failure reported to the caller as ``{"error": ..., "message": ...}``."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None) -> None:
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message

    def to_payload(self) -> Dict[str, str]:
        payload = {"error": self.error}
        if self.message is not None:
            payload["message"] = self.message
        return payload


class AnalyzeController:
    """Coordinate label extraction between the API layer and the OpenAI service."""

    def __init__(self, model: str, timeout_seconds: float = 60.0) -> None:
        self.model = model
        self.timeout_seconds = timeout_seconds

    async def analyze(
        self,
        image_bytes: Optional[bytes],
        mime_type: str,
        *,
        manual_product: Optional[str] = None,
        manual_date: Optional[str] = None,
        openai_client: Optional[AsyncOpenAI] = None,
    ) -> Dict[str, str]:
        """Validate input and read the label.

        Raises:
            AnalysisError: 400 when no image was sent, 500 when the model key is
                missing or the extraction fails.
        """
        if not image_bytes:
            raise AnalysisError(400, "image required")
        if openai_client is None:
            raise AnalysisError(500, "OPENAI_API_KEY not configured")

        reader = LabelReader(openai_client, model=self.model)
        try:
            return await asyncio.wait_for(
                reader.read_label(
                    image_bytes,
                    mime_type,
                    manual_product=manual_product,
                    manual_date=manual_date,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            LOGGER.error("Label extraction timed out after %.0fs", self.timeout_seconds)
            raise AnalysisError(500, "analysis_failed", "Label extraction timed out.") from exc
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Label extraction failed")
            raise AnalysisError(500, "analysis_failed", str(exc)) from exc
