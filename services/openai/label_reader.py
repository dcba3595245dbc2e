"""Product label reading via OpenAI's Responses API."""

import logging
import time
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from services.openai.label_prompts import build_system_prompt, build_user_prompt
from services.openai.media_inputs import build_inputs
from services.openai.response_parser import MAX_PRODUCT_LENGTH, extract_text, extract_usage, parse_label_reply
from utils.date_normalizer import normalize_date
from utils.product_names import is_placeholder_name
from utils.settings import DEFAULT_MODEL

LOGGER = logging.getLogger(__name__)


class LabelReader:
    """Read a product name and expiry date off a label photo."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL, temperature: float = 0.2) -> None:
        """Initialize the reader with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.temperature = temperature
        self.system_prompt = build_system_prompt()
        self.user_prompt = build_user_prompt()

    async def read_label(
        self,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
        *,
        manual_product: Optional[str] = None,
        manual_date: Optional[str] = None,
    ) -> Dict[str, str]:
        """Extract ``product`` and ``expiryDate`` from an image.

        Args:
            image_bytes: Raw bytes of the label photo.
            mime_type: MIME type of the upload; unsupported types are sent as JPEG.
            manual_product: Name typed by the user. Replaces the extracted name
                unless it is a ``product_<n>`` placeholder.
            manual_date: Date typed by the user. Replaces the extracted date.

        Returns:
            A dict with ``product`` (at most 120 characters) and ``expiryDate``.

        Raises:
            ValueError: If no image content is supplied.
        """
        if not image_bytes:
            raise ValueError("Image content is required for label reading.")

        start_time = time.time()
        inputs = build_inputs(self.system_prompt, self.user_prompt, image_bytes=image_bytes, mime_type=mime_type)
        response = await self._create_response(inputs)
        raw_text = extract_text(response)
        extracted = parse_label_reply(raw_text)
        if not extracted["product"] and not extracted["expiryDate"]:
            LOGGER.warning("No label fields recovered from model reply: %r", raw_text[:200])

        usage = extract_usage(response)
        LOGGER.info(
            "Label read with %s in %.2fs (input_tokens=%s output_tokens=%s)",
            self.model,
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return apply_overrides(extracted, manual_product, manual_date)

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> Any:
        """Send the multimodal request to the OpenAI Responses API."""
        try:
            return await self.client.responses.create(
                model=self.model,
                input=inputs,
                temperature=self.temperature,
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI Responses API call: %s", exc)
            raise


def apply_overrides(
    extracted: Dict[str, str], manual_product: Optional[str], manual_date: Optional[str]
) -> Dict[str, str]:
    """Let user-typed values win over what the model read."""
    result = dict(extracted)
    manual = (manual_product or "").strip()
    if manual and not is_placeholder_name(manual):
        result["product"] = manual[:MAX_PRODUCT_LENGTH]
    if manual_date and manual_date.strip():
        result["expiryDate"] = normalize_date(manual_date)
    return result
