"""Utilities to build multimodal input payloads for the Responses API."""

from typing import Any, Dict, List

from utils.media_validation import model_image_type, to_data_url


def to_image_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Convert raw image bytes into a data URL restricted to model-supported types."""
    if not image_bytes:
        raise ValueError("Image content is required.")
    return to_data_url(image_bytes, model_image_type(mime_type))


def build_inputs(system_prompt: str, user_prompt: str, *, image_bytes: bytes, mime_type: str) -> List[Dict[str, Any]]:
    """Build the Responses API input array: system text, then instructions and image together."""
    image_url = to_image_data_url(image_bytes, mime_type)
    return [
        {
            "type": "message",
            "role": "system",
            "content": [{"type": "input_text", "text": system_prompt}],
        },
        {
            "type": "message",
            "role": "user",
            "content": [
                {"type": "input_text", "text": user_prompt},
                {"type": "input_image", "image_url": image_url},
            ],
        },
    ]
