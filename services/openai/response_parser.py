"""Helpers to pull label fields out of Responses API output."""

import json
import logging
import re
from typing import Any, Dict, Optional

from utils.date_normalizer import normalize_date

LOGGER = logging.getLogger(__name__)

MAX_PRODUCT_LENGTH = 120
PRODUCT_FIELD = re.compile(r'"product"\s*:\s*"((?:[^"\\]|\\.)*)"')
EXPIRY_FIELD = re.compile(r'"expiryDate"\s*:\s*"((?:[^"\\]|\\.)*)"')
EXPIRY_KEYS = ("expiryDate", "expiry", "date")


def extract_text(response: Any) -> str:
    """Return the concatenated output text of a response, or an empty string."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text:
        return text
    parts = []
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            if getattr(content, "type", None) == "output_text":
                parts.append(getattr(content, "text", "") or "")
    return "".join(parts)


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }


def _json_slice(raw_text: str) -> str:
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start >= 0 and end >= 0:
        return raw_text[start:end + 1]
    return raw_text


def parse_label_reply(raw_text: str) -> Dict[str, str]:
    """Recover ``product`` and ``expiryDate`` from a model reply.

    The reply is expected to hold a JSON object, possibly wrapped in prose.
    When strict parsing fails the two fields are picked out with regexes;
    anything unreadable comes back as an empty string.
    """
    extracted = {"product": "", "expiryDate": ""}
    raw_text = raw_text or ""
    try:
        parsed = json.loads(_json_slice(raw_text))
        if not isinstance(parsed, dict):
            raise ValueError("Reply JSON is not an object.")
    except ValueError:
        LOGGER.debug("Reply is not strict JSON, falling back to field matching: %r", raw_text[:200])
        match = PRODUCT_FIELD.search(raw_text)
        if match:
            extracted["product"] = match.group(1).replace('\\"', '"')[:MAX_PRODUCT_LENGTH]
        match = EXPIRY_FIELD.search(raw_text)
        if match:
            extracted["expiryDate"] = normalize_date(match.group(1).replace('\\"', '"'))
        return extracted

    product = parsed.get("product")
    extracted["product"] = str(product if product is not None else "").strip()[:MAX_PRODUCT_LENGTH]
    raw_expiry = next((parsed[key] for key in EXPIRY_KEYS if parsed.get(key) is not None), "")
    if raw_expiry:
        extracted["expiryDate"] = normalize_date(str(raw_expiry))
    return extracted
