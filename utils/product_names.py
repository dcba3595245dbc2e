"""Placeholder product names assigned before a label has been read."""

import re

PLACEHOLDER_PATTERN = re.compile(r"^product_\d+$")


def placeholder_name(position: int) -> str:
    """Return the placeholder for the ``position``-th image (1-based)."""
    return f"product_{position}"


def is_placeholder_name(name: str) -> bool:
    return bool(PLACEHOLDER_PATTERN.match((name or "").strip()))
