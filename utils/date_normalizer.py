"""Normalize expiry-date strings read from labels into ISO form."""

import re

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DAY_FIRST = re.compile(r"(\d{2})[/\-.](\d{2})[/\-.](\d{4})")
YEAR_FIRST = re.compile(r"(\d{4})[/\-.](\d{2})[/\-.](\d{2})")
YEAR_MONTH = re.compile(r"^(\d{4})[/\-](\d{2})$")


def normalize_date(text: str) -> str:
    """Return ``YYYY-MM-DD`` for recognised date shapes, otherwise the trimmed input.

    Recognised shapes, tried in order:
        - ``YYYY-MM-DD`` (returned as is)
        - ``DD/MM/YYYY`` with ``/``, ``-`` or ``.`` separators
        - ``YYYY/MM/DD`` with ``/``, ``-`` or ``.`` separators
        - ``YYYY/MM`` or ``YYYY-MM`` (month only, mapped to the first day)

    The day-first pattern wins whenever a four digit group trails two
    two-digit groups, so ``06/07/2029`` is read as 6 July.
    """
    normalized = (text or "").strip()
    if ISO_DATE.match(normalized):
        return normalized

    match = DAY_FIRST.search(normalized)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month}-{day}"

    match = YEAR_FIRST.search(normalized)
    if match:
        year, month, day = match.groups()
        return f"{year}-{month}-{day}"

    match = YEAR_MONTH.match(normalized)
    if match:
        return f"{match.group(1)}-{match.group(2)}-01"

    return normalized
