"""Prompt builders for reading product labels."""

EXAMPLE_REPLY = '{"product":"SHARPS CONTAINER 10L","expiryDate":"2027-01-01"}'


def build_system_prompt() -> str:
    """Return the system prompt for the label reader."""
    return (
        "You are a product label reader. You only report text that is visible in the image "
        "and never guess values that are not printed on the label."
    )


def build_user_prompt() -> str:
    """Return the extraction instructions sent alongside the image."""
    return (
        "Read ALL text visible in the image and extract:\n\n"
        "1) product: The product name FROM THE TEXT in the image.\n"
        '- Prefer the value of labeled fields such as: "Product Description", "QR Item Description", '
        '"Item Description", "Product Name", "Product:", "Description:" (use the value after the colon).\n'
        '- Examples from such fields: "TOILET SEAT SANITIZING WIPES", "Refreshing Towel EY", '
        '"SHARPS CONTAINER 10L, 20 PCS PER BOX", "100% Natural Hair Remover".\n'
        "- If there is no such field, use the main product name or title clearly visible on the label "
        "(brand + product as written). Do NOT use LOT, REF, batch, or barcode codes as the product name.\n"
        "- If the image only shows dates/lot/REF (e.g. LOT 20240715, REF LM240720, P: 11/2024, E: 10/2029) "
        "with no product description, return an empty string for product.\n\n"
        "2) expiryDate: The expiry / best before / use-by date FROM THE TEXT in the image only. "
        "Return it in YYYY-MM-DD format.\n"
        '- Look for labels like: "Expiry Date", "Exp:", "E:", "Use by", "Best before", "EXPIRY DATE", '
        "an hourglass symbol with a date, etc.\n"
        '- Accept dates in any format (DD.MM.YYYY, YYYY/MM, MM-YYYY, DD/MM/YYYY, "June 2029", "Jul-2027") '
        "and convert to YYYY-MM-DD. If month-only (e.g. 2027/01), use the first day of that month (2027-01-01).\n"
        "- If none or unreadable, return an empty string. Do NOT use the manufacture/production date "
        "(P:, Prod., Production Date) as expiry.\n\n"
        f"Reply with ONLY a single-line JSON object, no markdown. Example:\n{EXAMPLE_REPLY}"
    )
