"""Phone number helpers (SMS formatting, public masking)."""

import re

_SEPARATORS = re.compile(r"[\s\-()]")


def format_phone_number(phone_number: str) -> str:
    """
    Local format -> international digits without '+'.

    0612345678 -> 212612345678, +212612345678 -> 212612345678,
    612345678 -> 212612345678.
    """
    cleaned = _SEPARATORS.sub("", phone_number)
    if cleaned.startswith("+212"):
        return cleaned[1:]
    if cleaned.startswith("212"):
        return cleaned
    if cleaned.startswith("0"):
        return "212" + cleaned[1:]
    return "212" + cleaned


def mask_phone_number(phone_number: str | None) -> str:
    """+212664373534 -> +2126•••••534. Short numbers are returned unchanged."""
    if not phone_number:
        return ""
    cleaned = re.sub(r"\s", "", phone_number)
    if len(cleaned) < 8:
        return phone_number
    return f"{cleaned[:5]}•••••{cleaned[-3:]}"
