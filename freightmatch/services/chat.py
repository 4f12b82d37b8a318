"""Contact-detail filtering for chat messages."""

import re

# 06 12 34 56 78, +212612345678, 0612-345-678 ...
PHONE_PATTERN = re.compile(r"(?:\+?\d[\s.\-]?){8,}")
LINK_PATTERN = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.]+")

MASK = "***"


def filter_message(text: str | None) -> str | None:
    """Replace phone numbers, links and email addresses with a mask."""
    if text is None:
        return None
    filtered = LINK_PATTERN.sub(MASK, text)
    filtered = EMAIL_PATTERN.sub(MASK, filtered)
    filtered = PHONE_PATTERN.sub(MASK, filtered)
    return filtered
