"""Page-length helpers.

Script length is measured in eighths of a page: 10 eighths is "1 2/8".
"""

import re

EIGHTHS_PER_PAGE = 8

_PAGES_PATTERN = re.compile(r"^(?:(?P<whole>\d+))?(?:\s*(?P<rem>\d+)/8)?$")


def format_eighths(eighths: int) -> str:
    """Format a page length in eighths.

    Args:
        eighths: Page length in eighths (must be >= 0)

    Returns:
        String like "1 2/8", "3", "5/8" or "0"
    """
    if eighths < 0:
        raise ValueError(f"Page length cannot be negative: {eighths}")
    if eighths == 0:
        return "0"

    whole_pages, remaining = divmod(eighths, EIGHTHS_PER_PAGE)

    if whole_pages > 0 and remaining > 0:
        return f"{whole_pages} {remaining}/8"
    if whole_pages > 0:
        return f"{whole_pages}"
    return f"{remaining}/8"


def format_pages_label(eighths: int) -> str:
    """Format a page total for day and schedule summaries, e.g. "1 2/8 pgs"."""
    formatted = format_eighths(eighths)
    if formatted == "0":
        return formatted
    return f"{formatted} pgs"


def parse_eighths(text: str) -> int:
    """Parse a formatted page length back into eighths.

    Accepts the output of format_eighths or format_pages_label.

    Raises:
        ValueError: If the text is not a page length
    """
    cleaned = text.strip()
    if cleaned.endswith("pgs"):
        cleaned = cleaned[:-3].strip()

    match = _PAGES_PATTERN.match(cleaned)
    if not cleaned or match is None:
        raise ValueError(f"Invalid page length: {text!r}")

    whole = int(match.group("whole") or 0)
    remaining = int(match.group("rem") or 0)
    if remaining >= EIGHTHS_PER_PAGE:
        raise ValueError(f"Invalid page length: {text!r}")

    return whole * EIGHTHS_PER_PAGE + remaining
