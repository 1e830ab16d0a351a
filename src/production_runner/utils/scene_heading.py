"""Scene heading parsing.

Splits a slugline such as "INT. KITCHEN - DAY" into its interior/exterior
code and set description.
"""

# Checked in order; combined prefixes must come before INT./EXT.
INT_EXT_PREFIXES: tuple[tuple[str, str], ...] = (
    ("INT./EXT.", "I/E"),
    ("INT/EXT", "I/E"),
    ("I/E", "I/E"),
    ("INT.", "INT"),
    ("INT ", "INT"),
    ("EXT.", "EXT"),
    ("EXT ", "EXT"),
)

TIME_OF_DAY_SUFFIXES: tuple[str, ...] = (
    " - MOMENTS LATER",
    " - CONTINUOUS",
    " - NIGHT",
    " - LATER",
    " - DAWN",
    " - DUSK",
    " - DAY",
)


def parse_heading(heading: str) -> tuple[str, str]:
    """Parse a scene heading into (int_ext, set_description).

    Args:
        heading: Free-text heading, may be empty

    Returns:
        Tuple of the INT/EXT code ("INT", "EXT", "I/E" or "") and the set
        description with any time-of-day suffix removed. The description may
        be empty; callers decide on a fallback.
    """
    upper = heading.upper().strip()

    int_ext = ""
    remaining = upper
    for prefix, code in INT_EXT_PREFIXES:
        if upper.startswith(prefix):
            int_ext = code
            remaining = upper[len(prefix):]
            break

    remaining = _strip_time_of_day(remaining.strip())

    if remaining.startswith("-") or remaining.startswith("."):
        remaining = remaining[1:].strip()

    return int_ext, remaining


def parse_time_of_day(heading: str) -> str:
    """Extract the trailing time of day ("DAY", "NIGHT", ...) from a heading."""
    upper = heading.upper().strip()
    for suffix in TIME_OF_DAY_SUFFIXES:
        if upper.endswith(suffix):
            return suffix[3:]
    return ""


def _strip_time_of_day(text: str) -> str:
    """Remove trailing time-of-day suffixes, e.g. "KITCHEN - NIGHT - CONTINUOUS"."""
    stripped = True
    while stripped:
        stripped = False
        for suffix in TIME_OF_DAY_SUFFIXES:
            if text.endswith(suffix):
                text = text[: -len(suffix)].rstrip()
                stripped = True
                break
    return text.strip()
