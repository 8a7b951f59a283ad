"""Line normalization applied to every email body line before classification."""

import re
from typing import Iterable, List

# Longer labels first so "collection address" wins over "collection"
FIELD_LABELS = [
    "collection address",
    "drop off address",
    "collection",
    "drop off",
    "drop-off",
    "vehicles",
    "from",
    "time",
    "to",
]

EMPHASIS_CHARS = "*_~"

_LABEL_ALT = "|".join(re.escape(label) for label in FIELD_LABELS)

# "**From:** Depot", "*From*: Depot", "__Drop off__ : Site"
_LABEL_WITH_COLON_RE = re.compile(
    rf"(?<!\w)[*_~]*\s*({_LABEL_ALT})\s*[*_~]*\s*:\s*[*_~]*\s*",
    re.IGNORECASE,
)
# "**Collection** 9am ..." (no colon)
_LABEL_WRAPPED_RE = re.compile(
    rf"(?<![A-Za-z0-9])[*_~]*({_LABEL_ALT})[*_~]*(?![A-Za-z0-9])",
    re.IGNORECASE,
)

_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORE_RULE_RE = re.compile(r"_{5,}")


def normalize_line(raw: str) -> str:
    """Return the cleaned line, or "" when nothing is left to classify.

    Trims, removes emphasis markup at the line edges and around field labels,
    and collapses runs of whitespace to a single space. Underscore rules
    (five or more underscores) are left intact so they still read as section
    boundaries.
    """
    if not raw:
        return ""

    line = raw.strip()
    if _UNDERSCORE_RULE_RE.search(line):
        line = line.strip("*~ \t")
    else:
        line = line.strip(EMPHASIS_CHARS + " \t")

    line = _LABEL_WITH_COLON_RE.sub(lambda m: f"{m.group(1)}: ", line)
    line = _LABEL_WRAPPED_RE.sub(lambda m: m.group(1), line)
    line = _WHITESPACE_RE.sub(" ", line)
    return line.strip()


def normalize_lines(raw_lines: Iterable[str]) -> List[str]:
    """Normalize every line and drop the ones that end up blank."""
    normalized = (normalize_line(line) for line in raw_lines)
    return [line for line in normalized if line]
