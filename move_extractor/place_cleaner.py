"""Post-processing for extracted origin/destination text."""

import re

LABEL_PREFIX_RE = re.compile(r"^\s*(?:location|unit\s+base|office)\s*[-–]\s*", re.IGNORECASE)
W3W_TAG_RE = re.compile(r"\(?\s*w3w\s*:?\s*/{3}[\w-]+\.[\w-]+\.[\w-]+\s*\)?", re.IGNORECASE)
LEADING_EMPHASIS_RE = re.compile(r"^[*_~]+")
TRAILING_JUNK_RE = re.compile(r"[\s,;:\-–]+$")


def clean_place(raw: str) -> str:
    """Strip label prefixes, what3words tags and emphasis from a place string.

    "Location - Depot A" -> "Depot A"
    "Site B w3w: ///index.home.raft" -> "Site B"
    """
    if not raw:
        return ""

    place = LEADING_EMPHASIS_RE.sub("", raw.strip())
    place = LABEL_PREFIX_RE.sub("", place)
    place = W3W_TAG_RE.sub(" ", place)
    place = re.sub(r"\s+", " ", place)
    place = TRAILING_JUNK_RE.sub("", place)
    return place.strip()
