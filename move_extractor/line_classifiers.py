"""Line classifiers for dispatch email bodies.

Each classifier looks at a single normalized line and answers one question
("is this a date header?", "which time does this line mention?"). They hold
no state; the extraction engine decides what to do with a match.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple


MONTHS = {
    "january": "01",
    "february": "02",
    "march": "03",
    "april": "04",
    "may": "05",
    "june": "06",
    "july": "07",
    "august": "08",
    "september": "09",
    "october": "10",
    "november": "11",
    "december": "12",
}
MONTH_ABBREVIATIONS = {name[:3]: code for name, code in MONTHS.items()}
MONTH_ABBREVIATIONS["sept"] = "09"

WEEKDAY_PATTERN = (
    r"(?:mon(?:day)?|tue(?:s(?:day)?)?|wed(?:nesday)?|thu(?:r(?:s(?:day)?)?)?"
    r"|fri(?:day)?|sat(?:urday)?|sun(?:day)?)"
)
MONTH_PATTERN = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
# neither half of an "HH:MM" time is a day of the month
DAY_PATTERN = r"(?<!\d[:.])(3[01]|[12]\d|0?[1-9])(?:st|nd|rd|th)?(?![:.]\d)"

WEEKDAY_DATE_RE = re.compile(
    rf"\b{WEEKDAY_PATTERN}\b.*?\b{DAY_PATTERN}\b.*?\b({MONTH_PATTERN})\b",
    re.IGNORECASE,
)
BARE_DATE_RE = re.compile(
    rf"\b{DAY_PATTERN}\s+(?:of\s+)?([a-z]{{3,9}})\b",
    re.IGNORECASE,
)

TIME_24H_RE = re.compile(
    r"\b([01]?\d|2[0-3])[:. ]([0-5]\d)\b(?!\s*[ap]\.?m\b)",
    re.IGNORECASE,
)
TIME_12H_RE = re.compile(
    r"\b(1[0-2]|0?[1-9])(?:[:.]([0-5]\d))?\s*([ap])\.?m\b",
    re.IGNORECASE,
)

IGNORABLE_PATTERNS = [
    re.compile(r"^(?:subject|cc|bcc)\s*:", re.IGNORECASE),
    re.compile(r"forwarded message", re.IGNORECASE),
    re.compile(r"^-{3,}"),
    re.compile(r"https?://|www\.", re.IGNORECASE),
    re.compile(r"^(?:from|to)\s*:.*@", re.IGNORECASE),
]

FROM_TO_RE = re.compile(r"^(from|to)\s*:\s*(.*)$", re.IGNORECASE)
COLLECTION_RE = re.compile(r"^collection(?:\s+address)?\b\s*:?\s*(.*)$", re.IGNORECASE)
DROP_OFF_RE = re.compile(r"^drop[\s-]?off(?:\s+address)?\b\s*:?\s*(.*)$", re.IGNORECASE)
LEADING_TIME_FRAGMENT_RE = re.compile(
    r"^\d{1,2}(?:[:.]\d{2})?\s*(?:[ap]\.?m\.?)?\s*[-–]\s*",
    re.IGNORECASE,
)

ROUTE_PHRASE_RE = re.compile(
    r"\b(?:moved\s+)?from\s+(.+?)\s+to\s+(.+?)(?=\s+(?:at|on|by|for)\b|[.,;!?()]|$)",
    re.IGNORECASE,
)

SECTION_BOUNDARY_RE = re.compile(r"^--$|_{5,}")


@dataclass
class LabeledField:
    """A "From:"/"To:"/"Collection"/"Drop off" line split into its parts."""

    target: str  # "origin" or "destination"
    text: str
    time: str = ""


def month_code(token: str) -> Optional[str]:
    """Map a full or abbreviated month name to its two-digit code."""
    key = (token or "").strip().lower()
    if key in MONTHS:
        return MONTHS[key]
    return MONTH_ABBREVIATIONS.get(key)


def format_date(day: str, month: str) -> str:
    return f"{int(day):02d}/{month}/"


def is_ignorable(line: str) -> bool:
    """Header fields, reply markers, separators, URLs and email-address From/To lines."""
    return any(rx.search(line) for rx in IGNORABLE_PATTERNS)


def match_weekday_date(line: str) -> Optional[str]:
    """Return ``DD/MM/`` for a weekday + day + month header line."""
    m = WEEKDAY_DATE_RE.search(line)
    if not m:
        return None
    code = month_code(m.group(2))
    if not code:
        return None
    return format_date(m.group(1), code)


def match_bare_date(line: str) -> Optional[str]:
    """Return ``DD/MM/`` for a day + month mention without a weekday.

    Every day/month-shaped candidate on the line is tried, so "2 vans 5 May"
    still finds the date; an unknown month word yields nothing.
    """
    for m in BARE_DATE_RE.finditer(line):
        code = month_code(m.group(2))
        if code:
            return format_date(m.group(1), code)
    return None


def parse_time(text: str) -> Optional[str]:
    """Return the first time in ``text`` as zero-padded ``HH:MM``.

    24-hour forms (``14:30``, ``9.05``, ``9 05``) are checked before
    12-hour forms (``2pm``, ``9.05am``).
    """
    if not text:
        return None

    m = TIME_24H_RE.search(text)
    if m:
        return f"{int(m.group(1)):02d}:{m.group(2)}"

    m = TIME_12H_RE.search(text)
    if m:
        hour = int(m.group(1))
        minutes = m.group(2) or "00"
        meridiem = m.group(3).lower()
        if meridiem == "p" and hour != 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
        return f"{hour:02d}:{minutes}"

    return None


def strip_leading_time(text: str) -> str:
    """Drop a leading "HH:MM - " style fragment from a labeled field value."""
    return LEADING_TIME_FRAGMENT_RE.sub("", text).strip()


def match_from_to(line: str) -> Optional[LabeledField]:
    m = FROM_TO_RE.match(line)
    if not m or "@" in line:
        return None
    target = "origin" if m.group(1).lower() == "from" else "destination"
    return LabeledField(target=target, text=m.group(2).strip())


def _match_stop(regex, target: str, line: str) -> Optional[LabeledField]:
    m = regex.match(line)
    if not m:
        return None
    remainder = m.group(1).strip()
    return LabeledField(
        target=target,
        text=strip_leading_time(remainder),
        time=parse_time(remainder) or "",
    )


def match_collection(line: str) -> Optional[LabeledField]:
    return _match_stop(COLLECTION_RE, "origin", line)


def match_drop_off(line: str) -> Optional[LabeledField]:
    return _match_stop(DROP_OFF_RE, "destination", line)


def match_route_phrase(line: str) -> Optional[Tuple[str, str]]:
    """Find an inline "(moved) from X to Y" phrase.

    The destination stops at a following at/on/by/for keyword or at
    punctuation.
    """
    m = ROUTE_PHRASE_RE.search(line)
    if not m:
        return None
    origin = m.group(1).strip()
    destination = m.group(2).strip()
    if not origin or not destination:
        return None
    return origin, destination


def is_section_boundary(line: str) -> bool:
    return bool(SECTION_BOUNDARY_RE.search(line))
