"""Vehicle counting per line and category labels for a count triple."""

import re

from .models import VehicleCounts

TRUCK_COUNT_RE = re.compile(r"\b(\d+)\s*trucks?\b", re.IGNORECASE)
TWO_TRUCKS_RE = re.compile(r"\btwo\s+trucks?\b", re.IGNORECASE)
VAN_COUNT_RE = re.compile(r"\b(\d+)\s*vans?\b", re.IGNORECASE)
# "2 x 7.5t trucks, 1 x luton and 1 x 4x4"; a label ends before the next count phrase
MULTIPLIER_RE = re.compile(
    r"\b(\d+)\s*x\s+(.+?)"
    r"(?=\s*(?:[,;+&/]|\band\b|\b\d+\s*x\s|\b\d+\s*(?:trucks?|vans?|cars?|lutons?)\b)|$)",
    re.IGNORECASE,
)
LIGHTING_TRUCK_RE = re.compile(r"\blighting\s+trucks?\b", re.IGNORECASE)
VAN_MENTION_RE = re.compile(r"\b(?:luton|vans?)\b", re.IGNORECASE)

LABEL_TRUCK_RE = re.compile(r"truck", re.IGNORECASE)
LABEL_VAN_RE = re.compile(r"\b(?:vans?|luton)\b", re.IGNORECASE)
LABEL_CAR_RE = re.compile(r"\bcars?\b|4x4", re.IGNORECASE)

TRUCK_LABEL = "Truck"
VAN_LABEL = "Van"
CAR_LABEL = "Car"
MIXED_LABEL = "Mixed"


def count_vehicles(line: str) -> VehicleCounts:
    """Count trucks, vans and cars mentioned on a single line.

    Counts from the different phrasings on one line add together. A bare
    mention of a lighting truck, a van or a luton counts as one when the
    line gave no explicit number for that vehicle.
    """
    counts = VehicleCounts()
    if not line:
        return counts

    counts.truck += sum(int(n) for n in TRUCK_COUNT_RE.findall(line))
    if TWO_TRUCKS_RE.search(line):
        counts.truck += 2
    counts.van += sum(int(n) for n in VAN_COUNT_RE.findall(line))

    for m in MULTIPLIER_RE.finditer(line):
        n = int(m.group(1))
        label = m.group(2)
        if LABEL_TRUCK_RE.search(label):
            counts.truck += n
        elif LABEL_VAN_RE.search(label):
            counts.van += n
        elif LABEL_CAR_RE.search(label):
            counts.car += n

    if counts.truck == 0 and LIGHTING_TRUCK_RE.search(line):
        counts.truck += 1
    if counts.van == 0 and VAN_MENTION_RE.search(line):
        counts.van += 1

    return counts


def classify_vehicles(counts: VehicleCounts) -> str:
    """Reduce a count triple to "Truck", "Van", "Car", "Mixed" or ""."""
    labels = [
        label
        for label, n in ((TRUCK_LABEL, counts.truck), (VAN_LABEL, counts.van), (CAR_LABEL, counts.car))
        if n > 0
    ]
    if len(labels) > 1:
        return MIXED_LABEL
    return labels[0] if labels else ""
