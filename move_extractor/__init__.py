"""
Dispatch move extraction from free-form email bodies.

This package contains the extraction core:
- Line normalization: normalize_line / normalize_lines
- Line classifiers: dates, times, labeled fields, route phrases, boundaries
- Vehicle counting and classification
- Place cleaning
- ExtractionEngine: the single-pass rule engine that emits Move records
- EmailBodyParser: Gmail/EML body extraction feeding the engine
"""

from .email_body import EmailBodyParser, body_to_lines
from .extraction_engine import ExtractionEngine, LineRule, ScanState, extract_moves
from .line_normalizer import normalize_line, normalize_lines
from .models import Move, ScanContext, VehicleCounts
from .place_cleaner import clean_place
from .vehicle_counts import classify_vehicles, count_vehicles

__all__ = [
    "EmailBodyParser",
    "ExtractionEngine",
    "LineRule",
    "Move",
    "ScanContext",
    "ScanState",
    "VehicleCounts",
    "body_to_lines",
    "classify_vehicles",
    "clean_place",
    "count_vehicles",
    "extract_moves",
    "normalize_line",
    "normalize_lines",
]
