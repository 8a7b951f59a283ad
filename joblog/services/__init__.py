"""Services package for the dispatch job log.

- dispatch_service: dedupe identity, record building and persistence
- route_service: distance/duration lookups via the Google Maps Directions API
- sheet_sink: header-driven Google Sheets job log writer
"""

from .dispatch_service import DispatchService, build_dedupe_key
from .route_service import RouteInfo, RouteLookupError, RouteService
from .sheet_sink import SheetSink, SheetSinkError, generate_job_id

__all__ = [
    "DispatchService",
    "RouteInfo",
    "RouteLookupError",
    "RouteService",
    "SheetSink",
    "SheetSinkError",
    "build_dedupe_key",
    "generate_job_id",
]
