"""Dispatch Service: turns extracted moves into job log rows.

This service handles:
- Dedupe identity for a move within its source email
- Building job log records (vehicle label, route fields, review flag)
- Persisting records and placeholder rows for emails with no moves
"""

import logging
from typing import Dict, List, Optional

from django.db import IntegrityError, transaction

from joblog.models import DispatchMove
from joblog.services.route_service import RouteInfo
from joblog.services.sheet_sink import generate_job_id
from move_extractor.models import Move
from move_extractor.vehicle_counts import classify_vehicles

logger = logging.getLogger(__name__)

DEDUPE_DELIMITER = "||"
PLACEHOLDER_MARKER = "no-moves"


def build_dedupe_key(email_id: str, move: Move) -> str:
    """Ordered (email id, date, time, origin, destination) identity."""
    return DEDUPE_DELIMITER.join(
        [
            email_id or "",
            move.date,
            move.time,
            move.origin.lower(),
            move.destination.lower(),
        ]
    )


def placeholder_dedupe_key(email_id: str) -> str:
    return DEDUPE_DELIMITER.join([email_id or "", PLACEHOLDER_MARKER])


class DispatchService:
    """Service class for job log persistence."""

    @staticmethod
    def build_record(
        email_id: str,
        move: Move,
        metadata: Optional[Dict] = None,
        route: Optional[RouteInfo] = None,
    ) -> Dict:
        """Flatten a Move plus email metadata and route into a job log record.

        A move without a date or a time is flagged for review rather than
        dropped.
        """
        metadata = metadata or {}
        route = route or RouteInfo()
        return {
            "job_id": generate_job_id(),
            "source_email_id": email_id,
            "subject": metadata.get("subject", ""),
            "sender": metadata.get("sender", ""),
            "received_at": metadata.get("timestamp"),
            "date": move.date,
            "time": move.time,
            "origin": move.origin,
            "destination": move.destination,
            "trucks": move.counts.truck,
            "vans": move.counts.van,
            "cars": move.counts.car,
            "vehicle_type": classify_vehicles(move.counts),
            "distance": route.distance,
            "duration": route.duration,
            "map_url": route.map_url,
            "dedupe_key": build_dedupe_key(email_id, move),
            "is_placeholder": False,
            "needs_review": not (move.date and move.time),
        }

    @staticmethod
    def build_placeholder(email_id: str, metadata: Optional[Dict] = None) -> Dict:
        """Record shown in the job log when an email yielded no moves."""
        metadata = metadata or {}
        return {
            "job_id": generate_job_id(),
            "source_email_id": email_id,
            "subject": metadata.get("subject", ""),
            "sender": metadata.get("sender", ""),
            "received_at": metadata.get("timestamp"),
            "date": "",
            "time": "",
            "origin": "",
            "destination": "",
            "trucks": 0,
            "vans": 0,
            "cars": 0,
            "vehicle_type": "",
            "distance": "",
            "duration": "",
            "map_url": "",
            "dedupe_key": placeholder_dedupe_key(email_id),
            "is_placeholder": True,
            "needs_review": True,
        }

    @staticmethod
    def is_duplicate(dedupe_key: str) -> bool:
        return DispatchMove.objects.filter(dedupe_key=dedupe_key).exists()

    @staticmethod
    def save_record(record: Dict) -> Optional[DispatchMove]:
        """Persist one record. Returns None if its dedupe key already exists."""
        if DispatchService.is_duplicate(record["dedupe_key"]):
            logger.info("Skipping duplicate move %s", record["dedupe_key"])
            return None

        try:
            with transaction.atomic():
                return DispatchMove.objects.create(
                    job_id=record["job_id"],
                    source_email_id=record["source_email_id"],
                    subject=record["subject"],
                    sender=record["sender"],
                    received_at=record["received_at"],
                    move_date=record["date"],
                    move_time=record["time"],
                    origin=record["origin"],
                    destination=record["destination"],
                    trucks=record["trucks"],
                    vans=record["vans"],
                    cars=record["cars"],
                    vehicle_type=record["vehicle_type"],
                    distance=record["distance"],
                    duration=record["duration"],
                    map_url=record["map_url"],
                    dedupe_key=record["dedupe_key"],
                    is_placeholder=record["is_placeholder"],
                    needs_review=record["needs_review"],
                )
        except IntegrityError as e:
            # Lost a race with another writer for the same key
            logger.warning("Could not save move %s: %s", record["dedupe_key"], e)
            return None

    @staticmethod
    def save_records(records: List[Dict]) -> List[DispatchMove]:
        saved = []
        for record in records:
            obj = DispatchService.save_record(record)
            if obj is not None:
                saved.append(obj)
        return saved

    @staticmethod
    def to_record(obj: DispatchMove) -> Dict:
        """Inverse of save_record, used by the CSV export."""
        return {
            "job_id": obj.job_id,
            "source_email_id": obj.source_email_id,
            "subject": obj.subject,
            "sender": obj.sender,
            "received_at": obj.received_at,
            "date": obj.move_date,
            "time": obj.move_time,
            "origin": obj.origin,
            "destination": obj.destination,
            "trucks": obj.trucks,
            "vans": obj.vans,
            "cars": obj.cars,
            "vehicle_type": obj.vehicle_type,
            "distance": obj.distance,
            "duration": obj.duration,
            "map_url": obj.map_url,
            "dedupe_key": obj.dedupe_key,
            "is_placeholder": obj.is_placeholder,
            "needs_review": obj.needs_review,
        }
