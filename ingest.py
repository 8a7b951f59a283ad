"""Gmail dispatch ingestion pipeline.

This module connects the mailbox to the job log:
- Builds the Gmail query for allowed senders within the recency window
- Extracts metadata and a plain-text body from Gmail API responses
- Runs the move extraction engine over the body lines
- Skips moves already in the job log (dedupe identity), looks up routes
- Persists DispatchMove rows, or a placeholder row when nothing was found
- Optionally mirrors new rows to the Google Sheets job log

The extraction itself lives in move_extractor/ and has no I/O; everything
with side effects is here or in joblog/services/.
"""
import hashlib
import os
from datetime import datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Dict, Iterable, List, Optional

import django
from django.utils import timezone

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "dispatch_site.settings")
django.setup()

from dispatch_config import GOOGLE_MAPS_API_KEY, load_dispatch_config  # noqa: E402
from joblog.models import IngestionStats  # noqa: E402
from joblog.services.dispatch_service import DispatchService, build_dedupe_key  # noqa: E402
from joblog.services.route_service import RouteService  # noqa: E402
from joblog_logger import log_console  # noqa: E402
from move_extractor import EmailBodyParser, ExtractionEngine, body_to_lines  # noqa: E402
from move_extractor.models import Move  # noqa: E402

PARSER_VERSION = "1.0"
DEBUG = False

_engine = ExtractionEngine()


def get_stats():
    today = datetime.today().date()
    stats, _ = IngestionStats.objects.get_or_create(date=today)
    return stats


def is_allowed_sender(sender: str, allowed_senders: Iterable[str]) -> bool:
    """Check a From header against the allowlist.

    Entries starting with "@" match a whole domain. An empty allowlist lets
    every sender through.
    """
    allowed = [a.lower() for a in allowed_senders or [] if a]
    if not allowed:
        return True
    address = EmailBodyParser.sender_email(sender)
    if not address:
        return False
    domain = "@" + address.split("@")[-1]
    return address in allowed or domain in allowed


def build_gmail_query(days_back: int, allowed_senders: Iterable[str], now: Optional[datetime] = None) -> str:
    """Gmail search string for allowed senders newer than ``days_back`` days."""
    now = now or datetime.now()
    after_date = now - timedelta(days=days_back)
    parts = [f"after:{after_date.strftime('%Y/%m/%d')}"]
    senders = [s.lstrip("@") for s in allowed_senders or [] if s]
    if senders:
        parts.append("from:(" + " OR ".join(senders) + ")")
    return " ".join(parts)


def fetch_candidate_messages(service, days_back: int = 7, allowed_senders=None, max_results: int = 500) -> List[dict]:
    """Fetch all pages of message stubs matching the dispatch query."""
    query = build_gmail_query(days_back, allowed_senders or [])
    all_msgs = []
    next_token = None
    while True:
        kwargs = dict(userId="me", maxResults=max_results, q=query)
        if next_token:
            kwargs["pageToken"] = next_token
        resp = service.users().messages().list(**kwargs).execute()
        all_msgs.extend(resp.get("messages", []))
        next_token = resp.get("nextPageToken")
        if not next_token:
            break
    return all_msgs


def extract_metadata(service, msg_id: str) -> Dict:
    """Extract subject, sender, timestamp and plain-text body from a Gmail message."""
    msg = service.users().messages().get(userId="me", id=msg_id, format="full").execute()
    payload = msg.get("payload", {})
    headers = payload.get("headers", [])

    subject = next((h["value"] for h in headers if h["name"].lower() == "subject"), "")
    sender = next((h["value"] for h in headers if h["name"].lower() == "from"), "")
    date_raw = next((h["value"] for h in headers if h["name"].lower() == "date"), "")

    try:
        timestamp = parsedate_to_datetime(date_raw)
        if timezone.is_naive(timestamp):
            timestamp = timezone.make_aware(timestamp)
    except (TypeError, ValueError):
        timestamp = timezone.now()

    return {
        "msg_id": msg_id,
        "thread_id": msg.get("threadId"),
        "subject": EmailBodyParser.decode_header_value(subject),
        "sender": EmailBodyParser.decode_header_value(sender),
        "sender_email": EmailBodyParser.sender_email(sender),
        "timestamp": timestamp,
        "body": EmailBodyParser.extract_from_gmail_payload(payload),
        "parser_version": PARSER_VERSION,
    }


def extract_moves_from_body(body: str) -> List[Move]:
    return _engine.extract(body_to_lines(body))


def build_route_service(config: Dict) -> RouteService:
    return RouteService(
        api_key=GOOGLE_MAPS_API_KEY,
        regional_suffix=config.get("regional_suffix", ""),
        travel_mode=config.get("travel_mode", "driving"),
        placeholder_tokens=config.get("placeholder_tokens"),
    )


def process_metadata(metadata: Dict, config: Dict, route_service=None, sheet_sink=None, dry_run=False) -> Dict:
    """Extract, dedupe, enrich and persist the moves of one email.

    Returns:
        Dictionary with keys: msg_id, moves, records, inserted, duplicates,
        placeholder, skipped
    """
    msg_id = metadata["msg_id"]
    result = {
        "msg_id": msg_id,
        "moves": [],
        "records": [],
        "inserted": 0,
        "duplicates": 0,
        "placeholder": False,
        "skipped": False,
    }

    if not is_allowed_sender(metadata.get("sender", ""), config.get("allowed_senders")):
        if DEBUG:
            print(f"[DEBUG] Sender not allowed for {msg_id}: {metadata.get('sender')}")
        result["skipped"] = True
        return result

    moves = extract_moves_from_body(metadata.get("body", ""))
    result["moves"] = moves

    if not moves:
        log_console(f"No moves found in {msg_id} ({metadata.get('subject', '')}), adding placeholder")
        records = [DispatchService.build_placeholder(msg_id, metadata)]
        result["placeholder"] = True
    else:
        records = []
        for move in moves:
            if not dry_run and DispatchService.is_duplicate(build_dedupe_key(msg_id, move)):
                result["duplicates"] += 1
                continue
            route = route_service.lookup(move.origin, move.destination) if route_service is not None else None
            records.append(DispatchService.build_record(msg_id, move, metadata, route))

    result["records"] = records
    if dry_run:
        return result

    saved = DispatchService.save_records(records)
    result["inserted"] = len(saved)
    result["duplicates"] += len(records) - len(saved)

    if sheet_sink is not None and saved:
        saved_keys = {obj.dedupe_key for obj in saved}
        sheet_sink.append_records(r for r in records if r["dedupe_key"] in saved_keys)

    return result


def ingest_message(service, msg_id: str, config: Optional[Dict] = None, route_service=None, sheet_sink=None, dry_run=False) -> Dict:
    """Fetch one Gmail message and run it through the dispatch pipeline."""
    config = config or load_dispatch_config()
    metadata = extract_metadata(service, msg_id)
    if DEBUG:
        print(f"[DEBUG] {msg_id}: {metadata['subject']} from {metadata['sender']}")
    return process_metadata(metadata, config, route_service=route_service, sheet_sink=sheet_sink, dry_run=dry_run)


def ingest_raw_eml(raw_text: str, fake_msg_id: Optional[str] = None, config: Optional[Dict] = None, dry_run=True) -> Dict:
    """Run a saved .eml message through the pipeline (dry run by default).

    The sender allowlist is not applied to local files.
    """
    config = dict(config or load_dispatch_config())
    config["allowed_senders"] = []
    meta = EmailBodyParser.parse_raw_eml(raw_text)
    digest = hashlib.md5((meta["subject"] + meta["sender"] + str(meta["timestamp"])).encode()).hexdigest()[:16]
    meta["msg_id"] = fake_msg_id or f"eml-{digest}"
    return process_metadata(meta, config, dry_run=dry_run)
