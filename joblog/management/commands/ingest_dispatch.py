# ingest_dispatch.py

from ingest import build_route_service, fetch_candidate_messages, get_stats, ingest_message

from django.core.management.base import BaseCommand

from dispatch_config import DISPATCH_SHEET_ID, DISPATCH_SHEET_NAME, load_dispatch_config
from gmail_auth import get_gmail_service, get_sheets_service
from joblog.models import ProcessedMessage
from joblog.services.sheet_sink import SheetSink
from joblog_logger import log_console


class Command(BaseCommand):
    help = "Ingest dispatch request emails from Gmail into the job log"

    def add_arguments(self, parser):
        parser.add_argument("--limit-msg", type=str, help="Only ingest this single message ID")
        parser.add_argument(
            "--days-back",
            type=int,
            default=None,
            help="How many days back to fetch (default: days_back from json/dispatch.json)",
        )
        parser.add_argument("--force", action="store_true", help="Re-process already seen messages")
        parser.add_argument("--sheet-id", type=str, default=None, help="Also append new rows to this Google Sheet")
        parser.add_argument("--sheet-name", type=str, default=None, help="Sheet tab name (default: Jobs)")
        parser.add_argument("--dry-run", action="store_true", help="Extract and print moves without saving")

    def _build_sheet_sink(self, options, config):
        sheet_id = options.get("sheet_id") or DISPATCH_SHEET_ID
        if not sheet_id or options.get("dry_run"):
            return None
        sheets = get_sheets_service()
        if sheets is None:
            log_console("Sheets service unavailable, continuing without sheet sink")
            return None
        return SheetSink(
            sheets,
            sheet_id,
            sheet_name=options.get("sheet_name") or DISPATCH_SHEET_NAME,
            header_aliases=config.get("sheet_headers") or None,
        )

    def _report(self, result):
        for move in result["moves"]:
            self.stdout.write(
                f"  {move.date or '--/--/'} {move.time or '--:--'} "
                f"{move.origin or '?'} -> {move.destination or '?'} "
                f"(T{move.counts.truck}/V{move.counts.van}/C{move.counts.car})"
            )

    def handle(self, *args, **options):
        config = load_dispatch_config()
        dry_run = options.get("dry_run", False)

        service = get_gmail_service()
        if service is None:
            self.stderr.write("Gmail service unavailable; check credentials.")
            return

        route_service = build_route_service(config)
        sheet_sink = self._build_sheet_sink(options, config)

        if options.get("limit_msg"):
            msg_id = options["limit_msg"]
            self.stdout.write(f"Ingesting single message: {msg_id}")
            try:
                result = ingest_message(
                    service, msg_id, config, route_service=route_service, sheet_sink=sheet_sink, dry_run=dry_run
                )
                self._report(result)
                if not dry_run:
                    ProcessedMessage.objects.update_or_create(
                        gmail_id=msg_id, defaults={"move_count": len(result["moves"])}
                    )
                log_console(f"Ingested {msg_id}: {len(result['moves'])} moves, {result['inserted']} inserted")
            except Exception as e:
                log_console(f"Failed to ingest {msg_id}: {e}")
            return

        days_back = options.get("days_back")
        if days_back is None:
            days_back = config.get("days_back", 7)

        log_console(f"Fetching dispatch emails from last {days_back} days...")
        all_msgs = fetch_candidate_messages(service, days_back=days_back, allowed_senders=config["allowed_senders"])
        all_msgs_by_id = {m["id"]: m for m in all_msgs}
        log_console(f"Total messages fetched: {len(all_msgs_by_id)}")

        if not options.get("force"):
            processed_ids = set(
                ProcessedMessage.objects.filter(gmail_id__in=all_msgs_by_id.keys()).values_list("gmail_id", flat=True)
            )
            all_msgs_by_id = {k: v for k, v in all_msgs_by_id.items() if k not in processed_ids}
            log_console(f"{len(all_msgs_by_id)} messages are new")

        if not all_msgs_by_id:
            log_console("No new dispatch emails found.")
            return

        stats = None if dry_run else get_stats()
        fetched = moves = inserted = duplicates = placeholders = skipped = 0

        for msg_id in all_msgs_by_id:
            try:
                result = ingest_message(
                    service, msg_id, config, route_service=route_service, sheet_sink=sheet_sink, dry_run=dry_run
                )
            except Exception as e:
                # One bad message must not stop the batch
                log_console(f"Failed to ingest {msg_id}: {e}")
                continue

            fetched += 1
            if result["skipped"]:
                skipped += 1
                if not dry_run:
                    ProcessedMessage.objects.update_or_create(gmail_id=msg_id, defaults={"move_count": 0})
                continue

            moves += len(result["moves"])
            inserted += result["inserted"]
            duplicates += result["duplicates"]
            placeholders += int(result["placeholder"])
            if dry_run:
                self.stdout.write(f"{msg_id}:")
                self._report(result)
                continue
            ProcessedMessage.objects.update_or_create(gmail_id=msg_id, defaults={"move_count": len(result["moves"])})

        if stats is not None:
            stats.total_fetched += fetched
            stats.total_moves += moves
            stats.total_inserted += inserted
            stats.total_duplicates += duplicates
            stats.total_placeholders += placeholders
            stats.total_skipped += skipped
            stats.save()

        log_console(
            f"Fetched={fetched}, Moves={moves}, Inserted={inserted}, "
            f"Duplicates={duplicates}, Placeholders={placeholders}, Skipped={skipped}"
        )
