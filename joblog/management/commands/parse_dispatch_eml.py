import json
import os

from django.core.management.base import BaseCommand

from ingest import ingest_raw_eml
from move_extractor import EmailBodyParser, ExtractionEngine, body_to_lines


class Command(BaseCommand):
    help = "Dry-run move extraction of a raw .eml file (no DB write)."

    def add_arguments(self, parser):
        parser.add_argument("--file", required=True, help="Path to .eml file")
        parser.add_argument("--json", action="store_true", help="Output full JSON result")
        parser.add_argument("--trace", action="store_true", help="Show which rules fired on each line")

    def handle(self, *args, **opts):
        path = opts["file"]
        if not os.path.exists(path):
            self.stderr.write(f"File not found: {path}")
            return
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            raw = f.read()

        result = ingest_raw_eml(raw)
        moves = [m.to_dict() for m in result["moves"]]

        if opts["json"]:
            payload = {
                "msg_id": result["msg_id"],
                "moves": moves,
                "placeholder": result["placeholder"],
                "records": [{k: v for k, v in r.items() if k != "received_at"} for r in result["records"]],
            }
            self.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        if opts.get("trace"):
            meta = EmailBodyParser.parse_raw_eml(raw)
            for outcome in ExtractionEngine().trace(body_to_lines(meta["body"])):
                fired = ",".join(outcome.rules) or "-"
                marker = " => emitted" if outcome.emitted else ""
                self.stdout.write(f"[{fired}] {outcome.line}{marker}")
            self.stdout.write("")

        if not moves:
            self.stdout.write("No moves found (a placeholder row would be recorded).")
            return
        for i, move in enumerate(moves, 1):
            counts = move["counts"]
            self.stdout.write(
                f"{i}. {move['date'] or '--/--/'} {move['time'] or '--:--'} "
                f"{move['origin'] or '?'} -> {move['destination'] or '?'} "
                f"(trucks={counts['truck']}, vans={counts['van']}, cars={counts['car']})"
            )
