# joblog/management/commands/export_moves.py

import csv

from django.core.management.base import BaseCommand

from joblog.models import DispatchMove
from joblog.services.dispatch_service import DispatchService

EXPORT_COLUMNS = [
    "job_id",
    "date",
    "time",
    "origin",
    "destination",
    "vehicle_type",
    "trucks",
    "vans",
    "cars",
    "distance",
    "duration",
    "map_url",
    "subject",
    "source_email_id",
    "needs_review",
    "is_placeholder",
]


class Command(BaseCommand):
    help = "Export the dispatch job log to CSV"

    def add_arguments(self, parser):
        parser.add_argument("--output", default="dispatch_moves.csv", help="CSV file to write")
        parser.add_argument("--skip-placeholders", action="store_true", help="Leave out no-move placeholder rows")

    def handle(self, *args, **options):
        queryset = DispatchMove.objects.all()
        if options.get("skip_placeholders"):
            queryset = queryset.filter(is_placeholder=False)

        count = 0
        with open(options["output"], "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(EXPORT_COLUMNS)
            for move in queryset:
                record = DispatchService.to_record(move)
                writer.writerow([record[col] for col in EXPORT_COLUMNS])
                count += 1

        self.stdout.write(self.style.SUCCESS(f"Exported {count} rows to {options['output']}"))
