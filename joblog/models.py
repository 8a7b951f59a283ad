from django.db import models


class DispatchMove(models.Model):
    """One row of the job log, built from an extracted Move."""

    job_id = models.CharField(max_length=32, unique=True)
    source_email_id = models.CharField(max_length=255, db_index=True)
    subject = models.TextField(blank=True)
    sender = models.CharField(max_length=255, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)

    # "DD/MM/" with no year, "HH:MM" 24-hour
    move_date = models.CharField(max_length=8, blank=True)
    move_time = models.CharField(max_length=5, blank=True)
    origin = models.TextField(blank=True)
    destination = models.TextField(blank=True)

    trucks = models.PositiveIntegerField(default=0)
    vans = models.PositiveIntegerField(default=0)
    cars = models.PositiveIntegerField(default=0)
    vehicle_type = models.CharField(max_length=16, blank=True)

    distance = models.CharField(max_length=64, blank=True)
    duration = models.CharField(max_length=64, blank=True)
    map_url = models.URLField(max_length=1024, blank=True)

    dedupe_key = models.CharField(max_length=1024, unique=True)
    is_placeholder = models.BooleanField(default=False)
    needs_review = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        if self.is_placeholder:
            return f"{self.job_id} – no moves found ({self.subject[:40]})"
        return f"{self.job_id} – {self.move_date} {self.move_time} {self.origin} → {self.destination}"


class ProcessedMessage(models.Model):
    gmail_id = models.CharField(max_length=255, unique=True, db_index=True)
    processed_at = models.DateTimeField(auto_now_add=True)
    move_count = models.IntegerField(default=0)


class IngestionStats(models.Model):
    date = models.DateField(primary_key=True)
    total_fetched = models.IntegerField(default=0)
    total_moves = models.IntegerField(default=0)
    total_inserted = models.IntegerField(default=0)
    total_duplicates = models.IntegerField(default=0)
    total_placeholders = models.IntegerField(default=0)
    total_skipped = models.IntegerField(default=0)
    last_updated = models.DateTimeField(auto_now=True)
