from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="DispatchMove",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("job_id", models.CharField(max_length=32, unique=True)),
                ("source_email_id", models.CharField(db_index=True, max_length=255)),
                ("subject", models.TextField(blank=True)),
                ("sender", models.CharField(blank=True, max_length=255)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("move_date", models.CharField(blank=True, max_length=8)),
                ("move_time", models.CharField(blank=True, max_length=5)),
                ("origin", models.TextField(blank=True)),
                ("destination", models.TextField(blank=True)),
                ("trucks", models.PositiveIntegerField(default=0)),
                ("vans", models.PositiveIntegerField(default=0)),
                ("cars", models.PositiveIntegerField(default=0)),
                ("vehicle_type", models.CharField(blank=True, max_length=16)),
                ("distance", models.CharField(blank=True, max_length=64)),
                ("duration", models.CharField(blank=True, max_length=64)),
                ("map_url", models.URLField(blank=True, max_length=1024)),
                ("dedupe_key", models.CharField(max_length=1024, unique=True)),
                ("is_placeholder", models.BooleanField(default=False)),
                ("needs_review", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="ProcessedMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("gmail_id", models.CharField(db_index=True, max_length=255, unique=True)),
                ("processed_at", models.DateTimeField(auto_now_add=True)),
                ("move_count", models.IntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="IngestionStats",
            fields=[
                ("date", models.DateField(primary_key=True, serialize=False)),
                ("total_fetched", models.IntegerField(default=0)),
                ("total_moves", models.IntegerField(default=0)),
                ("total_inserted", models.IntegerField(default=0)),
                ("total_duplicates", models.IntegerField(default=0)),
                ("total_placeholders", models.IntegerField(default=0)),
                ("total_skipped", models.IntegerField(default=0)),
                ("last_updated", models.DateTimeField(auto_now=True)),
            ],
        ),
    ]
