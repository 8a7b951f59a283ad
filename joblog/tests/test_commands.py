# test_commands.py
import csv
import json

import pytest
from django.core.management import call_command

from ingest import process_metadata
from joblog.models import ProcessedMessage
from joblog.tests.test_ingest import RAW_EML

pytestmark = pytest.mark.django_db


class FakeGmail:
    """users().messages().list(...).execute() returning a single page."""

    def __init__(self, ids):
        self.ids = ids

    def users(self):
        return self

    def messages(self):
        return self

    def list(self, **kwargs):
        self.last_query = kwargs.get("q")
        return self

    def execute(self):
        return {"messages": [{"id": i} for i in self.ids]}


def test_parse_dispatch_eml_prints_moves(tmp_path, capsys):
    path = tmp_path / "friday.eml"
    path.write_text(RAW_EML, encoding="utf-8")

    call_command("parse_dispatch_eml", "--file", str(path))

    out = capsys.readouterr().out
    assert "07/03/ 08:30 Depot A -> Site B" in out


def test_parse_dispatch_eml_json(tmp_path, capsys):
    path = tmp_path / "friday.eml"
    path.write_text(RAW_EML, encoding="utf-8")

    call_command("parse_dispatch_eml", "--file", str(path), "--json")

    payload = json.loads(capsys.readouterr().out)
    assert payload["moves"][0]["origin"] == "Depot A"
    assert payload["records"][0]["vehicle_type"] == "Van"


def test_parse_dispatch_eml_trace(tmp_path, capsys):
    path = tmp_path / "friday.eml"
    path.write_text(RAW_EML, encoding="utf-8")

    call_command("parse_dispatch_eml", "--file", str(path), "--trace")

    out = capsys.readouterr().out
    assert "[weekday_date] Fri 7th Mar" in out
    assert "[end_of_input]" in out


def test_export_moves_writes_csv(tmp_path, dispatch_metadata, dispatch_config):
    process_metadata(dispatch_metadata, dispatch_config)
    dispatch_metadata.update(msg_id="m2", body="nothing here")
    process_metadata(dispatch_metadata, dispatch_config)
    output = tmp_path / "moves.csv"

    call_command("export_moves", "--output", str(output), "--skip-placeholders")

    with output.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["origin"] == "Warehouse 1"
    assert rows[0]["date"] == "05/03/"


def test_ingest_dispatch_marks_messages_processed(monkeypatch, dispatch_metadata, dispatch_config):
    gmail = FakeGmail(["m1", "m2"])
    monkeypatch.setattr("joblog.management.commands.ingest_dispatch.get_gmail_service", lambda: gmail)
    monkeypatch.setattr("joblog.management.commands.ingest_dispatch.load_dispatch_config", lambda: dispatch_config)
    monkeypatch.setattr("joblog.management.commands.ingest_dispatch.DISPATCH_SHEET_ID", "")
    monkeypatch.setattr("ingest.GOOGLE_MAPS_API_KEY", "")
    monkeypatch.setattr("ingest.extract_metadata", lambda service, msg_id: dict(dispatch_metadata, msg_id=msg_id))

    call_command("ingest_dispatch")

    assert set(ProcessedMessage.objects.values_list("gmail_id", flat=True)) == {"m1", "m2"}
    assert ProcessedMessage.objects.get(gmail_id="m1").move_count == 1
    assert "example-logistics.co.uk" in gmail.last_query


def test_ingest_dispatch_marks_skipped_senders_processed(monkeypatch, dispatch_metadata, dispatch_config):
    gmail = FakeGmail(["m1", "m2"])
    fetched = []

    def fake_metadata(service, msg_id):
        fetched.append(msg_id)
        sender = dispatch_metadata["sender"] if msg_id == "m1" else "spam@elsewhere.example"
        return dict(dispatch_metadata, msg_id=msg_id, sender=sender)

    monkeypatch.setattr("joblog.management.commands.ingest_dispatch.get_gmail_service", lambda: gmail)
    monkeypatch.setattr("joblog.management.commands.ingest_dispatch.load_dispatch_config", lambda: dispatch_config)
    monkeypatch.setattr("joblog.management.commands.ingest_dispatch.DISPATCH_SHEET_ID", "")
    monkeypatch.setattr("ingest.GOOGLE_MAPS_API_KEY", "")
    monkeypatch.setattr("ingest.extract_metadata", fake_metadata)

    call_command("ingest_dispatch")
    call_command("ingest_dispatch")

    assert ProcessedMessage.objects.get(gmail_id="m2").move_count == 0
    assert fetched == ["m1", "m2"]
