# test_ingest.py
from datetime import datetime

import pytest

import ingest
from ingest import build_gmail_query, ingest_message, ingest_raw_eml, is_allowed_sender, process_metadata
from joblog.models import DispatchMove
from joblog.services.route_service import RouteInfo
from joblog.tests.test_helpers import FakeRouteService, FakeSheetSink

pytestmark = pytest.mark.django_db

RAW_EML = """From: Someone Else <someone@elsewhere.example>
Subject: Friday run
Date: Thu, 06 Mar 2025 10:00:00 +0000
Content-Type: text/plain; charset="utf-8"

Fri 7th Mar
Collection: 08:30 - Location - Depot A
Drop off: Site B w3w: ///one.two.three
1 x luton
"""


@pytest.mark.parametrize(
    "sender,allowed,expected",
    [
        ("Desk <ops@example-logistics.co.uk>", ["@example-logistics.co.uk"], True),
        ("bookings@example-events.com", ["bookings@example-events.com"], True),
        ("other@example-events.com", ["bookings@example-events.com"], False),
        ("anyone@example.org", [], True),
        ("", ["@example-logistics.co.uk"], False),
    ],
)
def test_is_allowed_sender(sender, allowed, expected):
    assert is_allowed_sender(sender, allowed) is expected


def test_build_gmail_query():
    query = build_gmail_query(7, ["@example-logistics.co.uk", "bookings@example-events.com"], now=datetime(2025, 3, 8))
    assert query == "after:2025/03/01 from:(example-logistics.co.uk OR bookings@example-events.com)"
    assert build_gmail_query(1, [], now=datetime(2025, 3, 8)) == "after:2025/03/07"


def test_process_metadata_inserts_moves(dispatch_metadata, dispatch_config):
    route = RouteInfo(distance="12 km", duration="20 mins", map_url="https://www.google.com/maps/dir/?api=1")
    route_service = FakeRouteService(route)
    sink = FakeSheetSink()

    result = process_metadata(dispatch_metadata, dispatch_config, route_service=route_service, sheet_sink=sink)

    assert result["inserted"] == 1
    assert result["placeholder"] is False
    assert route_service.calls == [("Warehouse 1", "Client Site")]
    obj = DispatchMove.objects.get()
    assert (obj.move_date, obj.move_time, obj.vans, obj.vehicle_type) == ("05/03/", "09:00", 2, "Van")
    assert obj.distance == "12 km"
    assert [r["dedupe_key"] for r in sink.appended] == [obj.dedupe_key]


def test_rerun_is_deduplicated(dispatch_metadata, dispatch_config):
    process_metadata(dispatch_metadata, dispatch_config)
    route_service = FakeRouteService(RouteInfo())
    sink = FakeSheetSink()

    result = process_metadata(dispatch_metadata, dispatch_config, route_service=route_service, sheet_sink=sink)

    assert result["inserted"] == 0
    assert result["duplicates"] == 1
    assert route_service.calls == []
    assert sink.appended == []
    assert DispatchMove.objects.count() == 1


def test_no_moves_adds_placeholder(dispatch_metadata, dispatch_config):
    dispatch_metadata["body"] = "Hi all,\nNothing booked this week.\nThanks"

    result = process_metadata(dispatch_metadata, dispatch_config)

    assert result["placeholder"] is True
    obj = DispatchMove.objects.get()
    assert obj.is_placeholder
    assert obj.dedupe_key == "m1||no-moves"

    again = process_metadata(dispatch_metadata, dispatch_config)
    assert again["inserted"] == 0
    assert DispatchMove.objects.count() == 1


def test_sender_not_allowed_is_skipped(dispatch_metadata, dispatch_config):
    dispatch_metadata["sender"] = "spam@elsewhere.example"

    result = process_metadata(dispatch_metadata, dispatch_config)

    assert result["skipped"] is True
    assert DispatchMove.objects.count() == 0


def test_dry_run_saves_nothing(dispatch_metadata, dispatch_config):
    result = process_metadata(dispatch_metadata, dispatch_config, dry_run=True)

    assert len(result["records"]) == 1
    assert result["inserted"] == 0
    assert DispatchMove.objects.count() == 0


def test_ingest_message_uses_extracted_metadata(monkeypatch, dispatch_metadata, dispatch_config):
    monkeypatch.setattr("ingest.extract_metadata", lambda service, msg_id: dict(dispatch_metadata, msg_id=msg_id))

    result = ingest_message(None, "m42", dispatch_config)

    assert result["msg_id"] == "m42"
    assert DispatchMove.objects.get().source_email_id == "m42"


def test_ingest_raw_eml_ignores_allowlist(dispatch_config):
    result = ingest_raw_eml(RAW_EML, config=dispatch_config)

    assert result["msg_id"].startswith("eml-")
    assert len(result["moves"]) == 1
    move = result["moves"][0]
    assert (move.date, move.time, move.origin, move.destination) == ("07/03/", "08:30", "Depot A", "Site B")
    assert move.counts.van == 1
    assert DispatchMove.objects.count() == 0


def test_ingest_raw_eml_msg_id_is_stable(dispatch_config):
    first = ingest_raw_eml(RAW_EML, config=dispatch_config)
    second = ingest_raw_eml(RAW_EML, config=dispatch_config)
    assert first["msg_id"] == second["msg_id"]


def test_build_route_service_reads_config(monkeypatch, dispatch_config):
    monkeypatch.setattr(ingest, "GOOGLE_MAPS_API_KEY", "abc")
    dispatch_config["regional_suffix"] = ", Scotland"

    service = ingest.build_route_service(dispatch_config)

    assert service.api_key == "abc"
    assert service.regional_suffix == ", Scotland"
