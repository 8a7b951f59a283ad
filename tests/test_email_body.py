import base64
from datetime import datetime, timezone

from move_extractor import EmailBodyParser, body_to_lines, extract_moves


def _b64(text):
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


SIMPLE_EML = """From: Dispatch Desk <ops@example-logistics.co.uk>
To: crew@example.com
Subject: Moves for Wednesday
Date: Tue, 04 Mar 2025 16:20:00 +0000
Content-Type: text/plain; charset="utf-8"

Wed 5th Mar 09:00
From: Warehouse 1
To: Client Site
2 vans
"""


def test_html_to_text_keeps_block_lines():
    html = "<div><p>Mon 3rd Feb</p><p>From: <b>Depot A</b></p>To: Site B<br>2 vans</div>"

    lines = body_to_lines(EmailBodyParser.html_to_text(html))

    assert lines == ["Mon 3rd Feb", "From: Depot A", "To: Site B", "2 vans"]


def test_html_to_text_drops_scripts():
    text = EmailBodyParser.html_to_text("<style>p {}</style><p>Hello</p><script>x()</script>")
    assert body_to_lines(text) == ["Hello"]


def test_body_to_lines_handles_crlf_and_blanks():
    assert body_to_lines("a\r\n\r\n  **b**  \rc") == ["a", "b", "c"]
    assert body_to_lines(None) == []


def test_gmail_payload_prefers_plain_text_in_nested_parts():
    payload = {
        "mimeType": "multipart/mixed",
        "parts": [
            {
                "mimeType": "multipart/alternative",
                "parts": [
                    {"mimeType": "text/html", "body": {"data": _b64("<p>html version</p>")}},
                    {"mimeType": "text/plain", "body": {"data": _b64("plain version")}},
                ],
            }
        ],
    }

    assert EmailBodyParser.extract_from_gmail_payload(payload) == "plain version"


def test_gmail_payload_falls_back_to_html():
    payload = {
        "mimeType": "multipart/alternative",
        "parts": [{"mimeType": "text/html", "body": {"data": _b64("<p>From: Yard</p><p>To: Hall</p>")}}],
    }

    body = EmailBodyParser.extract_from_gmail_payload(payload)

    assert body_to_lines(body) == ["From: Yard", "To: Hall"]


def test_gmail_payload_single_part_body():
    payload = {"mimeType": "text/plain", "body": {"data": _b64("To: Site B")}}
    assert EmailBodyParser.extract_from_gmail_payload(payload) == "To: Site B"
    assert EmailBodyParser.extract_from_gmail_payload({"mimeType": "text/plain", "body": {}}) == ""


def test_decode_header_value():
    assert EmailBodyParser.decode_header_value("=?utf-8?q?Caf=C3=A9_moves?=") == "Café moves"
    assert EmailBodyParser.decode_header_value("") == ""


def test_parse_raw_eml():
    meta = EmailBodyParser.parse_raw_eml(SIMPLE_EML)

    assert meta["subject"] == "Moves for Wednesday"
    assert meta["sender_email"] == "ops@example-logistics.co.uk"
    assert meta["timestamp"] == datetime(2025, 3, 4, 16, 20, tzinfo=timezone.utc)

    moves = extract_moves(body_to_lines(meta["body"]))
    assert len(moves) == 1
    assert moves[0].origin == "Warehouse 1"


def test_parse_raw_eml_missing_date_uses_clock():
    fixed = datetime(2025, 1, 1, tzinfo=timezone.utc)
    meta = EmailBodyParser.parse_raw_eml("Subject: x\n\nbody", now_fn=lambda: fixed)
    assert meta["timestamp"] == fixed
    assert meta["body"] == "body"


def test_parse_raw_eml_empty():
    fixed = datetime(2025, 1, 1, tzinfo=timezone.utc)
    meta = EmailBodyParser.parse_raw_eml("", now_fn=lambda: fixed)
    assert meta["body"] == ""
    assert meta["timestamp"] == fixed
