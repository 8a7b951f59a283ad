"""Email body extraction for dispatch messages.

This module contains the EmailBodyParser class which pulls a plain-text body
out of Gmail API payloads and raw EML messages, decodes MIME parts and turns
HTML into text while keeping the line structure the extraction engine relies
on.
"""

import base64
import re
from datetime import datetime, timezone
from email import message_from_string
from email.header import decode_header as eml_decode_header
from email.utils import parseaddr, parsedate_to_datetime
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from .line_normalizer import normalize_lines

BLOCK_TAGS = ["p", "div", "tr", "li", "h1", "h2", "h3", "h4", "table"]


class EmailBodyParser:
    """Parses and extracts body text from email messages.

    This class handles:
    - Decoding base64url body data from Gmail parts
    - Gmail API payload body extraction (recursive multipart handling)
    - Raw EML message parsing
    - HTML to line-preserving plain text conversion
    """

    @staticmethod
    def find_part(parts: list, mime_type: str) -> str:
        """Return the decoded body of the first part with ``mime_type``.

        Walks nested multipart sections depth-first.
        """
        for part in parts or []:
            body_data = part.get("body", {}).get("data")
            if part.get("mimeType") == mime_type and body_data:
                return base64.urlsafe_b64decode(body_data).decode("utf-8", errors="ignore")
            if "parts" in part:
                found = EmailBodyParser.find_part(part["parts"], mime_type)
                if found:
                    return found
        return ""

    @staticmethod
    def extract_from_gmail_payload(payload: dict) -> str:
        """Extract a plain-text body from a Gmail ``format=full`` payload.

        text/plain is preferred because it keeps the sender's line breaks;
        HTML is converted as a fallback.
        """
        parts = payload.get("parts", [])
        text = EmailBodyParser.find_part(parts, "text/plain")
        if text:
            return text

        html = EmailBodyParser.find_part(parts, "text/html")
        if html:
            return EmailBodyParser.html_to_text(html)

        data = payload.get("body", {}).get("data")
        if not data:
            return ""
        decoded = base64.urlsafe_b64decode(data).decode("utf-8", errors="ignore")
        if payload.get("mimeType") == "text/html":
            return EmailBodyParser.html_to_text(decoded)
        return decoded

    @staticmethod
    def decode_header_value(raw_val: str) -> str:
        """Decode RFC 2047 encoded header values to unicode."""
        if not raw_val:
            return ""

        try:
            decoded_chunks = []
            for text, enc in eml_decode_header(raw_val):
                if isinstance(text, bytes):
                    try:
                        decoded_chunks.append(text.decode(enc or "utf-8", errors="ignore"))
                    except LookupError:
                        decoded_chunks.append(text.decode("utf-8", errors="ignore"))
                else:
                    decoded_chunks.append(text)
            return "".join(decoded_chunks)
        except Exception:
            return raw_val

    @staticmethod
    def html_to_text(html: str) -> str:
        """Convert HTML to plain text, one block element or <br> per line.

        Args:
            html: HTML content

        Returns:
            Plain text with tags removed and line breaks kept
        """
        if not html:
            return ""

        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        for br in soup.find_all("br"):
            br.replace_with("\n")
        for block in soup.find_all(BLOCK_TAGS):
            block.insert_after("\n")
        text = soup.get_text()
        return re.sub(r"\n{3,}", "\n\n", text)

    @staticmethod
    def sender_email(sender: str) -> str:
        """Return the lowercased address part of a From header."""
        return parseaddr(sender or "")[1].lower()

    @staticmethod
    def parse_raw_eml(raw_text: str, now_fn=None) -> Dict:
        """Parse a raw EML (RFC 822) message string and return metadata.

        Lets a saved message be run through the extractor without a live
        Gmail API service.

        Args:
            raw_text: Raw EML message text
            now_fn: Function to get current time (for testing)

        Returns:
            Dictionary with keys: subject, sender, sender_email, timestamp, body
        """
        if now_fn is None:
            now_fn = lambda: datetime.now(timezone.utc)

        if not raw_text:
            return {"subject": "", "sender": "", "sender_email": "", "timestamp": now_fn(), "body": ""}

        eml = message_from_string(raw_text)
        subject = EmailBodyParser.decode_header_value(eml.get("Subject", ""))
        sender = EmailBodyParser.decode_header_value(eml.get("From", ""))

        try:
            timestamp = parsedate_to_datetime(eml.get("Date", ""))
        except (TypeError, ValueError):
            timestamp = now_fn()

        body_text = ""
        body_html = ""
        for part in eml.walk() if eml.is_multipart() else [eml]:
            if part.is_multipart():
                continue
            if "attachment" in (part.get("Content-Disposition") or "").lower():
                continue
            payload = part.get_payload(decode=True)
            if payload is None:
                continue
            decoded = payload.decode(part.get_content_charset() or "utf-8", errors="ignore")
            ctype = part.get_content_type()
            if ctype == "text/plain" and not body_text:
                body_text = decoded
            elif ctype == "text/html" and not body_html:
                body_html = decoded

        if not body_text and body_html:
            body_text = EmailBodyParser.html_to_text(body_html)

        return {
            "subject": subject,
            "sender": sender,
            "sender_email": EmailBodyParser.sender_email(sender),
            "timestamp": timestamp,
            "body": body_text,
        }


def body_to_lines(body: Optional[str]) -> List[str]:
    """Split a body into normalized, non-blank lines."""
    if not body:
        return []
    return normalize_lines(body.replace("\r\n", "\n").replace("\r", "\n").split("\n"))
