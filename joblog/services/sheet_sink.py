"""
Google Sheets job log sink.

Appends dispatch records to a sheet whose first row holds the column headers.
Columns are matched by normalized header text, so the sheet owner can reorder
or rename columns (within the configured aliases) without code changes.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_HEADER_ALIASES: Dict[str, List[str]] = {
    "job_id": ["job id"],
    "date": ["date"],
    "time": ["time"],
    "origin": ["from", "origin"],
    "destination": ["to", "destination"],
    "vehicle_type": ["vehicle type", "vehicles"],
    "trucks": ["trucks"],
    "vans": ["vans"],
    "cars": ["cars"],
    "distance": ["distance"],
    "duration": ["duration"],
    "map_url": ["map link"],
    "subject": ["subject"],
    "dedupe_key": ["dedupe key"],
}


class SheetSinkError(Exception):
    """Raised when the target sheet cannot be used as a job log."""
    pass


def clean_header(h: str) -> str:
    """
    Clean and normalize a header string.

    Args:
        h: Raw header string

    Returns:
        Lowercased, stripped header with spaces/dashes replaced by underscores
    """
    if not h:
        return ""
    return "_".join(str(h).strip().lower().replace("-", " ").split())


def generate_job_id(when: Optional[datetime] = None) -> str:
    """Short id a person can type back in: DM-YYMMDD-XXXXXX."""
    when = when or datetime.now()
    return f"DM-{when.strftime('%y%m%d')}-{uuid.uuid4().hex[:6].upper()}"


class SheetSink:
    """Header-driven writer for the job log sheet."""

    def __init__(self, service, spreadsheet_id: str, sheet_name: str = "Jobs", header_aliases=None):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.header_aliases = header_aliases or DEFAULT_HEADER_ALIASES
        self._columns: Optional[List[Optional[str]]] = None

    def _values(self):
        return self.service.spreadsheets().values()

    def read_rows(self, cell_range: Optional[str] = None) -> List[List[str]]:
        result = self._values().get(
            spreadsheetId=self.spreadsheet_id,
            range=cell_range or self.sheet_name,
        ).execute()
        return result.get("values", [])

    def column_fields(self) -> List[Optional[str]]:
        """Map each sheet column to a record field name (None if unmapped).

        Raises:
            SheetSinkError: If the header row is missing or has no dedupe column.
        """
        if self._columns is not None:
            return self._columns

        rows = self.read_rows(f"{self.sheet_name}!1:1")
        if not rows or not any(rows[0]):
            raise SheetSinkError(f"Sheet '{self.sheet_name}' has no header row")

        lookup = {}
        for field_name, aliases in self.header_aliases.items():
            lookup[clean_header(field_name)] = field_name
            for alias in aliases:
                lookup[clean_header(alias)] = field_name

        columns = [lookup.get(clean_header(h)) for h in rows[0]]
        if "dedupe_key" not in columns:
            raise SheetSinkError(f"Sheet '{self.sheet_name}' has no dedupe key column")

        unmapped = [h for h, f in zip(rows[0], columns) if f is None]
        if unmapped:
            logger.debug("Unmapped sheet columns left blank: %s", unmapped)
        self._columns = columns
        return columns

    def existing_keys(self) -> Set[str]:
        columns = self.column_fields()
        idx = columns.index("dedupe_key")
        keys = set()
        for row in self.read_rows()[1:]:
            if idx < len(row) and row[idx]:
                keys.add(row[idx])
        return keys

    def to_row(self, record: Dict) -> List:
        row = []
        for field_name in self.column_fields():
            value = record.get(field_name, "") if field_name else ""
            if value is None:
                value = ""
            elif isinstance(value, datetime):
                value = value.strftime("%Y-%m-%d %H:%M")
            row.append(value)
        return row

    def append_records(self, records: Iterable[Dict]) -> int:
        """Append records whose dedupe key is not already in the sheet.

        Returns:
            Number of rows appended
        """
        records = list(records)
        if not records:
            return 0

        seen = self.existing_keys()
        rows = []
        for record in records:
            key = record.get("dedupe_key")
            if key in seen:
                logger.info("Skipping duplicate sheet row %s", key)
                continue
            seen.add(key)
            rows.append(self.to_row(record))

        if not rows:
            return 0

        self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=self.sheet_name,
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": rows},
        ).execute()
        return len(rows)
