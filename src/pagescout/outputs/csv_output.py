"""CSV output formatter for scraped records."""

import os
from datetime import date, datetime, timezone

from pagescout.models import ExtractionRecord


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv(records: list[ExtractionRecord]) -> str:
    """Serialize records as CSV text.

    The header is the union of all record keys in first-seen order. Every
    cell, header included, is double-quoted with inner quotes doubled.
    Missing values become empty cells. Rows are joined by a bare newline and
    there is no trailing newline.

    Args:
        records: Records to serialize

    Returns:
        CSV text, or an empty string for no records.

    """
    if not records:
        return ''

    headers: list[str] = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)

    lines = [','.join(_quote(header) for header in headers)]
    for record in records:
        lines.append(','.join(_quote(str(record.get(header, ''))) for header in headers))
    return '\n'.join(lines)


def export_filename(day: date | None = None) -> str:
    """Attachment name for an export, dated today (UTC) unless a day is given."""
    day = day or datetime.now(timezone.utc).date()
    return f'scraped-data-{day.isoformat()}.csv'


def save_csv(filepath: str, records: list[ExtractionRecord]):
    """Serialize records and write them to a CSV file.

    Args:
        filepath: Path to save the file
        records: Records to serialize

    """
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8', newline='') as f:
        f.write(to_csv(records))
