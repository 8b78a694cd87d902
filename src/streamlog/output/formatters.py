"""Render flattened records as table, count, JSON or CSV."""

import csv
import json
from io import StringIO
from typing import Any, List, Optional, Sequence

from ..records.models import FlatRecord
from ..utils.logging import get_logger

logger = get_logger(__name__)

FORMATS = ("table", "count", "json", "json_pretty", "csv")
DEFAULT_FORMAT = "table"


class UnknownFormatError(ValueError):
    """Raised for an unrecognised output format when strict handling is on."""


def _display_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def _csv_value(value: Any) -> Any:
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return value


def render_table(flat_records: Sequence[FlatRecord], fields: Sequence[str]) -> str:
    """Columnar display restricted to the requested fields, in field order."""
    rows = [[_display_value(record.get(field)) for field in fields] for record in flat_records]
    widths = [len(field) for field in fields]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    lines = ["  ".join(f"{field:<{widths[i]}}" for i, field in enumerate(fields)).rstrip()]
    lines.append("  ".join("-" * width for width in widths))
    for row in rows:
        lines.append("  ".join(f"{cell:<{widths[i]}}" for i, cell in enumerate(row)).rstrip())
    return "\n".join(lines)


def render_count(record_count: int) -> str:
    return str(record_count)


def render_json(flat_records: Sequence[FlatRecord]) -> str:
    """Compact JSON array of every flattened record, all keys included."""
    return json.dumps(list(flat_records), separators=(",", ":"), default=str)


def render_json_pretty(flat_records: Sequence[FlatRecord]) -> str:
    return json.dumps(list(flat_records), indent=4, default=str)


def render_csv(flat_records: Sequence[FlatRecord]) -> str:
    """
    One CSV line per record, columns in the record's key order, no header.

    Fields containing delimiters, quotes or newlines are quoted the standard
    way; the final line terminator is dropped.
    """
    output_buffer = StringIO()
    writer = csv.writer(output_buffer, lineterminator="\n")
    for record in flat_records:
        writer.writerow([_csv_value(value) for value in record.values()])

    output = output_buffer.getvalue()
    if output.endswith("\n"):
        output = output[:-1]
    return output


def render(
    flat_records: List[FlatRecord],
    fields: Sequence[str],
    output_format: Optional[str] = None,
    record_count: Optional[int] = None,
    unknown_format: str = "ignore",
) -> Optional[str]:
    """
    Render flattened records in the requested format.

    Args:
        flat_records: Flattened records
        fields: Requested fields (only the table format is restricted to them)
        output_format: One of FORMATS; None means table
        record_count: Number of records the store returned (defaults to len(flat_records))
        unknown_format: "ignore" renders nothing for an unknown format,
            "error" raises UnknownFormatError

    Returns:
        Rendered text, or None when an unknown format is ignored
    """
    output_format = DEFAULT_FORMAT if output_format is None else output_format
    if record_count is None:
        record_count = len(flat_records)

    if output_format == "table":
        return render_table(flat_records, fields)
    if output_format == "count":
        return render_count(record_count)
    if output_format == "json":
        return render_json(flat_records)
    if output_format == "json_pretty":
        return render_json_pretty(flat_records)
    if output_format == "csv":
        return render_csv(flat_records)

    if unknown_format == "error":
        raise UnknownFormatError(
            f"Unknown format '{output_format}'. Accepted values: {', '.join(FORMATS)}"
        )
    logger.debug("Ignoring unknown output format %r", output_format)
    return None
