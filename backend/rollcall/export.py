"""CSV rendering for scan exports."""
from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

SCAN_EXPORT_HEADER = ("Student Number", "Scanned At", "Scanned By")


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix; naive values are taken as UTC."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def render_csv(header: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Quote every cell, double embedded quotes, join rows with ``\\n``.

    The result has no trailing newline. ``None`` cells render as empty strings.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buffer.getvalue().removesuffix("\n")


def render_scan_export(rows: Iterable[tuple[str, datetime | str, str | None]]) -> str:
    """Render ``(student_number, scanned_at, scanned_by)`` rows as the export CSV."""

    return render_csv(
        SCAN_EXPORT_HEADER,
        (
            (number, format_timestamp(at) if isinstance(at, datetime) else at, by)
            for number, at, by in rows
        ),
    )
