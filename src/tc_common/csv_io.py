"""CSV text for admin exports and bulk lot uploads (stdlib csv)."""

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from src.tc_common.errors import ValidationError

# a spreadsheet evaluates cells starting with these as formulas
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime | date):
        return value.isoformat()
    text = str(value)
    if text.startswith(_FORMULA_PREFIXES):
        return "'" + text
    return text


def write_csv(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    writer.writerows([_cell(v) for v in row] for row in rows)
    return buf.getvalue()


def read_csv(content: bytes) -> list[dict[str, str]]:
    """Parse a CSV with a header line into one dict per non-blank row.

    Accepts a UTF-8 byte-order mark. Raises ValidationError for anything that
    is not UTF-8 text or not parseable as CSV.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("CSV must be UTF-8 text") from exc
    reader = csv.DictReader(io.StringIO(text, newline=""))
    try:
        rows = [
            {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
            for row in reader
        ]
    except csv.Error as exc:
        raise ValidationError(f"Malformed CSV at line {reader.line_num}: {exc}") from exc
    if not reader.fieldnames:
        raise ValidationError("CSV has no header line")
    return [row for row in rows if any(row.values())]
