"""Bulk lot upload: map spreadsheet-style CSV headers onto LotImportRow.

Header matching ignores case, spaces and underscores, so "Face Value",
"faceValueUSD" and "face_value_usd" all land on face_value_usd.
"""

import re

from pydantic import ValidationError as SchemaError

from src.tc_common.errors import AppError, ValidationError
from src.tc_common.money import to_usd
from src.tc_inventory.application.schemas import LotImportRow
from src.tc_inventory.domain.validation import check_balance, check_new_lot

_ALIASES = {
    "credit_type": ("credittype", "type", "credit", "code"),
    "tax_year": ("taxyear", "year"),
    "face_value_usd": ("facevalueusd", "facevalue", "face"),
    "available_usd": ("availableusd", "available"),
    "min_block_usd": ("minblockusd", "minblock", "min"),
    "price_per_dollar": ("priceperdollar", "price"),
    "jurisdiction": ("jurisdiction",),
    "state_restriction": ("staterestriction", "state"),
    "close_by": ("closeby",),
    "status": ("status",),
    "broker_name": ("brokername", "broker"),
    "notes": ("notes",),
}
_FIELD_BY_KEY = {alias: field for field, aliases in _ALIASES.items() for alias in aliases}

# upper-cased so "itc" and "active" parse as enum members
_ENUM_FIELDS = ("credit_type", "status")

# spreadsheet rows start at 2, below the header
_FIRST_ROW = 2


def _normalize(header: str) -> str:
    return re.sub(r"[^a-z0-9]", "", header.lower())


def _fields(raw: dict[str, str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for header, value in raw.items():
        field = _FIELD_BY_KEY.get(_normalize(header))
        if field is None or not value or field in out:
            continue
        out[field] = value.upper() if field in _ENUM_FIELDS else value
    return out


def _schema_problem(exc: SchemaError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}" for err in exc.errors()
    )


def parse_lot_rows(raw_rows: list[dict[str, str]], max_rows: int) -> list[LotImportRow]:
    """Validate every row; all-or-nothing.

    Raises ValidationError listing each failing row by its spreadsheet line.
    """
    if not raw_rows:
        raise ValidationError("CSV has no data rows")
    if len(raw_rows) > max_rows:
        raise ValidationError(f"CSV has {len(raw_rows)} rows; the limit is {max_rows}")

    parsed: list[LotImportRow] = []
    problems: list[str] = []
    for line, raw in enumerate(raw_rows, start=_FIRST_ROW):
        try:
            row = LotImportRow(**_fields(raw))
            check_new_lot(row.face_value_usd, row.min_block_usd, row.price_per_dollar)
            if row.available_usd is not None:
                check_balance(to_usd(row.face_value_usd), to_usd(row.available_usd))
        except SchemaError as exc:
            problems.append(f"row {line}: {_schema_problem(exc)}")
            continue
        except AppError as exc:
            problems.append(f"row {line}: {exc.message}")
            continue
        parsed.append(row)

    if problems:
        raise ValidationError("Upload rejected; " + " | ".join(problems))
    return parsed
