"""CSV text helpers used by admin exports and bulk uploads."""

from datetime import date
from decimal import Decimal

import pytest

from src.tc_common.csv_io import read_csv, write_csv
from src.tc_common.errors import ValidationError


class TestWriteCsv:
    def test_header_then_rows(self) -> None:
        out = write_csv(("ID", "Face"), [("LOT-1", Decimal("100.00")), ("LOT-2", None)])
        assert out == "ID,Face\nLOT-1,100.00\nLOT-2,\n"

    def test_dates_iso_and_commas_quoted(self) -> None:
        out = write_csv(("Broker", "Close By"), [("Acme, LLC", date(2025, 12, 31))])
        assert out.splitlines()[1] == '"Acme, LLC",2025-12-31'

    def test_formula_cells_neutralized(self) -> None:
        out = write_csv(("Notes",), [("=HYPERLINK(\"x\")",), ("@SUM(A1)",)])
        lines = out.splitlines()
        assert lines[1].startswith("\"'=HYPERLINK")
        assert lines[2] == "'@SUM(A1)"


class TestReadCsv:
    def test_bom_and_blank_rows(self) -> None:
        content = "\ufeffType,Face\nITC,100\n,\nPTC,200\n".encode()
        assert read_csv(content) == [{"Type": "ITC", "Face": "100"}, {"Type": "PTC", "Face": "200"}]

    def test_values_trimmed(self) -> None:
        assert read_csv(b" Type , Face \n ITC , 100 \n") == [{"Type": "ITC", "Face": "100"}]

    def test_not_utf8(self) -> None:
        with pytest.raises(ValidationError):
            read_csv("Type\nCrédit\n".encode("latin-1"))

    def test_empty_body(self) -> None:
        with pytest.raises(ValidationError):
            read_csv(b"")
