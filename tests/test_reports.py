import io
import json
import re
from decimal import Decimal
from zipfile import ZipFile

import pytest

from portal.errors import NotFoundError, PortalError
from portal.salary import reports


class FakeRecord:
    def __init__(self, username, month, year, record_id=1):
        self.id = record_id
        self.username = username
        self.month = month
        self.year = year
        self.amount = Decimal("1000")
        self.faculty = None

    def component(self, name):
        return Decimal("1000") if name == "basic" else Decimal("0")


def _periods(records):
    return [(r.month, r.year) for r in records]


def test_chronological_uses_calendar_order():
    records = [FakeRecord("F1", "March", 2024), FakeRecord("F1", "January", 2024), FakeRecord("F1", "February", 2024)]

    assert _periods(reports.chronological(records)) == [("January", 2024), ("February", 2024), ("March", 2024)]


def test_newest_first_crosses_year_boundary():
    records = [FakeRecord("F1", "December", 2023), FakeRecord("F1", "January", 2024), FakeRecord("F1", "April", 2023)]

    assert _periods(reports.newest_first(records)) == [("January", 2024), ("December", 2023), ("April", 2023)]


def test_grouped_by_faculty():
    records = [
        FakeRecord("F2", "January", 2024),
        FakeRecord("F1", "March", 2024),
        FakeRecord("F1", "January", 2024),
    ]

    ordered = reports.grouped_by_faculty(records)

    assert [(r.username, r.month) for r in ordered] == [("F1", "January"), ("F1", "March"), ("F2", "January")]


def test_entry_names():
    record = FakeRecord("F001", "March", 2024)

    assert reports.faculty_entry_name(record) == "2024-03_Payslip_March.pdf"
    assert reports.monthly_entry_name(record) == "F001_Payslip_March_2024.pdf"


def test_collection_has_one_page_per_record_in_given_order(monkeypatch):
    drawn = []
    real_draw = reports.draw_payslip

    def spy(c, record, faculty, month, year, header_image=None):
        drawn.append((month, year))
        return real_draw(c, record, faculty, month, year, header_image=header_image)

    monkeypatch.setattr(reports, "draw_payslip", spy)
    records = reports.chronological(
        [FakeRecord("F1", "March", 2024), FakeRecord("F1", "January", 2024), FakeRecord("F1", "February", 2024)]
    )

    pdf = reports.build_payslip_collection(records)

    assert drawn == [("January", 2024), ("February", 2024), ("March", 2024)]
    assert len(re.findall(rb"/Type\s*/Page\b", pdf)) == 3


def test_empty_collection_is_not_found():
    with pytest.raises(NotFoundError):
        reports.build_payslip_collection([])


def test_archive_contains_one_pdf_per_record():
    records = [FakeRecord("F001", "January", 2024, 1), FakeRecord("F001", "February", 2024, 2)]

    result = reports.build_payslip_archive(records, reports.faculty_entry_name)

    with ZipFile(io.BytesIO(result.content)) as zf:
        names = zf.namelist()
        assert names == ["2024-01_Payslip_January.pdf", "2024-02_Payslip_February.pdf"]
        assert zf.read(names[0]).startswith(b"%PDF")
    assert result.failed == []


def test_archive_isolates_failed_render():
    records = [FakeRecord("F001", "January", 2024, 1), FakeRecord("F002", "January", 2024, 2)]

    def render(record):
        if record.username == "F002":
            raise RuntimeError("bad data")
        return b"%PDF-fake"

    result = reports.build_payslip_archive(records, reports.monthly_entry_name, render=render)

    assert result.entries == ["F001_Payslip_January_2024.pdf"]
    assert result.failed[0]["username"] == "F002"
    with ZipFile(io.BytesIO(result.content)) as zf:
        manifest = json.loads(zf.read(reports.MANIFEST_NAME))
        assert manifest["failed"][0]["error"] == "bad data"
        assert zf.read("F001_Payslip_January_2024.pdf") == b"%PDF-fake"


def test_archive_duplicate_names_get_id_suffix():
    records = [FakeRecord("F001", "January", 2024, 7), FakeRecord("F001", "January", 2024, 8)]

    result = reports.build_payslip_archive(records, reports.monthly_entry_name, render=lambda r: b"%PDF")

    assert result.entries == ["F001_Payslip_January_2024.pdf", "F001_Payslip_January_2024_8.pdf"]


def test_archive_fails_when_nothing_renders():
    def render(record):
        raise RuntimeError("nope")

    with pytest.raises(PortalError):
        reports.build_payslip_archive([FakeRecord("F1", "May", 2024)], reports.monthly_entry_name, render=render)


def test_empty_archive_is_not_found():
    with pytest.raises(NotFoundError):
        reports.build_payslip_archive([], reports.monthly_entry_name)
