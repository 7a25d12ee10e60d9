import base64
import io
import re
from decimal import Decimal

from reportlab.pdfgen import canvas

from portal.utils import pdf_generator
from portal.utils.pdf_generator import draw_payslip, format_currency, render_payslip

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class FakeFaculty:
    name = "Ravi Kumar"
    department = "CSE"
    designation = "Professor"


class FakeRecord:
    def __init__(self, amount="48000", **components):
        self.id = 1
        self.username = "F001"
        self.month = "March"
        self.year = 2024
        self.amount = Decimal(amount)
        self.faculty = FakeFaculty()
        self._components = {k: Decimal(v) for k, v in components.items()}

    def component(self, name):
        return self._components.get(name, Decimal("0"))


def _record():
    return FakeRecord(basic="50000", hra="5000", pf="1800", tax="5000", professional_tax="200")


def _page_count(pdf):
    return len(re.findall(rb"/Type\s*/Page\b", pdf))


def test_format_currency_indian_grouping():
    assert format_currency(1234567.5) == "12,34,568"
    assert format_currency(48000) == "48,000"
    assert format_currency(999) == "999"
    assert format_currency(100000) == "1,00,000"
    assert format_currency(None) == "0"
    assert format_currency(Decimal("-2500")) == "-2,500"


def test_ledger_always_shows_llp_as_zero():
    items = pdf_generator.deduction_items(_record())

    assert items[-1] == ("LLP", Decimal("0"))
    assert len(pdf_generator.earning_items(_record())) == 6


def test_drawn_totals_match_stored_amount(tmp_path):
    c = canvas.Canvas(io.BytesIO())
    totals = draw_payslip(c, _record(), FakeFaculty(), "March", 2024, header_image=tmp_path / "missing.jpg")

    assert totals.gross == Decimal("55000")
    assert totals.deductions == Decimal("7000")
    assert totals.net == Decimal("48000")


def test_identity_falls_back_when_faculty_is_gone(tmp_path):
    c = canvas.Canvas(io.BytesIO())
    totals = draw_payslip(c, _record(), None, "March", 2024, header_image=tmp_path / "missing.jpg")

    assert totals.net == Decimal("48000")


def test_render_without_header_image_uses_text(tmp_path, monkeypatch):
    monkeypatch.setattr(pdf_generator.config, "HEADER_IMAGE_PATH", tmp_path / "missing.jpg")

    pdf = render_payslip(_record())

    assert pdf.startswith(b"%PDF")
    assert _page_count(pdf) == 1


def test_render_with_header_image(tmp_path):
    image = tmp_path / "header.png"
    image.write_bytes(PNG_1X1)

    pdf = render_payslip(_record(), header_image=image)

    assert pdf.startswith(b"%PDF")
    assert b"/Subtype /Image" in pdf or b"/Subtype/Image" in pdf


def test_unreadable_header_image_falls_back_to_text(tmp_path):
    image = tmp_path / "broken.jpg"
    image.write_bytes(b"not an image")

    pdf = render_payslip(_record(), header_image=image)

    assert pdf.startswith(b"%PDF")
